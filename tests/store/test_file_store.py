"""Tests for the YAML file record store."""

from datetime import datetime, timezone

import pytest
import yaml
from conftest import FINALIZER, make_record

from issuekeeper.errors import PersistConflictError, RecordExistsError, RecordNotFoundError
from issuekeeper.models import ConditionType, RecordKey
from issuekeeper.reconciler.status import make_condition, set_condition
from issuekeeper.store import FileRecordStore

KEY = RecordKey("team-a", "login-bug")


class TestFileRecordStore:
    """Tests for FileRecordStore persistence."""

    @pytest.mark.asyncio
    async def test_create_writes_yaml(self, tmp_path):
        store = FileRecordStore(tmp_path)

        await store.create(make_record(namespace="team-a"))

        path = tmp_path / "team-a" / "login-bug.yaml"
        data = yaml.safe_load(path.read_text())
        assert data["metadata"]["resource_version"] == 1
        assert data["spec"]["title"] == "T"

    @pytest.mark.asyncio
    async def test_reopen_loads_records(self, tmp_path):
        store = FileRecordStore(tmp_path)
        await store.create(make_record(namespace="team-a", finalizers=[FINALIZER]))
        record = await store.get(KEY)
        baseline = record.clone()
        record.status.tracked_id = 5
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        set_condition(record.status, make_condition(ConditionType.HAS_PR, True, now))
        await store.patch_status(record, baseline)

        reopened = FileRecordStore(tmp_path)

        loaded = await reopened.get(KEY)
        assert loaded.status.tracked_id == 5
        assert loaded.status.get_condition(ConditionType.HAS_PR).is_true
        assert loaded.has_finalizer(FINALIZER)
        assert loaded.metadata.resource_version == 2

    @pytest.mark.asyncio
    async def test_delete_removes_file(self, tmp_path):
        store = FileRecordStore(tmp_path)
        await store.create(make_record(namespace="team-a"))

        await store.delete(KEY)

        assert not (tmp_path / "team-a" / "login-bug.yaml").exists()
        assert KEY not in FileRecordStore(tmp_path)

    @pytest.mark.asyncio
    async def test_deletion_marker_survives_reopen(self, tmp_path):
        store = FileRecordStore(tmp_path)
        await store.create(make_record(namespace="team-a", finalizers=[FINALIZER]))
        await store.delete(KEY)

        loaded = await FileRecordStore(tmp_path).get(KEY)

        assert loaded.deletion_requested

    def test_unreadable_file_is_skipped(self, tmp_path):
        (tmp_path / "default").mkdir()
        (tmp_path / "default" / "broken.yaml").write_text("metadata: {}\nspec: {}\n")

        store = FileRecordStore(tmp_path)

        assert len(store) == 0

    def test_creates_root_directory(self, tmp_path):
        root = tmp_path / "nested" / "records"

        FileRecordStore(root)

        assert root.is_dir()


class TestSharedDirectory:
    """Two stores opened on one directory see and respect each other's writes."""

    @pytest.mark.asyncio
    async def test_stale_status_patch_after_delete_conflicts(self, tmp_path):
        first = FileRecordStore(tmp_path)
        await first.create(make_record(namespace="team-a", finalizers=[FINALIZER]))
        record = await first.get(KEY)
        baseline = record.clone()
        second = FileRecordStore(tmp_path)

        await second.delete(KEY)
        record.status.tracked_id = 7
        with pytest.raises(PersistConflictError):
            await first.patch_status(record, baseline)

        on_disk = yaml.safe_load((tmp_path / "team-a" / "login-bug.yaml").read_text())
        assert on_disk["metadata"]["deletion_timestamp"] is not None
        assert on_disk["status"]["tracked_id"] == 0

    @pytest.mark.asyncio
    async def test_stale_update_conflicts(self, tmp_path):
        first = FileRecordStore(tmp_path)
        await first.create(make_record(namespace="team-a"))
        stale = await first.get(KEY)
        second = FileRecordStore(tmp_path)
        fresh = await second.get(KEY)
        fresh.spec.description = "from second"
        await second.update(fresh)

        stale.spec.description = "from first"
        with pytest.raises(PersistConflictError):
            await first.update(stale)

        assert (await second.get(KEY)).spec.description == "from second"

    @pytest.mark.asyncio
    async def test_records_created_elsewhere_are_visible(self, tmp_path):
        first = FileRecordStore(tmp_path)
        second = FileRecordStore(tmp_path)

        await second.create(make_record(namespace="team-a"))

        assert KEY in first
        assert await first.list_keys() == [KEY]
        assert (await first.get(KEY)).metadata.resource_version == 1

    @pytest.mark.asyncio
    async def test_create_sees_record_created_elsewhere(self, tmp_path):
        first = FileRecordStore(tmp_path)
        second = FileRecordStore(tmp_path)
        await second.create(make_record(namespace="team-a"))

        with pytest.raises(RecordExistsError):
            await first.create(make_record(namespace="team-a"))

    @pytest.mark.asyncio
    async def test_removal_elsewhere_is_visible(self, tmp_path):
        first = FileRecordStore(tmp_path)
        await first.create(make_record(namespace="team-a"))
        await FileRecordStore(tmp_path).delete(KEY)

        with pytest.raises(RecordNotFoundError):
            await first.get(KEY)
        assert len(first) == 0
