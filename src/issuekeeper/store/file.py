"""
YAML file record store.

Same semantics as the in-memory store, with every write mirrored to one YAML
document per record under ``<root>/<namespace>/<name>.yaml``. Reads go back
to disk, so several processes (``apply`` and a running controller, say) can
share one directory. Each write re-checks the resource version on disk and
fails with PersistConflictError when another writer got there first.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import yaml
from pydantic import ValidationError

from issuekeeper.errors import PersistConflictError
from issuekeeper.models.record import IntentRecord, RecordKey
from issuekeeper.store.memory import InMemoryRecordStore

if TYPE_CHECKING:
    from issuekeeper.admission import AdmissionValidator

logger = logging.getLogger(__name__)


class FileRecordStore(InMemoryRecordStore):
    """Write-through record store on the local filesystem.

    Args:
        root: Directory holding the record files (created if missing)
        validator: Optional admission validator
    """

    def __init__(
        self,
        root: str | Path,
        validator: Optional["AdmissionValidator"] = None,
    ) -> None:
        super().__init__(validator=validator)
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self._refresh_all()
        logger.debug(f"Loaded {len(self._records)} records from {self.root}")

    def _path_for(self, key: RecordKey) -> Path:
        return self.root / key.namespace / f"{key.name}.yaml"

    def _read(self, path: Path) -> Optional[IntentRecord]:
        """Parse one record file, or None if it is missing or unreadable."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            return None
        try:
            return IntentRecord.model_validate(data)
        except ValidationError as e:
            logger.error(f"Skipping unreadable record file {path}: {e}")
            return None

    def _refresh(self, key: RecordKey) -> None:
        record = self._read(self._path_for(key))
        if record is None:
            self._records.pop(key, None)
        else:
            self._records[key] = record

    def _refresh_all(self) -> None:
        records: dict[RecordKey, IntentRecord] = {}
        for path in sorted(self.root.glob("*/*.yaml")):
            record = self._read(path)
            if record is not None:
                records[record.key] = record
        self._records = records

    def _save(self, record: IntentRecord) -> None:
        path = self._path_for(record.key)
        on_disk = self._read(path)
        disk_version = on_disk.metadata.resource_version if on_disk is not None else 0
        # Every write bumps the version by one; a missing file counts as zero
        base_version = record.metadata.resource_version - 1
        if disk_version != base_version:
            raise PersistConflictError(
                record.key,
                expected_version=base_version,
                actual_version=disk_version,
            )

        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".yaml.tmp")
        with open(tmp_path, "w") as f:
            yaml.safe_dump(
                record.model_dump(mode="json"),
                f,
                default_flow_style=False,
                sort_keys=False,
            )
        tmp_path.replace(path)
        super()._save(record)

    def _remove(self, key: RecordKey) -> None:
        self._path_for(key).unlink(missing_ok=True)
        super()._remove(key)
