"""
In-memory record store.

Holds records in a dict keyed by RecordKey. Reads and writes deep-copy so
callers never share state with the store. Subclasses persist records by
overriding ``_save`` and ``_remove``, and pick up writes made
elsewhere by overriding ``_refresh`` and ``_refresh_all``.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from issuekeeper.errors import PersistConflictError, RecordExistsError, RecordNotFoundError
from issuekeeper.models.record import IntentRecord, IssueStatus, RecordKey
from issuekeeper.store.base import ChangeCallback, RecordStore
from issuekeeper.store.patch import apply_merge_patch, create_merge_patch

if TYPE_CHECKING:
    from issuekeeper.admission import AdmissionValidator

logger = logging.getLogger(__name__)


class InMemoryRecordStore(RecordStore):
    """Record store backed by a dict.

    Args:
        validator: Optional admission validator consulted on create and update
    """

    def __init__(self, validator: Optional["AdmissionValidator"] = None) -> None:
        self._records: dict[RecordKey, IntentRecord] = {}
        self._lock = asyncio.Lock()
        self._subscribers: list[ChangeCallback] = []
        self._validator = validator

    def __len__(self) -> int:
        self._refresh_all()
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, RecordKey):
            return False
        self._refresh(key)
        return key in self._records

    # -------------------------------------------------------------------------
    # Persistence hooks
    # -------------------------------------------------------------------------

    def _save(self, record: IntentRecord) -> None:
        self._records[record.key] = record

    def _remove(self, key: RecordKey) -> None:
        self._records.pop(key, None)

    def _refresh(self, key: RecordKey) -> None:
        """Reload one record from the backing medium."""

    def _refresh_all(self) -> None:
        """Reload every record from the backing medium."""

    # -------------------------------------------------------------------------
    # RecordStore
    # -------------------------------------------------------------------------

    def subscribe(self, callback: ChangeCallback) -> None:
        self._subscribers.append(callback)

    def _notify(self, key: RecordKey) -> None:
        for callback in self._subscribers:
            callback(key)

    def _current(self, key: RecordKey) -> IntentRecord:
        self._refresh(key)
        try:
            return self._records[key]
        except KeyError:
            raise RecordNotFoundError(key) from None

    async def get(self, key: RecordKey) -> IntentRecord:
        return self._current(key).clone()

    async def list_records(self) -> list[IntentRecord]:
        self._refresh_all()
        return [record.clone() for record in self._records.values()]

    async def create(self, record: IntentRecord) -> IntentRecord:
        async with self._lock:
            self._refresh_all()
            if record.key in self._records:
                raise RecordExistsError(record.key)
            if self._validator is not None:
                await self._validator.validate_create(record, list(self._records.values()))

            stored = record.clone()
            stored.metadata.resource_version = 1
            stored.metadata.deletion_timestamp = None
            self._save(stored)

        logger.info(f"Created record {stored.key}")
        self._notify(stored.key)
        return stored.clone()

    async def update(self, record: IntentRecord) -> IntentRecord:
        async with self._lock:
            current = self._current(record.key)
            self._check_version(record.key, record.metadata.resource_version, current)
            if self._validator is not None:
                await self._validator.validate_update(current, record)

            stored = record.clone()
            stored.status = current.status.model_copy(deep=True)
            # The deletion marker is only set through delete()
            stored.metadata.deletion_timestamp = current.metadata.deletion_timestamp
            stored.metadata.resource_version = current.metadata.resource_version + 1
            self._commit(stored)

        self._notify(stored.key)
        return stored.clone()

    async def patch_status(self, record: IntentRecord, baseline: IntentRecord) -> IntentRecord:
        patch = create_merge_patch(
            baseline.status.model_dump(mode="json"),
            record.status.model_dump(mode="json"),
        )
        if not patch:
            logger.debug(f"Status of {record.key} unchanged, skipping write")
            return record.clone()

        async with self._lock:
            current = self._current(record.key)
            self._check_version(record.key, baseline.metadata.resource_version, current)

            stored = current.clone()
            merged = apply_merge_patch(current.status.model_dump(mode="json"), patch)
            stored.status = IssueStatus.model_validate(merged)
            stored.metadata.resource_version = current.metadata.resource_version + 1
            self._commit(stored)

        logger.debug(f"Patched status of {record.key}: {patch}")
        self._notify(stored.key)
        return stored.clone()

    async def delete(self, key: RecordKey) -> None:
        async with self._lock:
            current = self._current(key)
            if not current.metadata.finalizers:
                self._remove(key)
                logger.info(f"Deleted record {key}")
            elif current.metadata.deletion_timestamp is None:
                stored = current.clone()
                stored.metadata.deletion_timestamp = datetime.now(timezone.utc)
                stored.metadata.resource_version = current.metadata.resource_version + 1
                self._save(stored)
                logger.info(
                    f"Marked record {key} for deletion, waiting on finalizers "
                    f"{stored.metadata.finalizers}"
                )
            else:
                return
        self._notify(key)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _check_version(self, key: RecordKey, version: int, current: IntentRecord) -> None:
        if version != current.metadata.resource_version:
            raise PersistConflictError(
                key,
                expected_version=version,
                actual_version=current.metadata.resource_version,
            )

    def _commit(self, stored: IntentRecord) -> None:
        """Save a written record, or drop it once deletion is unblocked."""
        if stored.deletion_requested and not stored.metadata.finalizers:
            self._remove(stored.key)
            logger.info(f"Finalizers cleared, removed record {stored.key}")
        else:
            self._save(stored)
