"""
Record store interface.

The store owns intent records. Writes use optimistic concurrency on
``metadata.resource_version``; deletion is finalizer-gated.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable

from issuekeeper.models.record import IntentRecord, RecordKey

ChangeCallback = Callable[[RecordKey], None]


class RecordStore(ABC):
    """Abstract store of intent records.

    Every method returns copies; mutating a returned record has no effect
    until it is written back.
    """

    @abstractmethod
    async def get(self, key: RecordKey) -> IntentRecord:
        """Fetch a record.

        Raises:
            RecordNotFoundError: If the key does not exist
        """
        ...

    @abstractmethod
    async def list_records(self) -> list[IntentRecord]:
        """Return every stored record."""
        ...

    @abstractmethod
    async def create(self, record: IntentRecord) -> IntentRecord:
        """Store a new record.

        Raises:
            RecordExistsError: If the key is taken
            AdmissionError: If admission rejects the record
        """
        ...

    @abstractmethod
    async def update(self, record: IntentRecord) -> IntentRecord:
        """Write metadata and spec of an existing record.

        Status is left as stored; use patch_status for status.

        Returns:
            The stored record with its new resource version

        Raises:
            RecordNotFoundError: If the key does not exist
            PersistConflictError: If the record's resource version is stale
        """
        ...

    @abstractmethod
    async def patch_status(self, record: IntentRecord, baseline: IntentRecord) -> IntentRecord:
        """Write the status diff between ``baseline`` and ``record``.

        No write happens when the diff is empty.

        Returns:
            The stored record

        Raises:
            RecordNotFoundError: If the key does not exist
            PersistConflictError: If the baseline's resource version is stale
        """
        ...

    @abstractmethod
    async def delete(self, key: RecordKey) -> None:
        """Request deletion.

        A record with finalizers only gets its deletion marker set; it is
        removed once the last finalizer is dropped.

        Raises:
            RecordNotFoundError: If the key does not exist
        """
        ...

    @abstractmethod
    def subscribe(self, callback: ChangeCallback) -> None:
        """Register a callback invoked with the key of every changed record."""
        ...

    async def list_keys(self) -> list[RecordKey]:
        return [record.key for record in await self.list_records()]
