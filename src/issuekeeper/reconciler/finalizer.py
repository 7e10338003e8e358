"""
Finalizer lifecycle.

The finalizer keeps a record in the store after deletion is requested,
until the reconciler has tried to close the linked ticket. It moves
Absent -> Present on the first non-deleting reconcile and Present -> Absent
only on the deletion path.
"""

from issuekeeper.models.record import IntentRecord


class Finalizer:
    """Adds, checks and removes one named finalizer on records."""

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"Finalizer({self.name!r})"

    def is_present(self, record: IntentRecord) -> bool:
        return record.has_finalizer(self.name)

    def add(self, record: IntentRecord) -> bool:
        """Add the finalizer in place.

        Returns:
            True if the record changed
        """
        if self.is_present(record):
            return False
        record.metadata.finalizers.append(self.name)
        return True

    def remove(self, record: IntentRecord) -> bool:
        """Remove the finalizer in place.

        Returns:
            True if the record changed
        """
        if not self.is_present(record):
            return False
        record.metadata.finalizers = [f for f in record.metadata.finalizers if f != self.name]
        return True
