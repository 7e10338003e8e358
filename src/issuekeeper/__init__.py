"""
IssueKeeper: declarative GitHub issue reconciliation.

Keeps an intent record (the desired title and description of an issue in a
repository) synchronized with a ticket in GitHub Issues. The reconciliation
engine matches the record to its remote ticket, creates or corrects it,
projects observable status back onto the record and closes the ticket before
a deleted record is allowed to disappear.

Example:
    from issuekeeper.reconciler import Reconciler

    reconciler = Reconciler(store=store, credentials=credentials)
    result = await reconciler.reconcile(RecordKey("default", "my-issue"))
"""

from issuekeeper.version import __version__

__all__ = [
    "__version__",
]
