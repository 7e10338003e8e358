"""
IssueKeeper data models.

- base: enumerations for ticket state and conditions
- record: the intent record and its key, spec, status and conditions
- ticket: the remote ticket
"""

from issuekeeper.models.base import (
    ConditionReason,
    ConditionStatus,
    ConditionType,
    TicketState,
)
from issuekeeper.models.record import (
    REPO_URL_PATTERN,
    Condition,
    IntentRecord,
    IssueSpec,
    IssueStatus,
    RecordKey,
    RecordMetadata,
)
from issuekeeper.models.ticket import Ticket

__all__ = [
    # Enums
    "ConditionReason",
    "ConditionStatus",
    "ConditionType",
    "TicketState",
    # Records
    "Condition",
    "IntentRecord",
    "IssueSpec",
    "IssueStatus",
    "RecordKey",
    "RecordMetadata",
    "REPO_URL_PATTERN",
    # Tickets
    "Ticket",
]
