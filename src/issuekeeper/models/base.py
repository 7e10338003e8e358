"""
Base enumerations used throughout the data models.

These enums provide type-safe values for ticket state and record
conditions, and keep the fixed reason/message vocabulary in one place.
"""

from enum import Enum


class TicketState(str, Enum):
    """State of a remote ticket."""

    OPEN = "open"
    CLOSED = "closed"


class ConditionType(str, Enum):
    """Condition types surfaced on an intent record's status."""

    IS_OPEN = "IsOpen"
    HAS_PR = "HasPr"


class ConditionStatus(str, Enum):
    """Boolean value of a condition, spelled the way records serialize it."""

    TRUE = "True"
    FALSE = "False"

    @classmethod
    def from_bool(cls, value: bool) -> "ConditionStatus":
        """Map a Python bool onto a condition status."""
        return cls.TRUE if value else cls.FALSE


class ConditionReason(str, Enum):
    """Fixed reasons, one per (type, status) combination."""

    ISSUE_IS_OPEN = "IssueIsOpen"
    ISSUE_IS_CLOSED = "IssueIsClosed"
    ISSUE_HAS_PR = "IssueHasPR"
    ISSUE_DOES_NOT_HAVE_PR = "IssueDoesNotHavePR"
