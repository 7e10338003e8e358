"""
Status projection.

Derives the IsOpen and HasPr conditions from a resolved ticket and merges
them into a record's status. Each (type, status) pair has one fixed reason
and message.
"""

from datetime import datetime, timezone
from typing import Optional

from issuekeeper.models.base import (
    ConditionReason,
    ConditionStatus,
    ConditionType,
    TicketState,
)
from issuekeeper.models.record import Condition, IssueStatus
from issuekeeper.models.ticket import Ticket

# (type, status) -> (reason, message)
CONDITION_TEXT: dict[tuple[ConditionType, ConditionStatus], tuple[ConditionReason, str]] = {
    (ConditionType.IS_OPEN, ConditionStatus.TRUE): (
        ConditionReason.ISSUE_IS_OPEN,
        "issue is open",
    ),
    (ConditionType.IS_OPEN, ConditionStatus.FALSE): (
        ConditionReason.ISSUE_IS_CLOSED,
        "issue is closed",
    ),
    (ConditionType.HAS_PR, ConditionStatus.TRUE): (
        ConditionReason.ISSUE_HAS_PR,
        "a linked change was detected",
    ),
    (ConditionType.HAS_PR, ConditionStatus.FALSE): (
        ConditionReason.ISSUE_DOES_NOT_HAVE_PR,
        "no linked change detected",
    ),
}


def make_condition(
    cond_type: ConditionType,
    value: bool,
    now: Optional[datetime] = None,
) -> Condition:
    """Build a condition with the fixed reason and message for its value."""
    status = ConditionStatus.from_bool(value)
    reason, message = CONDITION_TEXT[(cond_type, status)]
    return Condition(
        type=cond_type,
        status=status,
        reason=reason,
        message=message,
        last_transition_time=now or datetime.now(timezone.utc),
    )


def project_conditions(
    ticket: Ticket,
    has_linked_change: bool,
    now: Optional[datetime] = None,
) -> list[Condition]:
    """Compute the conditions describing a ticket.

    Args:
        ticket: Resolved ticket (pre-update snapshot)
        has_linked_change: Whether a pull request references the ticket
        now: Timestamp for the conditions

    Returns:
        IsOpen and HasPr conditions
    """
    now = now or datetime.now(timezone.utc)
    return [
        make_condition(ConditionType.IS_OPEN, ticket.state == TicketState.OPEN, now),
        make_condition(ConditionType.HAS_PR, has_linked_change, now),
    ]


def set_condition(status: IssueStatus, condition: Condition) -> bool:
    """Merge a condition into a status.

    Status, reason and message are replaced. The transition time is only
    taken from ``condition`` when the status value changes.

    Returns:
        True if the stored condition changed
    """
    existing = status.conditions.get(condition.type)
    if existing is None:
        status.conditions[condition.type] = condition.model_copy()
        return True

    changed = (
        existing.status != condition.status
        or existing.reason != condition.reason
        or existing.message != condition.message
    )
    merged = existing.model_copy(
        update={
            "status": condition.status,
            "reason": condition.reason,
            "message": condition.message,
            "last_transition_time": (
                condition.last_transition_time
                if existing.status != condition.status
                else existing.last_transition_time
            ),
        }
    )
    status.conditions[condition.type] = merged
    return changed
