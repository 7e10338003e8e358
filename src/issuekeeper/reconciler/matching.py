"""
Ticket matching.

Resolves an intent record to at most one remote ticket. Once a record has a
tracked id, identity is authoritative and titles are ignored; before that,
the first ticket with the desired title is taken.

Matching assumes no two records share (repo, title). Admission enforces
that; duplicate titles on the remote side resolve to whichever ticket the
service lists first.
"""

import logging
from collections.abc import Iterable
from typing import Optional

from issuekeeper.models.record import IntentRecord
from issuekeeper.models.ticket import Ticket
from issuekeeper.tracker.client import TicketClient

logger = logging.getLogger(__name__)


def match_ticket(
    tickets: Iterable[Ticket],
    tracked_id: int,
    title: str,
) -> Optional[Ticket]:
    """Pick the ticket linked to a record.

    Args:
        tickets: Full ticket list of the repository, in service order
        tracked_id: Linked ticket id, 0 if unlinked
        title: Desired title

    Returns:
        The first ticket with id == tracked_id when linked, otherwise the
        first ticket with the desired title, or None
    """
    if tracked_id:
        return next((t for t in tickets if t.id == tracked_id), None)
    return next((t for t in tickets if t.title == title), None)


async def resolve_ticket(client: TicketClient, record: IntentRecord) -> Optional[Ticket]:
    """List the record's repository and match its ticket.

    Raises:
        TrackerError: If the list call fails
    """
    tickets = await client.list_tickets(record.spec.repo)
    ticket = match_ticket(tickets, record.status.tracked_id, record.spec.title)
    if ticket is None:
        logger.debug(
            f"No ticket for {record.key} among {len(tickets)} in {record.spec.repo}"
        )
    return ticket
