"""
Remote ticket representation.

A Ticket is the issue object held by the remote tracker. It is created and
updated only through the ticket service client and is never deleted, only
transitioned to closed.
"""

from dataclasses import dataclass

from issuekeeper.models.base import TicketState


@dataclass
class Ticket:
    """A ticket in a remote repository.

    Attributes:
        id: Identity assigned by the remote service (0 until created)
        title: Ticket title
        body: Ticket body
        state: Open or closed
        repo: Repository URL the ticket belongs to
        has_linked_change: Whether a pull request references this ticket.
            Derived by the client from the ticket list, never persisted.
    """

    id: int
    title: str
    body: str = ""
    state: TicketState = TicketState.OPEN
    repo: str = ""
    has_linked_change: bool = False

    @property
    def is_open(self) -> bool:
        """Check if ticket is open."""
        return self.state == TicketState.OPEN

    @property
    def is_closed(self) -> bool:
        """Check if ticket is closed."""
        return self.state == TicketState.CLOSED
