"""
IssueKeeper Test Configuration and Fixtures

Fixtures avoid real network calls and keep ticket ordering fixed so that
first-match behavior is deterministic.

Fixture Categories:
- Environment isolation: no .env loading, no ISSUEKEEPER_* leakage
- Fake ticket client: in-memory tickets with a call log
- Records and stores: record factory, in-memory store, reconciler
"""

import asyncio
import dataclasses
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import Optional

import pytest

from issuekeeper.models import IntentRecord, IssueSpec, IssueStatus, RecordMetadata, Ticket
from issuekeeper.models.base import TicketState
from issuekeeper.reconciler import Reconciler
from issuekeeper.store import InMemoryRecordStore
from issuekeeper.tracker import StaticCredentialProvider
from issuekeeper.tracker.client import UPDATABLE_FIELDS

REPO = "https://github.com/acme/webapp"
FINALIZER = "issuekeeper.io/close-ticket"


# =============================================================================
# Environment Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep tests independent of the developer's environment.

    Marks .env as already loaded and removes every variable the config
    loader and credential providers read.
    """
    import issuekeeper.config.environment as env_module
    from issuekeeper.config import ENV_VAR_OVERRIDES, reset_config

    reset_config()
    monkeypatch.setattr(env_module, "_dotenv_loaded", True)
    for var in [*ENV_VAR_OVERRIDES, "ISSUEKEEPER_CONFIG", "GITHUB_TOKEN"]:
        monkeypatch.delenv(var, raising=False)

    yield

    reset_config()


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


# =============================================================================
# Fake Ticket Client
# =============================================================================


class FakeTicketClient:
    """In-memory ticket service recording every call.

    Tickets are listed in insertion order. ``errors`` maps an operation
    name (list, create, update) to a queue of exceptions; each call pops
    one entry and raises it unless it is None.

    Attributes:
        tickets: Tickets held by the fake service
        calls: (operation, payload...) tuples in call order
        tokens: Bearer tokens the client factory was called with
        hide_created: Do not list tickets created through this client
        on_list: Awaited at the start of each list call
        list_delay: Seconds each list call sleeps
    """

    def __init__(self, tickets: Optional[list[Ticket]] = None) -> None:
        self.tickets: list[Ticket] = list(tickets or [])
        self.calls: list[tuple] = []
        self.tokens: list[str] = []
        self.errors: dict[str, list[Optional[Exception]]] = {}
        self.hide_created = False
        self.on_list: Optional[Callable[[], Awaitable[None]]] = None
        self.list_delay = 0.0

    async def __aenter__(self) -> "FakeTicketClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None

    def _maybe_fail(self, operation: str) -> None:
        queue = self.errors.get(operation)
        if queue:
            error = queue.pop(0)
            if error is not None:
                raise error

    @property
    def mutations(self) -> list[tuple]:
        return [call for call in self.calls if call[0] in ("create", "update")]

    def get(self, ticket_id: int) -> Ticket:
        return next(t for t in self.tickets if t.id == ticket_id)

    async def list_tickets(self, repo: str) -> list[Ticket]:
        self.calls.append(("list", repo))
        if self.on_list is not None:
            await self.on_list()
        if self.list_delay:
            await asyncio.sleep(self.list_delay)
        self._maybe_fail("list")
        return [dataclasses.replace(t) for t in self.tickets if t.repo == repo]

    async def create_ticket(self, ticket: Ticket) -> None:
        self.calls.append(("create", dataclasses.replace(ticket)))
        self._maybe_fail("create")
        if self.hide_created:
            return
        next_id = max((t.id for t in self.tickets), default=0) + 1
        self.tickets.append(dataclasses.replace(ticket, id=next_id))

    async def update_ticket(self, ticket: Ticket, fields: Sequence[str] = UPDATABLE_FIELDS) -> None:
        self.calls.append(("update", dataclasses.replace(ticket), tuple(fields)))
        self._maybe_fail("update")
        stored = self.get(ticket.id)
        for name in fields:
            setattr(stored, name, getattr(ticket, name))

    def has_linked_change(self, ticket: Ticket) -> bool:
        return ticket.has_linked_change


@pytest.fixture
def repo() -> str:
    return REPO


@pytest.fixture
def fake_client() -> FakeTicketClient:
    return FakeTicketClient()


def make_ticket(
    ticket_id: int,
    title: str = "T",
    body: str = "D",
    state: TicketState = TicketState.OPEN,
    repo: str = REPO,
    has_linked_change: bool = False,
) -> Ticket:
    return Ticket(
        id=ticket_id,
        title=title,
        body=body,
        state=state,
        repo=repo,
        has_linked_change=has_linked_change,
    )


# =============================================================================
# Records, Stores and Reconciler
# =============================================================================


def make_record(
    name: str = "login-bug",
    title: str = "T",
    description: str = "D",
    repo: str = REPO,
    namespace: str = "default",
    tracked_id: int = 0,
    finalizers: Optional[list[str]] = None,
) -> IntentRecord:
    return IntentRecord(
        metadata=RecordMetadata(
            namespace=namespace,
            name=name,
            finalizers=list(finalizers or []),
        ),
        spec=IssueSpec(repo=repo, title=title, description=description),
        status=IssueStatus(tracked_id=tracked_id),
    )


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def reconciler(store: InMemoryRecordStore, fake_client: FakeTicketClient) -> Reconciler:
    """Reconciler wired to the in-memory store and the fake client."""

    def client_factory(token: str) -> FakeTicketClient:
        fake_client.tokens.append(token)
        return fake_client

    return Reconciler(
        store=store,
        client_factory=client_factory,
        credentials=StaticCredentialProvider("test-token"),
        requeue_after=60.0,
        finalizer_name=FINALIZER,
    )
