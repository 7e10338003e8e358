"""
Reconciliation Engine.

One invocation brings one intent record and its remote ticket into line:

1. Load the record (a vanished record is a no-op success).
2. Add the finalizer and persist it before touching the ticket service.
3. Resolve the linked ticket.
4. Deleting: close the ticket if open, then drop the finalizer.
5. Syncing: create the ticket if missing, persist the tracked id, project
   conditions, correct title/body drift, persist the status diff and ask to
   be called again after ``requeue_after``.

Side effects always happen in that order. The engine never retries; every
failure propagates to the caller, which owns backoff. A crash between steps
is recovered by the next invocation: matching falls back to the title until
the tracked id is persisted.
"""

import asyncio
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from issuekeeper.config.models import IssueKeeperConfig
from issuekeeper.errors import ReconcileTimeoutError, RecordNotFoundError
from issuekeeper.models.base import TicketState
from issuekeeper.models.record import IntentRecord, RecordKey
from issuekeeper.models.ticket import Ticket
from issuekeeper.reconciler.finalizer import Finalizer
from issuekeeper.reconciler.matching import resolve_ticket
from issuekeeper.reconciler.status import project_conditions, set_condition
from issuekeeper.store.base import RecordStore
from issuekeeper.tracker.client import GitHubTicketClient, TicketClient
from issuekeeper.tracker.credentials import CredentialProvider, build_credential_provider

logger = logging.getLogger(__name__)

# Builds a ticket client for one invocation from a bearer token
ClientFactory = Callable[[str], AbstractAsyncContextManager[TicketClient]]


class ReconcileOutcome(str, Enum):
    """How an invocation ended."""

    NOT_FOUND = "not_found"
    SYNCED = "synced"
    FINALIZED = "finalized"


@dataclass
class ReconcileResult:
    """Result of one reconcile invocation.

    Attributes:
        key: Record key
        outcome: How the invocation ended
        requeue_after: Seconds until the record should be reconciled again,
            None for no re-invocation
        ticket_id: Linked ticket id, if one was resolved
        created: A ticket was created
        updated: Title/body drift was corrected
        closed: The ticket was closed on deletion
    """

    key: RecordKey
    outcome: ReconcileOutcome
    requeue_after: Optional[float] = None
    ticket_id: Optional[int] = None
    created: bool = False
    updated: bool = False
    closed: bool = False


class Reconciler:
    """Keeps intent records and remote tickets in sync.

    Example:
        reconciler = Reconciler.from_config(config, store)
        result = await reconciler.reconcile(RecordKey("default", "login-bug"))
    """

    def __init__(
        self,
        store: RecordStore,
        client_factory: ClientFactory,
        credentials: CredentialProvider,
        requeue_after: float = 60.0,
        finalizer_name: str = "issuekeeper.io/close-ticket",
        timeout: Optional[float] = None,
    ) -> None:
        """Initialize the reconciler.

        Args:
            store: Record store
            client_factory: Builds a ticket client from a bearer token
            credentials: Resolves the bearer token, once per invocation
            requeue_after: Delay requested after a successful sync
            finalizer_name: Finalizer guarding ticket close on deletion
            timeout: Default per-invocation deadline in seconds
        """
        self.store = store
        self.client_factory = client_factory
        self.credentials = credentials
        self.requeue_after = requeue_after
        self.finalizer = Finalizer(finalizer_name)
        self.timeout = timeout

    @classmethod
    def from_config(
        cls,
        config: IssueKeeperConfig,
        store: RecordStore,
        client_factory: Optional[ClientFactory] = None,
        credentials: Optional[CredentialProvider] = None,
    ) -> "Reconciler":
        """Create a reconciler wired to GitHub from configuration."""
        if client_factory is None:

            def client_factory(token: str) -> GitHubTicketClient:
                return GitHubTicketClient(
                    token,
                    base_url=config.github.api_base_url,
                    timeout=config.github.timeout_seconds,
                    per_page=config.github.per_page,
                )

        return cls(
            store=store,
            client_factory=client_factory,
            credentials=credentials or build_credential_provider(config.github),
            requeue_after=config.reconciler.requeue_after_seconds,
            finalizer_name=config.reconciler.finalizer_name,
            timeout=config.reconciler.reconcile_timeout_seconds,
        )

    async def reconcile(
        self,
        key: RecordKey,
        timeout: Optional[float] = None,
    ) -> ReconcileResult:
        """Run one invocation for a record.

        Args:
            key: Record to reconcile
            timeout: Deadline in seconds, defaults to the reconciler's

        Returns:
            ReconcileResult

        Raises:
            TrackerError: On ticket service failures
            PersistConflictError: If the record changed underneath
            CredentialError: If no token can be resolved
            ReconcileTimeoutError: If the deadline passes
        """
        deadline = timeout if timeout is not None else self.timeout
        try:
            async with asyncio.timeout(deadline):
                return await self._reconcile(key)
        except TimeoutError as e:
            logger.warning(f"Reconcile of {key} timed out after {deadline}s")
            raise ReconcileTimeoutError(key, deadline) from e

    async def _reconcile(self, key: RecordKey) -> ReconcileResult:
        try:
            record = await self.store.get(key)
            if record.deletion_requested and not self.finalizer.is_present(record):
                logger.debug(f"{key} is being deleted and holds no finalizer of ours")
                return ReconcileResult(key, ReconcileOutcome.FINALIZED)

            if not record.deletion_requested and self.finalizer.add(record):
                record = await self.store.update(record)
                logger.info(f"Added finalizer {self.finalizer.name} to {key}")

            token = self.credentials.get_token().get_secret_value()
            async with self.client_factory(token) as client:
                ticket = await resolve_ticket(client, record)
                if record.deletion_requested:
                    return await self._finalize(record, client, ticket)
                return await self._sync(record, client, ticket)
        except RecordNotFoundError:
            logger.debug(f"{key} no longer exists, nothing to do")
            return ReconcileResult(key, ReconcileOutcome.NOT_FOUND)

    async def _finalize(
        self,
        record: IntentRecord,
        client: TicketClient,
        ticket: Optional[Ticket],
    ) -> ReconcileResult:
        """Close the linked ticket if open, then release the record."""
        result = ReconcileResult(
            record.key,
            ReconcileOutcome.FINALIZED,
            ticket_id=ticket.id if ticket else None,
        )
        if ticket is not None and ticket.is_open:
            ticket.state = TicketState.CLOSED
            await client.update_ticket(ticket, fields=("state",))
            result.closed = True
            logger.info(f"Closed ticket #{ticket.id} for deleted record {record.key}")
        elif ticket is None:
            logger.info(f"No ticket linked to deleted record {record.key}")

        self.finalizer.remove(record)
        await self.store.update(record)
        logger.info(f"Removed finalizer {self.finalizer.name} from {record.key}")
        return result

    async def _sync(
        self,
        record: IntentRecord,
        client: TicketClient,
        ticket: Optional[Ticket],
    ) -> ReconcileResult:
        """Create or correct the ticket and project its status."""
        result = ReconcileResult(record.key, ReconcileOutcome.SYNCED)
        baseline = record.clone()

        if ticket is None:
            if record.status.tracked_id != 0:
                logger.warning(
                    f"Tracked ticket #{record.status.tracked_id} for {record.key} "
                    f"no longer exists in {record.spec.repo}, creating a new one"
                )
            await client.create_ticket(
                Ticket(
                    id=0,
                    title=record.spec.title,
                    body=record.spec.description,
                    state=TicketState.OPEN,
                    repo=record.spec.repo,
                )
            )
            result.created = True
            logger.info(f"Created ticket {record.spec.title!r} for {record.key}")

            ticket = await resolve_ticket(client, record)
            if ticket is None:
                # Title match links it on the next invocation
                logger.warning(f"Created ticket for {record.key} is not listed yet")
                result.requeue_after = self.requeue_after
                return result

        result.ticket_id = ticket.id

        if record.status.tracked_id == 0:
            record.status.tracked_id = ticket.id
            baseline = await self.store.patch_status(record, baseline)
            record.status = baseline.status.model_copy(deep=True)
            logger.info(f"Linked {record.key} to ticket #{ticket.id}")

        conditions = project_conditions(ticket, client.has_linked_change(ticket))

        if ticket.title != record.spec.title or ticket.body != record.spec.description:
            ticket.title = record.spec.title
            ticket.body = record.spec.description
            await client.update_ticket(ticket, fields=("title", "body"))
            result.updated = True
            logger.info(f"Restored title/body of ticket #{ticket.id} for {record.key}")

        for condition in conditions:
            set_condition(record.status, condition)
        await self.store.patch_status(record, baseline)

        result.requeue_after = self.requeue_after
        return result
