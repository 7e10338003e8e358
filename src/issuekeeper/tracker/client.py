"""
GitHub Ticket Service Client.

Async client for the GitHub Issues REST API. Lists, creates and updates the
issues of one repository and derives whether an issue has a linked pull
request.

The client never retries: transport failures and non-success responses are
raised as RemoteUnavailableError and left to the work queue.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Any, Optional, Protocol
from urllib.parse import urlparse

import httpx
from pydantic import BaseModel, ValidationError

from issuekeeper.errors import (
    AuthenticationError,
    DecodeFailureError,
    RemoteUnavailableError,
)
from issuekeeper.models.base import TicketState
from issuekeeper.models.ticket import Ticket

logger = logging.getLogger(__name__)


GITHUB_API_BASE_URL = "https://api.github.com"
GITHUB_ACCEPT = "application/vnd.github+json"

UPDATABLE_FIELDS = ("title", "body", "state")

# "Fixes #3", "closes: #12", "Resolved #7"
REFERENCED_ISSUE_PATTERN = re.compile(
    r"\b(?:close[sd]?|fix(?:e[sd])?|resolve[sd]?):?\s+#(\d+)",
    re.IGNORECASE,
)


class TicketClient(Protocol):
    """Operations the reconciliation engine needs from a ticket service."""

    async def list_tickets(self, repo: str) -> list[Ticket]: ...

    async def create_ticket(self, ticket: Ticket) -> None: ...

    async def update_ticket(
        self,
        ticket: Ticket,
        fields: Sequence[str] = UPDATABLE_FIELDS,
    ) -> None: ...

    def has_linked_change(self, ticket: Ticket) -> bool: ...


class _IssuePayload(BaseModel):
    """Subset of a GitHub issue object the client reads."""

    number: int
    title: str
    body: Optional[str] = None
    state: TicketState
    pull_request: Optional[dict[str, Any]] = None


def parse_repo(repo: str) -> tuple[str, str]:
    """Split a repository URL into owner and name.

    Args:
        repo: URL such as https://github.com/OWNER/NAME

    Returns:
        (owner, name)

    Raises:
        ValueError: If the URL path is not /OWNER/NAME
    """
    parts = [p for p in urlparse(repo).path.split("/") if p]
    if len(parts) != 2:
        raise ValueError(f"Cannot parse repository URL: {repo!r}")
    owner, name = parts
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return owner, name


def extract_referenced_issues(body: str | None) -> list[int]:
    """Return the issue numbers a pull request body closes.

    Args:
        body: Pull request description

    Returns:
        Issue numbers in order of appearance
    """
    if not body:
        return []
    return [int(n) for n in REFERENCED_ISSUE_PATTERN.findall(body)]


class GitHubTicketClient:
    """Async client for GitHub issues.

    The bearer token is a constructor argument; callers build one client
    per reconcile invocation with a freshly resolved credential.

    Example:
        async with GitHubTicketClient(token) as client:
            tickets = await client.list_tickets("https://github.com/o/r")
    """

    def __init__(
        self,
        token: str,
        base_url: str = GITHUB_API_BASE_URL,
        timeout: float = 30.0,
        per_page: int = 100,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: Bearer token
            base_url: REST API root
            timeout: Request timeout in seconds
            per_page: Page size for list calls
            transport: Optional httpx transport (tests)
        """
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._per_page = per_page
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> GitHubTicketClient:
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={
                    "Accept": GITHUB_ACCEPT,
                    "Authorization": f"Bearer {self._token}",
                },
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _issues_path(self, repo: str) -> str:
        owner, name = parse_repo(repo)
        return f"/repos/{owner}/{name}/issues"

    async def _request(
        self,
        method: str,
        url: str,
        expected: int,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request and map failures onto the tracker error types.

        Raises:
            AuthenticationError: On 401/403
            RemoteUnavailableError: On transport errors or unexpected status
        """
        client = self._ensure_client()
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise RemoteUnavailableError(f"{method} {url} failed: {e}") from e

        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"{method} {url} was rejected: {response.status_code}",
                status_code=response.status_code,
            )
        if response.status_code != expected:
            raise RemoteUnavailableError(
                f"{method} {url} returned {response.status_code}, expected {expected}",
                status_code=response.status_code,
            )
        return response

    def _decode_page(self, response: httpx.Response) -> list[_IssuePayload]:
        try:
            data = response.json()
        except ValueError as e:
            raise DecodeFailureError(f"Invalid JSON in issue list: {e}") from e
        if not isinstance(data, list):
            raise DecodeFailureError(f"Expected a JSON array, got {type(data).__name__}")
        try:
            return [_IssuePayload.model_validate(item) for item in data]
        except ValidationError as e:
            raise DecodeFailureError(f"Malformed issue in list: {e}") from e

    async def list_tickets(self, repo: str) -> list[Ticket]:
        """List every issue of a repository, open and closed.

        Pull requests are not returned as tickets. Issues referenced by a
        pull request with a closing keyword get ``has_linked_change``.
        Order follows the API response.

        Args:
            repo: Repository URL

        Returns:
            Tickets in service order

        Raises:
            RemoteUnavailableError: On transport or status failure
            DecodeFailureError: On malformed payload
        """
        url: str | None = self._issues_path(repo)
        params: dict[str, Any] | None = {"state": "all", "per_page": self._per_page}

        tickets: list[Ticket] = []
        referenced: set[int] = set()
        while url:
            response = await self._request("GET", url, 200, params=params)
            for item in self._decode_page(response):
                if item.pull_request:
                    referenced.update(extract_referenced_issues(item.body))
                    continue
                tickets.append(
                    Ticket(
                        id=item.number,
                        title=item.title,
                        body=item.body or "",
                        state=item.state,
                        repo=repo,
                    )
                )
            # The next link already carries the query string
            url = response.links.get("next", {}).get("url")
            params = None

        for ticket in tickets:
            ticket.has_linked_change = ticket.id in referenced

        logger.debug(f"Listed {len(tickets)} tickets in {repo}")
        return tickets

    async def create_ticket(self, ticket: Ticket) -> None:
        """Open a new issue with the ticket's title and body.

        The assigned number is not returned; callers list again to learn it.

        Raises:
            RemoteUnavailableError: Unless the service answers 201
        """
        await self._request(
            "POST",
            self._issues_path(ticket.repo),
            201,
            json={"title": ticket.title, "body": ticket.body},
        )
        logger.info(f"Created ticket {ticket.title!r} in {ticket.repo}")

    async def update_ticket(
        self,
        ticket: Ticket,
        fields: Sequence[str] = UPDATABLE_FIELDS,
    ) -> None:
        """Update an existing issue, addressed by id and repository.

        Args:
            ticket: Ticket carrying the new values
            fields: Which of title, body and state to send

        Raises:
            ValueError: On an unknown field name
            RemoteUnavailableError: Unless the service answers 200
        """
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update ticket fields: {sorted(unknown)}")

        values = {"title": ticket.title, "body": ticket.body, "state": ticket.state.value}
        payload = {name: values[name] for name in fields}
        await self._request(
            "PATCH",
            f"{self._issues_path(ticket.repo)}/{ticket.id}",
            200,
            json=payload,
        )
        logger.info(f"Updated ticket #{ticket.id} in {ticket.repo}: {sorted(payload)}")

    def has_linked_change(self, ticket: Ticket) -> bool:
        """Whether a pull request references the ticket with a closing keyword."""
        return ticket.has_linked_change
