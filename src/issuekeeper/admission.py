"""
Admission checks for intent records.

Run by the record store before a record is created or updated:

- create: no other record may track the same (repo, title), and the
  repository URL must answer 200 when reachability checks are on
- update: repo and title are immutable
"""

import logging
from collections.abc import Iterable
from typing import Optional

import httpx

from issuekeeper.config.models import AdmissionConfig
from issuekeeper.errors import AdmissionError
from issuekeeper.models.record import IntentRecord

logger = logging.getLogger(__name__)


class AdmissionValidator:
    """Validates record creates and updates."""

    def __init__(
        self,
        check_reachability: bool = True,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the validator.

        Args:
            check_reachability: Probe the repository URL on create
            timeout: Probe timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.check_reachability = check_reachability
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_config(cls, config: AdmissionConfig) -> "AdmissionValidator":
        return cls(
            check_reachability=config.check_reachability,
            timeout=config.timeout_seconds,
        )

    async def validate_create(
        self,
        record: IntentRecord,
        existing: Iterable[IntentRecord],
    ) -> None:
        """Validate a new record against the stored ones.

        Raises:
            AdmissionError: If the record is a duplicate or its repository
                is unreachable
        """
        for other in existing:
            if other.key == record.key:
                continue
            if other.spec.repo == record.spec.repo and other.spec.title == record.spec.title:
                raise AdmissionError(
                    [f"duplicate: {other.key} already tracks {record.spec.title!r} in {record.spec.repo}"]
                )

        if self.check_reachability:
            await self._check_repo(record.spec.repo)

    async def validate_update(self, old: IntentRecord, new: IntentRecord) -> None:
        """Reject changes to immutable spec fields.

        Raises:
            AdmissionError: Listing every immutable field that changed
        """
        reasons = []
        if old.spec.repo != new.spec.repo:
            reasons.append("could not update: repo field is immutable")
        if old.spec.title != new.spec.title:
            reasons.append("could not update: title field is immutable")
        if reasons:
            raise AdmissionError(reasons)

    async def _check_repo(self, repo: str) -> None:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = await client.get(repo)
        except httpx.HTTPError as e:
            logger.info(f"Repository probe of {repo} failed: {e}")
            raise AdmissionError([f"repo {repo} is unreachable"]) from e

        if response.status_code != 200:
            logger.info(f"Repository probe of {repo} returned {response.status_code}")
            raise AdmissionError([f"repo {repo} is unreachable"])
