"""
Intent record models.

An IntentRecord is the declarative object a user edits: the desired title
and description of an issue in a repository. The reconciliation engine owns
its status (tracked ticket id and conditions) and its finalizer; the user
owns its spec.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from issuekeeper.models.base import ConditionReason, ConditionStatus, ConditionType

REPO_URL_PATTERN = re.compile(r"^https://github\.com/[a-zA-Z0-9_-]+/[a-zA-Z0-9_.-]+$")


@dataclass(frozen=True)
class RecordKey:
    """Identity of an intent record.

    Attributes:
        namespace: Namespace the record lives in
        name: Record name, unique within the namespace
    """

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"

    @classmethod
    def parse(cls, value: str, default_namespace: str = "default") -> "RecordKey":
        """Parse a ``namespace/name`` string.

        Args:
            value: Key string; a bare name uses the default namespace
            default_namespace: Namespace for bare names

        Returns:
            The parsed key

        Raises:
            ValueError: If either part is empty
        """
        namespace, _, name = value.rpartition("/")
        namespace = namespace or default_namespace
        if not name or not namespace:
            raise ValueError(f"Invalid record key: {value!r}")
        return cls(namespace=namespace, name=name)


class Condition(BaseModel):
    """A named boolean observation on a record's status.

    Attributes:
        type: Condition type
        status: True or False
        reason: Fixed reason for this (type, status)
        message: Fixed human-readable message for this (type, status)
        last_transition_time: When status last changed for this type
    """

    type: ConditionType
    status: ConditionStatus
    reason: ConditionReason
    message: str
    last_transition_time: datetime

    @property
    def is_true(self) -> bool:
        return self.status == ConditionStatus.TRUE


class RecordMetadata(BaseModel):
    """Identity and lifecycle metadata of a record."""

    namespace: str = Field(default="default", min_length=1)
    name: str = Field(..., min_length=1)
    resource_version: int = Field(
        default=0,
        ge=0,
        description="Bumped by the store on every write",
    )
    finalizers: list[str] = Field(default_factory=list)
    deletion_timestamp: Optional[datetime] = Field(
        default=None,
        description="Deletion marker; set when deletion is requested",
    )


class IssueSpec(BaseModel):
    """Desired state of the tracked issue.

    Attributes:
        repo: Repository URL (immutable after creation)
        title: Desired issue title (immutable after creation)
        description: Desired issue body
    """

    repo: str
    title: str = Field(..., min_length=1)
    description: str = ""

    @field_validator("repo")
    @classmethod
    def validate_repo(cls, v: str) -> str:
        """Validate the repository URL shape."""
        if not REPO_URL_PATTERN.match(v):
            raise ValueError(f"Repository must look like https://github.com/OWNER/NAME, got {v!r}")
        return v


class IssueStatus(BaseModel):
    """Observed state of the tracked issue.

    Attributes:
        tracked_id: Linked ticket id, 0 while unlinked. Set once.
        conditions: Conditions keyed by type
    """

    tracked_id: int = Field(default=0, ge=0)
    conditions: dict[ConditionType, Condition] = Field(default_factory=dict)

    @field_validator("conditions", mode="before")
    @classmethod
    def normalize_conditions(cls, v: Any) -> Any:
        """Accept a list of conditions; later entries of a type win."""
        if isinstance(v, list):
            keyed: dict[Any, Any] = {}
            for item in v:
                cond_type = item.type if isinstance(item, Condition) else item.get("type")
                keyed[cond_type] = item
            return keyed
        return v

    def get_condition(self, cond_type: ConditionType) -> Optional[Condition]:
        return self.conditions.get(cond_type)


class IntentRecord(BaseModel):
    """The declarative desired-state object for one tracked issue."""

    metadata: RecordMetadata
    spec: IssueSpec
    status: IssueStatus = Field(default_factory=IssueStatus)

    @property
    def key(self) -> RecordKey:
        return RecordKey(self.metadata.namespace, self.metadata.name)

    @property
    def deletion_requested(self) -> bool:
        """Whether a deletion marker is set on the record."""
        return self.metadata.deletion_timestamp is not None

    def has_finalizer(self, name: str) -> bool:
        return name in self.metadata.finalizers

    def clone(self) -> "IntentRecord":
        """Deep copy, used as a patch baseline."""
        return self.model_copy(deep=True)
