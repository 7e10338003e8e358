"""
Configuration Data Models.

Defines all configuration schemas using Pydantic for validation
and type safety.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class GitHubConfig(BaseModel):
    """Configuration for the GitHub ticket service.

    Attributes:
        api_base_url: REST API root
        timeout_seconds: Per-request timeout
        per_page: Page size when listing issues
        token_env: Environment variable holding the token
        token_file: Optional secret file holding the token
        token_key: Key of the token inside the secret file
    """

    api_base_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API root",
        examples=["https://api.github.com", "https://github.example.com/api/v3"],
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Request timeout",
    )
    per_page: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Issues per page",
    )
    token_env: str = Field(
        default="GITHUB_TOKEN",
        description="Env var for the API token",
    )
    token_file: Optional[str] = Field(
        default=None,
        description="Secret file with the API token",
    )
    token_key: str = Field(
        default="GITHUB_TOKEN",
        description="Token key inside the secret file",
    )

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class ReconcilerConfig(BaseModel):
    """Configuration for the reconciliation engine.

    Attributes:
        requeue_after_seconds: Delay before re-checking a synced record
        finalizer_name: Finalizer guarding ticket close on deletion
        reconcile_timeout_seconds: Deadline for a single invocation
    """

    requeue_after_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Polling delay to detect remote drift",
    )
    finalizer_name: str = Field(
        default="issuekeeper.io/close-ticket",
        min_length=1,
        description="Finalizer name",
    )
    reconcile_timeout_seconds: Optional[float] = Field(
        default=30.0,
        gt=0,
        description="Invocation deadline (None = no deadline)",
    )


class QueueConfig(BaseModel):
    """Configuration for the work queue and controller.

    Attributes:
        workers: Concurrent workers (distinct keys only)
        resync_interval_seconds: Period for re-enqueueing every record
        max_attempts: Invocations per trigger before giving up
        backoff_min_seconds: Lower bound of exponential backoff
        backoff_max_seconds: Upper bound of exponential backoff
        backoff_multiplier: Exponential backoff multiplier
    """

    workers: int = Field(default=2, ge=1)
    resync_interval_seconds: float = Field(default=300.0, gt=0)
    max_attempts: int = Field(default=5, ge=1)
    backoff_min_seconds: float = Field(default=1.0, ge=0)
    backoff_max_seconds: float = Field(default=300.0, gt=0)
    backoff_multiplier: float = Field(default=1.0, gt=0)

    @model_validator(mode="after")
    def validate_backoff_bounds(self) -> "QueueConfig":
        if self.backoff_min_seconds > self.backoff_max_seconds:
            raise ValueError("backoff_min_seconds cannot exceed backoff_max_seconds")
        return self


class StoreConfig(BaseModel):
    """Configuration for the record store.

    Attributes:
        path: Directory holding one YAML file per record
    """

    path: str = Field(
        default="./records",
        description="Record store directory",
    )


class AdmissionConfig(BaseModel):
    """Configuration for admission checks.

    Attributes:
        check_reachability: Reject records whose repository URL does not answer 200
        timeout_seconds: Reachability probe timeout
    """

    check_reachability: bool = Field(default=True)
    timeout_seconds: float = Field(default=10.0, gt=0)


class LoggingConfig(BaseModel):
    """Configuration for logging.

    Attributes:
        level: Root log level for issuekeeper loggers
        format: Log record format
        file: Optional log file
    """

    level: LogLevel = Field(default=LogLevel.INFO)
    format: str = Field(default="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    file: Optional[str] = Field(default=None)


class IssueKeeperConfig(BaseModel):
    """Root configuration for the entire system.

    Attributes:
        github: Ticket service configuration
        reconciler: Engine configuration
        queue: Work queue configuration
        store: Record store configuration
        admission: Admission configuration
        logging: Logging configuration
        debug: Enable debug mode
    """

    github: GitHubConfig = Field(
        default_factory=GitHubConfig,
        description="GitHub configuration",
    )
    reconciler: ReconcilerConfig = Field(
        default_factory=ReconcilerConfig,
        description="Reconciler configuration",
    )
    queue: QueueConfig = Field(
        default_factory=QueueConfig,
        description="Work queue configuration",
    )
    store: StoreConfig = Field(
        default_factory=StoreConfig,
        description="Record store configuration",
    )
    admission: AdmissionConfig = Field(
        default_factory=AdmissionConfig,
        description="Admission configuration",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    def to_yaml_dict(self) -> dict[str, Any]:
        """Convert to YAML-friendly dictionary.

        Returns:
            Dict suitable for YAML serialization
        """
        return self.model_dump(mode="json", exclude_none=True)
