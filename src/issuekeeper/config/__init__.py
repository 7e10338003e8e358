"""
IssueKeeper - Configuration Management

This module provides configuration management including:
- YAML configuration loading and validation
- Environment variable handling (.env via python-dotenv)
- Configuration defaults and ISSUEKEEPER_* overrides
"""

from issuekeeper.config.environment import (
    ensure_dotenv_loaded,
    get_env,
)
from issuekeeper.config.loader import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_PATHS,
    ENV_VAR_OVERRIDES,
    ConfigLoader,
    ConfigurationError,
    get_config,
    load_config,
    reset_config,
)
from issuekeeper.config.models import (
    AdmissionConfig,
    GitHubConfig,
    IssueKeeperConfig,
    LoggingConfig,
    LogLevel,
    QueueConfig,
    ReconcilerConfig,
    StoreConfig,
)

__all__ = [
    # Config models
    "AdmissionConfig",
    "GitHubConfig",
    "IssueKeeperConfig",
    "LoggingConfig",
    "LogLevel",
    "QueueConfig",
    "ReconcilerConfig",
    "StoreConfig",
    # Loader
    "ConfigLoader",
    "ConfigurationError",
    "load_config",
    "get_config",
    "reset_config",
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATHS",
    "ENV_VAR_OVERRIDES",
    # Environment
    "ensure_dotenv_loaded",
    "get_env",
]
