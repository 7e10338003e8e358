"""
Configuration Loader.

Reads the YAML config file, expands ``${VAR}`` references, layers the
ISSUEKEEPER_* environment overrides on top and validates the result.
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from issuekeeper.config.environment import ensure_dotenv_loaded
from issuekeeper.config.models import IssueKeeperConfig

# Searched in order when no path is given
DEFAULT_CONFIG_PATHS = [
    "issuekeeper.yaml",
    "issuekeeper.yml",
    ".issuekeeper.yaml",
    ".issuekeeper.yml",
]

CONFIG_ENV_VAR = "ISSUEKEEPER_CONFIG"

# Environment variable -> dotted config field
ENV_VAR_OVERRIDES = {
    "ISSUEKEEPER_GITHUB_API_URL": "github.api_base_url",
    "ISSUEKEEPER_GITHUB_TOKEN_FILE": "github.token_file",
    "ISSUEKEEPER_REQUEUE_AFTER": "reconciler.requeue_after_seconds",
    "ISSUEKEEPER_RECONCILE_TIMEOUT": "reconciler.reconcile_timeout_seconds",
    "ISSUEKEEPER_WORKERS": "queue.workers",
    "ISSUEKEEPER_RESYNC_INTERVAL": "queue.resync_interval_seconds",
    "ISSUEKEEPER_STORE_PATH": "store.path",
    "ISSUEKEEPER_LOG_LEVEL": "logging.level",
    "ISSUEKEEPER_LOG_FILE": "logging.file",
    "ISSUEKEEPER_DEBUG": "debug",
}

# ${NAME}, ${NAME:-fallback} or ${NAME:fallback}
_REFERENCE = re.compile(r"\$\{(\w+)(?::-?([^}]*))?\}")

# Validation errors shown before the rest are summarized
_MAX_LISTED_ERRORS = 5

_TRUE_WORDS = frozenset({"true", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "no", "off"})


class ConfigurationError(Exception):
    """Raised when configuration is invalid.

    Args:
        message: Error message
        errors: Pydantic validation errors, if any
        path: Config file the error came from
    """

    def __init__(
        self,
        message: str,
        errors: list[dict] | None = None,
        path: Path | None = None,
    ) -> None:
        super().__init__(message)
        self.errors = errors or []
        self.path = path

    def __str__(self) -> str:
        lines = [super().__str__()]
        if self.path:
            lines[0] += f" (file: {self.path})"
        for err in self.errors[:_MAX_LISTED_ERRORS]:
            field = ".".join(str(part) for part in err.get("loc", []))
            lines.append(f"  - {field}: {err.get('msg', 'Unknown error')}")
        hidden = len(self.errors) - _MAX_LISTED_ERRORS
        if hidden > 0:
            lines.append(f"  ... and {hidden} more errors")
        return "\n".join(lines)


def coerce_scalar(text: str) -> Any:
    """Turn an environment string into None, a bool, a number, or itself."""
    if text == "":
        return None
    word = text.lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    number_type = float if ("." in text or "e" in word) else int
    try:
        return number_type(text)
    except ValueError:
        return text


def expand_references(value: Any) -> Any:
    """Resolve ${VAR} references anywhere inside a parsed YAML value.

    A string made of a single reference takes the coerced variable value;
    references inside longer strings are replaced as text. Unset variables
    without a fallback stay as written.
    """
    if isinstance(value, dict):
        return {key: expand_references(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_references(item) for item in value]
    if not isinstance(value, str):
        return value

    whole = _REFERENCE.fullmatch(value)
    if whole:
        resolved = os.environ.get(whole.group(1), whole.group(2))
        return value if resolved is None else coerce_scalar(resolved)

    def substitute(match: re.Match[str]) -> str:
        resolved = os.environ.get(match.group(1), match.group(2))
        return match.group(0) if resolved is None else resolved

    return _REFERENCE.sub(substitute, value)


def drop_empty(value: Any) -> Any:
    """Remove None entries so empty YAML sections fall back to model defaults."""
    if isinstance(value, dict):
        return {key: drop_empty(item) for key, item in value.items() if item is not None}
    if isinstance(value, list):
        return [drop_empty(item) for item in value]
    return value


def apply_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Write each set ISSUEKEEPER_* variable into its dotted field."""
    for env_var, dotted in ENV_VAR_OVERRIDES.items():
        text = os.environ.get(env_var)
        if text is None:
            continue
        *parents, leaf = dotted.split(".")
        section = raw
        for name in parents:
            if not isinstance(section.get(name), dict):
                section[name] = {}
            section = section[name]
        section[leaf] = coerce_scalar(text)
    return raw


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse a config file into a dict.

    Raises:
        FileNotFoundError: If the file is missing
        ConfigurationError: If it is not valid YAML or not a mapping
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML: {e}", path=path) from e
    if not isinstance(data, dict):
        raise ConfigurationError("Config root must be a mapping", path=path)
    return data


class ConfigLoader:
    """Builds an IssueKeeperConfig from a file, the environment and defaults.

    Usage:
        config = ConfigLoader("issuekeeper.yaml").load()
        config = ConfigLoader().load_from_env()  # discover the file
    """

    def __init__(
        self,
        config_path: str | Path | None = None,
        env_file: str = ".env",
    ) -> None:
        self._config_path = Path(config_path) if config_path else None
        self._env_file = env_file
        self._loaded_from_path: Path | None = None

    @property
    def loaded_from_path(self) -> Path | None:
        """File the last load() read, or None when only defaults were used."""
        return self._loaded_from_path

    def load(self, path: str | Path | None = None) -> IssueKeeperConfig:
        """Load and validate configuration.

        Args:
            path: Config file, overriding the one given at construction.
                With neither, only environment overrides and defaults apply.

        Raises:
            ConfigurationError: If config is invalid
            FileNotFoundError: If config file not found
        """
        if path is not None:
            self._config_path = Path(path)
        ensure_dotenv_loaded(self._env_file)

        self._loaded_from_path = self._config_path
        raw = read_config_file(self._config_path) if self._config_path else {}
        raw = drop_empty(apply_overrides(expand_references(raw)))

        try:
            return IssueKeeperConfig(**raw)
        except ValidationError as e:
            raise ConfigurationError(
                f"Configuration validation failed: {e.error_count()} errors",
                errors=e.errors(),
                path=self._loaded_from_path,
            ) from e

    def load_from_env(self) -> IssueKeeperConfig:
        """Load from $ISSUEKEEPER_CONFIG, else the first default path found,
        else defaults alone.

        Raises:
            ConfigurationError: If config is invalid
            FileNotFoundError: If ISSUEKEEPER_CONFIG points to a missing file
        """
        ensure_dotenv_loaded(self._env_file)

        named = os.environ.get(CONFIG_ENV_VAR)
        if named:
            if not Path(named).exists():
                raise FileNotFoundError(
                    f"Config file specified by {CONFIG_ENV_VAR} not found: {named}"
                )
            return self.load(named)

        found = next((Path(p) for p in DEFAULT_CONFIG_PATHS if Path(p).exists()), None)
        self._config_path = found
        return self.load()


_global_config: IssueKeeperConfig | None = None


def load_config(
    config_path: str | Path | None = None,
    env_file: str = ".env",
) -> IssueKeeperConfig:
    """Load configuration and cache it for get_config().

    Without a path the file is discovered through load_from_env().
    """
    global _global_config

    loader = ConfigLoader(config_path, env_file)
    _global_config = loader.load() if config_path else loader.load_from_env()
    return _global_config


def get_config() -> IssueKeeperConfig:
    """Return the cached configuration.

    Raises:
        RuntimeError: If configuration not loaded
    """
    if _global_config is None:
        raise RuntimeError("Configuration not loaded. Call load_config() first.")
    return _global_config


def reset_config() -> None:
    global _global_config
    _global_config = None
