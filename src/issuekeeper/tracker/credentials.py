"""
Bearer credential providers.

A provider is asked for the token once per reconcile invocation; the token
is then passed explicitly to the ticket client. Nothing here writes to the
process environment.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import yaml
from dotenv import dotenv_values
from pydantic import SecretStr

from issuekeeper.config.environment import get_env
from issuekeeper.config.models import GitHubConfig
from issuekeeper.errors import CredentialError

logger = logging.getLogger(__name__)


class CredentialProvider(ABC):
    """Source of the bearer token for ticket service calls."""

    @abstractmethod
    def get_token(self) -> SecretStr:
        """Resolve the token.

        Raises:
            CredentialError: If no token is available
        """
        ...


class StaticCredentialProvider(CredentialProvider):
    """Returns a fixed token."""

    def __init__(self, token: str | SecretStr) -> None:
        self._token = token if isinstance(token, SecretStr) else SecretStr(token)

    def get_token(self) -> SecretStr:
        if not self._token.get_secret_value():
            raise CredentialError("Static token is empty")
        return self._token


class EnvCredentialProvider(CredentialProvider):
    """Reads the token from an environment variable (after .env loading)."""

    def __init__(self, variable: str = "GITHUB_TOKEN") -> None:
        self.variable = variable

    def get_token(self) -> SecretStr:
        value = get_env(self.variable)
        if not value:
            raise CredentialError(f"Environment variable {self.variable} is not set")
        return SecretStr(value)


class SecretFileCredentialProvider(CredentialProvider):
    """Reads the token from a secret file.

    The file is either a YAML mapping or ``KEY=value`` lines. It is re-read
    on every call so a rotated secret takes effect on the next invocation.
    """

    def __init__(self, path: str | Path, key: str = "GITHUB_TOKEN") -> None:
        self.path = Path(path)
        self.key = key

    def _read(self) -> dict[str, Optional[str]]:
        if not self.path.exists():
            raise CredentialError(f"Secret file not found: {self.path}")

        text = self.path.read_text()
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError:
            data = None
        if isinstance(data, dict):
            return {str(k): None if v is None else str(v) for k, v in data.items()}
        return dict(dotenv_values(self.path))

    def get_token(self) -> SecretStr:
        value = self._read().get(self.key)
        if not value:
            raise CredentialError(f"Key {self.key} missing from secret file {self.path}")
        logger.debug(f"Resolved token from {self.path}")
        return SecretStr(value.strip())


def build_credential_provider(config: GitHubConfig) -> CredentialProvider:
    """Create the provider selected by the GitHub configuration.

    A configured ``token_file`` wins over ``token_env``.
    """
    if config.token_file:
        return SecretFileCredentialProvider(config.token_file, key=config.token_key)
    return EnvCredentialProvider(config.token_env)
