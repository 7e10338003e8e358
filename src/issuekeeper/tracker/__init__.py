"""
IssueKeeper - Ticket Service Integration

Client for the remote issue tracker (GitHub) and the bearer credential
providers that feed it.
"""

from issuekeeper.tracker.client import (
    GITHUB_API_BASE_URL,
    GitHubTicketClient,
    TicketClient,
    extract_referenced_issues,
    parse_repo,
)
from issuekeeper.tracker.credentials import (
    CredentialProvider,
    EnvCredentialProvider,
    SecretFileCredentialProvider,
    StaticCredentialProvider,
    build_credential_provider,
)

__all__ = [
    # Client
    "GITHUB_API_BASE_URL",
    "GitHubTicketClient",
    "TicketClient",
    "extract_referenced_issues",
    "parse_repo",
    # Credentials
    "CredentialProvider",
    "EnvCredentialProvider",
    "SecretFileCredentialProvider",
    "StaticCredentialProvider",
    "build_credential_provider",
]
