"""
IssueKeeper Utilities Module.

Shared helpers used by the CLI and the controller:

- Logging setup from LoggingConfig
"""

from issuekeeper.utils.logging import configure_logging

__all__ = [
    "configure_logging",
]
