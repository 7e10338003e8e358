"""
Environment Variable Handling.

Loads .env files into the process environment using python-dotenv.

Call ensure_dotenv_loaded() early in application startup so that
${VAR} references in configuration files and token environment
variables resolve against .env values.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Track whether dotenv has been loaded
_dotenv_loaded: bool = False


def ensure_dotenv_loaded(env_file: str = ".env") -> bool:
    """Ensure .env file is loaded into os.environ.

    Existing environment variables win over .env values.

    Args:
        env_file: Path to .env file (relative or absolute)

    Returns:
        True if a .env file was found and loaded, False otherwise
    """
    global _dotenv_loaded

    if _dotenv_loaded:
        return True

    env_paths = [
        Path(env_file),
        Path.cwd() / env_file,
    ]

    for env_path in env_paths:
        if env_path.exists():
            load_dotenv(env_path, override=False)
            _dotenv_loaded = True
            return True

    # No .env file found, that's okay
    _dotenv_loaded = True
    return False


def get_env(name: str, default: str | None = None) -> str | None:
    """Read an environment variable after making sure .env is loaded.

    Args:
        name: Variable name
        default: Value when unset or empty

    Returns:
        The value, or default
    """
    ensure_dotenv_loaded()
    value = os.environ.get(name)
    return value if value else default

