"""Author identity resolution utilities."""

import os
from dataclasses import dataclass
from typing import Final

from dulwich.repo import Repo

DEFAULT_NAME: Final = "Unknown"
DEFAULT_EMAIL: Final = "unknown@example.com"


@dataclass(slots=True, frozen=True)
class AuthorInfo:
    """Resolved author information.

    Attributes:
        name: Author name.
        email: Author email.
    """

    name: str
    email: str

    def format(self) -> bytes:
        """Render the identity as a git ``Name <email>`` line."""
        return f"{self.name} <{self.email}>".encode()


def get_author_info(repo: Repo) -> AuthorInfo:
    """Resolve author info from environment variables or git config.

    Resolution order:
    1. Environment variables (GITMETA_AUTHOR_NAME, GITMETA_AUTHOR_EMAIL)
    2. Repository config stack (user.name, user.email), which includes the
       global and system config files
    3. "Unknown" / "unknown@example.com"

    Args:
        repo: The repository whose config stack is consulted.

    Returns:
        AuthorInfo with resolved name and email.
    """
    name = os.environ.get("GITMETA_AUTHOR_NAME") or _git_config(repo, b"name")
    email = os.environ.get("GITMETA_AUTHOR_EMAIL") or _git_config(repo, b"email")

    return AuthorInfo(name=name or DEFAULT_NAME, email=email or DEFAULT_EMAIL)


def _git_config(repo: Repo, key: bytes) -> str | None:
    """Read a value from the ``[user]`` section of the config stack.

    Args:
        repo: The repository whose config stack is consulted.
        key: Key within the user section (e.g., b"name").

    Returns:
        The config value, or None if not set.
    """
    config = repo.get_config_stack()
    try:
        value = config.get((b"user",), key)
    except KeyError:
        return None
    return value.decode("utf-8", errors="replace") or None
