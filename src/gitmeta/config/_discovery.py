"""Config file discovery utilities.

This module determines the platform-specific user configuration path and the
per-repository configuration file, in merge order.
"""

from pathlib import Path

import platformdirs

REPO_CONFIG_FILENAME = ".gitmeta.toml"


def get_user_config_path() -> Path:
    r"""Get platform-specific user config file path.

    - Linux: ``~/.config/gitmeta/config.toml``
    - macOS: ``~/Library/Application Support/gitmeta/config.toml``
    - Windows: ``%APPDATA%\gitmeta\config.toml``

    The path is returned regardless of whether the file exists.

    Returns:
        Path to the user config file for the current platform.
    """
    return platformdirs.user_config_path("gitmeta") / "config.toml"


def get_repo_config_path(repo_root: Path) -> Path:
    """Get the repository-level config file path.

    Args:
        repo_root: The repository working tree root.

    Returns:
        Path to ``<repo_root>/.gitmeta.toml``.
    """
    return repo_root / REPO_CONFIG_FILENAME


def _file_exists(path: Path) -> bool:
    """Check if a file exists, treating permission errors as absence.

    Args:
        path: Path to check.

    Returns:
        True if the file exists and is accessible, False otherwise.
    """
    try:
        return path.is_file()
    except OSError:
        return False


def discover_config_files(repo_root: Path | None = None) -> list[Path]:
    """Discover existing configuration files.

    Args:
        repo_root: Repository working tree root, or None to skip the
            repository file.

    Returns:
        Existing config files ordered lowest to highest precedence.
    """
    candidates = [get_user_config_path()]
    if repo_root is not None:
        candidates.append(get_repo_config_path(repo_root))
    return [path for path in candidates if _file_exists(path)]
