"""Default configuration values.

This module defines the built-in default configuration values that are used
when no other configuration sources provide values.

Note: DEFAULT_CONFIG is a plain dict for type compatibility with deep_merge.
The merge functions create copies, so the original is never mutated.
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "logging": {
        "level": "warning",
        "format": "json",
        "file": "",
    },
    "history": {
        "detect_renames": True,
        "rename_threshold": 60,
        "metadata_dir": ".git",
        "untracked_message": "Untracked file",
    },
    "status": {
        "include_ignored": False,
    },
}
