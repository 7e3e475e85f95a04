# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""TOML configuration file loading and merging.

gitmeta configuration is two levels deep: ``[section]`` tables holding
scalar keys. Files and environment variables are both read into that shape
and merged section by section.
"""

import copy
import os
import re
import tomllib
from pathlib import Path  # noqa: TC003 - used at runtime in signatures
from typing import Any

from gitmeta.exceptions import ConfigLoadError

ENV_PREFIX = "GITMETA_"

# tomllib only exposes lineno/colno as attributes from Python 3.14
_POSITION_PATTERN = re.compile(r"at line (\d+), column (\d+)")


def _error_position(error: tomllib.TOMLDecodeError) -> tuple[int | None, int | None]:
    line: int | None = getattr(error, "lineno", None)
    column: int | None = getattr(error, "colno", None)
    if line is None:
        match = _POSITION_PATTERN.search(str(error))
        if match:
            line, column = int(match.group(1)), int(match.group(2))
    return line, column


def read_toml_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Read and parse a TOML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be parsed, with the line and
            column of the error when tomllib reports them.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        line, column = _error_position(e)
        msg = f"Failed to parse TOML file: {e}"
        raise ConfigLoadError(msg, path=path, line=line, column=column) from e


def deep_merge(
    base: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    override: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Merge ``override`` into a copy of ``base``.

    Tables present on both sides are merged key by key; any other value in
    ``override`` replaces the one in ``base``. Neither input is modified.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def parse_env_vars(
    prefix: str = ENV_PREFIX,
    environ: dict[str, str] | None = None,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Read ``<PREFIX><SECTION>__<KEY>`` variables into section tables.

    ``GITMETA_HISTORY__RENAME_THRESHOLD=75`` becomes
    ``{"history": {"rename_threshold": 75}}``. Variables without exactly one
    ``__`` separator (``GITMETA_DEBUG``, ``GITMETA_AUTHOR_NAME``) are not
    configuration keys and are skipped.

    Args:
        prefix: Environment variable prefix.
        environ: Mapping to read from. Defaults to os.environ.
    """
    source = os.environ if environ is None else environ
    result: dict[str, dict[str, Any]] = {}  # pyright: ignore[reportExplicitAny]

    for name, raw in source.items():
        if not name.startswith(prefix):
            continue
        section, sep, key = name[len(prefix) :].lower().partition("__")
        if not sep or not section or not key or "__" in key:
            continue
        result.setdefault(section, {})[key] = parse_string_value(raw)

    return result


def parse_string_value(value: str) -> bool | int | str:
    """Convert an environment string to a bool, an int, or leave it as is.

    Examples:
        >>> parse_string_value("TRUE")
        True
        >>> parse_string_value("75")
        75
        >>> parse_string_value("debug")
        'debug'
    """
    lowered = value.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(value)
    except ValueError:
        return value
