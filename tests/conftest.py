"""Shared test fixtures for gitmeta tests."""

import os
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_environment(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Keep user-level configuration out of every test.

    Points the XDG config and home directories at an empty directory and
    removes GITMETA_* variables, so neither gitmeta nor git picks up the
    developer's own settings.
    """
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for key in [k for k in os.environ if k.startswith("GITMETA_")]:
        monkeypatch.delenv(key)
    return home
