import os
import subprocess
from pathlib import Path

import pytest

# 2023-11-14T22:13:20Z; each commit advances the clock by one minute
_EPOCH = 1_700_000_000
_STEP = 60


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)


class GitRepoBuilder:
    """Build a real git repository with the git CLI and a fixed clock."""

    def __init__(self, root: Path, *, init: bool = True) -> None:
        self.root = root
        self.clock = _EPOCH
        if init:
            _ = self.git("init", "--initial-branch=main")
            _ = self.git("config", "user.name", "Test User")
            _ = self.git("config", "user.email", "test@example.com")
            # Disable GPG signing to avoid signature issues
            _ = self.git("config", "commit.gpgsign", "false")
            _ = self.git("config", "tag.gpgsign", "false")

    def git(self, *args: str, timestamp: int | None = None) -> str:
        """Run a git command and return its stripped stdout."""
        env = os.environ.copy()
        if timestamp is not None:
            date = f"@{timestamp} +0000"
            env["GIT_AUTHOR_DATE"] = date
            env["GIT_COMMITTER_DATE"] = date
        result = subprocess.run(  # noqa: S603 - Safe: running git with controlled args
            ["git", *args],  # noqa: S607
            cwd=str(self.root),
            capture_output=True,
            text=True,
            check=False,
            env=env,
        )
        if result.returncode != 0:
            msg = f"git {' '.join(args)} failed: {result.stderr}"
            raise RuntimeError(msg)
        return result.stdout.strip()

    def write(self, path: str, content: str | bytes) -> Path:
        target = self.root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            _ = target.write_bytes(content)
        else:
            _ = target.write_text(content)
        return target

    def tick(self) -> int:
        self.clock += _STEP
        return self.clock

    def commit(self, message: str, *, stage_all: bool = True) -> str:
        """Commit with the next clock value and return the new HEAD SHA."""
        if stage_all:
            _ = self.git("add", "-A")
        _ = self.git("commit", "--allow-empty", "-m", message, timestamp=self.tick())
        return self.head()

    def merge(self, branch: str, message: str) -> str:
        _ = self.git("merge", "--no-ff", "-m", message, branch, timestamp=self.tick())
        return self.head()

    def tag(self, name: str, *args: str, target: str | None = None) -> None:
        targets = [target] if target else []
        _ = self.git("tag", *args, name, *targets, timestamp=self.tick())

    def head(self) -> str:
        return self.git("rev-parse", "HEAD")


@pytest.fixture
def git_repo(tmp_path: Path) -> GitRepoBuilder:
    """An empty repository on branch main with a configured identity."""
    root = tmp_path / "repo"
    root.mkdir()
    return GitRepoBuilder(root)
