from __future__ import annotations

from pathlib import Path

import pytest

from tests.helpers import GitRepo


@pytest.fixture
def git_repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> GitRepo:
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    return GitRepo(tmp_path / "upstream").init()
