from __future__ import annotations

from pathlib import Path

import pytest

from lintdelta.errors import BackendUnavailable
from lintdelta.git.cli import GitCliBackend
from lintdelta.git.models import BranchResult, ChangeType, Commit, EditOp
from lintdelta.track.branch import closest_remote_branch

from tests.helpers import GitRepo, requires_git

pytestmark = requires_git

FIVE_LINES = "".join(f"line{i}\n" for i in range(1, 6))


def test_empty_repository(git_repo: GitRepo) -> None:
    backend = GitCliBackend(git_repo.root)
    assert backend.head() is None
    assert backend.list_refs() == []
    assert closest_remote_branch(backend) == BranchResult("master", None)


def test_clone_of_empty_repository(git_repo: GitRepo, tmp_path: Path) -> None:
    clone = git_repo.clone(tmp_path / "clone")
    assert closest_remote_branch(GitCliBackend(clone.root)) == BranchResult("master", None)


def test_clone_with_one_commit_matches_exactly(git_repo: GitRepo, tmp_path: Path) -> None:
    sha = git_repo.commit("initial", {"a.txt": "a\n"})
    clone = git_repo.clone(tmp_path / "clone")
    backend = GitCliBackend(clone.root)
    assert backend.current_branch() == "master"
    assert [r.name for r in backend.list_refs()] == ["refs/remotes/origin/master"]
    assert closest_remote_branch(backend) == BranchResult("master", Commit(sha))


def test_local_branch_ahead_resolves_to_master(git_repo: GitRepo, tmp_path: Path) -> None:
    sha = git_repo.commit("initial", {"a.txt": "a\n"})
    clone = git_repo.clone(tmp_path / "clone")
    clone.git("checkout", "-q", "-b", "dev")
    clone.commit("dev work", {"b.txt": "b\n"})
    assert closest_remote_branch(GitCliBackend(clone.root)) == BranchResult("master", Commit(sha))


def test_detached_at_remote_branch(git_repo: GitRepo, tmp_path: Path) -> None:
    git_repo.commit("initial", {"a.txt": "a\n"})
    git_repo.git("checkout", "-q", "-b", "dev")
    dev_sha = git_repo.commit("dev work", {"b.txt": "b\n"})
    git_repo.git("checkout", "-q", "master")
    clone = git_repo.clone(tmp_path / "clone")
    clone.git("checkout", "-q", "--detach", "origin/dev")
    backend = GitCliBackend(clone.root)
    assert backend.current_branch() is None
    assert closest_remote_branch(backend) == BranchResult("dev", Commit(dev_sha))


def test_switching_back_to_master(git_repo: GitRepo, tmp_path: Path) -> None:
    sha = git_repo.commit("initial", {"a.txt": "a\n"})
    clone = git_repo.clone(tmp_path / "clone")
    clone.git("checkout", "-q", "-b", "dev")
    clone.commit("dev work", {"b.txt": "b\n"})
    clone.git("checkout", "-q", "master")
    assert closest_remote_branch(GitCliBackend(clone.root)) == BranchResult("master", Commit(sha))


def test_newer_remote_branch_wins(git_repo: GitRepo, tmp_path: Path) -> None:
    git_repo.commit("initial", {"a.txt": "a\n"})
    git_repo.git("checkout", "-q", "-b", "dev")
    dev_sha = git_repo.commit("dev work", {"b.txt": "b\n"})
    git_repo.git("checkout", "-q", "master")
    clone = git_repo.clone(tmp_path / "clone")
    clone.git("checkout", "-q", "-b", "feature")
    clone.commit("feature work", {"c.txt": "c\n"})
    # master and dev both contain the feature's parent; dev's tip is newer.
    assert closest_remote_branch(GitCliBackend(clone.root)) == BranchResult("dev", Commit(dev_sha))


def test_graph_queries(git_repo: GitRepo) -> None:
    first = Commit(git_repo.commit("one", {"a.txt": "1\n"}))
    second = Commit(git_repo.commit("two", {"a.txt": "2\n"}))
    backend = GitCliBackend(git_repo.root)
    assert backend.parents(second) == [first]
    assert backend.parents(first) == []
    assert backend.is_ancestor(first, second)
    assert backend.is_ancestor(second, second)
    assert not backend.is_ancestor(second, first)
    assert backend.author_timestamp(first) < backend.author_timestamp(second)
    assert backend.resolve_ref("HEAD") == second
    assert backend.resolve_ref("master") == second
    assert backend.resolve_ref("no-such-branch") is None


def test_diff_against_working_tree(git_repo: GitRepo) -> None:
    first = Commit(git_repo.commit("one", {"src/a.py": FIVE_LINES}))
    git_repo.write("src/a.py", "top1\ntop2\n" + FIVE_LINES + "tail\n")
    backend = GitCliBackend(git_repo.root)
    entries = backend.diff(first, None, "src/a.py")
    assert len(entries) == 1
    entry = entries[0]
    assert entry.change_type == ChangeType.MODIFY
    assert backend.edit_script(entry) == [EditOp(0, 0, 0, 2), EditOp(5, 5, 7, 8)]


def test_diff_between_commits(git_repo: GitRepo) -> None:
    first = Commit(git_repo.commit("one", {"a.txt": FIVE_LINES}))
    second = Commit(git_repo.commit("two", {"a.txt": FIVE_LINES.replace("line3\n", ""), "b.txt": "b\n"}))
    entries = GitCliBackend(git_repo.root).diff(first, second)
    by_path = {e.path: e for e in entries}
    assert by_path["a.txt"].edits == [EditOp(2, 3, 2, 2)]
    assert by_path["b.txt"].change_type == ChangeType.ADD


def test_blame_dirty_and_last_modification(git_repo: GitRepo) -> None:
    sha = git_repo.commit("one", {"a.txt": "x\ny\n", "b.txt": "b\n"})
    git_repo.write("a.txt", "new\nx\ny\n")
    backend = GitCliBackend(git_repo.root)
    assert backend.blame("a.txt") == [None, Commit(sha), Commit(sha)]
    assert backend.is_dirty("a.txt")
    assert not backend.is_dirty("b.txt")
    assert backend.last_modification("a.txt") == Commit(sha)


def test_blame_of_untracked_file(git_repo: GitRepo) -> None:
    git_repo.commit("one", {"a.txt": "a\n"})
    git_repo.write("fresh.txt", "1\n2\n")
    backend = GitCliBackend(git_repo.root)
    assert backend.blame("fresh.txt") == [None, None]
    assert backend.last_modification("fresh.txt") is None
    assert backend.is_dirty("fresh.txt")


def test_not_a_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    plain = tmp_path / "plain"
    plain.mkdir()
    backend = GitCliBackend(plain)
    with pytest.raises(BackendUnavailable) as excinfo:
        backend.list_refs()
    assert excinfo.value.command[:2] == ["git", "-C"]


def test_non_utf8_content(git_repo: GitRepo) -> None:
    path = git_repo.root / "a.txt"
    path.write_bytes(b"caf\xe9\n")
    first = Commit(git_repo.commit("latin-1"))
    path.write_bytes(b"top\ncaf\xe9\nna\xefve\n")
    backend = GitCliBackend(git_repo.root)
    entries = backend.diff(first, None, "a.txt")
    assert [e.edits for e in entries] == [[EditOp(0, 0, 0, 1), EditOp(1, 1, 2, 3)]]
    assert backend.blame("a.txt") == [None, first, None]
