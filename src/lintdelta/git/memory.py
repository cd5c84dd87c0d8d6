from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from lintdelta.errors import BackendUnavailable
from lintdelta.git.models import (
    HEADS_PREFIX,
    REMOTES_PREFIX,
    BranchRef,
    Commit,
    DiffEntry,
    EditOp,
)


@dataclass
class _CommitRecord:
    parents: list[str]
    timestamp: int


@dataclass
class MemoryBackend:
    """VcsBackend over an in-memory commit graph.

    Unknown commits raise ``BackendUnavailable`` the way a missing object
    would in a real repository.
    """

    commits: dict[str, _CommitRecord] = field(default_factory=dict)
    refs: dict[str, str] = field(default_factory=dict)
    head_sha: str | None = None
    branch: str | None = "master"
    diffs: dict[tuple[str, str | None], list[DiffEntry]] = field(default_factory=dict)
    blames: dict[str, list[Commit | None]] = field(default_factory=dict)
    last_modifications: dict[str, str] = field(default_factory=dict)
    dirty: set[str] = field(default_factory=set)

    def commit(self, sha: str, parents: Iterable[str | Commit] = (), timestamp: int = 0) -> Commit:
        parent_shas = [p.sha if isinstance(p, Commit) else p for p in parents]
        for parent in parent_shas:
            self._record(parent)
        self.commits[sha] = _CommitRecord(parents=parent_shas, timestamp=timestamp)
        return Commit(sha)

    def set_ref(self, name: str, commit: Commit | str) -> None:
        sha = commit.sha if isinstance(commit, Commit) else commit
        self._record(sha)
        self.refs[name] = sha

    def checkout(self, commit: Commit | str | None, branch: str | None = None) -> None:
        if commit is None:
            self.head_sha = None
        else:
            self.head_sha = commit.sha if isinstance(commit, Commit) else commit
        self.branch = branch

    def add_diff(self, old: Commit, new: Commit | None, entries: Iterable[DiffEntry]) -> None:
        key = (old.sha, new.sha if new is not None else None)
        self.diffs.setdefault(key, []).extend(entries)

    def _record(self, sha: str) -> _CommitRecord:
        record = self.commits.get(sha)
        if record is None:
            raise BackendUnavailable(f"Missing object {sha}")
        return record

    def resolve_ref(self, name: str) -> Commit | None:
        if name == "HEAD":
            return self.head()
        for candidate in (name, f"{HEADS_PREFIX}{name}", f"{REMOTES_PREFIX}{name}"):
            sha = self.refs.get(candidate)
            if sha is not None:
                return Commit(sha)
        if name in self.commits:
            return Commit(name)
        return None

    def list_refs(self, prefix: str = REMOTES_PREFIX) -> list[BranchRef]:
        return [
            BranchRef(name=name, tip=Commit(sha))
            for name, sha in sorted(self.refs.items())
            if name.startswith(prefix) and not name.endswith("/HEAD")
        ]

    def parents(self, commit: Commit) -> list[Commit]:
        return [Commit(sha) for sha in self._record(commit.sha).parents]

    def is_ancestor(self, ancestor: Commit, descendant: Commit) -> bool:
        self._record(ancestor.sha)
        seen: set[str] = set()
        stack = [descendant.sha]
        while stack:
            sha = stack.pop()
            if sha == ancestor.sha:
                return True
            if sha in seen:
                continue
            seen.add(sha)
            stack.extend(self._record(sha).parents)
        return False

    def author_timestamp(self, commit: Commit) -> int:
        return self._record(commit.sha).timestamp

    def diff(
        self, old: Commit, new: Commit | None, path: str | None = None
    ) -> list[DiffEntry]:
        self._record(old.sha)
        new_sha = None
        if new is not None:
            self._record(new.sha)
            new_sha = new.sha
        entries = self.diffs.get((old.sha, new_sha), [])
        if path is None:
            return list(entries)
        return [e for e in entries if e.new_path == path]

    def edit_script(self, entry: DiffEntry) -> list[EditOp]:
        return list(entry.edits)

    def head(self) -> Commit | None:
        return Commit(self.head_sha) if self.head_sha else None

    def current_branch(self) -> str | None:
        return self.branch

    def blame(self, path: str) -> list[Commit | None]:
        return list(self.blames.get(path, []))

    def last_modification(self, path: str) -> Commit | None:
        sha = self.last_modifications.get(path)
        return Commit(sha) if sha else None

    def is_dirty(self, path: str) -> bool:
        return path in self.dirty
