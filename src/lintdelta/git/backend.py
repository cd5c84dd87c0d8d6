from __future__ import annotations

from typing import Protocol

from lintdelta.git.models import REMOTES_PREFIX, BranchRef, Commit, DiffEntry, EditOp


class VcsBackend(Protocol):
    """Read-only view of a repository consumed by the tracking algorithms.

    Lookups that find nothing return ``None``; any failure to answer raises
    ``lintdelta.errors.BackendUnavailable``.
    """

    def resolve_ref(self, name: str) -> Commit | None:
        ...

    def list_refs(self, prefix: str = REMOTES_PREFIX) -> list[BranchRef]:
        ...

    def parents(self, commit: Commit) -> list[Commit]:
        ...

    def is_ancestor(self, ancestor: Commit, descendant: Commit) -> bool:
        ...

    def author_timestamp(self, commit: Commit) -> int:
        ...

    def diff(
        self, old: Commit, new: Commit | None, path: str | None = None
    ) -> list[DiffEntry]:
        """Diff two commits, or a commit against the working tree when ``new`` is None."""
        ...

    def edit_script(self, entry: DiffEntry) -> list[EditOp]:
        ...

    def head(self) -> Commit | None:
        ...

    def current_branch(self) -> str | None:
        ...

    def blame(self, path: str) -> list[Commit | None]:
        ...

    def last_modification(self, path: str) -> Commit | None:
        ...

    def is_dirty(self, path: str) -> bool:
        ...
