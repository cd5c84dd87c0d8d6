from __future__ import annotations

import logging
from collections.abc import Iterable

from lintdelta.git.backend import VcsBackend
from lintdelta.git.models import REMOTES_PREFIX, BranchRef, BranchResult, Commit

log = logging.getLogger(__name__)

DEFAULT_BRANCH = "master"


class BranchResolver:
    """Pick the remote-tracking branch closest to a checkout position."""

    def __init__(self, backend: VcsBackend) -> None:
        self.backend = backend

    def resolve(
        self,
        refs: Iterable[BranchRef],
        current_position: Commit | None,
        current_branch: str | None,
        default_branch: str = DEFAULT_BRANCH,
    ) -> BranchResult:
        ordered = sorted(refs, key=lambda r: r.name)
        if current_position is not None:
            exact = _exact_match(ordered, current_position, current_branch)
            if exact is not None:
                log.debug("Checkout %s is the tip of %s", current_position.short_sha, exact.name)
                return BranchResult(exact.short_name, exact.tip)

            best: tuple[BranchRef, int] | None = None
            for parent in self.backend.parents(current_position):
                candidate = self._latest_containing(ordered, parent)
                if candidate is None:
                    continue
                if best is None or best[1] < candidate[1]:
                    best = candidate
            if best is not None:
                ref = best[0]
                log.debug("Closest branch for %s is %s", current_position.short_sha, ref.name)
                return BranchResult(ref.short_name, ref.tip)

        log.debug("No tracked branch matches; falling back to %s", default_branch)
        return BranchResult(default_branch, self.backend.resolve_ref(default_branch))

    def _latest_containing(
        self, refs: list[BranchRef], parent: Commit
    ) -> tuple[BranchRef, int] | None:
        best: tuple[BranchRef, int] | None = None
        for ref in refs:
            if not self.backend.is_ancestor(parent, ref.tip):
                continue
            when = self.backend.author_timestamp(ref.tip)
            if best is None or best[1] < when:
                best = (ref, when)
        return best


def _exact_match(
    refs: list[BranchRef], position: Commit, current_branch: str | None
) -> BranchRef | None:
    matches = [r for r in refs if r.tip == position]
    if not matches:
        return None
    for ref in matches:
        if current_branch and ref.short_name == current_branch:
            return ref
    return matches[0]


def closest_remote_branch(
    backend: VcsBackend,
    default_branch: str = DEFAULT_BRANCH,
    prefix: str = REMOTES_PREFIX,
) -> BranchResult:
    refs = backend.list_refs(prefix)
    return BranchResolver(backend).resolve(
        refs,
        backend.head(),
        backend.current_branch(),
        default_branch,
    )
