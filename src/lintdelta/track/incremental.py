from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from lintdelta.config.schema import LintDeltaConfig
from lintdelta.errors import ConfigError
from lintdelta.git.backend import VcsBackend
from lintdelta.git.models import Commit, DiffEntry
from lintdelta.report.models import Baseline, Violation
from lintdelta.track.branch import closest_remote_branch
from lintdelta.track.region import RegionTracker

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class IncrementalContext:
    """Everything a per-file filter needs, resolved once per run.

    ``fetch_head`` is the remote tip new code is measured against and
    ``last_analysis`` the commit the baseline was produced from.
    """

    repo_root: Path
    backend: VcsBackend
    compare_branch: str
    fetch_head: Commit | None
    last_analysis: Commit | None

    @property
    def incremental(self) -> bool:
        return self.fetch_head is not None


def relative_location(repo_root: Path, file: str) -> str:
    try:
        p = Path(file)
        if not p.is_absolute():
            return p.as_posix()
        return p.resolve().relative_to(repo_root.resolve()).as_posix()
    except ValueError:
        return file


def is_previous(backend: VcsBackend, first: Commit | None, second: Commit | None) -> bool:
    if first is None or second is None:
        return False
    return backend.author_timestamp(first) < backend.author_timestamp(second)


def prepare_context(
    backend: VcsBackend,
    repo_root: Path,
    baseline: Baseline | None,
    config: LintDeltaConfig | None = None,
) -> IncrementalContext:
    cfg = config or LintDeltaConfig()
    if not cfg.default_branch.strip() or not cfg.remote.strip():
        raise ConfigError("default_branch and remote must be non-empty")
    branch = closest_remote_branch(backend, cfg.default_branch, cfg.remote_refs_prefix)
    fetch_head = backend.resolve_ref(f"{cfg.remote}/{branch.name}")
    last_analysis = None
    if baseline is not None and baseline.commit:
        last_analysis = backend.resolve_ref(baseline.commit)
        if last_analysis is None:
            log.warning("Baseline commit %s not found in repository.", baseline.commit)
        if baseline.analyzed_branch and baseline.analyzed_branch != branch.name:
            log.info(
                "Baseline was produced on %s; comparing against %s.",
                baseline.analyzed_branch,
                branch.name,
            )
    if is_previous(backend, last_analysis, fetch_head):
        # Same branch re-analysed in CI: measure against the last analysis.
        fetch_head = last_analysis
    log.debug(
        "Compare branch %s, fetch head %s, last analysis %s",
        branch.name,
        fetch_head,
        last_analysis,
    )
    return IncrementalContext(
        repo_root=Path(repo_root),
        backend=backend,
        compare_branch=branch.name,
        fetch_head=fetch_head,
        last_analysis=last_analysis,
    )


def is_touched(ctx: IncrementalContext, path: str) -> bool:
    if not (ctx.repo_root / path).exists():
        return False
    last_commit = ctx.backend.last_modification(path)
    return is_previous(ctx.backend, ctx.fetch_head, last_commit) or ctx.backend.is_dirty(path)


def _diffs_for(ctx: IncrementalContext, path: str) -> list[DiffEntry]:
    if ctx.last_analysis is None:
        return []
    # Baseline regions live at last_analysis; current ones in the working tree.
    return ctx.backend.diff(ctx.last_analysis, None, path)


def _is_previously_reported(
    tracker: RegionTracker,
    diffs: list[DiffEntry],
    violation: Violation,
    previous_issues: Iterable[Violation],
) -> bool:
    for issue in previous_issues:
        if issue.rule and violation.rule and issue.rule != violation.rule:
            continue
        if tracker.are_equivalent(diffs, issue.region(), violation.region()):
            return True
    return False


def new_violations_for_file(
    ctx: IncrementalContext,
    path: str,
    violations: Iterable[Violation],
    previous_issues: Iterable[Violation],
) -> list[Violation]:
    violations = list(violations)
    if not violations or not is_touched(ctx, path):
        return []
    previous = list(previous_issues)
    blame = ctx.backend.blame(path)
    diffs = _diffs_for(ctx, path)
    tracker = RegionTracker(ctx.backend)
    out: list[Violation] = []
    for violation in violations:
        line = violation.begin_line - 1
        line_commit = blame[line] if 0 <= line < len(blame) else None
        if line_commit is None or is_previous(ctx.backend, ctx.fetch_head, line_commit):
            out.append(violation)
        elif not _is_previously_reported(tracker, diffs, violation, previous):
            out.append(violation)
    return out


def filter_new_violations(
    ctx: IncrementalContext,
    violations: Iterable[Violation],
    baseline: Baseline | None,
) -> list[Violation]:
    """Return the violations that were not present in the baseline, in input order."""
    violations = list(violations)
    if not ctx.incremental:
        log.info("No remote fetch head for %s; reporting every violation.", ctx.compare_branch)
        return violations

    by_file: dict[str, list[Violation]] = {}
    for violation in violations:
        by_file.setdefault(relative_location(ctx.repo_root, violation.file), []).append(violation)
    previous_by_file: dict[str, list[Violation]] = {}
    if baseline is not None:
        for issue in baseline.violations:
            previous_by_file.setdefault(relative_location(ctx.repo_root, issue.file), []).append(issue)

    keep: set[int] = set()
    for path, file_violations in by_file.items():
        fresh = new_violations_for_file(ctx, path, file_violations, previous_by_file.get(path, []))
        log.debug("%s: %d of %d violations are new", path, len(fresh), len(file_violations))
        keep.update(id(v) for v in fresh)
    return [v for v in violations if id(v) in keep]
