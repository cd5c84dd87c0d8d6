from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class LintDeltaConfig:
    default_branch: str = "master"
    remote: str = "origin"
    remote_refs_prefix: str = "refs/remotes/"
    baseline_path: str | None = None
    git_timeout_seconds: float | None = 30.0
    detect_renames: bool = False
    strict: bool = False
    fail_on_new: bool = False
    max_new_violations: int | None = None
    fail_on_severity: str | None = None
    report_include: list[str] = field(default_factory=list)
    report_exclude: list[str] = field(default_factory=list)
