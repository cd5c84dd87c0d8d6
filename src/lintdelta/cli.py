from __future__ import annotations

import argparse
import dataclasses
import logging
from collections import Counter
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath

import yaml

from lintdelta import __version__
from lintdelta.config.loader import load_config, resolve_config_paths
from lintdelta.config.schema import LintDeltaConfig
from lintdelta.config.templates import CONFIG_PRESETS
from lintdelta.config.validate import validate_config_paths
from lintdelta.errors import BackendUnavailable, BaselineError, ConfigError
from lintdelta.git.cli import GitCliBackend
from lintdelta.report.format_json import read_baseline, read_violations, write_baseline, write_json
from lintdelta.report.format_md import to_markdown
from lintdelta.report.models import SCHEMA_VERSION, Baseline, DeltaReport, DeltaStats, Violation
from lintdelta.report.severity import normalize_severity, severity_rank
from lintdelta.track.branch import closest_remote_branch
from lintdelta.track.incremental import filter_new_violations, prepare_context, relative_location
from lintdelta.util.logging import setup_logging

log = logging.getLogger(__name__)

_GLOB_CHARS = "*?["
DEFAULT_BASELINE_PATH = "out/lintdelta.baseline.json"


def _as_glob(pattern: str) -> str | None:
    """Turn a config entry into a repo-relative glob; bare directories match their contents."""
    p = pattern.strip().replace("\\", "/").lstrip("/")
    while p.startswith("./"):
        p = p[2:]
    if not p:
        return None
    if p == ".":
        return "**"
    if p.endswith("/"):
        return f"{p}**"
    if not any(ch in p for ch in _GLOB_CHARS) and not PurePosixPath(p).suffix:
        return f"{p}/**"
    return p


def _report_filter(
    repo_root: Path, include: list[str], exclude: list[str]
) -> Callable[[Violation], bool]:
    include_globs = [g for g in map(_as_glob, include) if g]
    exclude_globs = [g for g in map(_as_glob, exclude) if g]

    def keep(violation: Violation) -> bool:
        rel = PurePosixPath(relative_location(repo_root, violation.file))
        if include_globs and not any(rel.match(g) for g in include_globs):
            return False
        return not any(rel.match(g) for g in exclude_globs)

    return keep


def _resolve_path(repo_root: Path, value: str) -> Path:
    path = Path(value)
    if not path.is_absolute():
        path = repo_root / path
    return path


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _backend(repo_root: Path, cfg: LintDeltaConfig) -> GitCliBackend:
    return GitCliBackend(
        repo_root,
        timeout=cfg.git_timeout_seconds,
        detect_renames=cfg.detect_renames,
    )


def _build_stats(total: int, violations: list[Violation]) -> DeltaStats:
    counts = Counter(normalize_severity(v.severity) for v in violations)
    return DeltaStats(total=total, new=len(violations), by_severity=dict(counts))


def _evaluate_gating(report: DeltaReport, cfg: LintDeltaConfig) -> tuple[int, list[str]]:
    reasons: list[str] = []
    count = len(report.violations)
    if cfg.fail_on_new and count:
        reasons.append(f"{count} new violation(s) found")
    if cfg.max_new_violations is not None and count > cfg.max_new_violations:
        reasons.append(f"{count} new violation(s) exceed the limit of {cfg.max_new_violations}")
    if cfg.fail_on_severity:
        threshold = severity_rank(cfg.fail_on_severity)
        severe = [v for v in report.violations if severity_rank(v.severity) >= threshold]
        if severe:
            reasons.append(
                f"{len(severe)} new violation(s) at or above {normalize_severity(cfg.fail_on_severity)}"
            )
    return (1 if reasons else 0), reasons


def _load_baseline(repo_root: Path, value: str | None) -> Baseline | None:
    if not value:
        return None
    path = _resolve_path(repo_root, value)
    if not path.exists():
        log.warning("Baseline %s not found; every touched violation counts as new.", path)
        return None
    return read_baseline(path)


def cmd_branch(args: argparse.Namespace) -> int:
    repo_root = Path(args.path).resolve()
    cfg = load_config(repo_root, args.config)
    try:
        result = closest_remote_branch(
            _backend(repo_root, cfg), cfg.default_branch, cfg.remote_refs_prefix
        )
    except BackendUnavailable as exc:
        log.error("Cannot resolve closest branch: %s", exc)
        return 2
    print(f"{result.name} {result.commit.sha if result.commit else '-'}")
    return 0


def cmd_filter(args: argparse.Namespace) -> int:
    repo_root = Path(args.path).resolve()
    cfg = load_config(repo_root, args.config)
    if args.strict:
        cfg = dataclasses.replace(cfg, strict=True)
    try:
        scan = read_violations(_resolve_path(repo_root, args.scan))
        baseline = _load_baseline(repo_root, args.baseline or cfg.baseline_path)
    except BaselineError as exc:
        log.error("%s", exc)
        return 2

    scan = list(filter(_report_filter(repo_root, cfg.report_include, cfg.report_exclude), scan))

    compare_branch: str | None = None
    fetch_head: str | None = None
    last_analysis: str | None = None
    incremental = False
    try:
        ctx = prepare_context(_backend(repo_root, cfg), repo_root, baseline, cfg)
        new_violations = filter_new_violations(ctx, scan, baseline)
        compare_branch = ctx.compare_branch
        fetch_head = ctx.fetch_head.sha if ctx.fetch_head else None
        last_analysis = ctx.last_analysis.sha if ctx.last_analysis else None
        incremental = ctx.incremental
    except ConfigError as exc:
        log.error("%s", exc)
        return 2
    except BackendUnavailable as exc:
        if cfg.strict:
            log.error("Git backend unavailable: %s", exc)
            return 2
        log.warning("Git backend unavailable (%s); falling back to a full report.", exc)
        new_violations = scan

    report = DeltaReport(
        schema_version=SCHEMA_VERSION,
        generated_at=_now(),
        repo_root=str(repo_root),
        compare_branch=compare_branch,
        fetch_head=fetch_head,
        last_analysis=last_analysis,
        incremental=incremental,
        violations=new_violations,
        stats=_build_stats(len(scan), new_violations),
    )

    if args.json_path:
        write_json(report, _resolve_path(repo_root, args.json_path))
        log.info("Wrote JSON report to %s", args.json_path)
    md = to_markdown(report, top_n=args.top)
    if args.md_path:
        md_path = _resolve_path(repo_root, args.md_path)
        md_path.parent.mkdir(parents=True, exist_ok=True)
        md_path.write_text(md, encoding="utf-8")
        log.info("Wrote Markdown report to %s", args.md_path)
    elif not args.json_path:
        print(md)

    exit_code, reasons = _evaluate_gating(report, cfg)
    for reason in reasons:
        log.error("Gating failed: %s", reason)
    return exit_code


def cmd_baseline(args: argparse.Namespace) -> int:
    repo_root = Path(args.path).resolve()
    cfg = load_config(repo_root, args.config)
    try:
        scan = read_violations(_resolve_path(repo_root, args.scan))
    except BaselineError as exc:
        log.error("%s", exc)
        return 2
    backend = _backend(repo_root, cfg)
    try:
        head = backend.head()
        branch = closest_remote_branch(backend, cfg.default_branch, cfg.remote_refs_prefix)
    except BackendUnavailable as exc:
        log.error("Cannot stamp baseline: %s", exc)
        return 2
    baseline = Baseline(
        schema_version=SCHEMA_VERSION,
        generated_at=_now(),
        commit=head.sha if head else None,
        analyzed_branch=branch.name,
        violations=[
            dataclasses.replace(v, file=relative_location(repo_root, v.file)) for v in scan
        ],
    )
    target = _resolve_path(repo_root, args.output or cfg.baseline_path or DEFAULT_BASELINE_PATH)
    write_baseline(baseline, target)
    log.info("Wrote baseline with %d violation(s) to %s", len(scan), target)
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    repo_root = Path(args.path).resolve()
    target = Path(args.output) if args.output else repo_root / ".lintdelta.yml"
    if not target.is_absolute():
        target = repo_root / target
    preset = str(args.preset or "full").lower()
    template = CONFIG_PRESETS.get(preset, CONFIG_PRESETS["full"])
    if target.exists() and not args.force:
        log.error("Config %s already exists. Use --force to overwrite.", target)
        return 1
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(template, encoding="utf-8")
    log.info("Wrote config to %s", target)
    return 0


def cmd_config_show(args: argparse.Namespace) -> int:
    repo_root = Path(args.path).resolve()
    cfg = load_config(repo_root, args.config)
    text = yaml.safe_dump(dataclasses.asdict(cfg), sort_keys=False)
    if args.output:
        out_path = _resolve_path(repo_root, args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8")
    else:
        print(text)
    return 0


def cmd_config_validate(args: argparse.Namespace) -> int:
    repo_root = Path(args.path).resolve()
    config_paths = resolve_config_paths(repo_root, args.config)
    if not args.config and not config_paths[0].exists():
        log.error("Config %s not found.", config_paths[0])
        return 1
    errors = validate_config_paths(config_paths)
    if errors:
        for err in errors:
            log.error("%s", err)
        return 1
    log.info("Config valid.")
    return 0


def _add_common_args(a: argparse.ArgumentParser) -> None:
    a.add_argument("path", nargs="?", default=".", help="Repo root (default: .)")
    a.add_argument(
        "--config",
        action="append",
        default=None,
        help="Config file path (repeatable, repo-relative or absolute)",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="lintdelta", description="lintdelta: report only the static-analysis findings you introduced"
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")

    sub = p.add_subparsers(dest="cmd", required=True)

    br = sub.add_parser("branch", help="Print the closest remote branch and its commit")
    _add_common_args(br)
    br.set_defaults(func=cmd_branch)

    f = sub.add_parser("filter", help="Keep only violations that are new since the baseline")
    _add_common_args(f)
    f.add_argument("--scan", required=True, help="Current scan JSON (list or {violations: [...]})")
    f.add_argument("--baseline", default=None, help="Baseline JSON (default: baseline_path from config)")
    f.add_argument("--json", dest="json_path", default=None, help="Write JSON report to path")
    f.add_argument("--md", dest="md_path", default=None, help="Write Markdown report to path (else prints)")
    f.add_argument("--top", type=int, default=None, help="Limit violations listed in Markdown")
    f.add_argument(
        "--strict",
        action="store_true",
        help="Exit with code 2 instead of falling back to a full report when git fails",
    )
    f.set_defaults(func=cmd_filter)

    b = sub.add_parser("baseline", help="Stamp a scan with HEAD and write it as the new baseline")
    _add_common_args(b)
    b.add_argument("--scan", required=True, help="Scan JSON to record")
    b.add_argument("--output", default=None, help=f"Output path (default: {DEFAULT_BASELINE_PATH})")
    b.set_defaults(func=cmd_baseline)

    c = sub.add_parser("config", help="Config utilities")
    c_sub = c.add_subparsers(dest="config_cmd", required=True)
    c_show = c_sub.add_parser("show", help="Show merged config")
    _add_common_args(c_show)
    c_show.add_argument("--output", default=None, help="Write output to path instead of stdout")
    c_show.set_defaults(func=cmd_config_show)

    c_validate = c_sub.add_parser("validate", help="Validate config file(s)")
    _add_common_args(c_validate)
    c_validate.set_defaults(func=cmd_config_validate)

    i = sub.add_parser("init", help="Create a lintdelta configuration file")
    i.add_argument("path", nargs="?", default=".", help="Repo root (default: .)")
    i.add_argument("--output", default=None, help="Output path (default: .lintdelta.yml)")
    i.add_argument(
        "--preset",
        default="full",
        choices=sorted(CONFIG_PRESETS.keys()),
        help="Template preset (default: full)",
    )
    i.add_argument("--force", action="store_true", help="Overwrite existing config if present")
    i.set_defaults(func=cmd_init)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(bool(args.verbose))
    return int(args.func(args))
