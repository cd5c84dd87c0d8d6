from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from lintdelta.errors import BaselineError

from .models import SCHEMA_VERSION, Baseline, DeltaReport, Violation
from .severity import normalize_severity


def _pick(raw: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def _int_field(raw: dict[str, Any], default: int, *keys: str) -> int:
    value = _pick(raw, *keys)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise BaselineError(f"Invalid {keys[0]} value", repr(value)) from exc


def violation_from_dict(raw: dict[str, Any]) -> Violation:
    begin_line = _int_field(raw, 1, "begin_line", "beginLine", "line")
    begin_column = _int_field(raw, 1, "begin_column", "beginColumn", "column")
    end_line = _int_field(raw, begin_line, "end_line", "endLine")
    file = str(_pick(raw, "file", "filename", "path") or "")
    if begin_line < 1 or end_line < begin_line:
        raise BaselineError("Invalid violation region", f"{file}: lines {begin_line}-{end_line}")
    return Violation(
        file=file,
        rule=str(_pick(raw, "rule", "rule_id", "ruleName") or ""),
        message=str(_pick(raw, "message", "description") or ""),
        begin_line=begin_line,
        begin_column=begin_column,
        end_line=end_line,
        end_column=_int_field(raw, begin_column, "end_column", "endColumn"),
        severity=normalize_severity(_pick(raw, "severity", "priority") or "medium"),
    )


def _violations_from_list(raw: Any) -> list[Violation]:
    if not isinstance(raw, list):
        raise BaselineError("violations must be a list")
    return [violation_from_dict(item) for item in raw if isinstance(item, dict)]


def _load(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise BaselineError(f"Failed to read {path}", str(exc)) from exc
    except json.JSONDecodeError as exc:
        raise BaselineError(f"{path} is not valid JSON", str(exc)) from exc


def read_violations(path: Path) -> list[Violation]:
    raw = _load(path)
    if isinstance(raw, dict):
        raw = raw.get("violations", [])
    return _violations_from_list(raw)


def read_baseline(path: Path) -> Baseline:
    raw = _load(path)
    if not isinstance(raw, dict):
        raise BaselineError(f"{path}: baseline must be a mapping")
    commit = _pick(raw, "commit")
    branch = _pick(raw, "analyzed_branch", "analyzedBranch")
    return Baseline(
        schema_version=int(raw.get("schema_version", SCHEMA_VERSION)),
        generated_at=str(raw.get("generated_at", "")),
        commit=str(commit) if commit else None,
        analyzed_branch=str(branch) if branch else None,
        violations=_violations_from_list(raw.get("violations", [])),
    )


def write_baseline(baseline: Baseline, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(baseline.to_dict(), indent=2), encoding="utf-8")


def write_json(report: DeltaReport, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")
