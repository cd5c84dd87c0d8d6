from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import yaml

from lintdelta.report.severity import SEVERITIES

Check = Callable[[Any], str | None]


def _non_empty_str(value: Any) -> str | None:
    if not isinstance(value, str) or not value.strip():
        return "must be a non-empty string"
    return None


def _optional_str(value: Any) -> str | None:
    if value is not None and not isinstance(value, str):
        return "must be a string"
    return None


def _optional_bool(value: Any) -> str | None:
    if value is not None and not isinstance(value, bool):
        return "must be a boolean"
    return None


def _positive_number(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return "must be a number"
    return "must be positive" if value <= 0 else None


def _non_negative_int(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        return "must be an integer"
    return "must not be negative" if value < 0 else None


def _string_list(value: Any) -> str | None:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        return "must be a list of strings"
    return None


def _severity(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        return "must be a string"
    if value.strip().lower() not in SEVERITIES:
        return f"must be one of: {', '.join(sorted(SEVERITIES))}"
    return None


_CHECKS: dict[str, Check] = {
    "default_branch": _non_empty_str,
    "remote": _non_empty_str,
    "remote_refs_prefix": _non_empty_str,
    "baseline_path": _optional_str,
    "git_timeout_seconds": _positive_number,
    "detect_renames": _optional_bool,
    "strict": _optional_bool,
    "fail_on_new": _optional_bool,
    "max_new_violations": _non_negative_int,
    "fail_on_severity": _severity,
    "report_include": _string_list,
    "report_exclude": _string_list,
}

KNOWN_KEYS = frozenset(_CHECKS)


def validate_raw_config(raw: dict[str, Any]) -> list[str]:
    errors = [f"Unknown key: {key}" for key in raw if key not in KNOWN_KEYS]
    for key, check in _CHECKS.items():
        if key not in raw:
            continue
        problem = check(raw[key])
        if problem:
            errors.append(f"{key} {problem}")
    return errors


def validate_config_path(path: Path) -> list[str]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        return [f"{path}: failed to read ({exc})"]
    if not isinstance(raw, dict):
        return [f"{path}: config must be a mapping"]
    return [f"{path}: {err}" for err in validate_raw_config(raw)]


def validate_config_paths(paths: Iterable[Path]) -> list[str]:
    errors: list[str] = []
    for path in paths:
        if path.exists():
            errors.extend(validate_config_path(path))
        else:
            errors.append(f"{path}: file not found")
    return errors
