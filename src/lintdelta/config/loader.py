from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import yaml

from .schema import LintDeltaConfig

log = logging.getLogger(__name__)

CONFIG_FILENAME = ".lintdelta.yml"

_TRUE = {"true", "yes", "1", "on"}
_FALSE = {"false", "no", "0", "off"}
_STR_KEYS = ("default_branch", "remote", "remote_refs_prefix")
_BOOL_KEYS = ("detect_renames", "strict", "fail_on_new")
_LIST_KEYS = ("report_include", "report_exclude")


def _read_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        log.warning("Failed to load %s (%s). Skipping.", path, e)
        return {}


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    return default


def _as_number(value: Any, cast: Callable[[Any], Any]) -> Any:
    if value is None or isinstance(value, bool):
        return None
    try:
        return cast(value)
    except (TypeError, ValueError):
        return None


def _merge_config(base: LintDeltaConfig, raw: dict[str, Any]) -> LintDeltaConfig:
    updates: dict[str, Any] = {}
    for key in _STR_KEYS:
        # Blank values keep whatever an earlier file (or the default) set.
        if raw.get(key):
            updates[key] = str(raw[key])
    for key in ("baseline_path", "fail_on_severity"):
        if raw.get(key) is not None:
            updates[key] = str(raw[key])
    if "git_timeout_seconds" in raw:
        updates["git_timeout_seconds"] = _as_number(raw["git_timeout_seconds"], float)
    max_new = _as_number(raw.get("max_new_violations"), int)
    if max_new is not None:
        updates["max_new_violations"] = max_new
    for key in _BOOL_KEYS:
        if key in raw:
            updates[key] = _as_bool(raw[key], getattr(base, key))
    for key in _LIST_KEYS:
        value = raw.get(key)
        if isinstance(value, list):
            updates[key] = [*getattr(base, key), *(str(v) for v in value)]

    cfg = dataclasses.replace(base, **updates)
    if not cfg.remote_refs_prefix.endswith("/"):
        cfg = dataclasses.replace(cfg, remote_refs_prefix=f"{cfg.remote_refs_prefix}/")
    return cfg


def resolve_config_paths(repo_root: Path, config_paths: Iterable[Path | str] | None) -> list[Path]:
    if not config_paths:
        return [repo_root / CONFIG_FILENAME]
    return [p if p.is_absolute() else repo_root / p for p in map(Path, config_paths)]


def load_config(repo_root: Path, config_paths: Iterable[Path | str] | None = None) -> LintDeltaConfig:
    """Merge config files in order; later files override scalars and extend lists."""
    explicit = list(config_paths) if config_paths else []
    paths = resolve_config_paths(repo_root, explicit)
    cfg = LintDeltaConfig()
    for path in paths:
        if not path.exists():
            if explicit:
                log.warning("Config %s not found; skipping.", path)
            continue
        raw = _read_yaml(path)
        if not isinstance(raw, dict):
            log.warning("Config %s is not a mapping; skipping.", path)
            continue
        cfg = _merge_config(cfg, raw)
    return cfg
