from __future__ import annotations

SEVERITIES = ("info", "low", "medium", "high", "critical")

_PRIORITY_SEVERITY = {1: "critical", 2: "high", 3: "medium", 4: "low", 5: "info"}


def normalize_severity(severity: str | int) -> str:
    if isinstance(severity, int) and not isinstance(severity, bool):
        return severity_from_priority(severity)
    value = str(severity).strip().lower()
    if value.isdigit():
        return severity_from_priority(int(value))
    if value in SEVERITIES:
        return value
    return "info"


def severity_from_priority(priority: int) -> str:
    """Map an analyser priority (1 = most urgent, 5 = least) to a severity."""
    if priority < 1:
        return "critical"
    return _PRIORITY_SEVERITY.get(priority, "info")


def severity_rank(severity: str) -> int:
    value = normalize_severity(severity)
    return SEVERITIES.index(value)
