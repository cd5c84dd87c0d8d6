from __future__ import annotations

from .models import DeltaReport
from .severity import severity_rank


def to_markdown(report: DeltaReport, top_n: int | None = None) -> str:
    lines: list[str] = []
    lines.append("# lintdelta report")
    lines.append("")
    lines.append(f"- Generated: `{report.generated_at}`")
    lines.append(f"- Mode: `{'incremental' if report.incremental else 'full'}`")
    lines.append(f"- Compare branch: `{report.compare_branch or 'n/a'}`")
    lines.append(f"- Fetch head: `{(report.fetch_head or 'n/a')[:12]}`")
    lines.append(f"- Last analysis: `{(report.last_analysis or 'n/a')[:12]}`")
    lines.append(f"- Schema: `v{report.schema_version}`")
    if report.stats:
        lines.append(f"- Violations in scan: `{report.stats.total}`")
        lines.append(f"- New violations: `{report.stats.new}`")
        if report.stats.by_severity:
            ordered = sorted(
                report.stats.by_severity.items(),
                key=lambda item: severity_rank(item[0]),
                reverse=True,
            )
            lines.append(f"- New by severity: `{', '.join(f'{k}:{v}' for k, v in ordered)}`")
    lines.append("")

    if not report.violations:
        lines.append("✅ No new violations.")
        lines.append("")
        return "\n".join(lines)

    violations = sorted(
        report.violations,
        key=lambda v: (-severity_rank(v.severity), v.file, v.begin_line, v.rule),
    )
    if top_n is not None and top_n >= 0:
        violations = violations[:top_n]
    lines.append("## New violations")
    lines.append("")
    lines.append("| Severity | Rule | Location | Message |")
    lines.append("|---|---|---|---|")
    for v in violations:
        loc = f"{v.file}:{v.begin_line}:{v.begin_column}"
        message = v.message.replace("|", "\\|").replace("\n", " ")
        lines.append(f"| {v.severity} | `{v.rule}` | {loc} | {message} |")
    lines.append("")
    if top_n is not None and 0 <= top_n < len(report.violations):
        lines.append(f"_{len(report.violations) - top_n} more not shown._")
        lines.append("")
    return "\n".join(lines)
