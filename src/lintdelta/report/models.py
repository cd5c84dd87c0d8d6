from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from lintdelta.git.models import FileRegion

SCHEMA_VERSION = 1


@dataclass(frozen=True)
class Violation:
    """A single analyser finding; coordinates are 1-based."""

    file: str
    rule: str
    message: str
    begin_line: int
    begin_column: int
    end_line: int
    end_column: int
    severity: str = "medium"

    def region(self) -> FileRegion:
        return FileRegion.from_one_based(
            self.begin_line, self.begin_column, self.end_line, self.end_column
        )


@dataclass(frozen=True)
class Baseline:
    schema_version: int
    generated_at: str
    commit: str | None
    analyzed_branch: str | None
    violations: list[Violation] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DeltaStats:
    total: int
    new: int
    by_severity: dict[str, int]


@dataclass(frozen=True)
class DeltaReport:
    schema_version: int
    generated_at: str
    repo_root: str
    compare_branch: str | None
    fetch_head: str | None
    last_analysis: str | None
    incremental: bool
    violations: list[Violation]
    stats: DeltaStats | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if data.get("stats") is None:
            data.pop("stats", None)
        return data
