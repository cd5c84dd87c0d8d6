from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

REMOTES_PREFIX = "refs/remotes/"
HEADS_PREFIX = "refs/heads/"


@dataclass(frozen=True)
class Commit:
    sha: str

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    def __str__(self) -> str:
        return self.sha


@dataclass(frozen=True)
class BranchRef:
    name: str
    tip: Commit

    @property
    def short_name(self) -> str:
        return shorten_ref_name(self.name)


@dataclass(frozen=True)
class BranchResult:
    name: str
    commit: Commit | None = None


class ChangeType(str, Enum):
    ADD = "ADD"
    DELETE = "DELETE"
    MODIFY = "MODIFY"
    RENAME = "RENAME"


@dataclass(frozen=True)
class EditOp:
    """One contiguous change: half-open, 0-based line ranges on both sides."""

    source_begin: int
    source_end: int
    dest_begin: int
    dest_end: int

    @property
    def source_length(self) -> int:
        return self.source_end - self.source_begin

    @property
    def dest_length(self) -> int:
        return self.dest_end - self.dest_begin

    @property
    def line_delta(self) -> int:
        return self.dest_length - self.source_length


@dataclass(frozen=True)
class DiffEntry:
    change_type: ChangeType
    old_path: str | None
    new_path: str | None
    edits: list[EditOp] = field(default_factory=list)

    @property
    def path(self) -> str:
        if self.change_type == ChangeType.DELETE:
            return self.old_path or ""
        return self.new_path or self.old_path or ""


@dataclass(unsafe_hash=True)
class FileRegion:
    """A span of source text, 0-based, shifted in place by ``move``."""

    begin_line: int
    begin_column: int
    end_line: int
    end_column: int

    def __post_init__(self) -> None:
        if self.begin_line > self.end_line:
            raise ValueError(
                f"begin_line {self.begin_line} is after end_line {self.end_line}"
            )

    @classmethod
    def from_one_based(
        cls, begin_line: int, begin_column: int, end_line: int, end_column: int
    ) -> FileRegion:
        return cls(begin_line - 1, begin_column - 1, end_line - 1, end_column - 1)

    def includes_line(self, line: int) -> bool:
        return self.begin_line <= line <= self.end_line

    def move(self, lines: int) -> None:
        self.begin_line += lines
        self.end_line += lines

    def starts_at_same_line(self, other: FileRegion) -> bool:
        return self.begin_line == other.begin_line

    def is_after(self, line: int) -> bool:
        return line < self.begin_line

    def is_before(self, line: int) -> bool:
        return line > self.begin_line


def shorten_ref_name(name: str) -> str:
    if name.startswith(REMOTES_PREFIX):
        rest = name[len(REMOTES_PREFIX):]
        _, sep, branch = rest.partition("/")
        return branch if sep else rest
    if name.startswith(HEADS_PREFIX):
        return name[len(HEADS_PREFIX):]
    return name
