from __future__ import annotations

import logging
import re

from lintdelta.git.models import ChangeType, DiffEntry, EditOp

log = logging.getLogger(__name__)

_HUNK_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
_DEV_NULL = "/dev/null"


def _parse_range(start_s: str, count_s: str | None) -> tuple[int, int]:
    start = int(start_s)
    count = int(count_s) if count_s is not None else 1
    # An empty side names the line *after which* the change applies.
    begin = start if count == 0 else start - 1
    return begin, begin + count


def parse_hunk_header(line: str) -> EditOp | None:
    m = _HUNK_RE.match(line)
    if m is None:
        return None
    source_begin, source_end = _parse_range(m.group(1), m.group(2))
    dest_begin, dest_end = _parse_range(m.group(3), m.group(4))
    return EditOp(source_begin, source_end, dest_begin, dest_end)


def _strip_prefix(path: str, prefix: str) -> str | None:
    path = path.strip()
    if path == _DEV_NULL:
        return None
    if path.startswith(prefix):
        return path[len(prefix):]
    return path


def _paths_from_git_header(line: str) -> tuple[str | None, str | None]:
    rest = line[len("diff --git "):]
    idx = rest.rfind(" b/")
    if idx < 0:
        return None, None
    return _strip_prefix(rest[:idx], "a/"), rest[idx + 3:]


class _EntryBuilder:
    def __init__(self, header: str) -> None:
        self.old_path, self.new_path = _paths_from_git_header(header)
        self.change_type = ChangeType.MODIFY
        self.edits: list[EditOp] = []

    def build(self) -> DiffEntry:
        if self.change_type == ChangeType.ADD:
            self.old_path = None
        elif self.change_type == ChangeType.DELETE:
            self.new_path = None
        return DiffEntry(
            change_type=self.change_type,
            old_path=self.old_path,
            new_path=self.new_path,
            edits=sorted(self.edits, key=lambda e: e.source_begin),
        )


def parse_unified_diff(text: str) -> list[DiffEntry]:
    """Parse ``git diff`` output into one DiffEntry per file pair.

    Hunk bodies are consumed by line count, so content lines that happen to
    look like headers are never mistaken for them.
    """
    entries: list[DiffEntry] = []
    current: _EntryBuilder | None = None
    old_left = 0
    new_left = 0
    for line in text.splitlines():
        if old_left > 0 or new_left > 0:
            if line.startswith("\\"):
                continue
            tag = line[:1]
            if tag == "-":
                old_left -= 1
            elif tag == "+":
                new_left -= 1
            else:
                old_left -= 1
                new_left -= 1
            continue
        if line.startswith("diff --git "):
            if current is not None:
                entries.append(current.build())
            current = _EntryBuilder(line)
            continue
        if current is None:
            continue
        if line.startswith("new file mode"):
            current.change_type = ChangeType.ADD
        elif line.startswith("deleted file mode"):
            current.change_type = ChangeType.DELETE
        elif line.startswith("rename from "):
            current.change_type = ChangeType.RENAME
            current.old_path = line[len("rename from "):]
        elif line.startswith("rename to "):
            current.change_type = ChangeType.RENAME
            current.new_path = line[len("rename to "):]
        elif line.startswith("--- "):
            old_path = _strip_prefix(line[4:], "a/")
            if old_path is not None:
                current.old_path = old_path
        elif line.startswith("+++ "):
            new_path = _strip_prefix(line[4:], "b/")
            if new_path is not None:
                current.new_path = new_path
        elif line.startswith("@@"):
            edit = parse_hunk_header(line)
            if edit is None:
                log.debug("Unparseable hunk header: %s", line)
                continue
            current.edits.append(edit)
            old_left = edit.source_length
            new_left = edit.dest_length
    if current is not None:
        entries.append(current.build())
    return entries
