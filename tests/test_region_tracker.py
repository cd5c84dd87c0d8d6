from __future__ import annotations

from lintdelta.git.memory import MemoryBackend
from lintdelta.git.models import ChangeType, DiffEntry, EditOp, FileRegion
from lintdelta.track.region import RegionTracker


def _modify(*edits: EditOp, path: str = "src/a.py") -> DiffEntry:
    return DiffEntry(ChangeType.MODIFY, path, path, list(edits))


def _line(n: int) -> FileRegion:
    return FileRegion(n, 0, n, 40)


def test_same_line_without_edits_is_equivalent() -> None:
    tracker = RegionTracker(MemoryBackend())
    assert tracker.are_equivalent([], _line(7), _line(7))
    assert not tracker.are_equivalent([], _line(7), _line(8))


def test_preceding_insert_shifts_region() -> None:
    tracker = RegionTracker(MemoryBackend())
    diffs = [_modify(EditOp(0, 5, 0, 8))]
    assert tracker.are_equivalent(diffs, _line(10), _line(13))
    assert not tracker.are_equivalent(diffs, _line(10), _line(14))
    assert not tracker.are_equivalent(diffs, _line(10), _line(10))


def test_preceding_delete_shifts_region_up() -> None:
    tracker = RegionTracker(MemoryBackend())
    diffs = [_modify(EditOp(2, 6, 2, 3), EditOp(7, 7, 4, 6))]
    # -3 from the first edit, +2 from the second one
    assert tracker.are_equivalent(diffs, _line(20), _line(19))


def test_edits_below_region_do_not_shift_it() -> None:
    tracker = RegionTracker(MemoryBackend())
    diffs = [_modify(EditOp(30, 30, 30, 35))]
    assert tracker.are_equivalent(diffs, _line(10), _line(10))


def test_in_place_rewrite_matches_any_distance() -> None:
    tracker = RegionTracker(MemoryBackend())
    diffs = [_modify(EditOp(4, 6, 40, 42))]
    old = FileRegion(3, 0, 6, 0)
    new = FileRegion(39, 0, 41, 0)
    assert tracker.are_equivalent(diffs, old, new)


def test_only_modify_entries_are_replayed() -> None:
    tracker = RegionTracker(MemoryBackend())
    diffs = [
        DiffEntry(ChangeType.ADD, None, "src/a.py", [EditOp(0, 0, 0, 10)]),
        DiffEntry(ChangeType.RENAME, "src/old.py", "src/a.py", [EditOp(0, 0, 0, 10)]),
    ]
    assert tracker.are_equivalent(diffs, _line(5), _line(5))
    assert not tracker.are_equivalent(diffs, _line(5), _line(15))


def test_partial_overlap_is_ignored() -> None:
    tracker = RegionTracker(MemoryBackend())
    # Starts inside the old region but lands outside the new one: no shift, no match.
    diffs = [_modify(EditOp(5, 6, 9, 12))]
    old = FileRegion(5, 0, 6, 0)
    assert not tracker.are_equivalent(diffs, old, FileRegion(8, 0, 8, 0))
    assert tracker.are_equivalent(diffs, old, FileRegion(5, 0, 5, 0))


def test_callers_region_is_not_mutated() -> None:
    tracker = RegionTracker(MemoryBackend())
    old = _line(10)
    tracker.are_equivalent([_modify(EditOp(0, 0, 0, 4))], old, _line(14))
    assert old == _line(10)


def test_multiple_entries_accumulate() -> None:
    tracker = RegionTracker(MemoryBackend())
    diffs = [_modify(EditOp(0, 0, 0, 2)), _modify(EditOp(1, 1, 3, 4))]
    assert tracker.are_equivalent(diffs, _line(10), _line(13))
