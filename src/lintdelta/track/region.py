from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable

from lintdelta.git.backend import VcsBackend
from lintdelta.git.models import ChangeType, DiffEntry, FileRegion

log = logging.getLogger(__name__)


class RegionTracker:
    """Decide whether two regions from different revisions are the same code.

    The old region is replayed through each edit script: edits that start
    above it shift it by their net line delta, and an edit that starts inside
    the old region and lands inside the new one counts as an in-place
    rewrite. Edits that start inside the old region but land outside the new
    one are skipped without shifting; this is a known coarse edge.
    """

    def __init__(self, backend: VcsBackend) -> None:
        self.backend = backend

    def are_equivalent(
        self,
        diffs: Iterable[DiffEntry],
        old_region: FileRegion,
        new_region: FileRegion,
    ) -> bool:
        moved = dataclasses.replace(old_region)
        for entry in diffs:
            if entry.change_type != ChangeType.MODIFY:
                continue
            for edit in self.backend.edit_script(entry):
                if moved.is_after(edit.source_begin):
                    moved.move(edit.line_delta)
                elif moved.includes_line(edit.source_begin) and new_region.includes_line(
                    edit.dest_begin
                ):
                    log.debug("Edit %s rewrites %s in place", edit, entry.path)
                    return True
        return moved.starts_at_same_line(new_region)
