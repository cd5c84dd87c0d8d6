from __future__ import annotations

import logging
import re
import subprocess
from collections.abc import Sequence
from pathlib import Path

from lintdelta.errors import BackendUnavailable
from lintdelta.git.diff import parse_unified_diff
from lintdelta.git.models import REMOTES_PREFIX, BranchRef, Commit, DiffEntry, EditOp

log = logging.getLogger(__name__)

_BLAME_HEADER_RE = re.compile(r"^([0-9a-f]{40,64}) (\d+) (\d+)(?: \d+)?$")
_NULL_SHA_RE = re.compile(r"^0+$")


class GitCliBackend:
    """VcsBackend implemented on top of the ``git`` executable."""

    def __init__(
        self,
        repo_root: Path,
        timeout: float | None = 30.0,
        detect_renames: bool = False,
    ) -> None:
        self.repo_root = Path(repo_root)
        self.timeout = timeout
        self.detect_renames = detect_renames

    def _run_git(
        self, args: Sequence[str], ok_codes: tuple[int, ...] = (0,)
    ) -> subprocess.CompletedProcess[str]:
        cmd = ["git", "-C", str(self.repo_root), "-c", "core.quotepath=off", *args]
        log.debug("Running %s", " ".join(cmd))
        try:
            p = subprocess.run(
                cmd,
                check=False,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise BackendUnavailable("git executable not found", cmd) from exc
        except subprocess.TimeoutExpired as exc:
            raise BackendUnavailable(f"git timed out after {self.timeout}s", cmd) from exc
        if p.returncode not in ok_codes:
            raise BackendUnavailable(
                f"git {args[0]} failed with exit code {p.returncode}", cmd, p.stderr
            )
        return p

    def resolve_ref(self, name: str) -> Commit | None:
        if not name or name.startswith("-"):
            return None
        p = self._run_git(["rev-parse", "--verify", "--quiet", f"{name}^{{commit}}"], ok_codes=(0, 1))
        sha = p.stdout.strip()
        if p.returncode != 0 or not sha:
            return None
        return Commit(sha)

    def list_refs(self, prefix: str = REMOTES_PREFIX) -> list[BranchRef]:
        p = self._run_git(
            ["for-each-ref", "--format=%(objectname) %(objecttype) %(refname)", prefix]
        )
        refs: list[BranchRef] = []
        for line in p.stdout.splitlines():
            parts = line.strip().split(" ", 2)
            if len(parts) != 3:
                continue
            sha, obj_type, ref_name = parts
            if obj_type != "commit" or ref_name.endswith("/HEAD"):
                continue
            refs.append(BranchRef(name=ref_name, tip=Commit(sha)))
        refs.sort(key=lambda r: r.name)
        return refs

    def parents(self, commit: Commit) -> list[Commit]:
        p = self._run_git(["rev-list", "--parents", "-n", "1", commit.sha])
        tokens = p.stdout.split()
        return [Commit(sha) for sha in tokens[1:]]

    def is_ancestor(self, ancestor: Commit, descendant: Commit) -> bool:
        p = self._run_git(
            ["merge-base", "--is-ancestor", ancestor.sha, descendant.sha], ok_codes=(0, 1)
        )
        return p.returncode == 0

    def author_timestamp(self, commit: Commit) -> int:
        p = self._run_git(["show", "-s", "--format=%at", commit.sha])
        try:
            return int(p.stdout.strip())
        except ValueError as exc:
            raise BackendUnavailable(
                f"Unexpected author timestamp for {commit.sha}", stderr=p.stdout
            ) from exc

    def diff(
        self, old: Commit, new: Commit | None, path: str | None = None
    ) -> list[DiffEntry]:
        args = [
            "diff",
            "-U0",
            "--no-color",
            "--no-ext-diff",
            "-M" if self.detect_renames else "--no-renames",
            old.sha,
        ]
        if new is not None:
            args.append(new.sha)
        if path is not None:
            args.extend(["--", path])
        entries = parse_unified_diff(self._run_git(args).stdout)
        if path is None:
            return entries
        return [e for e in entries if e.new_path == path]

    def edit_script(self, entry: DiffEntry) -> list[EditOp]:
        return list(entry.edits)

    def head(self) -> Commit | None:
        return self.resolve_ref("HEAD")

    def current_branch(self) -> str | None:
        p = self._run_git(["symbolic-ref", "--quiet", "--short", "HEAD"], ok_codes=(0, 1))
        name = p.stdout.strip()
        if p.returncode != 0 or not name:
            return None
        return name

    def blame(self, path: str) -> list[Commit | None]:
        if self.head() is None or not self._in_head(path):
            return [None] * _count_lines(self.repo_root / path)
        p = self._run_git(["blame", "--porcelain", "--", path])
        lines: dict[int, Commit | None] = {}
        for line in p.stdout.splitlines():
            if line.startswith("\t"):
                continue
            m = _BLAME_HEADER_RE.match(line)
            if m is None:
                continue
            sha = m.group(1)
            final_line = int(m.group(3)) - 1
            lines[final_line] = None if _NULL_SHA_RE.match(sha) else Commit(sha)
        if not lines:
            return []
        return [lines.get(i) for i in range(max(lines) + 1)]

    def last_modification(self, path: str) -> Commit | None:
        if self.head() is None:
            return None
        p = self._run_git(["log", "-1", "--format=%H", "--", path])
        sha = p.stdout.strip()
        return Commit(sha) if sha else None

    def _in_head(self, path: str) -> bool:
        p = self._run_git(["ls-tree", "--name-only", "HEAD", "--", path])
        return bool(p.stdout.strip())

    def is_dirty(self, path: str) -> bool:
        p = self._run_git(["status", "--porcelain", "--", path])
        return bool(p.stdout.strip())


def _count_lines(path: Path) -> int:
    try:
        return len(path.read_text(encoding="utf-8", errors="replace").splitlines())
    except OSError:
        return 0
