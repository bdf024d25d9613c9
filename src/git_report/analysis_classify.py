from __future__ import annotations

import re
from pathlib import Path

from .git import GitCommandError, check_git
from .models import ChangeType, Commit, CommitDiffStats, FileChange

STATUS_TO_CHANGE_TYPE = {
    "A": ChangeType.ADDED,
    "M": ChangeType.MODIFIED,
    "D": ChangeType.DELETED,
    "R": ChangeType.RENAMED,
    "C": ChangeType.COPIED,
}

# `git show --stat` footer, e.g. "3 files changed, 10 insertions(+), 2 deletions(-)".
# Either trailing clause may be missing.
STAT_SUMMARY_RE = re.compile(
    r"(\d+) files? changed(?:, (\d+) insertions?\(\+\))?(?:, (\d+) deletions?\(-\))?"
)


def status_to_change_type(status: str) -> ChangeType:
    s = (status or "").strip()
    if not s:
        return ChangeType.UNKNOWN
    return STATUS_TO_CHANGE_TYPE.get(s[0].upper(), ChangeType.UNKNOWN)


def parse_name_status(output: str) -> list[FileChange]:
    out: list[FileChange] = []
    for line in output.splitlines():
        if not line.strip():
            continue
        # R/C lines carry "old<TAB>new"; everything after the status token is kept as the path
        status, _, path = line.partition("\t")
        out.append(FileChange(path=path, change_type=status_to_change_type(status)))
    return out


def parse_tree_listing(output: str) -> list[FileChange]:
    out: list[FileChange] = []
    for line in output.splitlines():
        if not line.strip():
            continue
        # "<mode> <type> <object>\t<path>"
        meta, sep, path = line.partition("\t")
        if not sep:
            path = meta
        elif meta.split()[1:2] == ["commit"]:
            # submodule gitlinks are not files of this repository
            continue
        out.append(FileChange(path=path, change_type=ChangeType.ADDED))
    return out


def parse_stat_summary(output: str) -> tuple[int, int]:
    m = STAT_SUMMARY_RE.search(output or "")
    if m is None:
        return 0, 0
    return int(m.group(2) or 0), int(m.group(3) or 0)


def parse_numstat_totals(output: str) -> tuple[int, int]:
    additions = 0
    deletions = 0
    for line in output.splitlines():
        parts = line.split("\t", 2)
        if len(parts) < 2:
            continue
        added_s, deleted_s = parts[0], parts[1]
        # binary files are reported as "-\t-"
        if added_s == "-" or deleted_s == "-":
            continue
        try:
            additions += int(added_s)
            deletions += int(deleted_s)
        except ValueError:
            continue
    return additions, deletions


def _classify_root(repo: Path, sha: str, timeout_s: int) -> CommitDiffStats:
    files = parse_tree_listing(check_git(["ls-tree", "-r", sha], cwd=repo, timeout_s=timeout_s))
    additions, deletions = parse_stat_summary(check_git(["show", "--stat", "--format=", sha], cwd=repo, timeout_s=timeout_s))
    return CommitDiffStats(additions=additions, deletions=deletions, files=tuple(files))


def _classify_with_parent(repo: Path, sha: str, timeout_s: int) -> CommitDiffStats:
    rev_range = [f"{sha}^", sha]
    files = parse_name_status(check_git(["diff", "--name-status", *rev_range], cwd=repo, timeout_s=timeout_s))
    additions, deletions = parse_numstat_totals(check_git(["diff", "--numstat", *rev_range], cwd=repo, timeout_s=timeout_s))
    return CommitDiffStats(additions=additions, deletions=deletions, files=tuple(files))


def classify_commit(repo: Path, commit: Commit, *, timeout_s: int = 300) -> CommitDiffStats:
    """
    File changes and line counts for one commit.

    Root commits have no parent to diff against: every file in the commit's tree
    is reported as added and line counts come from the `--stat` footer. Other
    commits are diffed against their first parent. A failing git query yields
    empty stats with `error` set instead of raising.
    """
    try:
        if commit.is_root_commit:
            return _classify_root(repo, commit.hash, timeout_s)
        return _classify_with_parent(repo, commit.hash, timeout_s)
    except GitCommandError as e:
        return CommitDiffStats(error=f"{commit.hash[:12]}: {e}")
