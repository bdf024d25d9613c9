from __future__ import annotations

import dataclasses
import datetime as dt
from pathlib import Path

from .git import check_git, has_commits
from .models import Commit
from .report_window import ReportWindow, is_in_window

LOG_PRETTY = "@@@%H\t%an\t%ae\t%aI\t%s"


@dataclasses.dataclass(frozen=True)
class LogEntry:
    hash: str
    timestamp: dt.datetime
    author_name: str
    author_email: str
    message: str


def parse_iso_timestamp(value: str) -> dt.datetime | None:
    s = (value or "").strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        d = dt.datetime.fromisoformat(s)
    except ValueError:
        return None
    if d.tzinfo is None:
        d = d.replace(tzinfo=dt.timezone.utc)
    return d


def parse_log_output(text: str) -> list[LogEntry]:
    entries: list[LogEntry] = []
    for raw_line in text.splitlines():
        line = raw_line.rstrip("\n")
        if not line.startswith("@@@"):
            continue
        parts = line[3:].split("\t", 4)
        sha = parts[0] if len(parts) > 0 else ""
        ts = parse_iso_timestamp(parts[3]) if len(parts) > 3 else None
        if not sha or ts is None:
            continue
        entries.append(
            LogEntry(
                hash=sha,
                timestamp=ts,
                author_name=parts[1] if len(parts) > 1 else "",
                author_email=parts[2] if len(parts) > 2 else "",
                message=parts[4] if len(parts) > 4 else "",
            )
        )
    return entries


def read_full_history(repo: Path, *, timeout_s: int = 300) -> list[LogEntry]:
    """Every commit reachable from HEAD, newest first."""
    out = check_git(["log", "--date=iso-strict", f"--pretty=format:{LOG_PRETTY}"], cwd=repo, timeout_s=timeout_s)
    return parse_log_output(out)


def select_windowed_commits(history: list[LogEntry], window: ReportWindow) -> list[Commit]:
    if not history:
        return []
    # the oldest commit of the full history is the root, even if the window skips it
    root_index = len(history) - 1
    out: list[Commit] = []
    for i, e in enumerate(history):
        if not is_in_window(e.timestamp, window):
            continue
        out.append(
            Commit(
                hash=e.hash,
                timestamp=e.timestamp,
                author_name=e.author_name,
                author_email=e.author_email,
                message=e.message,
                is_root_commit=i == root_index,
            )
        )
    return out


def read_windowed_commits(repo: Path, window: ReportWindow, *, timeout_s: int = 300) -> list[Commit]:
    if not has_commits(repo, timeout_s=timeout_s):
        return []
    return select_windowed_commits(read_full_history(repo, timeout_s=timeout_s), window)
