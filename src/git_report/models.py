from __future__ import annotations

import dataclasses
import datetime as dt
import enum

from .report_window import ReportWindow


class ChangeType(str, enum.Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    COPIED = "copied"
    UNKNOWN = "unknown"


@dataclasses.dataclass(frozen=True)
class Commit:
    hash: str
    timestamp: dt.datetime
    author_name: str
    author_email: str
    message: str
    is_root_commit: bool = False

    def as_dict(self) -> dict[str, object]:
        return {
            "hash": self.hash,
            "timestamp": self.timestamp.isoformat(),
            "author_name": self.author_name,
            "author_email": self.author_email,
            "message": self.message,
            "is_root_commit": self.is_root_commit,
        }


@dataclasses.dataclass(frozen=True)
class FileChange:
    path: str
    change_type: ChangeType


@dataclasses.dataclass(frozen=True)
class CommitDiffStats:
    additions: int = 0
    deletions: int = 0
    files: tuple[FileChange, ...] = ()
    error: str | None = None


@dataclasses.dataclass
class AuthorStats:
    commits: int = 0
    additions: int = 0
    deletions: int = 0

    @property
    def changed(self) -> int:
        return self.additions + self.deletions

    def as_dict(self) -> dict[str, int]:
        return {"commits": self.commits, "additions": self.additions, "deletions": self.deletions}


@dataclasses.dataclass(frozen=True)
class FileChangeCount:
    path: str
    count: int

    def as_dict(self) -> dict[str, object]:
        return {"path": self.path, "count": self.count}


def _change_type_counts_dict(counts: dict[ChangeType, int]) -> dict[str, int]:
    # every change type is present so consumers see a stable shape
    return {ct.value: int(counts.get(ct, 0)) for ct in ChangeType}


@dataclasses.dataclass(frozen=True)
class RepoAnalysis:
    total_commits: int
    total_files_changed: int  # distinct paths
    file_type_counts: dict[str, int]  # extension -> occurrences
    change_type_counts: dict[ChangeType, int]
    additions: int
    deletions: int
    top_changed_files: tuple[FileChangeCount, ...]
    commits_by_author: dict[str, AuthorStats]  # author name -> stats
    errors: tuple[str, ...] = ()

    def as_dict(self) -> dict[str, object]:
        return {
            "total_commits": self.total_commits,
            "total_files_changed": self.total_files_changed,
            "file_type_counts": dict(self.file_type_counts),
            "change_type_counts": _change_type_counts_dict(self.change_type_counts),
            "line_changes": {"additions": self.additions, "deletions": self.deletions},
            "top_changed_files": [f.as_dict() for f in self.top_changed_files],
            "commits_by_author": {a: st.as_dict() for a, st in self.commits_by_author.items()},
            "errors": list(self.errors),
        }


@dataclasses.dataclass(frozen=True)
class RepoInfo:
    path: str
    name: str
    remote: str | None
    current_branch: str
    last_commit_date: str | None
    is_empty: bool
    error: str | None = None

    def as_dict(self) -> dict[str, object]:
        return dataclasses.asdict(self)


@dataclasses.dataclass(frozen=True)
class RepoReport:
    info: RepoInfo
    commits: tuple[Commit, ...] = ()
    analysis: RepoAnalysis | None = None
    errors: tuple[str, ...] = ()

    @property
    def has_commits(self) -> bool:
        return len(self.commits) > 0

    def as_dict(self) -> dict[str, object]:
        return {
            **self.info.as_dict(),
            "commits": [c.as_dict() for c in self.commits],
            "analysis": self.analysis.as_dict() if self.analysis is not None else None,
            "errors": list(self.errors),
        }


@dataclasses.dataclass(frozen=True)
class Summary:
    total_repos: int
    repos_with_commits: int
    repos_with_errors: int
    total_commits: int
    total_files_changed: int
    file_type_counts: dict[str, int]
    change_type_counts: dict[ChangeType, int]
    additions: int
    deletions: int
    commits_by_author: dict[str, AuthorStats]
    top_changed_files: tuple[FileChangeCount, ...]

    def as_dict(self) -> dict[str, object]:
        return {
            "total_repos": self.total_repos,
            "repos_with_commits": self.repos_with_commits,
            "repos_with_errors": self.repos_with_errors,
            "total_commits": self.total_commits,
            "total_files_changed": self.total_files_changed,
            "file_type_counts": dict(self.file_type_counts),
            "change_type_counts": _change_type_counts_dict(self.change_type_counts),
            "line_changes": {"additions": self.additions, "deletions": self.deletions},
            "commits_by_author": {a: st.as_dict() for a, st in self.commits_by_author.items()},
            "top_changed_files": [f.as_dict() for f in self.top_changed_files],
        }


@dataclasses.dataclass(frozen=True)
class ReportData:
    window: ReportWindow
    summary: Summary
    repositories: tuple[RepoReport, ...]  # repos with in-window commits, most commits first
    failed: tuple[RepoReport, ...] = ()

    def as_dict(self) -> dict[str, object]:
        return {
            "start_date": self.window.start_display,
            "end_date": self.window.end_display,
            "total_repos": self.summary.total_repos,
            "repos_with_commits": self.summary.repos_with_commits,
            "summary": self.summary.as_dict(),
            "repositories": [r.as_dict() for r in self.repositories],
            "failed": [r.as_dict() for r in self.failed],
        }
