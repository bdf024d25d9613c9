from __future__ import annotations

from typing import Hashable, Iterable, TypeVar

from .models import AuthorStats, FileChangeCount, RepoReport, ReportData, Summary
from .report_window import ReportWindow

K = TypeVar("K", bound=Hashable)

SUMMARY_TOP_FILES = 5


def merge_counts(dst: dict[K, int], src: dict[K, int]) -> None:
    for key, n in src.items():
        dst[key] = int(dst.get(key, 0)) + int(n)


def merge_authors(dst: dict[str, AuthorStats], src: dict[str, AuthorStats]) -> None:
    for author, st in src.items():
        cur = dst.get(author)
        if cur is None:
            cur = AuthorStats()
            dst[author] = cur
        cur.commits += st.commits
        cur.additions += st.additions
        cur.deletions += st.deletions


def aggregate(reports: Iterable[RepoReport]) -> Summary:
    total_repos = 0
    repos_with_commits = 0
    repos_with_errors = 0
    total_commits = 0
    total_files_changed = 0
    additions = 0
    deletions = 0
    file_type_counts: dict = {}
    change_type_counts: dict = {}
    authors: dict[str, AuthorStats] = {}
    top_files: list[FileChangeCount] = []

    for r in reports:
        total_repos += 1
        if r.errors or r.info.error:
            repos_with_errors += 1
        if not r.has_commits:
            continue
        repos_with_commits += 1
        total_commits += len(r.commits)

        a = r.analysis
        if a is None:
            continue
        total_files_changed += a.total_files_changed
        additions += a.additions
        deletions += a.deletions
        merge_counts(file_type_counts, a.file_type_counts)
        merge_counts(change_type_counts, a.change_type_counts)
        merge_authors(authors, a.commits_by_author)
        for f in a.top_changed_files:
            top_files.append(FileChangeCount(path=f"{r.info.name}/{f.path}", count=f.count))

    # count then label, so the result does not depend on repository order
    top_files.sort(key=lambda f: (-f.count, f.path))

    return Summary(
        total_repos=total_repos,
        repos_with_commits=repos_with_commits,
        repos_with_errors=repos_with_errors,
        total_commits=total_commits,
        total_files_changed=total_files_changed,
        file_type_counts=file_type_counts,
        change_type_counts=change_type_counts,
        additions=additions,
        deletions=deletions,
        commits_by_author=authors,
        top_changed_files=tuple(top_files[:SUMMARY_TOP_FILES]),
    )


def build_report_data(
    window: ReportWindow,
    reports: list[RepoReport],
    failed: list[RepoReport] | None = None,
) -> ReportData:
    failed = list(failed or [])
    summary = aggregate([*reports, *failed])
    with_commits = [r for r in reports if r.has_commits]
    with_commits.sort(key=lambda r: -len(r.commits))
    return ReportData(
        window=window,
        summary=summary,
        repositories=tuple(with_commits),
        failed=tuple(failed),
    )
