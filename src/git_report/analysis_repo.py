from __future__ import annotations

import time
from collections import Counter
from pathlib import Path
from typing import Callable, Iterable

from .analysis_classify import classify_commit
from .config import ReportConfig
from .models import AuthorStats, ChangeType, Commit, CommitDiffStats, FileChangeCount, RepoAnalysis

TOP_CHANGED_FILES = 5

Classifier = Callable[[Path, Commit], CommitDiffStats]


def file_extension(path: str) -> str:
    # rename/copy paths are "old<TAB>new"; the extension is taken from the final name
    return Path(path.rsplit("\t", 1)[-1]).suffix.lower()


def top_changed_files(paths: Iterable[str], limit: int = TOP_CHANGED_FILES) -> list[FileChangeCount]:
    # Counter keeps first-seen order and sorted() is stable, so ties stay in first-seen order
    counts = Counter(paths)
    ranked = sorted(counts.items(), key=lambda kv: -kv[1])
    return [FileChangeCount(path=p, count=c) for p, c in ranked[:limit]]


def analyze_repo(
    repo: Path,
    commits: list[Commit],
    config: ReportConfig,
    *,
    classify: Classifier | None = None,
    deadline: float | None = None,
) -> RepoAnalysis | None:
    if not commits or not config.include_analysis:
        return None

    if classify is None:
        def classify(r: Path, c: Commit) -> CommitDiffStats:
            return classify_commit(r, c, timeout_s=config.git_timeout_s)

    ignored_exts = {e.lower() for e in config.ignore_file_extensions}
    file_type_counts: Counter[str] = Counter()
    change_type_counts: Counter[ChangeType] = Counter()
    authors: dict[str, AuthorStats] = {}
    touched_paths: list[str] = []
    additions = 0
    deletions = 0
    errors: list[str] = []

    for commit in commits:
        if deadline is not None and time.monotonic() > deadline:
            raise TimeoutError(f"repository analysis deadline exceeded at commit {commit.hash[:12]}")

        stats = classify(repo, commit)
        if stats.error:
            errors.append(stats.error)

        for fc in stats.files:
            ext = file_extension(fc.path)
            if ext and ext not in ignored_exts:
                file_type_counts[ext] += 1
            change_type_counts[fc.change_type] += 1
            touched_paths.append(fc.path)

        additions += stats.additions
        deletions += stats.deletions

        author = authors.get(commit.author_name)
        if author is None:
            author = AuthorStats()
            authors[commit.author_name] = author
        author.commits += 1
        if not commit.is_root_commit or config.attribute_root_commit_lines:
            author.additions += stats.additions
            author.deletions += stats.deletions

    return RepoAnalysis(
        total_commits=len(commits),
        total_files_changed=len(set(touched_paths)),
        file_type_counts=dict(file_type_counts),
        change_type_counts=dict(change_type_counts),
        additions=additions,
        deletions=deletions,
        top_changed_files=tuple(top_changed_files(touched_paths)),
        commits_by_author=authors,
        errors=tuple(errors),
    )
