from __future__ import annotations

import datetime as dt
import sys
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from .analysis_aggregate import build_report_data
from .analysis_history import read_windowed_commits
from .analysis_render import render_report
from .analysis_repo import analyze_repo
from .analysis_write import write_report
from .config import ReportConfig
from .git import UNKNOWN_BRANCH, discover_git_roots, get_repo_info
from .models import RepoInfo, RepoReport, ReportData
from .report_window import ReportWindow, format_timestamp, report_filename, window_for
from .review import ReviewError, review_file


def _print_header(*, root: Path, config: ReportConfig, window: ReportWindow) -> None:
    lines = [
        "┌──────────────────────────────────────────────────────────────┐",
        "│                          git-report                          │",
        "└──────────────────────────────────────────────────────────────┘",
        "",
        f"- Scan root: {root}",
        f"- Window: {window.start_display} to {window.end_display} ({config.window_days} days)",
        f"- Jobs: {config.jobs}  Analysis: {'on' if config.include_analysis else 'off'}  Format: {config.output_format.value}",
        f"- Output: {config.output_dir}/",
        "",
    ]
    print("\n".join(lines))


def analyze_one(repo: Path, window: ReportWindow, config: ReportConfig) -> RepoReport:
    """History, window selection and analysis for a single repository. Raises on failure."""
    started = time.monotonic()
    deadline = started + config.repo_timeout_s if config.repo_timeout_s > 0 else None

    info = get_repo_info(repo, timeout_s=config.git_timeout_s)
    if info.is_empty:
        return RepoReport(info=info)

    commits = read_windowed_commits(repo, window, timeout_s=config.git_timeout_s)
    analysis = analyze_repo(repo, commits, config, deadline=deadline)
    return RepoReport(
        info=info,
        commits=tuple(commits),
        analysis=analysis,
        errors=analysis.errors if analysis is not None else (),
    )


def failed_report(repo: Path, error: str) -> RepoReport:
    info = RepoInfo(
        path=str(repo),
        name=repo.name,
        remote=None,
        current_branch=UNKNOWN_BRANCH,
        last_commit_date=None,
        is_empty=False,
        error=error,
    )
    return RepoReport(info=info, errors=(error,))


def _analyze_or_fail(repo: Path, window: ReportWindow, config: ReportConfig) -> tuple[RepoReport, bool]:
    try:
        return analyze_one(repo, window, config), True
    except Exception as e:
        return failed_report(repo, f"{type(e).__name__}: {e}"), False


def _print_repo(report: RepoReport) -> None:
    if not report.has_commits:
        return
    print(f"\n{report.info.name} ({len(report.commits)} commits)")
    for c in report.commits:
        marker = " [root]" if c.is_root_commit else ""
        print(f"  {c.hash[:8]} {format_timestamp(c.timestamp)} {c.author_name}: {c.message}{marker}")


def collect_reports(
    repos: list[Path],
    window: ReportWindow,
    config: ReportConfig,
    reports: list[RepoReport],
    failed: list[RepoReport],
) -> None:
    """
    Analyze `repos` on a thread pool, appending to `reports` / `failed`.

    Results are only touched by the calling thread. Each list is sorted by path
    once every repository has been handled.
    """
    with ThreadPoolExecutor(max_workers=max(1, int(config.jobs))) as ex:
        futs = [ex.submit(_analyze_or_fail, repo, window, config) for repo in repos]
        for i, fut in enumerate(as_completed(futs), start=1):
            report, ok = fut.result()
            if ok:
                reports.append(report)
                if config.verbose:
                    _print_repo(report)
                for err in report.errors:
                    print(f"Warning: {report.info.name}: could not analyze commit {err}", file=sys.stderr)
            else:
                failed.append(report)
                print(f"Error: {report.info.path}: {report.info.error}", file=sys.stderr)
            if config.verbose and (i % 10 == 0 or i == len(futs)):
                print(f"Analyzed {i}/{len(futs)} repos...")

    reports.sort(key=lambda r: r.info.path)
    failed.sort(key=lambda r: r.info.path)


def _print_totals(data: ReportData, path: Path) -> None:
    s = data.summary
    print("")
    print(f"Repositories: {s.total_repos} scanned, {s.repos_with_commits} with commits, {len(data.failed)} failed")
    print(f"Commits: {s.total_commits}  Files changed: {s.total_files_changed}  Lines: +{s.additions} / -{s.deletions}")
    print(f"Report written to: {path}")


def run_report(config: ReportConfig, *, now: dt.datetime | None = None) -> int:
    window = window_for(config.window_days, now=now)
    root = config.root.expanduser().resolve()
    _print_header(root=root, config=config, window=window)

    if not root.is_dir():
        print(f"Error: scan root does not exist or is not a directory: {root}", file=sys.stderr)
        return 1

    print(f"Scanning for git repos under: {root}...")
    repos = discover_git_roots(root, config.ignore_dirs)
    if not repos:
        print(f"Warning: no git repositories found under: {root}", file=sys.stderr)
        return 0

    print(f"Found {len(repos)} git repositories.")
    if config.verbose:
        for repo in repos:
            print(f"  {repo}")

    reports: list[RepoReport] = []
    failed: list[RepoReport] = []
    try:
        collect_reports(repos, window, config, reports, failed)
    except Exception as e:
        print(f"Error: {type(e).__name__}: {e}", file=sys.stderr)
        if not config.ignore_errors:
            return 1
        print("Continuing with the repositories analyzed so far (--ignore-errors).", file=sys.stderr)

    data = build_report_data(window, reports, failed)
    fmt = config.output_format
    filename = report_filename(window, fmt.extension, prefix=config.filename_prefix)
    path = write_report(config.output_dir, filename, render_report(data, fmt))
    _print_totals(data, path)

    if data.summary.total_commits == 0:
        print(f"Warning: no commits found in the last {config.window_days} days.", file=sys.stderr)

    if config.review.enabled:
        try:
            review_file(path, config.review)
        except ReviewError as e:
            print(f"Error: {e}", file=sys.stderr)
            if not config.ignore_errors:
                return 1
    return 0
