from __future__ import annotations

import datetime as dt
import json

from git_report.analysis_aggregate import build_report_data
from git_report.analysis_render import (
    ReportFormat,
    md_escape,
    render_json,
    render_markdown,
    render_report,
    render_text,
    resolve_format,
)
from git_report.models import (
    AuthorStats,
    ChangeType,
    Commit,
    FileChangeCount,
    RepoAnalysis,
    RepoInfo,
    RepoReport,
    ReportData,
)
from git_report.report_window import ReportWindow

UTC = dt.timezone.utc


def _data() -> ReportData:
    window = ReportWindow(
        start=dt.datetime(2025, 6, 5, tzinfo=UTC),
        end=dt.datetime(2025, 6, 12, 23, 59, 59, 999_999, tzinfo=UTC),
    )
    commits = (
        Commit("a" * 40, dt.datetime(2025, 6, 10, 12, tzinfo=UTC), "Alice", "alice@example.com", "fix | pipe"),
        Commit("b" * 40, dt.datetime(2025, 6, 11, 12, tzinfo=UTC), "Bob", "bob@example.com", "add feature"),
        Commit("c" * 40, dt.datetime(2025, 6, 11, 13, tzinfo=UTC), "Bob", "bob@example.com", "tests"),
    )
    analysis = RepoAnalysis(
        total_commits=3,
        total_files_changed=2,
        file_type_counts={".py": 1, ".ts": 4},
        change_type_counts={ChangeType.ADDED: 1, ChangeType.MODIFIED: 3},
        additions=40,
        deletions=7,
        top_changed_files=(FileChangeCount("src/app.ts", 3), FileChangeCount("tool.py", 1)),
        commits_by_author={"Alice": AuthorStats(1, 10, 2), "Bob": AuthorStats(2, 30, 5)},
    )
    info = RepoInfo("/src/web", "web", "git@example.com:org/web.git", "main", None, False)
    failed_info = RepoInfo("/src/broken", "broken", None, "unknown", None, False, error="TimeoutError: too slow")
    return build_report_data(
        window,
        [RepoReport(info=info, commits=commits, analysis=analysis)],
        [RepoReport(info=failed_info, errors=("TimeoutError: too slow",))],
    )


def test_resolve_format() -> None:
    assert resolve_format("json") is ReportFormat.JSON
    assert resolve_format(" TEXT ") is ReportFormat.TEXT
    assert resolve_format("md") is ReportFormat.MARKDOWN
    assert resolve_format("html") is ReportFormat.MARKDOWN
    assert resolve_format(None) is ReportFormat.MARKDOWN
    assert [f.extension for f in ReportFormat] == ["md", "json", "txt"]


def test_md_escape() -> None:
    assert md_escape("a | b") == "a \\| b"
    assert md_escape("old.py\tnew.py") == "old.py -> new.py"


def test_markdown_contains_overview_tables_and_details() -> None:
    md = render_markdown(_data())
    assert md.startswith("# Git activity report\n")
    assert "- **Period**: 2025-06-05 00:00:00 to 2025-06-12 23:59:59" in md
    assert "- **Repositories scanned**: 2" in md
    assert "- **Total commits**: 3" in md
    assert "- **Line changes**: +40 / -7" in md
    # authors by commits desc
    assert md.index("| Bob | 2 | 30 | 5 |") < md.index("| Alice | 1 | 10 | 2 |")
    # file types by count desc
    assert md.index("| .ts | 4 |") < md.index("| .py | 1 |")
    assert "| modified | 3 |" in md
    assert "| deleted |" not in md
    assert "### web" in md
    assert "| src/app.ts | 3 |" in md
    assert "fix \\| pipe" in md
    assert "## Failed repositories" in md
    assert "- **broken** (/src/broken): TimeoutError: too slow" in md


def test_json_is_structural() -> None:
    obj = json.loads(render_json(_data()))
    assert obj["start_date"] == "2025-06-05 00:00:00"
    assert obj["total_repos"] == 2
    assert obj["repos_with_commits"] == 1
    assert obj["summary"]["line_changes"] == {"additions": 40, "deletions": 7}
    assert obj["summary"]["change_type_counts"]["added"] == 1
    assert obj["summary"]["change_type_counts"]["deleted"] == 0
    assert obj["summary"]["top_changed_files"][0] == {"path": "web/src/app.ts", "count": 3}
    repo = obj["repositories"][0]
    assert repo["name"] == "web"
    assert repo["commits"][0]["message"] == "fix | pipe"
    assert repo["analysis"]["commits_by_author"]["Bob"] == {"commits": 2, "additions": 30, "deletions": 5}
    assert obj["failed"][0]["errors"] == ["TimeoutError: too slow"]


def test_text_report() -> None:
    txt = render_text(_data())
    assert "Total commits: 3" in txt
    assert "Bob: 2 commits, +30 / -5 lines" in txt
    assert "- src/app.ts: 3 changes" in txt
    assert "broken (/src/broken): TimeoutError: too slow" in txt


def test_render_report_dispatch() -> None:
    data = _data()
    assert render_report(data, ReportFormat.JSON) == render_json(data)
    assert render_report(data, ReportFormat.TEXT) == render_text(data)
    assert render_report(data, ReportFormat.MARKDOWN) == render_markdown(data)


def test_empty_report_renders() -> None:
    window = ReportWindow(start=dt.datetime(2025, 6, 5, tzinfo=UTC), end=dt.datetime(2025, 6, 12, tzinfo=UTC))
    data = build_report_data(window, [])
    md = render_markdown(data)
    assert "*No contributor data*" in md
    assert "## Failed repositories" not in md
    assert "No file type data" in render_text(data)
