from __future__ import annotations

import enum
import json

from .models import AuthorStats, ChangeType, RepoReport, ReportData
from .report_window import format_timestamp


class ReportFormat(str, enum.Enum):
    MARKDOWN = "markdown"
    JSON = "json"
    TEXT = "text"

    @property
    def extension(self) -> str:
        return {"markdown": "md", "json": "json", "text": "txt"}[self.value]


FORMAT_ALIASES = {"md": ReportFormat.MARKDOWN, "txt": ReportFormat.TEXT}


def resolve_format(name: str | None) -> ReportFormat:
    s = (name or "").strip().lower()
    if s in FORMAT_ALIASES:
        return FORMAT_ALIASES[s]
    try:
        return ReportFormat(s)
    except ValueError:
        return ReportFormat.MARKDOWN


def sorted_authors(authors: dict[str, AuthorStats]) -> list[tuple[str, AuthorStats]]:
    return sorted(authors.items(), key=lambda kv: (-kv[1].commits, kv[0].lower()))


def sorted_counts(counts: dict[str, int]) -> list[tuple[str, int]]:
    return sorted(counts.items(), key=lambda kv: (-int(kv[1]), kv[0]))


def change_type_rows(counts: dict[ChangeType, int]) -> list[tuple[str, int]]:
    return [(ct.value, int(counts.get(ct, 0))) for ct in ChangeType if int(counts.get(ct, 0)) > 0]


def md_escape(s: str) -> str:
    return (s or "").replace("|", "\\|").replace("\t", " -> ")


def _md_overview(data: ReportData) -> list[str]:
    s = data.summary
    return [
        "## Overview",
        "",
        f"- **Period**: {data.window.start_display} to {data.window.end_display}",
        f"- **Repositories scanned**: {s.total_repos}",
        f"- **Repositories with commits**: {s.repos_with_commits}",
        f"- **Total commits**: {s.total_commits}",
        f"- **Files changed**: {s.total_files_changed}",
        f"- **Line changes**: +{s.additions} / -{s.deletions}",
        "",
    ]


def _md_repo(r: RepoReport) -> list[str]:
    lines = [
        f"### {r.info.name}",
        "",
        f"- **Path**: {r.info.path}",
        f"- **Branch**: {r.info.current_branch}",
        f"- **Commits**: {len(r.commits)}",
    ]
    a = r.analysis
    if a is not None:
        lines.append(f"- **Files changed**: {a.total_files_changed}")
        lines.append(f"- **Line changes**: +{a.additions} / -{a.deletions}")
        if a.top_changed_files:
            lines.extend(["", "#### Most changed files", "", "| File | Changes |", "| ---- | ------- |"])
            for f in a.top_changed_files:
                lines.append(f"| {md_escape(f.path)} | {f.count} |")
        if a.errors:
            lines.extend(["", f"*{len(a.errors)} commit(s) could not be analyzed*"])
    lines.extend(["", "#### Commits", ""])
    if r.commits:
        lines.extend(["| Date | Author | Message |", "| ---- | ------ | ------- |"])
        for c in r.commits:
            lines.append(f"| {format_timestamp(c.timestamp)} | {md_escape(c.author_name)} | {md_escape(c.message)} |")
    else:
        lines.append("*No commits*")
    lines.append("")
    return lines


def render_markdown(data: ReportData) -> str:
    s = data.summary
    lines: list[str] = ["# Git activity report", ""]
    lines.extend(_md_overview(data))

    lines.extend(["## Contributors", ""])
    if s.commits_by_author:
        lines.extend(["| Author | Commits | Additions | Deletions |", "| ------ | ------- | --------- | --------- |"])
        for author, st in sorted_authors(s.commits_by_author):
            lines.append(f"| {md_escape(author)} | {st.commits} | {st.additions} | {st.deletions} |")
    else:
        lines.append("*No contributor data*")
    lines.append("")

    lines.extend(["## File types", ""])
    if s.file_type_counts:
        lines.extend(["| File type | Changes |", "| --------- | ------- |"])
        for ext, n in sorted_counts(s.file_type_counts):
            lines.append(f"| {ext} | {n} |")
    else:
        lines.append("*No file type data*")
    lines.append("")

    ct_rows = change_type_rows(s.change_type_counts)
    if ct_rows:
        lines.extend(["## Change types", "", "| Change | Files |", "| ------ | ----- |"])
        for name, n in ct_rows:
            lines.append(f"| {name} | {n} |")
        lines.append("")

    lines.extend(["## Repositories", ""])
    for r in data.repositories:
        lines.extend(_md_repo(r))

    if data.failed:
        lines.extend(["## Failed repositories", ""])
        for r in data.failed:
            lines.append(f"- **{r.info.name}** ({r.info.path}): {md_escape('; '.join(r.errors))}")
        lines.append("")

    return "\n".join(lines) + "\n"


def render_json(data: ReportData) -> str:
    return json.dumps(data.as_dict(), indent=2, ensure_ascii=False) + "\n"


def _text_heading(title: str, underline: str = "=") -> list[str]:
    return [title, underline * 10, ""]


def render_text(data: ReportData) -> str:
    s = data.summary
    lines: list[str] = ["Git activity report", ""]
    lines.extend(_text_heading("Overview"))
    lines.append(f"Period: {data.window.start_display} to {data.window.end_display}")
    lines.append(f"Repositories scanned: {s.total_repos}")
    lines.append(f"Repositories with commits: {s.repos_with_commits}")
    lines.append(f"Total commits: {s.total_commits}")
    lines.append(f"Files changed: {s.total_files_changed}")
    lines.append(f"Line changes: +{s.additions} / -{s.deletions}")
    lines.append("")

    lines.extend(_text_heading("Contributors"))
    if s.commits_by_author:
        for author, st in sorted_authors(s.commits_by_author):
            lines.append(f"{author}: {st.commits} commits, +{st.additions} / -{st.deletions} lines")
    else:
        lines.append("No contributor data")
    lines.append("")

    lines.extend(_text_heading("File types"))
    if s.file_type_counts:
        for ext, n in sorted_counts(s.file_type_counts):
            lines.append(f"{ext}: {n} changes")
    else:
        lines.append("No file type data")
    lines.append("")

    lines.extend(_text_heading("Repositories"))
    for r in data.repositories:
        lines.extend([r.info.name, "-" * 10, ""])
        lines.append(f"Path: {r.info.path}")
        lines.append(f"Branch: {r.info.current_branch}")
        lines.append(f"Commits: {len(r.commits)}")
        a = r.analysis
        if a is not None:
            lines.append(f"Files changed: {a.total_files_changed}")
            lines.append(f"Line changes: +{a.additions} / -{a.deletions}")
            if a.top_changed_files:
                lines.extend(["", "Most changed files:"])
                for f in a.top_changed_files:
                    lines.append(f"- {f.path}: {f.count} changes")
                lines.append("")
        lines.append("Commits:")
        if r.commits:
            for c in r.commits:
                lines.append(f"- {format_timestamp(c.timestamp)} | {c.author_name} | {c.message}")
        else:
            lines.append("No commits")
        lines.append("")

    if data.failed:
        lines.extend(_text_heading("Failed repositories"))
        for r in data.failed:
            lines.append(f"{r.info.name} ({r.info.path}): {'; '.join(r.errors)}")
        lines.append("")

    return "\n".join(lines) + "\n"


RENDERERS = {
    ReportFormat.MARKDOWN: render_markdown,
    ReportFormat.JSON: render_json,
    ReportFormat.TEXT: render_text,
}


def render_report(data: ReportData, fmt: ReportFormat) -> str:
    return RENDERERS[fmt](data)
