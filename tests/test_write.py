from __future__ import annotations

from pathlib import Path

from git_report.analysis_write import write_report


def test_write_report_creates_output_dir(tmp_path: Path) -> None:
    out = tmp_path / "reports" / "weekly"
    path = write_report(out, "git-report-20250605-to-20250612.md", "# Report ✓\n")
    assert path == out / "git-report-20250605-to-20250612.md"
    assert path.read_text(encoding="utf-8") == "# Report ✓\n"


def test_write_report_overwrites_existing_report(tmp_path: Path) -> None:
    write_report(tmp_path, "r.txt", "first\n")
    path = write_report(tmp_path, "r.txt", "second\n")
    assert path.read_text(encoding="utf-8") == "second\n"
