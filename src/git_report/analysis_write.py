from __future__ import annotations

from pathlib import Path


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def write_report(output_dir: Path, filename: str, content: str) -> Path:
    ensure_dir(output_dir)
    path = output_dir / filename
    path.write_text(content, encoding="utf-8")
    return path
