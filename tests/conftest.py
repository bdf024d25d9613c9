from __future__ import annotations

import datetime as dt
import json
import os
import subprocess
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path

import pytest

# every git-backed test reports relative to this instant
NOW = dt.datetime(2025, 6, 12, 9, 0, tzinfo=dt.timezone.utc)


def git(repo: Path, *args: str, env: dict[str, str] | None = None) -> str:
    proc = subprocess.run(
        ["git", "-c", "commit.gpgsign=false", "-c", "init.defaultBranch=main", *args],
        cwd=str(repo),
        env=env,
        text=True,
        capture_output=True,
        check=True,
    )
    return proc.stdout


class GitRepo:
    def __init__(self, path: Path) -> None:
        self.path = path
        path.mkdir(parents=True, exist_ok=True)
        git(path, "init", "-q")

    def commit(
        self,
        message: str,
        *,
        when: str,
        write: dict[str, str] | None = None,
        delete: tuple[str, ...] = (),
        author: str = "Alice",
        email: str = "alice@example.com",
    ) -> str:
        for rel, content in (write or {}).items():
            p = self.path / rel
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_text(content, encoding="utf-8")
        for rel in delete:
            (self.path / rel).unlink()
        git(self.path, "add", "-A")

        env = os.environ.copy()
        env.update(
            {
                "GIT_AUTHOR_NAME": author,
                "GIT_AUTHOR_EMAIL": email,
                "GIT_COMMITTER_NAME": author,
                "GIT_COMMITTER_EMAIL": email,
                "GIT_AUTHOR_DATE": when,
                "GIT_COMMITTER_DATE": when,
            }
        )
        git(self.path, "commit", "-q", "-m", message, env=env)
        return git(self.path, "rev-parse", "HEAD").strip()


@pytest.fixture
def make_repo(tmp_path: Path):
    def _make(name: str = "repo", parent: Path | None = None) -> GitRepo:
        return GitRepo((parent or tmp_path) / name)

    return _make


@pytest.fixture
def fake_git(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Put a `git` shell script with the given body first on PATH."""

    def _install(body: str) -> Path:
        bin_dir = tmp_path / "fakebin"
        bin_dir.mkdir(exist_ok=True)
        script = bin_dir / "git"
        script.write_text("#!/bin/sh\n" + body + "\n", encoding="utf-8")
        script.chmod(0o755)
        monkeypatch.setenv("PATH", str(bin_dir) + os.pathsep + os.environ.get("PATH", ""))
        return script

    return _install


def serve_json(status: int, payload: object, received: dict[str, object]) -> HTTPServer:
    """Local HTTP server answering every POST with `payload`; request details land in `received`."""

    class Handler(BaseHTTPRequestHandler):
        def do_POST(self) -> None:  # noqa: N802
            body = self.rfile.read(int(self.headers.get("Content-Length", "0")))
            received["path"] = self.path
            received["auth"] = self.headers.get("Authorization")
            received["body"] = json.loads(body.decode("utf-8"))
            raw = json.dumps(payload).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(raw)))
            self.end_headers()
            self.wfile.write(raw)

        def log_message(self, fmt: str, *args: object) -> None:
            return

    httpd = HTTPServer(("127.0.0.1", 0), Handler)
    threading.Thread(target=httpd.serve_forever, daemon=True).start()
    return httpd
