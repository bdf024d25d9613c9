from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Optional

from .models import RepoInfo

UNKNOWN_BRANCH = "unknown"


class GitCommandError(RuntimeError):
    def __init__(self, args: list[str], code: int, stderr: str) -> None:
        self.git_args = list(args)
        self.code = code
        self.stderr = stderr
        super().__init__(f"git {' '.join(args)} exited {code}: {stderr.strip()[:500]}")


def run_git(args: list[str], cwd: Path, timeout_s: int = 300) -> tuple[int, str, str]:
    try:
        proc = subprocess.run(
            ["git", "-c", "core.quotepath=off", *args],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout_s,
        )
    except subprocess.TimeoutExpired:
        return 124, "", f"timed out after {timeout_s}s"
    except OSError as e:
        return 127, "", f"failed to start git: {e}"
    return proc.returncode, proc.stdout, proc.stderr


def check_git(args: list[str], cwd: Path, timeout_s: int = 300) -> str:
    code, out, err = run_git(args, cwd=cwd, timeout_s=timeout_s)
    if code != 0:
        raise GitCommandError(args, code, err)
    return out


def discover_git_roots(root: Path, ignore_dirnames: set[str] | frozenset[str]) -> list[Path]:
    roots: list[Path] = []

    def onerror(err: OSError) -> None:
        _ = err

    for dirpath, dirnames, filenames in os.walk(root, onerror=onerror):
        if ".git" in dirnames or ".git" in filenames:
            roots.append(Path(dirpath).resolve())
            # nested repositories are not scanned separately
            dirnames[:] = []
            continue
        dirnames[:] = sorted(d for d in dirnames if d not in ignore_dirnames and d != ".git")
    return sorted(roots)


def has_commits(repo: Path, timeout_s: int = 300) -> bool:
    code, out, _ = run_git(["rev-parse", "--verify", "--quiet", "HEAD"], cwd=repo, timeout_s=timeout_s)
    return code == 0 and bool(out.strip())


def get_current_branch(repo: Path, timeout_s: int = 300) -> str:
    code, out, _ = run_git(["symbolic-ref", "--short", "HEAD"], cwd=repo, timeout_s=timeout_s)
    if code != 0 or not out.strip():
        return UNKNOWN_BRANCH
    return out.strip()


def get_first_remote_url(repo: Path, timeout_s: int = 300) -> Optional[str]:
    code, out, _ = run_git(["remote", "-v"], cwd=repo, timeout_s=timeout_s)
    if code != 0:
        return None
    for line in out.splitlines():
        parts = line.split()
        # origin\tgit@host:org/repo.git (fetch)
        if len(parts) >= 3 and parts[2] == "(fetch)":
            return parts[1]
    return None


def get_last_commit_iso(repo: Path, timeout_s: int = 300) -> str | None:
    code, out, _ = run_git(["log", "-n", "1", "--format=%aI"], cwd=repo, timeout_s=timeout_s)
    if code != 0:
        return None
    return out.strip() or None


def get_repo_info(repo: Path, timeout_s: int = 300) -> RepoInfo:
    code, out, err = run_git(["rev-parse", "--verify", "--quiet", "HEAD"], cwd=repo, timeout_s=timeout_s)
    if code != 0 or not out.strip():
        # exit 1 is an unborn HEAD; anything else means git could not read the repository
        return RepoInfo(
            path=str(repo),
            name=repo.name,
            remote=None,
            current_branch=get_current_branch(repo, timeout_s=timeout_s),
            last_commit_date=None,
            is_empty=True,
            error=None if code in (0, 1) else (err.strip()[:500] or f"git rev-parse exited {code}"),
        )
    return RepoInfo(
        path=str(repo),
        name=repo.name,
        remote=get_first_remote_url(repo, timeout_s=timeout_s),
        current_branch=get_current_branch(repo, timeout_s=timeout_s),
        last_commit_date=get_last_commit_iso(repo, timeout_s=timeout_s),
        is_empty=False,
    )
