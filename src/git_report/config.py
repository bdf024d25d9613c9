from __future__ import annotations

import dataclasses
import json
import os
from pathlib import Path

from .analysis_render import ReportFormat, resolve_format

DEFAULT_IGNORE_FILE_EXTENSIONS = frozenset({".log", ".lock", ".md", ".gitignore", ".ds_store"})
DEFAULT_IGNORE_DIRS = frozenset({"node_modules", "dist", "build", ".git", ".idea", ".vscode"})


class ConfigError(ValueError):
    pass


def default_jobs() -> int:
    return max(1, min(8, (os.cpu_count() or 4)))


@dataclasses.dataclass(frozen=True)
class ReviewConfig:
    enabled: bool = False
    api_key: str = ""
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"
    timeout_s: int = 120


@dataclasses.dataclass(frozen=True)
class ReportConfig:
    root: Path = Path(".")
    window_days: int = 7
    output_dir: Path = Path("reports")
    output_format: ReportFormat = ReportFormat.MARKDOWN
    include_analysis: bool = True
    ignore_file_extensions: frozenset[str] = DEFAULT_IGNORE_FILE_EXTENSIONS
    ignore_dirs: frozenset[str] = DEFAULT_IGNORE_DIRS
    verbose: bool = True
    ignore_errors: bool = False
    jobs: int = dataclasses.field(default_factory=default_jobs)
    git_timeout_s: int = 120
    repo_timeout_s: int = 600
    attribute_root_commit_lines: bool = False
    filename_prefix: str = "git-report"
    review: ReviewConfig = ReviewConfig()


def normalize_extension(ext: str) -> str:
    e = str(ext or "").strip().lower()
    if e and not e.startswith("."):
        e = "." + e
    return e


def _str_set(value: object, key: str) -> list[str]:
    if not isinstance(value, list):
        raise ConfigError(f"{key} must be a list of strings")
    return [str(v) for v in value if str(v).strip()]


def _review_from_dict(data: object, base: ReviewConfig) -> ReviewConfig:
    if not isinstance(data, dict):
        raise ConfigError("review must be an object")
    fields = {f.name for f in dataclasses.fields(ReviewConfig)}
    updates = {k: v for k, v in data.items() if k in fields and v is not None}
    try:
        review = dataclasses.replace(base, **updates)
        return dataclasses.replace(
            review,
            enabled=bool(review.enabled),
            api_key=str(review.api_key or ""),
            base_url=str(review.base_url or base.base_url),
            model=str(review.model or base.model),
            timeout_s=int(review.timeout_s),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid review config: {e}") from e


def config_from_dict(data: dict, base: ReportConfig | None = None) -> ReportConfig:
    """
    Build a config from a parsed JSON object, layered over `base` (defaults if
    omitted). Keys mirror the ReportConfig field names; unknown keys are ignored.
    """
    cfg = base if base is not None else ReportConfig()
    if not isinstance(data, dict):
        raise ConfigError("config must be a JSON object")

    updates: dict[str, object] = {}
    try:
        if "root" in data:
            updates["root"] = Path(str(data["root"])).expanduser()
        if "window_days" in data:
            updates["window_days"] = int(data["window_days"])
        if "output_dir" in data:
            updates["output_dir"] = Path(str(data["output_dir"])).expanduser()
        if "output_format" in data:
            updates["output_format"] = resolve_format(str(data["output_format"] or ""))
        for key in ("include_analysis", "verbose", "ignore_errors", "attribute_root_commit_lines"):
            if key in data:
                updates[key] = bool(data[key])
        for key in ("jobs", "git_timeout_s", "repo_timeout_s"):
            if key in data:
                updates[key] = int(data[key])
        if "filename_prefix" in data:
            updates["filename_prefix"] = str(data["filename_prefix"] or "").strip() or cfg.filename_prefix
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid config value: {e}") from e
    if int(updates.get("window_days", cfg.window_days)) < 0:
        raise ConfigError("window_days must be >= 0")

    if "ignore_file_extensions" in data:
        exts = {normalize_extension(e) for e in _str_set(data["ignore_file_extensions"], "ignore_file_extensions")}
        updates["ignore_file_extensions"] = frozenset(e for e in exts if e)
    if "ignore_dirs" in data:
        updates["ignore_dirs"] = frozenset(_str_set(data["ignore_dirs"], "ignore_dirs"))
    if "review" in data:
        updates["review"] = _review_from_dict(data["review"], cfg.review)

    return dataclasses.replace(cfg, **updates)


def load_config(config_path: Path, base: ReportConfig | None = None) -> ReportConfig:
    if not config_path.exists():
        raise ConfigError(f"config file not found: {config_path}")
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ConfigError(f"could not read config {config_path}: {e}") from e
    return config_from_dict(data, base=base)


def with_overrides(config: ReportConfig, **overrides: object) -> ReportConfig:
    updates = {k: v for k, v in overrides.items() if v is not None}
    if "window_days" in updates and int(updates["window_days"]) < 0:
        raise ConfigError("--days must be >= 0")
    if "jobs" in updates and int(updates["jobs"]) < 1:
        raise ConfigError("--jobs must be >= 1")
    return dataclasses.replace(config, **updates)


def with_review_api_key(config: ReportConfig, api_key: str) -> ReportConfig:
    if config.review.api_key or not api_key:
        return config
    return dataclasses.replace(config, review=dataclasses.replace(config.review, api_key=api_key))
