from __future__ import annotations

import json
from pathlib import Path

import pytest

from git_report.analysis_render import ReportFormat
from git_report.config import (
    DEFAULT_IGNORE_FILE_EXTENSIONS,
    ConfigError,
    ReportConfig,
    config_from_dict,
    load_config,
    with_overrides,
    with_review_api_key,
)


def test_defaults() -> None:
    cfg = ReportConfig()
    assert cfg.window_days == 7
    assert cfg.output_format is ReportFormat.MARKDOWN
    assert cfg.include_analysis is True
    assert ".md" in cfg.ignore_file_extensions
    assert "node_modules" in cfg.ignore_dirs
    assert cfg.jobs >= 1
    assert cfg.review.enabled is False


def test_load_config_layers_over_defaults(tmp_path: Path) -> None:
    p = tmp_path / "config.json"
    p.write_text(
        json.dumps(
            {
                "window_days": 14,
                "output_format": "JSON",
                "ignore_file_extensions": ["LOCK", ".txt", ""],
                "ignore_dirs": ["vendor"],
                "review": {"enabled": True, "model": "gpt-test"},
                "unknown_key": 1,
            }
        ),
        encoding="utf-8",
    )
    cfg = load_config(p)
    assert cfg.window_days == 14
    assert cfg.output_format is ReportFormat.JSON
    assert cfg.ignore_file_extensions == frozenset({".lock", ".txt"})
    assert cfg.ignore_dirs == frozenset({"vendor"})
    assert cfg.review.enabled is True
    assert cfg.review.model == "gpt-test"
    assert cfg.review.base_url == "https://api.openai.com/v1"
    assert cfg.include_analysis is True


def test_unknown_format_falls_back_to_markdown() -> None:
    assert config_from_dict({"output_format": "html"}).output_format is ReportFormat.MARKDOWN


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.json")


def test_invalid_config_file(tmp_path: Path) -> None:
    p = tmp_path / "config.json"
    p.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(p)


@pytest.mark.parametrize(
    "data",
    [
        [],
        {"window_days": -1},
        {"window_days": "many"},
        {"ignore_dirs": "vendor"},
        {"review": "yes"},
    ],
)
def test_invalid_values_raise(data: object) -> None:
    with pytest.raises(ConfigError):
        config_from_dict(data)  # type: ignore[arg-type]


def test_overrides_ignore_none_and_keep_config_immutable() -> None:
    base = ReportConfig()
    cfg = with_overrides(base, window_days=3, root=None, verbose=False)
    assert cfg.window_days == 3
    assert cfg.root == base.root
    assert cfg.verbose is False
    assert base.window_days == 7
    assert base.ignore_file_extensions == DEFAULT_IGNORE_FILE_EXTENSIONS


def test_overrides_validate() -> None:
    with pytest.raises(ConfigError):
        with_overrides(ReportConfig(), window_days=-2)
    with pytest.raises(ConfigError):
        with_overrides(ReportConfig(), jobs=0)


def test_api_key_fallback_only_fills_missing_key() -> None:
    cfg = with_review_api_key(ReportConfig(), "env-key")
    assert cfg.review.api_key == "env-key"
    explicit = config_from_dict({"review": {"api_key": "file-key"}})
    assert with_review_api_key(explicit, "env-key").review.api_key == "file-key"
    assert with_review_api_key(ReportConfig(), "").review.api_key == ""
