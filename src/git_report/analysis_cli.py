from __future__ import annotations

import argparse
import dataclasses
import os
import sys
from pathlib import Path

from .analysis_render import ReportFormat, resolve_format
from .analysis_run import run_report
from .config import ConfigError, ReportConfig, load_config, with_overrides, with_review_api_key

API_KEY_ENV = "OPENAI_API_KEY"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Summarize recent git activity across every repository under a directory.")
    parser.add_argument("-d", "--days", type=int, default=None, help="Days to look back, counting today (default: 7).")
    parser.add_argument("-p", "--path", type=Path, default=None, help="Root directory to scan for git repos (default: .).")
    parser.add_argument("-o", "--output", type=Path, default=None, help="Directory to write the report into (default: reports).")
    parser.add_argument(
        "-f",
        "--format",
        type=str,
        default=None,
        help=f"Report format: {', '.join(f.value for f in ReportFormat)} (unknown values fall back to markdown).",
    )
    parser.add_argument("--no-analysis", action="store_true", help="Only list commits; skip per-file analysis.")
    parser.add_argument("-c", "--config", type=Path, default=None, help="Path to a JSON config file.")
    parser.add_argument("--quiet", action="store_true", help="Do not print discovered repositories and commits.")
    parser.add_argument("--ignore-errors", action="store_true", help="Keep going and write a report after unexpected errors.")
    parser.add_argument("--jobs", type=int, default=None, help="Parallel repositories.")
    parser.add_argument("--git-timeout", type=int, default=None, help="Seconds allowed per git command.")
    parser.add_argument("--repo-timeout", type=int, default=None, help="Seconds allowed per repository (0 = no limit).")
    parser.add_argument(
        "--attribute-root-lines",
        action="store_true",
        help="Count a repository's first commit toward its author's line totals.",
    )
    parser.add_argument("--review", action="store_true", help="Ask an LLM to review the report after writing it.")
    return parser


def env_api_key(env: dict[str, str] | None = None) -> str:
    env = os.environ if env is None else env
    return str(env.get(API_KEY_ENV, "") or "")


def config_from_args(args: argparse.Namespace, *, env: dict[str, str] | None = None) -> ReportConfig:
    config = load_config(args.config) if args.config else ReportConfig()
    config = with_overrides(
        config,
        window_days=args.days,
        root=args.path,
        output_dir=args.output,
        output_format=resolve_format(args.format) if args.format is not None else None,
        include_analysis=False if args.no_analysis else None,
        verbose=False if args.quiet else None,
        ignore_errors=True if args.ignore_errors else None,
        jobs=args.jobs,
        git_timeout_s=args.git_timeout,
        repo_timeout_s=args.repo_timeout,
        attribute_root_commit_lines=True if args.attribute_root_lines else None,
    )
    if args.review:
        config = dataclasses.replace(config, review=dataclasses.replace(config.review, enabled=True))
    return with_review_api_key(config, env_api_key(env))


def main(argv: list[str]) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        config = config_from_args(args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return run_report(config)
