from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path

from . import analysis_cli
from .config import ConfigError, ReportConfig, load_config, with_review_api_key
from .review import ReviewError, review_file


def review_main(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="git-report review", description="Add an LLM review to an existing report.")
    p.add_argument("report", type=Path, help="Path to a report written by git-report.")
    p.add_argument("-c", "--config", type=Path, default=None, help="Path to a JSON config file (review.* settings).")
    p.add_argument("--model", type=str, default="", help="Override `review.model`.")
    args = p.parse_args(argv)

    try:
        config = load_config(args.config) if args.config else ReportConfig()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    config = with_review_api_key(config, analysis_cli.env_api_key())
    review = dataclasses.replace(config.review, enabled=True)
    if args.model.strip():
        review = dataclasses.replace(review, model=args.model.strip())

    if not args.report.is_file():
        print(f"Error: report not found: {args.report}", file=sys.stderr)
        return 1
    try:
        out = review_file(args.report, review)
    except ReviewError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0 if out is not None else 1


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if argv and argv[0] in ("-h", "--help"):
        p = analysis_cli._build_parser()
        p.prog = "git-report"
        p.print_help()
        print("")
        print("commands:")
        print("  review         Add an LLM review to an existing report.")
        print("")
        print("Run `git-report <command> --help` for command-specific options.")
        return 0
    if argv and argv[0] == "review":
        return review_main(argv[1:])
    return analysis_cli.main(argv)


if __name__ == "__main__":
    raise SystemExit(main())
