"""Command-line interface for Mail Variable Locator.

This module provides the main entry point for the CLI application.
"""

from __future__ import annotations

import argparse
import csv
import logging
import re
import sys
from pathlib import Path

import structlog
from pydantic import ValidationError

from mail_locator import __version__
from mail_locator.config import Settings, get_settings
from mail_locator.exceptions import ConfigurationError, GitError
from mail_locator.git import GitRepository, SubprocessRunner
from mail_locator.locator import VariableInMailingListLocator
from mail_locator.models import VariableMailLocation

logger = structlog.get_logger()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mail-locator", description="Mail Variable Locator")
    subparsers = parser.add_subparsers(dest="command", required=True)

    locate_parser = subparsers.add_parser(
        "locate",
        help="Find variables in the mails of git-backed mailing list archives",
    )
    locate_parser.add_argument(
        "--source",
        dest="sources",
        action="append",
        default=None,
        help="Local directory or remote URL of a mail archive (repeatable; default: settings mail_sources)",
    )
    locate_parser.add_argument(
        "--regex",
        default=None,
        help="Regular expression matching variables (default: settings variable_regex)",
    )
    locate_parser.add_argument(
        "--url-prefix",
        default=None,
        help="Prefix for mail identifiers (default: settings url_prefix)",
    )
    locate_parser.add_argument(
        "--mail-file",
        default=None,
        help="File holding the mail in each commit (default: settings mail_file)",
    )
    locate_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write results as CSV to this file instead of printing them",
    )

    commits_parser = subparsers.add_parser("commits", help="List the commits of a local archive, oldest first")
    commits_parser.add_argument("path", type=Path, help="Path to the local git repository")

    remote_parser = subparsers.add_parser("remote-name", help="Print the remote name derived from a URL")
    remote_parser.add_argument("url", help="Remote URL")

    return parser


def _locate_settings(settings: Settings, args: argparse.Namespace) -> Settings:
    overrides: dict[str, object] = {}
    if args.sources:
        overrides["mail_sources"] = args.sources
    if args.regex is not None:
        overrides["variable_regex"] = re.compile(args.regex)
    if args.url_prefix is not None:
        overrides["url_prefix"] = args.url_prefix
    if args.mail_file is not None:
        overrides["mail_file"] = args.mail_file
    return settings.model_copy(update=overrides)


def _write_csv(path: Path, results: list[VariableMailLocation]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as fh:
        writer = csv.writer(fh)
        writer.writerow(VariableMailLocation.TABLE_HEADER)
        for location in results:
            writer.writerow(location.as_row())


def _cmd_locate(args: argparse.Namespace) -> int:
    try:
        settings = _locate_settings(get_settings(), args)
        locator = VariableInMailingListLocator(settings)
    except re.error as exc:
        logger.error("variable_regex_invalid", regex=args.regex, error=str(exc))
        return 2
    except ConfigurationError as exc:
        logger.error("configuration_invalid", error=str(exc))
        return 2

    results = locator.execute()

    if args.output is not None:
        _write_csv(args.output, results)
        print(f"Wrote {len(results)} results to {args.output}")
        return 0

    print("\t".join(VariableMailLocation.TABLE_HEADER))
    for location in results:
        print("\t".join(str(value) for value in location.as_row()))
    return 0


def _cmd_commits(args: argparse.Namespace) -> int:
    settings = get_settings()
    repo = GitRepository(
        args.path,
        runner=SubprocessRunner(timeout=settings.git_timeout),
        git_executable=settings.git_executable,
        debug=settings.debug,
    )

    try:
        commits = repo.list_all_commits()
    except GitError as exc:
        logger.error("list_commits_failed", path=str(args.path), error=str(exc))
        return 1

    for commit in commits:
        print(commit)
    return 0


def _cmd_remote_name(args: argparse.Namespace) -> int:
    print(GitRepository.create_remote_name(args.url))
    return 0


def _configure_logging(level_name: str) -> None:
    # results go to stdout, so logs go to stderr
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level_name.upper(), logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def main(args: list[str] | None = None) -> int:
    """Main entry point for the Mail Variable Locator CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    try:
        settings = get_settings()
    except ValidationError as exc:
        _configure_logging("INFO")
        logger.error("settings_invalid", error=str(exc))
        return 2

    _configure_logging("DEBUG" if settings.debug else settings.log_level)

    logger.info("mail_locator_started", version=__version__, debug=settings.debug)

    parser = _build_parser()
    parsed = parser.parse_args(args)

    if parsed.command == "locate":
        return _cmd_locate(parsed)
    if parsed.command == "commits":
        return _cmd_commits(parsed)
    if parsed.command == "remote-name":
        return _cmd_remote_name(parsed)

    logger.error("unknown_command", command=parsed.command)
    return 2


if __name__ == "__main__":
    sys.exit(main())
