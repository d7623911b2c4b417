"""Command-line entry point for the mail archiver."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable
from contextlib import AbstractContextManager
from pathlib import Path

from pydantic import ValidationError

from mail_archiver.archive import ArchiveService, ensure_export_root
from mail_archiver.core import AppSettings, configure_logging, load_app_settings
from mail_archiver.core.interfaces import (
    ExportRootError,
    MailClientUnavailableError,
    MailStore,
)
from mail_archiver.transport import OutlookSession

LOGGER = logging.getLogger("mail_archiver")

EXIT_OK = 0
EXIT_EXPORT_ROOT = 1
EXIT_CONFIG = 2

SessionFactory = Callable[[], AbstractContextManager[MailStore]]


def build_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Export tagged mail items into a dated .msg archive"
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=Path(".env"),
        help="Path to a .env file holding MAIL_ARCHIVER_* settings (default: .env).",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="run",
        choices=["run", "info"],
        help="Operation to execute (default: run).",
    )
    return parser


def execute(
    args: argparse.Namespace,
    settings: AppSettings,
    *,
    session_factory: SessionFactory = OutlookSession,
) -> int:
    """Execute the requested CLI command and return the process exit status."""
    if args.command == "info":
        _print_info(settings)
        return EXIT_OK
    return _run_archive(settings, session_factory)


def main() -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    try:
        settings = load_app_settings(env_file=args.env_file)
    except ValidationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        raise SystemExit(EXIT_CONFIG) from exc
    raise SystemExit(execute(args, settings))


def _print_info(settings: AppSettings) -> None:
    export = settings.export
    print(f"Archive tag: {export.archive_tag}")
    post_tag = export.post_export_tag if export.retag_enabled else "(disabled)"
    print(f"Post-export tag: {post_tag}")
    print(f"Minimum age (days): {export.min_age_days}")
    print(f"Export root: {export.export_root}")
    print(f"Index file: {export.resolved_index_file}")
    print(f"Log file: {settings.logging.log_file}")
    folders = ", ".join(export.folders_to_scan) or "(entire store)"
    print(f"Folders: {folders}")
    print(f"Content hash: {'on' if export.compute_content_hash else 'off'}")


def _run_archive(settings: AppSettings, session_factory: SessionFactory) -> int:
    """Run one archive pass and map the outcome to an exit status."""
    try:
        ensure_export_root(settings.export.export_root)
    except ExportRootError as exc:
        configure_logging(settings.logging.model_copy(update={"log_file": None}))
        LOGGER.error("Aborting before any processing: %s", exc)
        return EXIT_EXPORT_ROOT

    configure_logging(settings.logging)
    try:
        with session_factory() as store:
            report = ArchiveService(settings.export).run(store)
    except MailClientUnavailableError as exc:
        LOGGER.info("Mail client not available (%s); nothing to archive", exc)
        return EXIT_OK

    print(
        f"Exported {report.exported} item(s). "
        f"{report.index_size} record(s) stored in {report.index_path}"
    )
    return EXIT_OK


if __name__ == "__main__":
    main()
