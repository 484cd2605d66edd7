# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from sitetrace.app import (
    check_external_connection,
    default_sync_options,
    get_sync_history,
    list_detection_results,
    list_external_sites_by_recommendation,
    run_external_sync,
    search_external_sites,
)
from sitetrace.config import configure_logging
from sitetrace.domain.feed import DEFAULT_DETECTION_LIMIT
from sitetrace.domain.reconciliation import SyncOptions

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from sitetrace.domain.feed import AnalysisResult

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Synchronise the external monitoring feed")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Reconcile the external feed into the local store")
    sync.add_argument(
        "--no-top-targets",
        action="store_true",
        help="Do not auto-register unseen top-target domains",
    )
    sync.add_argument(
        "--no-needs-investigation",
        action="store_true",
        help="Do not auto-register unseen domains that need investigation",
    )
    sync.add_argument(
        "--sync-all",
        action="store_true",
        help="Register every unseen domain, including flagged sites without a report row",
    )
    sync.add_argument(
        "--no-catch-all",
        action="store_true",
        help="Only the explicit tiers trigger registration, not any other recommendation",
    )
    sync.add_argument(
        "--json",
        action="store_true",
        help="Print the run summary as JSON",
    )

    history = subparsers.add_parser("history", help="Show recent sync runs")
    history.add_argument(
        "--limit",
        type=int,
        help="Number of runs to show (defaults to config)",
    )

    search = subparsers.add_parser("search", help="Search the latest analysis report by domain")
    search.add_argument("term", type=str, help="Domain substring to look for")

    by_recommendation = subparsers.add_parser(
        "by-recommendation", help="List the latest analysis report, optionally by recommendation"
    )
    by_recommendation.add_argument(
        "recommendation",
        nargs="?",
        help='Exact recommendation text such as "Top Target" (default: every result)',
    )

    detections = subparsers.add_parser("detections", help="Show crawler detections for a domain")
    detections.add_argument("domain", type=str, help="Domain to look up")
    detections.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_DETECTION_LIMIT,
        help="Number of detections to show (default: %(default)s)",
    )

    subparsers.add_parser("check-connection", help="Test the external source connection")

    return parser.parse_args(list(argv))


def _sync_options(args: argparse.Namespace) -> SyncOptions:
    defaults = default_sync_options()
    return SyncOptions(
        auto_add_top_targets=defaults.auto_add_top_targets and not args.no_top_targets,
        auto_add_needed=defaults.auto_add_needed and not args.no_needs_investigation,
        sync_all=defaults.sync_all or args.sync_all,
        auto_add_recommended=defaults.auto_add_recommended and not args.no_catch_all,
    )


def _validate(args: argparse.Namespace) -> None:
    if args.command == "history" and args.limit is not None and args.limit < 1:
        raise ValueError("History limit must be positive")
    if args.command == "search" and not args.term.strip():
        raise ValueError("Search term must not be empty")
    if args.command == "detections":
        if not args.domain.strip():
            raise ValueError("Domain must not be empty")
        if args.limit < 1:
            raise ValueError("Detection limit must be positive")


def _run_sync(args: argparse.Namespace) -> bool:
    result = run_external_sync(options=_sync_options(args))
    if args.json:
        print(json.dumps(result.as_payload(), ensure_ascii=False, indent=2))
    else:
        print(
            f"+{result.sites_added} sites, ~{result.sites_updated} updated, "
            f"{result.notes_imported} notes, {result.domain_changes_detected} changes "
            f"({result.duration_ms}ms)"
        )
        for error in result.errors:
            print(f"Error: {error}", file=sys.stderr)
    return result.success


def _show_history(args: argparse.Namespace) -> None:
    for entry in get_sync_history(limit=args.limit):
        completed = entry.completed_at.isoformat() if entry.completed_at else "-"
        line = (
            f"{completed}  {entry.status:<7}  +{entry.sites_added} ~{entry.sites_updated} "
            f"notes={entry.notes_imported} changes={entry.domain_changes_detected}"
        )
        if entry.error_message:
            line += f"  error={entry.error_message}"
        print(line)


def _print_results(results: Sequence[AnalysisResult]) -> None:
    for result in results:
        print(f"{result.rank or '-':>4}  {result.domain}  {result.recommendation or ''}")


def _search(args: argparse.Namespace) -> None:
    results = search_external_sites(args.term)
    _print_results(results)
    log.info("Search for %r returned %s results", args.term, len(results))


def _list_by_recommendation(args: argparse.Namespace) -> None:
    results = list_external_sites_by_recommendation(args.recommendation)
    _print_results(results)
    log.info("Listed %s results (recommendation=%r)", len(results), args.recommendation)


def _show_detections(args: argparse.Namespace) -> None:
    for detection in list_detection_results(args.domain, limit=args.limit):
        judgment = detection.llm_judgment or detection.final_status or "-"
        print(f"{detection.id:>6}  {judgment:<12}  {detection.url or ''}  {detection.title or ''}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "sync":
            if not _run_sync(parsed_args):
                sys.exit(1)
        elif parsed_args.command == "history":
            _show_history(parsed_args)
        elif parsed_args.command == "search":
            _search(parsed_args)
        elif parsed_args.command == "by-recommendation":
            _list_by_recommendation(parsed_args)
        elif parsed_args.command == "detections":
            _show_detections(parsed_args)
        elif parsed_args.command == "check-connection":
            status = check_external_connection()
            print(status.message)
            for table in status.tables:
                print(f"  {table}")
            if not status.success:
                sys.exit(1)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
