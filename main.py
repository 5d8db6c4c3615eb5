"""Main entry point for the duplicate-user resolver.

Loads environment variables, validates configuration, and either prints a
duplicate report, looks up one group, prints user statistics, previews or
requests a merge, runs health checks, or serves the HTTP API.

Exit codes: 0 success, 1 store or configuration failure, 2 bad input,
3 capability not yet available.
"""
from dotenv import load_dotenv
import argparse
import json
import sys

# Load environment variables first, before any other imports
load_dotenv()

from resolver.config import get_config
from resolver.dedup import DuplicateReport, DuplicateResolver
from resolver.errors import (
    GroupNotFoundError,
    MergeNotImplementedError,
    MissingInputError,
    UpstreamFetchError,
)
from resolver.merge import merge_duplicates, preview_merge
from resolver.stats import stats_from_records
from resolver.utils.logger import configure_logging, log_error, log_info, log_resolver_progress

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_BAD_INPUT = 2
EXIT_NOT_IMPLEMENTED = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Detect duplicate user accounts by IP address and device fingerprint.")
    action = parser.add_mutually_exclusive_group()
    action.add_argument('--group', metavar='KEY', help='Show a single duplicate group by its key.')
    action.add_argument('--stats', action='store_true', help='Show user statistics, including the unique user count.')
    action.add_argument('--preview', metavar='KEY', help='Preview merging the group with this key (read-only).')
    action.add_argument('--merge', metavar='KEY', help='Merge the group with this key (not yet available).')
    action.add_argument('--healthcheck', action='store_true', help='Check connectivity to the user and activity tables.')
    action.add_argument('--serve', action='store_true', help='Serve the HTTP API.')
    parser.add_argument('--primary', metavar='USER_ID', help='Primary user to keep for --preview/--merge.')
    parser.add_argument('--json', dest='as_json', action='store_true', help='Print machine-readable JSON.')
    return parser


def print_report(report: DuplicateReport) -> None:
    print(f"Found {report.total_groups} duplicate group(s), {report.total_duplicates} duplicate user(s).")
    for group in report.duplicate_groups:
        print(f"\n{group.group_key}")
        print(f"  👑 {group.primary_user.user_id}")
        for user in group.duplicate_users:
            print(f"     {user.user_id}")


def print_fields(data: dict) -> None:
    for key, value in data.items():
        print(f"{key}: {value}")


def emit(payload, as_json: bool, fallback) -> None:
    if as_json:
        print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))
    else:
        fallback()


def run(args: argparse.Namespace) -> int:
    config = get_config()

    if args.primary is not None and args.preview is None and args.merge is None:
        raise MissingInputError("--primary only applies to --preview or --merge")

    if args.merge is not None:
        merge_duplicates(args.merge, args.primary)

    if args.healthcheck:
        from resolver.healthcheck import run_health_checks
        all_healthy, _ = run_health_checks(verbose=True)
        return EXIT_OK if all_healthy else EXIT_FAILURE

    if args.serve:
        import uvicorn
        log_info("Serving HTTP API", host=config.api_host, port=config.api_port)
        uvicorn.run("resolver.api.main:app", host=config.api_host, port=config.api_port)
        return EXIT_OK

    resolver = DuplicateResolver()

    if args.stats:
        users, signals = resolver.fetch()
        stats = stats_from_records(users, signals, active_window_days=config.active_window_days)
        emit(stats.to_dict(), args.as_json,
             lambda: print_fields(stats.to_dict()))
        return EXIT_OK

    if args.preview is not None:
        group = resolver.find_group(args.preview)
        preview = preview_merge(group, args.primary)
        emit(preview.to_dict(), args.as_json,
             lambda: print_fields(preview.to_dict()))
        return EXIT_OK

    if args.group is not None:
        group = resolver.find_group(args.group)
        emit(group.to_dict(), args.as_json,
             lambda: print_report(DuplicateReport(duplicate_groups=[group])))
        return EXIT_OK

    report = resolver.detect()
    emit(report.to_dict(), args.as_json, lambda: print_report(report))
    return EXIT_OK


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    # Load and validate configuration
    config = get_config()
    configure_logging(config.log_level, config.log_format)
    config.log_configuration()

    issues = config.validate_configuration()
    if issues and args.merge is None:
        log_error("Configuration validation failed", issues=issues)
        print("❌ Configuration issues found:")
        for issue in issues:
            print(f"  - {issue}")
        print("\nPlease fix these issues and try again.")
        return EXIT_FAILURE

    log_resolver_progress("Starting resolver")
    try:
        code = run(args)
    except (MissingInputError, GroupNotFoundError) as e:
        log_error("Invalid request", error=e.message)
        print(f"❌ {e.message}")
        return EXIT_BAD_INPUT
    except MergeNotImplementedError as e:
        print(f"⚠️  {e.message}")
        return EXIT_NOT_IMPLEMENTED
    except UpstreamFetchError as e:
        log_error("Duplicate detection failed", error=e.message, table=e.table)
        print(f"❌ Store read failed: {e.message}")
        return EXIT_FAILURE

    log_resolver_progress("Resolver finished")
    return code


if __name__ == "__main__":
    sys.exit(main())
