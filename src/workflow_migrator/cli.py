"""
Command-line interface for the workflow migration tool.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace

from . import contentful_utils as cfu
from .config import load_config
from .exceptions import ConfigError, MigrationError
from .models import MigrationOptions
from .orchestrator import RunReport, WorkflowMigrationRun, load_catalogs, resolve_tags_to_migrate
from .prompts import QuestionaryPrompter
from .utils import PassError, resolve_path, setup_logging

logger: logging.Logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    number = _non_negative_int(value)
    if number == 0:
        msg = f"must be a positive integer, got {value}"
        raise argparse.ArgumentTypeError(msg)
    return number


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        msg = f"must be an integer, got '{value}'"
        raise argparse.ArgumentTypeError(msg) from None
    if number < 0:
        msg = f"must not be negative, got {value}"
        raise argparse.ArgumentTypeError(msg)
    return number


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="workflow-migrator",
        description="Migrate entries from the deprecated workflow v1 tags to the new workflow feature.",
    )

    _ = parser.add_argument(
        "--config",
        required=True,
        metavar="PATH",
        help="Config file to use for migration. See README for valid options.",
    )

    _ = parser.add_argument(
        "--clean-up-tags",
        action="store_true",
        default=None,
        help="Remove the deprecated workflow tag from the entries after migration without asking.",
    )

    _ = parser.add_argument(
        "--no-dry-run",
        action="store_true",
        help="Execute write actions. Without this flag nothing is changed.",
    )

    _ = parser.add_argument(
        "--debounce",
        type=_non_negative_int,
        metavar="MS",
        help="Milliseconds to wait between processing each entry to prevent rate limiting.",
    )

    _ = parser.add_argument("--batch-size", type=_positive_int, metavar="N", help="Number of entries fetched per page")

    _ = parser.add_argument(
        "--cma-pass-token", help="Path for the management token in pass utility (default: contentful/cli/cma_token)"
    )

    _ = parser.add_argument(
        "--verbose", "-v", action="count", default=0, help="Increase console output (-v info, -vv debug)"
    )

    _ = parser.add_argument("--version", action="version", version="%(prog)s 1.0.0")

    return parser.parse_args(argv)


def _print_run_report(report: RunReport) -> None:
    """Print a per-tag summary of the run."""
    print("=" * 50)
    print(f"MIGRATION {'DRY RUN ' if report.dry_run else ''}REPORT")
    print("=" * 50)

    for result in report.results:
        line = f"{result.tag_input}: {result.status}"
        if result.outcome is not None:
            stats = result.outcome.stats
            if report.dry_run:
                line += f" (entries={stats.entries_total}, would_migrate={stats.would_migrate}"
            else:
                line += (
                    f" (entries={stats.entries_total}, created={stats.workflows_created}, "
                    f"existing={stats.workflows_already_existing}, failed={stats.failed}, "
                    f"tags_removed={stats.tags_removed}"
                )
            line += f", ineligible={stats.skipped_ineligible}"
            if stats.entries_not_reached:
                line += f", not_reached={stats.entries_not_reached}, re-run to pick them up"
            line += ")"
        if result.error:
            line += f" - {result.error}"
        print(line)

    print(f"Status: {'PASSED' if report.success else 'FAILED'}")


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_arguments(argv)

    verbosity: int = getattr(args, "verbose", 0)
    setup_logging(verbosity=verbosity)

    try:
        config = load_config(resolve_path(args.config))
        if args.no_dry_run:
            config = replace(config, dry_run=False)
        if args.debounce is not None:
            config = replace(config, debounce_ms=args.debounce)
        if args.batch_size is not None:
            config = replace(config, batch_size=args.batch_size)
        if args.clean_up_tags:
            config = replace(config, clean_up_tags=True)

        if config.dry_run:
            print('Executing in dry run mode. Provide "--no-dry-run" to perform the migration.')
        else:
            print("WARNING: write mode enabled. All migrations will be executed.")

        token = cfu.get_token(config.cma_token, args.cma_pass_token)
        client = cfu.get_client(token, config.space_id, config.environment_id)

        tags_to_migrate = resolve_tags_to_migrate(client, config.tags, config.workflow_app_definition_id)
        tag_catalog, workflow_catalog = load_catalogs(client)

        options = MigrationOptions(
            dry_run=config.dry_run,
            debounce_ms=config.debounce_ms,
            force_remove_tag=config.clean_up_tags,
            batch_size=config.batch_size,
        )
        run = WorkflowMigrationRun(
            client,
            QuestionaryPrompter(),
            options,
            app_definition_id=config.workflow_app_definition_id,
        )
        report = run.run(tags_to_migrate, tag_catalog, workflow_catalog)

    except ConfigError as e:
        logger.error(str(e))
        sys.exit(e.exit_code)
    except (MigrationError, PassError):
        logger.exception("Migration failed")
        sys.exit(1)

    _print_run_report(report)
    sys.exit(0 if report.success else 1)
