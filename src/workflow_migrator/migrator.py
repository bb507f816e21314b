"""Batch migration of tagged entries into a workflow.

Migration Flow
--------------
For one tag and one destination workflow step, the engine pages through all
entries carrying the tag:

    page 1 ──► empty?  ──► done, tag can be deleted
       │
       ▼
    consent gate (first page only) ──► declined ──► aborted, keep tag
       │
       ▼
    decide tag removal once (forced or asked)
       │
       ▼
    for each entry: throttle ► eligibility ► create workflow ► remove tag
       │
       ▼
    more entries? ──► next page, same decision

Entries whose content type is not enabled for the workflow are never
written to. An entry that already has an active workflow is treated as
migrated. Any other per-entry failure is logged and the entry is skipped;
re-running the migration picks it up again since nothing is persisted.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from .catalog import get_step
from .exceptions import ContentfulApiError, MigrationError, VersionConflictError, WorkflowAlreadyExistsError
from .models import BatchCursor, MigrationDecision, MigrationOutcome, MigrationStats

if TYPE_CHECKING:
    from collections.abc import Callable

    from .models import Entry, EntryPage, MigrationOptions, MigrationTarget, WorkflowDefinition
    from .protocols import ContentService, Prompter

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)


class EntryMigrator:
    """Moves the entries of a tag into a workflow step, one page at a time."""

    _service: ContentService
    _prompter: Prompter
    _sleep: Callable[[float], None]

    def __init__(
        self,
        service: ContentService,
        prompter: Prompter,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._service = service
        self._prompter = prompter
        self._sleep = sleep

    def migrate(
        self,
        target: MigrationTarget,
        workflow_definition: WorkflowDefinition,
        options: MigrationOptions,
    ) -> MigrationOutcome:
        """Migrate every entry tagged with ``target.tag_id``.

        Args:
            target: Source tag and destination step
            workflow_definition: Snapshot of the destination workflow
            options: Dry-run flag, throttle delay, tag removal override and page size

        Returns:
            MigrationOutcome whose ``can_delete_tag`` is True when tag removal
            from entries was enabled, or when no entry carried the tag at all
        """
        if target.workflow_definition_id != workflow_definition.id:
            msg = (
                f"Target workflow '{target.workflow_definition_id}' does not match "
                f"the workflow definition '{workflow_definition.id}'"
            )
            raise MigrationError(msg)

        cursor = BatchCursor(tag_id=target.tag_id)
        stats = MigrationStats()
        decision: MigrationDecision | None = None

        while True:
            page = self._service.list_entries_by_tag(target.tag_id, limit=options.batch_size, skip=cursor.skip)
            stats.pages_fetched += 1

            if decision is None:
                if page.total == 0 or not page.items:
                    print(f"No entries found for tag '{target.tag_name}'")
                    return MigrationOutcome(can_delete_tag=True, stats=stats)

                cursor.total_items = page.total
                stats.entries_total = page.total
                decision = self._ask_for_consent(target, workflow_definition, page, options)
                if decision is None:
                    print(f"Aborted migration for tag '{target.tag_id}'")
                    return MigrationOutcome(can_delete_tag=False, aborted=True, stats=stats)

            if not page.items:
                stats.entries_not_reached = cursor.total_items - cursor.total_processed
                logger.warning(
                    f"Expected {stats.entries_not_reached} more entries for tag "
                    f"'{target.tag_id}' but the page at offset {cursor.skip} was empty"
                )
                break

            for entry in page.items:
                self._migrate_entry(entry, target, workflow_definition, options, decision, stats)

            cursor.advance(options.batch_size, len(page.items))
            print(f"  Processed {cursor.total_processed}/{cursor.total_items} entries of tag '{target.tag_name}'")
            if not cursor.has_more:
                break

        return MigrationOutcome(can_delete_tag=decision.should_remove_tag_from_entries, stats=stats)

    def _ask_for_consent(
        self,
        target: MigrationTarget,
        workflow_definition: WorkflowDefinition,
        page: EntryPage,
        options: MigrationOptions,
    ) -> MigrationDecision | None:
        """Show what is about to happen and ask once per tag. Returns None when declined."""
        step = get_step(workflow_definition, target.step_id)
        print()
        print("Will start migrating:")
        print(f"  - {page.total} entries")
        print(f'  - from tag "{target.tag_name}" with id "{target.tag_id}"')
        print(f'  - to "{step.name}" of workflow "{workflow_definition.name}"')

        if not self._prompter.confirm("Should start migrating entries?", default=False):
            return None

        should_remove = options.force_remove_tag
        if should_remove is None:
            should_remove = self._prompter.confirm(
                "Do you want to remove the tag from entries after migration?", default=False
            )
        return MigrationDecision(should_remove_tag_from_entries=should_remove)

    def _migrate_entry(
        self,
        entry: Entry,
        target: MigrationTarget,
        workflow_definition: WorkflowDefinition,
        options: MigrationOptions,
        decision: MigrationDecision,
        stats: MigrationStats,
    ) -> None:
        # Throttle to stay below the API rate limit
        self._sleep(options.debounce_ms / 1000)

        if entry.content_type_id not in workflow_definition.enabled_content_types:
            logger.warning(
                f"{entry.id} - Entry content type '{entry.content_type_id}' not configured "
                f"for workflow '{workflow_definition.name}'"
            )
            stats.skipped_ineligible += 1
            return

        if options.dry_run:
            action = " and remove tag" if decision.should_remove_tag_from_entries else ""
            logger.info(f"{entry.id} - would create workflow{action} (dry run)")
            stats.would_migrate += 1
            return

        try:
            self._service.create_workflow(entry.id, workflow_definition.id, target.step_id)
            stats.workflows_created += 1
        except WorkflowAlreadyExistsError:
            logger.info(f"{entry.id} - entry already has an active workflow")
            stats.workflows_already_existing += 1
        except ContentfulApiError as e:
            logger.error(f"{entry.id} - could not create workflow for entry. Reason: {e}")
            stats.failed += 1
            return

        if decision.should_remove_tag_from_entries:
            self._remove_tag(entry, target.tag_id, stats)

        logger.info(f"{entry.id} - migrated")

    def _remove_tag(self, entry: Entry, tag_id: str, stats: MigrationStats) -> None:
        """Remove the tag from an entry, based on its current version."""
        try:
            current = self._service.get_entry(entry.id)
            remaining = [existing for existing in current.tag_ids if existing != tag_id]
            _ = self._service.patch_entry_tags(entry.id, remaining, current.version)
            stats.tags_removed += 1
        except VersionConflictError as e:
            logger.error(f"{entry.id} - entry changed while removing tag '{tag_id}', skipped. Reason: {e}")
            stats.tag_removal_failed += 1
        except ContentfulApiError as e:
            logger.error(f"{entry.id} - could not remove tag '{tag_id}'. Reason: {e}")
            stats.tag_removal_failed += 1


def migrate_tagged_entries(
    service: ContentService,
    prompter: Prompter,
    target: MigrationTarget,
    workflow_definition: WorkflowDefinition,
    options: MigrationOptions,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> MigrationOutcome:
    """Migrate every entry tagged with ``target.tag_id`` into ``target.step_id``."""
    return EntryMigrator(service, prompter, sleep=sleep).migrate(target, workflow_definition, options)
