"""Run orchestration: resolves tags and targets, then migrates tag after tag.

Run Flow
--------
Phase 1: Preparation
    - Determine the tags to migrate (config list, or legacy app installation)
    - Fetch workflow definitions and tags once, build read-only catalogs

Phase 2: Per tag, strictly sequential and in input order
    a. Resolve the tag id (id or display name)
    b. Ask for the target workflow, reject locked definitions
    c. Ask for the target step
    d. Migrate the tagged entries (see migrator.py)
    e. Offer cleanup if the tag was removed from the entries

Error Handling
--------------
A tag that cannot be resolved, a locked workflow or an API failure outside
the per-entry loop fails that tag only. The run continues with the next tag
and the failure is recorded in the RunReport.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .catalog import TagCatalog, build_workflow_catalog, ensure_unlocked, get_step
from .cleanup import run_cleanup
from .exceptions import (
    ConfigError,
    ContentfulApiError,
    InvalidWorkflowStepError,
    MigrationError,
    TagNotFoundError,
)
from .migrator import EntryMigrator
from .models import MigrationTarget
from .protocols import Choice
from .workflow_app import get_legacy_tag_ids

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from .models import MigrationOptions, MigrationOutcome, TagStatus, WorkflowDefinition
    from .protocols import ContentService, Prompter

logger: logging.Logger = logging.getLogger(__name__)


@dataclass
class TagMigrationResult:
    """Result of migrating one configured tag."""

    tag_input: str
    status: TagStatus
    tag_id: str | None = None
    outcome: MigrationOutcome | None = None
    error: str | None = None


@dataclass
class RunReport:
    """Result of a complete run."""

    dry_run: bool
    results: list[TagMigrationResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not any(result.status == "failed" for result in self.results)


def resolve_tags_to_migrate(
    service: ContentService,
    config_tags: Sequence[str] | None,
    app_definition_id: str | None,
) -> list[str]:
    """Return the tags given in the config, or those configured in the legacy workflow app."""
    if config_tags:
        print("Loading tags from config")
        return list(config_tags)

    if not app_definition_id:
        msg = "No tags configured. Provide 'tags' or 'workflowAppDefinitionId' in the config file."
        raise ConfigError(msg, exit_code=3)

    print("Loading workflow v1 configured tags")
    try:
        return get_legacy_tag_ids(service, app_definition_id)
    except MigrationError as e:
        msg = f"Error fetching workflow v1 config. Reason: {e}"
        raise ConfigError(msg, exit_code=3) from e


def load_catalogs(service: ContentService) -> tuple[TagCatalog, Mapping[str, WorkflowDefinition]]:
    """Fetch tags and workflow definitions once for the whole run."""
    try:
        definitions = service.get_workflow_definitions()
    except ContentfulApiError as e:
        msg = f"Error fetching workflow configurations: {e}"
        raise ConfigError(msg, exit_code=4) from e
    if not definitions:
        msg = "No workflows configured in the target environment"
        raise ConfigError(msg, exit_code=5)

    try:
        tags = service.get_tags()
    except ContentfulApiError as e:
        msg = f"Error fetching tags: {e}"
        raise ConfigError(msg, exit_code=6) from e
    if not tags:
        msg = "No tags found for the configured environment"
        raise ConfigError(msg, exit_code=6)

    logger.info(f"Loaded {len(definitions)} workflow definitions and {len(tags)} tags")
    return TagCatalog(tags), build_workflow_catalog(definitions)


class WorkflowMigrationRun:
    """Migrates a list of tags one after another."""

    _service: ContentService
    _prompter: Prompter
    _options: MigrationOptions
    _app_definition_id: str | None
    _migrator: EntryMigrator

    def __init__(
        self,
        service: ContentService,
        prompter: Prompter,
        options: MigrationOptions,
        *,
        app_definition_id: str | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._service = service
        self._prompter = prompter
        self._options = options
        self._app_definition_id = app_definition_id
        self._migrator = EntryMigrator(service, prompter, sleep=sleep)

    def run(
        self,
        tag_inputs: Sequence[str],
        tag_catalog: TagCatalog,
        workflow_catalog: Mapping[str, WorkflowDefinition],
    ) -> RunReport:
        report = RunReport(dry_run=self._options.dry_run)
        for tag_input in tag_inputs:
            result = self._migrate_tag(tag_input, tag_catalog, workflow_catalog)
            report.results.append(result)
            print()
        return report

    def _migrate_tag(
        self,
        tag_input: str,
        tag_catalog: TagCatalog,
        workflow_catalog: Mapping[str, WorkflowDefinition],
    ) -> TagMigrationResult:
        try:
            tag = tag_catalog.get(tag_catalog.resolve_tag_id(tag_input))
        except TagNotFoundError as e:
            logger.warning(str(e))
            return TagMigrationResult(tag_input=tag_input, status="not_found", error=str(e))

        print(f'Processing "{tag.name}", id: {tag.id}')
        try:
            definition = self._select_workflow(workflow_catalog)
            step_id = self._select_step(definition)
            target = MigrationTarget(
                tag_id=tag.id,
                tag_name=tag.name,
                workflow_definition_id=definition.id,
                step_id=step_id,
            )

            outcome = self._migrator.migrate(target, definition, self._options)
            if outcome.aborted:
                return TagMigrationResult(tag_input=tag_input, status="aborted", tag_id=tag.id, outcome=outcome)

            run_cleanup(
                self._service,
                self._prompter,
                tag,
                outcome,
                app_definition_id=self._app_definition_id,
                dry_run=self._options.dry_run,
            )
        except MigrationError as e:
            logger.exception(f"Error migrating {tag_input}")
            return TagMigrationResult(tag_input=tag_input, status="failed", tag_id=tag.id, error=str(e))

        status: TagStatus = "no_entries" if outcome.stats.entries_total == 0 else "migrated"
        print(f"Migration of '{tag.name}' completed")
        return TagMigrationResult(tag_input=tag_input, status=status, tag_id=tag.id, outcome=outcome)

    def _select_workflow(self, workflow_catalog: Mapping[str, WorkflowDefinition]) -> WorkflowDefinition:
        workflow_id = self._prompter.select_one(
            "Please select the target workflow for migration",
            [Choice(label=definition.name, value=definition.id) for definition in workflow_catalog.values()],
        )
        definition = workflow_catalog[workflow_id]
        ensure_unlocked(definition)
        return definition

    def _select_step(self, definition: WorkflowDefinition) -> str:
        if not definition.steps:
            msg = f"Workflow '{definition.name}' has no steps"
            raise InvalidWorkflowStepError(msg)
        step_id = self._prompter.select_one(
            "Please select the target workflow step for migration",
            [Choice(label=step.name, value=step.id) for step in definition.steps.values()],
        )
        return get_step(definition, step_id).id
