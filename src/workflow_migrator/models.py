"""Data models exchanged between the content service, the catalogs and the migration engine.

The ``from_api`` constructors translate Content Management API payloads into
these models, so that the engine never has to know the wire format.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal


@dataclass(frozen=True)
class Tag:
    """A content tag, identified by id and carrying an optimistic-concurrency version."""

    id: str
    name: str
    version: int = 0

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Tag:
        sys = data.get("sys", {})
        return cls(id=sys["id"], name=data.get("name", sys["id"]), version=sys.get("version", 0))


@dataclass(frozen=True)
class WorkflowStep:
    """A single step of a workflow definition."""

    id: str
    name: str


@dataclass(frozen=True)
class WorkflowDefinition:
    """Read-only snapshot of a workflow definition.

    Locked definitions must never be used as migration targets.
    """

    id: str
    name: str
    is_locked: bool
    steps: dict[str, WorkflowStep]  # step id -> step, in definition order
    enabled_content_types: frozenset[str]
    version: int = 0

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> WorkflowDefinition:
        sys = data.get("sys", {})
        steps = {step["id"]: WorkflowStep(id=step["id"], name=step.get("name", step["id"])) for step in data.get("steps", [])}
        content_types = {
            content_type_id
            for applies_to in data.get("appliesTo", [])
            for validation in applies_to.get("validations", [])
            for content_type_id in validation.get("linkContentType", [])
        }
        return cls(
            id=sys["id"],
            name=data.get("name", sys["id"]),
            is_locked=bool(sys.get("isLocked", False)),
            steps=steps,
            enabled_content_types=frozenset(content_types),
            version=sys.get("version", 0),
        )


@dataclass(frozen=True)
class Entry:
    """An entry as seen by the migration engine. The remote service owns it."""

    id: str
    content_type_id: str
    tag_ids: tuple[str, ...]
    version: int

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Entry:
        sys = data.get("sys", {})
        tags = data.get("metadata", {}).get("tags", [])
        return cls(
            id=sys["id"],
            content_type_id=sys.get("contentType", {}).get("sys", {}).get("id", ""),
            tag_ids=tuple(tag["sys"]["id"] for tag in tags),
            version=sys.get("version", 0),
        )


@dataclass(frozen=True)
class EntryPage:
    """One page of a paginated entry query."""

    total: int
    skip: int
    limit: int
    items: list[Entry] = field(default_factory=list)


@dataclass(frozen=True)
class MigrationTarget:
    """Identifies one migration unit: a source tag and a destination workflow step."""

    tag_id: str
    tag_name: str
    workflow_definition_id: str
    step_id: str


@dataclass
class BatchCursor:
    """Pagination state of a single tag migration. Not persisted."""

    tag_id: str
    skip: int = 0
    total_items: int = 0
    total_processed: int = 0

    def advance(self, page_size: int, processed: int) -> None:
        self.skip += page_size
        self.total_processed += processed

    @property
    def has_more(self) -> bool:
        return self.total_processed < self.total_items


@dataclass(frozen=True)
class MigrationOptions:
    """Per-run options handed to the migration engine."""

    dry_run: bool = True
    debounce_ms: int = 300
    force_remove_tag: bool | None = None
    batch_size: int = 100


@dataclass(frozen=True)
class MigrationDecision:
    """Decision taken once on the first page of a tag migration and reused for every later page."""

    should_remove_tag_from_entries: bool


@dataclass
class MigrationStats:
    """Counters collected while migrating the entries of one tag."""

    entries_total: int = 0
    pages_fetched: int = 0
    workflows_created: int = 0
    workflows_already_existing: int = 0
    skipped_ineligible: int = 0
    failed: int = 0
    tags_removed: int = 0
    tag_removal_failed: int = 0
    would_migrate: int = 0
    entries_not_reached: int = 0


@dataclass(frozen=True)
class MigrationOutcome:
    """Result of migrating one tag.

    ``can_delete_tag`` tracks whether tag removal from entries was enabled for
    the run, not whether every single entry succeeded.
    """

    can_delete_tag: bool
    aborted: bool = False
    stats: MigrationStats = field(default_factory=MigrationStats)


TagStatus = Literal["migrated", "aborted", "no_entries", "not_found", "failed"]
