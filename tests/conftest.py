"""
Pytest configuration and fixtures.

Provides in-memory implementations of the ContentService and Prompter
protocols that record every call, so tests can assert on the exact
sequence of remote writes and operator prompts.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

import pytest

from workflow_migrator.exceptions import ContentfulApiError, WorkflowAlreadyExistsError
from workflow_migrator.models import Entry, EntryPage, Tag, WorkflowDefinition, WorkflowStep

if TYPE_CHECKING:
    from collections.abc import Sequence

    from workflow_migrator.protocols import Choice


def make_entry(entry_id: str, content_type_id: str = "article", tag_ids: Sequence[str] = ("t1",), version: int = 1) -> Entry:
    return Entry(id=entry_id, content_type_id=content_type_id, tag_ids=tuple(tag_ids), version=version)


def make_definition(
    definition_id: str = "wf1",
    *,
    name: str = "Editorial",
    is_locked: bool = False,
    content_types: Sequence[str] = ("article",),
) -> WorkflowDefinition:
    return WorkflowDefinition(
        id=definition_id,
        name=name,
        is_locked=is_locked,
        steps={
            "draft": WorkflowStep(id="draft", name="Draft"),
            "review": WorkflowStep(id="review", name="In review"),
        },
        enabled_content_types=frozenset(content_types),
    )


@dataclass
class FakeContentService:
    """Recording ContentService.

    ``list_entries_by_tag`` pages over the entries tagged at construction
    time, so offsets stay stable while tags are being removed.
    """

    tagged: dict[str, list[Entry]] = field(default_factory=dict)
    tags: list[Tag] = field(default_factory=list)
    definitions: list[WorkflowDefinition] = field(default_factory=list)
    app_parameters: dict[str, Any] = field(default_factory=dict)
    existing_workflows: set[str] = field(default_factory=set)
    create_errors: dict[str, Exception] = field(default_factory=dict)
    patch_errors: dict[str, Exception] = field(default_factory=dict)
    delete_errors: dict[str, Exception] = field(default_factory=dict)

    list_calls: list[tuple[str, int, int]] = field(default_factory=list)
    create_calls: list[tuple[str, str, str]] = field(default_factory=list)
    get_entry_calls: list[str] = field(default_factory=list)
    patch_calls: list[tuple[str, list[str], int]] = field(default_factory=list)
    delete_calls: list[tuple[str, int]] = field(default_factory=list)
    upsert_calls: list[tuple[str, dict[str, Any]]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.entries: dict[str, Entry] = {
            entry.id: entry for entries in self.tagged.values() for entry in entries
        }

    def validate_access(self) -> None:
        pass

    def list_entries_by_tag(self, tag_id: str, limit: int, skip: int) -> EntryPage:
        self.list_calls.append((tag_id, limit, skip))
        entries = self.tagged.get(tag_id, [])
        return EntryPage(total=len(entries), skip=skip, limit=limit, items=entries[skip : skip + limit])

    def get_entry(self, entry_id: str) -> Entry:
        self.get_entry_calls.append(entry_id)
        return self.entries[entry_id]

    def patch_entry_tags(self, entry_id: str, tag_ids: Sequence[str], expected_version: int) -> Entry:
        self.patch_calls.append((entry_id, list(tag_ids), expected_version))
        if entry_id in self.patch_errors:
            raise self.patch_errors[entry_id]
        entry = self.entries[entry_id]
        updated = replace(entry, tag_ids=tuple(tag_ids), version=entry.version + 1)
        self.entries[entry_id] = updated
        return updated

    def create_workflow(self, entry_id: str, workflow_definition_id: str, step_id: str) -> None:
        self.create_calls.append((entry_id, workflow_definition_id, step_id))
        if entry_id in self.create_errors:
            raise self.create_errors[entry_id]
        if entry_id in self.existing_workflows:
            msg = f"Entry {entry_id} already has an active workflow"
            raise WorkflowAlreadyExistsError(msg, status=422)
        self.existing_workflows.add(entry_id)

    def get_tags(self) -> list[Tag]:
        return list(self.tags)

    def get_tag(self, tag_id: str) -> Tag:
        for tag in self.tags:
            if tag.id == tag_id:
                return tag
        msg = f"Tag {tag_id} not found"
        raise ContentfulApiError(msg, status=404)

    def delete_tag(self, tag_id: str, version: int) -> None:
        self.delete_calls.append((tag_id, version))
        if tag_id in self.delete_errors:
            raise self.delete_errors[tag_id]

    def get_workflow_definitions(self) -> list[WorkflowDefinition]:
        return list(self.definitions)

    def get_app_installation_parameters(self, app_definition_id: str) -> dict[str, Any]:
        return self.app_parameters

    def upsert_app_installation_parameters(self, app_definition_id: str, parameters: dict[str, Any]) -> None:
        self.upsert_calls.append((app_definition_id, parameters))
        self.app_parameters = parameters

    @property
    def write_calls(self) -> int:
        return len(self.create_calls) + len(self.patch_calls) + len(self.delete_calls) + len(self.upsert_calls)


@dataclass
class ScriptedPrompter:
    """Prompter answering from a script.

    ``confirms`` maps a message fragment to the answer; unmatched questions
    get their default. ``selections`` is consumed in order.
    """

    confirms: dict[str, bool] = field(default_factory=dict)
    selections: list[Any] = field(default_factory=list)
    confirm_calls: list[str] = field(default_factory=list)
    select_calls: list[tuple[str, list[Any]]] = field(default_factory=list)

    def confirm(self, message: str, *, default: bool) -> bool:
        self.confirm_calls.append(message)
        for fragment, answer in self.confirms.items():
            if fragment in message:
                return answer
        return default

    def select_one(self, message: str, choices: Sequence[Choice[Any]]) -> Any:
        self.select_calls.append((message, [choice.value for choice in choices]))
        return self.selections.pop(0)

    def count(self, fragment: str) -> int:
        return sum(1 for message in self.confirm_calls if fragment in message)


@pytest.fixture
def definition() -> WorkflowDefinition:
    return make_definition()

