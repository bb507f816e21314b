"""Protocols defining the contracts the migration engine depends on.

The migration is split into three concerns:

1. ContentService: Talks to the content-management backend (entries, tags,
   workflows, app installations)
2. Prompter: Asks the operator yes/no questions and single-choice selections
3. Engine/orchestrator: Drives the migration using only the two above

This separation allows:
- Testing the engine with in-memory fakes instead of HTTP mocks
- Replacing the terminal prompts with pre-recorded answers
- Keeping error classification inside the client, so the engine only
  sees typed exceptions
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import Entry, EntryPage, Tag, WorkflowDefinition

T = TypeVar("T")


@dataclass(frozen=True)
class Choice(Generic[T]):
    """A labelled value offered in a selection prompt."""

    label: str
    value: T


class ContentService(Protocol):
    """Protocol for the content-management backend.

    Every method is a blocking call. Failures are raised as
    ``ContentfulApiError`` or one of its subclasses:

    - ``WorkflowAlreadyExistsError`` from ``create_workflow`` when the entry
      already has an active workflow
    - ``VersionConflictError`` from ``patch_entry_tags`` and ``delete_tag``
      when the supplied version is outdated

    Example implementations:
        - ContentfulClient: Content Management API over ``requests``
    """

    def validate_access(self) -> None:
        """Check that the configured space and environment are reachable.

        Raises:
            ContentfulApiError: If access validation fails
        """
        ...

    def list_entries_by_tag(self, tag_id: str, limit: int, skip: int) -> EntryPage:
        """Return one page of entries carrying the given tag."""
        ...

    def get_entry(self, entry_id: str) -> Entry:
        """Return the current state of an entry, including its version."""
        ...

    def patch_entry_tags(self, entry_id: str, tag_ids: Sequence[str], expected_version: int) -> Entry:
        """Replace the tag set of an entry.

        Args:
            entry_id: Entry to update
            tag_ids: The complete new tag set
            expected_version: Version the update is based on

        Returns:
            The updated entry
        """
        ...

    def create_workflow(self, entry_id: str, workflow_definition_id: str, step_id: str) -> None:
        """Start a workflow of the given definition on an entry at the given step."""
        ...

    def get_tags(self) -> list[Tag]:
        """Return all tags of the environment."""
        ...

    def get_tag(self, tag_id: str) -> Tag:
        """Return a single tag with its current version."""
        ...

    def delete_tag(self, tag_id: str, version: int) -> None:
        """Delete a tag entity."""
        ...

    def get_workflow_definitions(self) -> list[WorkflowDefinition]:
        """Return all workflow definitions of the environment."""
        ...

    def get_app_installation_parameters(self, app_definition_id: str) -> dict[str, Any]:
        """Return the installation parameters of an app."""
        ...

    def upsert_app_installation_parameters(self, app_definition_id: str, parameters: dict[str, Any]) -> None:
        """Replace the installation parameters of an app."""
        ...


class Prompter(Protocol):
    """Protocol for interactive operator prompts.

    Both methods block until the operator answers; there is no timeout.
    """

    def confirm(self, message: str, *, default: bool) -> bool:
        """Ask a yes/no question."""
        ...

    def select_one(self, message: str, choices: Sequence[Choice[T]]) -> T:
        """Ask the operator to pick exactly one of the choices and return its value."""
        ...
