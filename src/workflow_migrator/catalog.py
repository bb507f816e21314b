"""Tag and workflow-definition lookup tables, built once per run."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import TYPE_CHECKING

from .exceptions import InvalidWorkflowStepError, LockedWorkflowError, TagNotFoundError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .models import Tag, WorkflowDefinition, WorkflowStep

logger: logging.Logger = logging.getLogger(__name__)


class TagCatalog:
    """Read-only id and name index over the environment's tags."""

    _by_id: Mapping[str, Tag]
    _id_by_name: Mapping[str, str]

    def __init__(self, tags: Iterable[Tag]) -> None:
        by_id: dict[str, Tag] = {}
        id_by_name: dict[str, str] = {}
        for tag in tags:
            by_id[tag.id] = tag
            if tag.name in id_by_name and id_by_name[tag.name] != tag.id:
                logger.warning(f"Tag name '{tag.name}' is not unique, keeping id {id_by_name[tag.name]}")
                continue
            id_by_name[tag.name] = tag.id
        self._by_id = MappingProxyType(by_id)
        self._id_by_name = MappingProxyType(id_by_name)

    def resolve_tag_id(self, value: str) -> str:
        """Resolve a tag id or display name to a tag id. Ids take precedence over names."""
        if value in self._by_id:
            return value
        tag_id = self._id_by_name.get(value)
        if tag_id is None:
            msg = f"The tag '{value}' could not be found in the environment."
            raise TagNotFoundError(msg)
        return tag_id

    def get(self, tag_id: str) -> Tag:
        try:
            return self._by_id[tag_id]
        except KeyError:
            msg = f"The tag '{tag_id}' could not be found in the environment."
            raise TagNotFoundError(msg) from None


def build_workflow_catalog(definitions: Iterable[WorkflowDefinition]) -> Mapping[str, WorkflowDefinition]:
    """Index workflow definitions by id, preserving the order returned by the backend."""
    return MappingProxyType({definition.id: definition for definition in definitions})


def ensure_unlocked(definition: WorkflowDefinition) -> None:
    if definition.is_locked:
        msg = f"Cannot progress with locked workflow '{definition.name}', id '{definition.id}'"
        raise LockedWorkflowError(msg)


def get_step(definition: WorkflowDefinition, step_id: str) -> WorkflowStep:
    try:
        return definition.steps[step_id]
    except KeyError:
        msg = f"Step '{step_id}' does not exist in workflow '{definition.name}'"
        raise InvalidWorkflowStepError(msg) from None
