"""Access to the legacy workflow v1 app installation.

The legacy app stores its configuration in the installation parameters:

    {
        "workflowDefinitions": {"workflow": {"states": ["<tag id>", ...]}},
        "workflowStates": {"<tag id>": {"name": "<state name>"}, ...}
    }
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Any

from .exceptions import MigrationError

if TYPE_CHECKING:
    from .protocols import ContentService

logger: logging.Logger = logging.getLogger(__name__)


def _configured_states(parameters: dict[str, Any]) -> list[str] | None:
    states = parameters.get("workflowDefinitions", {}).get("workflow", {}).get("states")
    if not isinstance(states, list):
        return None
    return states


def get_legacy_tag_ids(service: ContentService, app_definition_id: str) -> list[str]:
    """Return the tag ids configured as workflow v1 states, in configured order.

    Raises:
        MigrationError: If no workflow v1 configuration exists
    """
    parameters = service.get_app_installation_parameters(app_definition_id)
    states = _configured_states(parameters)
    if not states:
        msg = "No workflow v1 configured for environment."
        raise MigrationError(msg)

    names: dict[str, Any] = parameters.get("workflowStates", {})
    for tag_id in states:
        state_name = names.get(tag_id, {}).get("name", "(tag not found)")
        print(f'    "{state_name}" id: {tag_id}')
    return list(states)


def remove_tag_from_configuration(service: ContentService, app_definition_id: str, tag_id: str) -> bool:
    """Drop a tag id from the configured workflow v1 states.

    Returns:
        True if the configuration was updated, False if there was nothing to remove
    """
    parameters = copy.deepcopy(service.get_app_installation_parameters(app_definition_id))
    states = _configured_states(parameters)
    if states is None or tag_id not in states:
        logger.debug(f"Tag '{tag_id}' is not part of the workflow v1 configuration")
        return False

    parameters["workflowDefinitions"]["workflow"]["states"] = [state for state in states if state != tag_id]
    service.upsert_app_installation_parameters(app_definition_id, parameters)
    logger.info(f"Removed tag '{tag_id}' from workflow v1 configuration")
    return True
