"""Optional cleanup once the entries of a tag have been migrated."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .exceptions import ContentfulApiError
from .workflow_app import remove_tag_from_configuration

if TYPE_CHECKING:
    from .models import MigrationOutcome, Tag
    from .protocols import ContentService, Prompter

logger: logging.Logger = logging.getLogger(__name__)


def inquire_remove_tag_from_configuration(
    service: ContentService,
    prompter: Prompter,
    tag: Tag,
    app_definition_id: str,
    *,
    dry_run: bool,
) -> bool:
    """Offer to remove the tag from the legacy workflow configuration.

    Returns:
        True if the configuration was changed
    """
    if not prompter.confirm(
        f"Do you want to remove the tag {tag.name} from the workflow configuration?", default=True
    ):
        return False
    if dry_run:
        logger.info(f"Would remove tag '{tag.id}' from workflow configuration (dry run)")
        return False

    try:
        return remove_tag_from_configuration(service, app_definition_id, tag.id)
    except ContentfulApiError as e:
        logger.error(f"Error removing tag from workflow configuration. Reason: {e}")
        return False


def inquire_delete_tag(service: ContentService, prompter: Prompter, tag: Tag, *, dry_run: bool) -> bool:
    """Offer to delete the tag entity.

    The version is refreshed right before deleting, since removing the tag
    from entries may have happened long after the catalog was built.

    Returns:
        True if the tag was deleted
    """
    if not prompter.confirm(f"Do you want to delete the tag {tag.name}, id: {tag.id}?", default=False):
        return False
    if dry_run:
        logger.info(f"Would delete tag '{tag.id}' (dry run)")
        return False

    try:
        current = service.get_tag(tag.id)
        service.delete_tag(tag.id, current.version)
    except ContentfulApiError as e:
        logger.error(f"Error deleting tag. Reason: {e}")
        return False

    print(f"Deleted tag '{tag.name}'")
    return True


def run_cleanup(
    service: ContentService,
    prompter: Prompter,
    tag: Tag,
    outcome: MigrationOutcome,
    *,
    app_definition_id: str | None,
    dry_run: bool,
) -> None:
    """Run the cleanup steps a migration outcome allows."""
    if not outcome.can_delete_tag:
        logger.debug(f"Keeping tag '{tag.id}': tag removal from entries was not enabled")
        return

    if app_definition_id:
        _ = inquire_remove_tag_from_configuration(service, prompter, tag, app_definition_id, dry_run=dry_run)
    else:
        logger.debug("No workflow app definition configured, skipping configuration cleanup")

    _ = inquire_delete_tag(service, prompter, tag, dry_run=dry_run)
