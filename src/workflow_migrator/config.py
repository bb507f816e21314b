"""
Configuration file loading for the workflow migration tool.

The config file is JSON. Only ``spaceId`` and ``environmentId`` are required;
``cmaToken`` may instead come from the environment or the pass store.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

from .exceptions import ConfigError

if TYPE_CHECKING:
    from pathlib import Path

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS: Final[int] = 300
DEFAULT_BATCH_SIZE: Final[int] = 100
REQUIRED_KEYS: Final[tuple[str, ...]] = ("spaceId", "environmentId")


@dataclass(frozen=True)
class MigratorConfig:
    """Settings for one migration run."""

    space_id: str
    environment_id: str
    cma_token: str | None = None
    tags: tuple[str, ...] | None = None
    workflow_app_definition_id: str | None = None
    dry_run: bool = True
    clean_up_tags: bool | None = None
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    batch_size: int = DEFAULT_BATCH_SIZE


def _parse_tags(value: Any) -> tuple[str, ...] | None:
    if value is None:
        return None
    if not isinstance(value, list) or not value or not all(isinstance(tag, str) for tag in value):
        msg = "Config for tags is invalid. Please provide a tag list as strings."
        raise ConfigError(msg, exit_code=3)
    return tuple(value)


def _parse_positive_int(data: dict[str, Any], key: str, default: int, *, allow_zero: bool) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0 or (value == 0 and not allow_zero):
        msg = f"Config value '{key}' must be a {'non-negative' if allow_zero else 'positive'} integer, got {value!r}"
        raise ConfigError(msg, exit_code=2)
    return value


def parse_config(data: Any) -> MigratorConfig:
    """Build a MigratorConfig from decoded JSON."""
    if not isinstance(data, dict):
        msg = "The config file must contain a JSON object."
        raise ConfigError(msg, exit_code=1)

    missing = [key for key in REQUIRED_KEYS if not data.get(key)]
    if missing:
        msg = f"Not all required config is defined in the config file. Please additionally provide: {', '.join(missing)}"
        raise ConfigError(msg, exit_code=2)

    clean_up_tags = data.get("cleanUpTags")
    if clean_up_tags is not None and not isinstance(clean_up_tags, bool):
        msg = f"Config value 'cleanUpTags' must be a boolean, got {clean_up_tags!r}"
        raise ConfigError(msg, exit_code=2)

    return MigratorConfig(
        space_id=data["spaceId"],
        environment_id=data["environmentId"],
        cma_token=data.get("cmaToken") or None,
        tags=_parse_tags(data.get("tags")),
        workflow_app_definition_id=data.get("workflowAppDefinitionId") or None,
        dry_run=bool(data.get("dryRun", True)),
        clean_up_tags=clean_up_tags,
        debounce_ms=_parse_positive_int(data, "debounceMs", DEFAULT_DEBOUNCE_MS, allow_zero=True),
        batch_size=_parse_positive_int(data, "batchSize", DEFAULT_BATCH_SIZE, allow_zero=False),
    )


def load_config(path: Path) -> MigratorConfig:
    """Read and validate a JSON config file."""
    if not path.exists():
        msg = f"The provided config file does not exist. Path: {path}"
        raise ConfigError(msg, exit_code=1)

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        msg = f"Unable to read json config file. Reason: {e}"
        raise ConfigError(msg, exit_code=1) from e

    config = parse_config(data)
    logger.debug(f"Loaded config for {config.space_id}/{config.environment_id} from {path}")
    return config
