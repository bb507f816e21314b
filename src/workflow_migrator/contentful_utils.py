from __future__ import annotations

import logging
import os
from typing import Final

from . import utils
from .client import ContentfulClient
from .exceptions import ConfigError, ContentfulApiError

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

_TOKEN_ENV_VAR: Final[str] = "CONTENTFUL_MANAGEMENT_TOKEN"  # noqa: S105
_DEFAULT_TOKEN_PASS_PATH: Final[str] = "contentful/cli/cma_token"  # noqa: S105


def get_token(config_token: str | None = None, pass_path: str | None = None) -> str:
    """Get the management token from config, pass path, env var or the default pass location."""
    if config_token:
        return config_token

    if pass_path:
        try:
            return utils.get_pass_value(pass_path)
        except ValueError as e:
            raise ConfigError(str(e), exit_code=2) from e

    token: str | None = os.environ.get(_TOKEN_ENV_VAR)
    if token:
        return token

    try:
        return utils.get_pass_value(_DEFAULT_TOKEN_PASS_PATH)
    except (ValueError, utils.PassError) as e:
        logger.debug(f"No token at default pass path {_DEFAULT_TOKEN_PASS_PATH}: {e}")
        msg = f"No management token specified. Provide 'cmaToken' in the config file or set {_TOKEN_ENV_VAR}."
        raise ConfigError(msg, exit_code=2) from e


def get_client(token: str, space_id: str, environment_id: str) -> ContentfulClient:
    """Create a client for the environment and check that it is reachable."""
    client = ContentfulClient(token, space_id, environment_id)
    try:
        client.validate_access()
    except ContentfulApiError as e:
        msg = f"Error creating client. Please check your config. Reason: {e}"
        raise ConfigError(msg, exit_code=2) from e
    return client
