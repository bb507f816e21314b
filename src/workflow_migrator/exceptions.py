"""
Custom exception classes for the workflow migration tool.
"""

from __future__ import annotations


class MigrationError(Exception):
    """Base exception for migration errors."""


class ConfigError(MigrationError):
    """Raised when the run cannot start because of invalid configuration or environment state."""

    exit_code: int

    def __init__(self, message: str, exit_code: int = 2) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class TagNotFoundError(MigrationError):
    """Raised when a tag id or name cannot be found in the environment."""


class LockedWorkflowError(MigrationError):
    """Raised when a locked workflow definition is selected as migration target."""


class InvalidWorkflowStepError(MigrationError):
    """Raised when a step id does not belong to the selected workflow definition."""


class ContentfulApiError(MigrationError):
    """Raised when a Content Management API request fails."""

    status: int | None
    error_id: str | None

    def __init__(self, message: str, *, status: int | None = None, error_id: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.error_id = error_id


class VersionConflictError(ContentfulApiError):
    """Raised when an update is rejected because the supplied version is outdated."""


class WorkflowAlreadyExistsError(ContentfulApiError):
    """Raised when an entry already has an active workflow."""
