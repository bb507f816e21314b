"""
Workflow v1 to Workflows Migration Tool

Migrates entries tagged with deprecated workflow v1 tags into workflow
instances of the workflows feature, with optional tag cleanup.
"""

from __future__ import annotations

from .cli import main
from .exceptions import (
    ConfigError,
    ContentfulApiError,
    MigrationError,
    VersionConflictError,
    WorkflowAlreadyExistsError,
)
from .migrator import EntryMigrator, migrate_tagged_entries
from .utils import setup_logging

# Package version
__version__ = "1.0.0"

__all__ = [
    "ConfigError",
    "ContentfulApiError",
    "EntryMigrator",
    "MigrationError",
    "VersionConflictError",
    "WorkflowAlreadyExistsError",
    "main",
    "migrate_tagged_entries",
    "setup_logging",
]
