"""
Utility functions for the workflow migration tool.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from pathlib import Path
from subprocess import CompletedProcess
from typing import Final

LOG_FILE: Final[str] = "workflow-migration.log"
_CONSOLE_LEVELS: Final[dict[int, int]] = {0: logging.WARNING, 1: logging.INFO}


class PassError(Exception):
    """Base class for pass-related errors."""


class InvalidPassPathError(PassError):
    """Raised when the pass path does not exist in the password store."""


class PassphraseRequiredError(PassError):
    """Raised when a GPG passphrase is required for the pass utility."""


def setup_logging(*, verbosity: int = 0, log_file: str | None = LOG_FILE) -> None:
    """Configure logging for the migration process.

    The console shows warnings by default, info with -v and debug with -vv.
    The log file always receives debug output.
    """
    console_handler = logging.StreamHandler()
    console_handler.setLevel(_CONSOLE_LEVELS.get(verbosity, logging.DEBUG))

    handlers: list[logging.Handler] = [console_handler]
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def resolve_path(path: str) -> Path:
    """Resolve a path given on the command line against the working directory."""
    return Path(path).expanduser().resolve()


def _validate_pass_path(pass_path: str) -> None:
    """Validate the pass path format."""
    if not re.fullmatch(r"(?:[A-Za-z0-9_-]+)(?:/[A-Za-z0-9_-]+)*", pass_path):
        msg = f"Invalid pass path: {pass_path}"
        raise ValueError(msg)


def get_pass_value(pass_path: str) -> str:
    """Get value from pass utility at specified path."""
    _validate_pass_path(pass_path)

    try:
        result: CompletedProcess[str] = subprocess.run(  # noqa: S603
            ["pass", pass_path], capture_output=True, text=True, check=True
        )
    except FileNotFoundError as e:
        msg = "The pass utility is not installed."
        raise PassError(msg) from e
    except subprocess.CalledProcessError as e:
        if e.returncode == 1 and "not in the password store" in e.stderr.lower():
            msg = f"Pass path '{pass_path}' not found or invalid."
            raise InvalidPassPathError(msg) from e
        if e.returncode == 2 and "gpg" in e.stderr.lower() and "public key decryption failed" in e.stderr.lower():
            # Likely waiting for the GPG passphrase. Ask for it and feed it to pass via loopback pinentry.
            try:
                passphrase = input("Enter passphrase for GPG key used by pass: ")
            except EOFError as eof:
                msg = "Passphrase input was interrupted. Please run the command in an interactive session."
                raise PassphraseRequiredError(msg) from eof

            env = os.environ.copy() | {"PASSWORD_STORE_GPG_OPTS": "--pinentry-mode=loopback --passphrase-fd 0"}
            try:
                result = subprocess.run(  # noqa: S603
                    ["pass", pass_path], input=passphrase, capture_output=True, text=True, check=True, env=env
                )
            except subprocess.CalledProcessError as retry_error:
                msg = (
                    f"Failed to get value from pass at '{pass_path}' with passphrase.\n"
                    f"Error: {retry_error.stderr.strip()}\n"
                    f"Return code: {retry_error.returncode}"
                )
                raise PassphraseRequiredError(msg) from retry_error
            return result.stdout.strip()
        msg = (
            f"Failed to get value from pass at '{pass_path}'.\n"
            f"Error: {e.stderr.strip()}\n"
            f"Return code: {e.returncode}"
        )
        raise PassError(msg) from e

    return result.stdout.strip()
