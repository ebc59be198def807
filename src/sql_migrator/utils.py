"""Utility functions for SQL-Migrator."""

import logging
import os
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

from rich.prompt import Confirm

from .constants import LOGGER_NAME

# Logging collaborator: a %-style template followed by positional arguments
InfoLogger = Callable[..., None]

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def default_info_logger(msg: str, *args: Any) -> None:
    """
    Default logging collaborator.

    Forwards to the ``sql_migrator`` logger at INFO level. Replace it by
    passing ``info_logger=`` to the migrator.

    Args:
        msg: Message template using %-style placeholders
        *args: Values for the placeholders
    """
    logging.getLogger(LOGGER_NAME).info(msg, *args)


def ensure_dir(path: Path) -> Path:
    """
    Create directory if it doesn't exist.

    Args:
        path: Directory path to create

    Returns:
        The created/existing directory path
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def expand_path(path: str) -> Path:
    """
    Expand ~ and environment variables in path.

    Args:
        path: Path string to expand

    Returns:
        Expanded Path object
    """
    return Path(os.path.expanduser(os.path.expandvars(path))).resolve()


def is_valid_identifier(name: str) -> bool:
    """
    Check that a table name is a plain SQL identifier.

    The ledger table name is interpolated into SQL text, so only
    ``name`` or ``schema.name`` made of letters, digits and underscores
    is accepted.

    Args:
        name: Candidate table name

    Returns:
        True if the name is safe to interpolate
    """
    return bool(_IDENTIFIER_RE.match(name))


def prompt_confirm(message: str, default: bool = False) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message
        default: Default value if user just presses Enter

    Returns:
        True if confirmed, False otherwise
    """
    return Confirm.ask(message, default=default)

