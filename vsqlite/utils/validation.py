"""Validation utilities for command-line inputs."""
from __future__ import annotations
import os

from vsqlite.core.errors import UserInputError


class ValidationError(UserInputError):
    """Exception raised for validation failures."""
    pass


def validate_database_path(filepath: str) -> None:
    """Check a database path before handing it to the engine.

    A missing file is fine (the engine creates it) as long as its directory
    exists; an existing path must be a readable regular file.
    """
    if not filepath:
        raise ValidationError("Database path is empty")
    if filepath == ":memory:":
        return

    path = os.path.expanduser(filepath)
    if os.path.exists(path):
        if not os.path.isfile(path):
            raise ValidationError(f"Path is not a file: {filepath}")
        if not os.access(path, os.R_OK):
            raise ValidationError(f"File not readable: {filepath}")
        return

    directory = os.path.dirname(os.path.abspath(path))
    if not os.path.isdir(directory):
        raise ValidationError(f"Directory does not exist: {directory}")
    if not os.access(directory, os.W_OK):
        raise ValidationError(f"Directory not writable: {directory}")
