# Error taxonomy shared by the engine adapters, the router and the CLI.
from __future__ import annotations
from enum import Enum, auto

class ErrorCategory(Enum):
    USER_INPUT = auto()
    RUNTIME = auto()
    STARTUP = auto()
    CONFIG = auto()
    INTERNAL = auto()

class VSQLiteException(Exception):
    category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(self, message: str, *, category: ErrorCategory | None = None):
        super().__init__(message)
        if category:
            self.category = category

class DatabaseOpenError(VSQLiteException):
    category = ErrorCategory.STARTUP

class QueryError(VSQLiteException):
    category = ErrorCategory.RUNTIME

class MetadataError(VSQLiteException):
    category = ErrorCategory.RUNTIME

class UserInputError(VSQLiteException):
    category = ErrorCategory.USER_INPUT

class ConfigError(VSQLiteException):
    category = ErrorCategory.CONFIG

__all__ = [
    'ErrorCategory', 'VSQLiteException', 'DatabaseOpenError', 'QueryError',
    'MetadataError', 'UserInputError', 'ConfigError'
]
