"""Custom exception hierarchy for hiztegia."""

from __future__ import annotations


class HiztegiaError(Exception):
    """Base exception for all hiztegia errors."""


class StoreError(HiztegiaError):
    """Raw failure reported by a storage backend.

    ``code`` carries the backend error code when one exists (for example a
    PostgreSQL SQLSTATE such as ``"23505"``).
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class SchemaUnavailableError(HiztegiaError):
    """The queried table does not exist (permanent for the engine lifetime)."""

    def __init__(self, table: str, message: str = "") -> None:
        super().__init__(message or f"Table not available: {table!r}")
        self.table = table


class ColumnInvalidError(HiztegiaError):
    """A guessed column was rejected by the backend."""

    def __init__(self, column: str | None, message: str = "") -> None:
        super().__init__(message or f"Column not usable: {column!r}")
        self.column = column


class TransientQueryError(HiztegiaError):
    """Backend error that matches no known signature."""


class MissingFunctionError(HiztegiaError):
    """A server-side function is not installed in the backend."""


class ValidationError(HiztegiaError):
    """Invalid input rejected before any backend call."""


class DuplicateEntityError(HiztegiaError):
    """Entity with the same key already exists."""


class ConfigError(HiztegiaError):
    """Invalid or unreadable configuration."""


class DataImportError(HiztegiaError):
    """Failed to import seed data (malformed YAML, missing fields, etc.)."""


class DatabaseError(HiztegiaError):
    """Schema version mismatch, connection failure."""
