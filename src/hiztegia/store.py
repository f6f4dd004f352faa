"""Storage contract consumed by the engine and backend error classification.

The engine never talks to a database directly.  It builds :class:`Query`
objects (select list, ``ILIKE``/equality/``IN`` filters, ordering and a row
limit) and hands them to a :class:`Store`.  Backends report failures as
:class:`~hiztegia.exceptions.StoreError`; :func:`classify_error` is the one
place that knows how each backend phrases "table missing", "column
invalid", "function missing" or "duplicate key".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Sequence

from hiztegia.exceptions import (
    ColumnInvalidError,
    DuplicateEntityError,
    HiztegiaError,
    MissingFunctionError,
    SchemaUnavailableError,
    StoreError,
    TransientQueryError,
)

logger = logging.getLogger(__name__)

Row = dict[str, Any]


# ---------------------------------------------------------------------------
# Query description
# ---------------------------------------------------------------------------

class FilterOp(str, Enum):
    ILIKE = "ilike"
    EQ = "eq"
    IN = "in"


@dataclass(frozen=True, slots=True)
class Filter:
    column: str
    op: FilterOp
    value: Any


@dataclass
class Query:
    """A single-table read, built fluently::

        Query("syn_words").ilike("hitza", "etx%").eq("active", True).limit(200)
    """

    table: str
    columns: tuple[str, ...] = ()
    filters: list[Filter] = field(default_factory=list)
    order_by: str | None = None
    ascending: bool = True
    row_limit: int | None = None

    def select(self, *columns: str) -> Query:
        self.columns = tuple(columns)
        return self

    def ilike(self, column: str, pattern: str) -> Query:
        self.filters.append(Filter(column, FilterOp.ILIKE, pattern))
        return self

    def eq(self, column: str, value: Any) -> Query:
        self.filters.append(Filter(column, FilterOp.EQ, value))
        return self

    def in_(self, column: str, values: Sequence[Any]) -> Query:
        self.filters.append(Filter(column, FilterOp.IN, tuple(values)))
        return self

    def order(self, column: str, *, ascending: bool = True) -> Query:
        self.order_by = column
        self.ascending = ascending
        return self

    def limit(self, count: int) -> Query:
        self.row_limit = count
        return self


class Store:
    """Backend interface.  Subclasses implement :meth:`execute` and :meth:`call`."""

    def execute(self, query: Query) -> list[Row]:
        """Run ``query`` and return rows as column-ordered dictionaries.

        Raises:
            StoreError: On any backend failure
        """
        raise NotImplementedError

    def call(self, function: str, params: Mapping[str, Any]) -> Any:
        """Invoke a server-side function (``rpc``) and return its payload.

        Raises:
            StoreError: On any backend failure
        """
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------

class ErrorKind(str, Enum):
    MISSING_FUNCTION = "missing_function"
    MISSING_TABLE = "missing_table"
    INVALID_COLUMN = "invalid_column"
    DUPLICATE = "duplicate"
    TRANSIENT = "transient"


# SQLSTATE / PostgREST codes.
ERROR_CODES: dict[str, ErrorKind] = {
    "23505": ErrorKind.DUPLICATE,
    "42P01": ErrorKind.MISSING_TABLE,
    "42703": ErrorKind.INVALID_COLUMN,
    "42883": ErrorKind.INVALID_COLUMN,
    "PGRST202": ErrorKind.MISSING_FUNCTION,
    "PGRST205": ErrorKind.MISSING_TABLE,
}

# Each signature is a tuple of lower-case fragments that must all appear in
# the error message.  Order matters: the first matching kind wins.
ERROR_SIGNATURES: tuple[tuple[ErrorKind, tuple[tuple[str, ...], ...]], ...] = (
    (ErrorKind.MISSING_FUNCTION, (
        ("could not find the function",),
        ("function", "does not exist"),
        ("no such function",),
    )),
    (ErrorKind.INVALID_COLUMN, (
        ("column", "does not exist"),
        ("operator does not exist",),
        ("operator ~~*",),
        ("no such column",),
    )),
    (ErrorKind.MISSING_TABLE, (
        ("relation", "does not exist"),
        ("could not find the table",),
        ("no such table",),
    )),
    (ErrorKind.DUPLICATE, (
        ("duplicate key value",),
        ("unique constraint failed",),
    )),
)


def error_kind(error: StoreError, table: str | None = None) -> ErrorKind:
    """Map a backend error to an :class:`ErrorKind`.

    A "missing table" signature only counts when it names ``table`` (when
    given), so an unrelated relation in the message is not mistaken for
    the table being queried.
    """
    message = (error.message or "").lower()

    kind = ERROR_CODES.get(error.code or "")
    if kind is None:
        for candidate, signatures in ERROR_SIGNATURES:
            if any(all(part in message for part in sig) for sig in signatures):
                kind = candidate
                break

    if kind is ErrorKind.MISSING_TABLE and table and table.lower() not in message:
        return ErrorKind.TRANSIENT
    return kind or ErrorKind.TRANSIENT


def classify_error(
    error: StoreError,
    *,
    table: str | None = None,
    column: str | None = None,
) -> HiztegiaError:
    """Translate a :class:`StoreError` into the engine's exception taxonomy."""
    kind = error_kind(error, table)
    if kind is ErrorKind.MISSING_TABLE:
        return SchemaUnavailableError(table or "?", error.message)
    if kind is ErrorKind.INVALID_COLUMN:
        return ColumnInvalidError(column, error.message)
    if kind is ErrorKind.MISSING_FUNCTION:
        return MissingFunctionError(error.message)
    if kind is ErrorKind.DUPLICATE:
        return DuplicateEntityError(error.message)
    return TransientQueryError(error.message)


def run_query(store: Store, query: Query, *, column: str | None = None) -> list[Row]:
    """Execute ``query`` and raise classified errors.

    ``column`` names the guessed column the query depends on, so that a
    :class:`ColumnInvalidError` can say which guess was wrong.
    """
    try:
        rows = store.execute(query)
    except StoreError as e:
        raise classify_error(e, table=query.table, column=column) from e
    logger.debug("%s: %d row(s) for %s", query.table, len(rows), query.filters)
    return rows
