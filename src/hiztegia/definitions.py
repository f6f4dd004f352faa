"""Definition paragraphs joined from a weakly-linked definitions table."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Sequence

from hiztegia.config import Settings
from hiztegia.exceptions import (
    ColumnInvalidError,
    HiztegiaError,
    SchemaUnavailableError,
)
from hiztegia.models import DefinitionsSchema
from hiztegia.normalize import (
    key_matches_hints,
    normalize_column_key,
    normalize_comparable_text,
    normalize_identifier,
    normalize_paragraph,
    unique,
    value_as_text,
)
from hiztegia.store import Query, Row, Store, run_query

logger = logging.getLogger(__name__)

_TIMESTAMP_MARKERS = ("created", "updated")
_ORDER_MARKERS = ("order", "indice")


def _is_bookkeeping_column(key: str) -> bool:
    normalized = normalize_column_key(key)
    if "id" in normalized:
        return True
    return any(marker in normalized for marker in _TIMESTAMP_MARKERS)


def discover_definitions_schema(row: Row | None, settings: Settings) -> DefinitionsSchema:
    """Classify the columns of a sampled definitions row.

    An empty table (``row is None``) yields the configured candidate lists.
    """
    s = settings
    if row is None:
        return DefinitionsSchema(
            reference_columns=tuple(s.definition_reference_columns),
            text_columns=tuple(s.definition_text_columns),
            order_column=None,
        )

    keys = list(row)
    reference_candidates = {c.lower() for c in s.definition_reference_columns}
    references = [k for k in keys if k.lower() in reference_candidates]
    for key in keys:
        normalized = normalize_column_key(key)
        if "diccionario" in normalized and "id" in normalized:
            references.append(key)
    for key in keys:
        normalized = normalize_column_key(key)
        if normalized == "id" or normalized.endswith("id"):
            references.append(key)
    by_lower: dict[str, str] = {}
    for key in references:
        by_lower.setdefault(key.lower(), key)
    references = list(by_lower.values())
    reference_set = set(by_lower)
    # A bare ``id`` is the row's own key once a named foreign key exists.
    named = [k for k in references if normalize_column_key(k) != "id"]
    if named:
        references = named

    text_candidates = {c.lower() for c in s.definition_text_columns}
    texts = [k for k in keys if k.lower() in text_candidates]
    texts += [
        k for k in keys
        if k.lower() not in reference_set
        and value_as_text(row[k])
        and key_matches_hints(k, s.dictionary_meaning_hints)
    ]
    if not texts:
        texts = [
            k for k in keys
            if k.lower() not in reference_set
            and not _is_bookkeeping_column(k)
            and not any(m in normalize_column_key(k) for m in _ORDER_MARKERS)
            and value_as_text(row[k])
        ]
    texts = unique(texts)

    order_candidates = {c.lower() for c in s.definition_order_columns}
    order_column = next((k for k in keys if k.lower() in order_candidates), None)

    return DefinitionsSchema(
        reference_columns=tuple(references) or tuple(s.definition_reference_columns),
        text_columns=tuple(texts) or tuple(s.definition_text_columns),
        order_column=order_column,
    )


def extract_paragraph(row: Row, schema: DefinitionsSchema) -> str | None:
    """First non-empty text column of ``row``, line breaks collapsed."""
    for column in schema.text_columns:
        text = value_as_text(row.get(column))
        if text:
            paragraph = normalize_paragraph(text)
            if paragraph:
                return paragraph

    references = {c.lower() for c in schema.reference_columns}
    for key, value in row.items():
        if key.lower() in references or key == schema.order_column:
            continue
        if _is_bookkeeping_column(key):
            continue
        text = value_as_text(value)
        if text:
            return normalize_paragraph(text) or None
    return None


class DefinitionAggregator:
    """Fetches deduplicated definition paragraphs per dictionary entry id."""

    def __init__(self, store: Store, settings: Settings | None = None) -> None:
        self._store = store
        self._settings = settings or Settings()
        self._lock = threading.Lock()
        self._schema: DefinitionsSchema | None = None
        self._invalid_references: set[str] = set()
        self._unavailable = False

    @property
    def table(self) -> str:
        return self._settings.definitions_table

    @property
    def unavailable(self) -> bool:
        return self._unavailable

    def reset(self) -> None:
        with self._lock:
            self._schema = None
            self._invalid_references.clear()
            self._unavailable = False

    def _mark_unavailable(self, reason: str) -> None:
        with self._lock:
            if not self._unavailable:
                logger.warning("Definitions table %r unavailable: %s", self.table, reason)
            self._unavailable = True

    def schema(self) -> DefinitionsSchema | None:
        """Discover the table layout once; ``None`` if it cannot be read."""
        if self._unavailable:
            return None
        if self._schema is not None:
            return self._schema

        try:
            rows = run_query(self._store, Query(self.table).limit(1))
        except SchemaUnavailableError as e:
            self._mark_unavailable(str(e))
            return None
        except HiztegiaError as e:
            logger.warning("Could not sample definitions table %r: %s", self.table, e)
            return None

        schema = discover_definitions_schema(rows[0] if rows else None, self._settings)
        with self._lock:
            self._schema = schema
        logger.debug("Definitions schema for %r: %s", self.table, schema)
        return schema

    def fetch(self, entry_ids: Iterable[str]) -> dict[str, list[str]]:
        """Definition paragraphs keyed by normalized entry id.

        Reference columns are tried in order; the first one that returns
        rows is used and the rest are not queried.
        """
        ids = unique(i for i in (normalize_identifier(v) for v in entry_ids) if i)
        if not ids:
            return {}
        schema = self.schema()
        if schema is None:
            return {}

        for column in schema.reference_columns:
            if column in self._invalid_references:
                continue
            rows = self._fetch_by_reference(column, ids, schema)
            if rows is None:
                if self._unavailable:
                    return {}
                continue
            if rows:
                return self._assemble(rows, column, set(ids), schema)
        return {}

    def _fetch_by_reference(
        self,
        column: str,
        ids: Sequence[str],
        schema: DefinitionsSchema,
    ) -> list[Row] | None:
        query = Query(self.table).in_(column, ids).limit(self._settings.definitions_fetch_limit)
        if schema.order_column and schema.order_column != column:
            query.order(schema.order_column)
        try:
            return run_query(self._store, query, column=column)
        except SchemaUnavailableError as e:
            self._mark_unavailable(str(e))
        except ColumnInvalidError as e:
            logger.info("Skipping definitions reference column %r: %s", column, e)
            with self._lock:
                self._invalid_references.add(column)
        except HiztegiaError as e:
            logger.warning("Definitions query on %r failed: %s", column, e)
        return None

    def _assemble(
        self,
        rows: Iterable[Row],
        column: str,
        wanted: set[str],
        schema: DefinitionsSchema,
    ) -> dict[str, list[str]]:
        aggregated: dict[str, dict[str, str]] = {}
        for row in rows:
            entry_id = normalize_identifier(row.get(column))
            if not entry_id or entry_id not in wanted:
                continue
            paragraph = extract_paragraph(row, schema)
            if not paragraph:
                continue
            paragraphs = aggregated.setdefault(entry_id, {})
            paragraphs.setdefault(normalize_comparable_text(paragraph), paragraph)
        return {entry_id: list(p.values()) for entry_id, p in aggregated.items()}
