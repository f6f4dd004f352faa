"""Runtime column discovery for the free-form dictionary table.

The dictionary table is maintained outside this package and its column
names are not known ahead of time.  :class:`DictionarySchemaProber` samples
one row, guesses which column holds the headword and which the meaning,
and remembers what it learns:

* a column that worked is preferred on every later call, without
  re-sampling;
* a column the backend rejected is skipped from then on;
* a missing table disables the whole prober for its lifetime.

Nothing here raises to callers.  Failures become empty results.
"""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Callable, Sequence
from typing import Any

from hiztegia.config import Settings
from hiztegia.exceptions import (
    ColumnInvalidError,
    HiztegiaError,
    SchemaUnavailableError,
)
from hiztegia.models import DictionarySchema, MatchMode
from hiztegia.normalize import (
    key_matches_hints,
    normalize_column_key,
    normalize_identifier,
    unique,
    value_as_text,
)
from hiztegia.pattern import build_like_pattern
from hiztegia.store import Query, Row, Store, run_query

logger = logging.getLogger(__name__)

ColumnStrategy = Callable[[Row], "str | None"]


def is_textual(value: Any) -> bool:
    """Whether a sampled value could belong to a text column."""
    return value is None or isinstance(value, (str, list, tuple))


class DictionarySchemaProber:
    """Discovers and memoizes the word/meaning columns of the dictionary table."""

    def __init__(self, store: Store, settings: Settings | None = None) -> None:
        self._store = store
        self._settings = settings or Settings()
        self._lock = threading.Lock()
        self._word_column: str | None = None
        self._meaning_column: str | None = None
        self._text_columns: tuple[str, ...] | None = None
        self._invalid_columns: set[str] = set()
        self._unavailable = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def table(self) -> str:
        return self._settings.dictionary_table

    @property
    def unavailable(self) -> bool:
        return self._unavailable

    @property
    def word_column(self) -> str | None:
        return self._word_column

    @property
    def meaning_column(self) -> str | None:
        return self._meaning_column

    @property
    def invalid_columns(self) -> frozenset[str]:
        return frozenset(self._invalid_columns)

    def schema(self) -> DictionarySchema:
        return DictionarySchema(
            word_column=self._word_column,
            meaning_column=self._meaning_column,
            text_columns=self._text_columns or (),
        )

    def mark_unavailable(self, reason: str = "") -> None:
        with self._lock:
            if not self._unavailable:
                logger.warning(
                    "Dictionary table %r unavailable; meaning search disabled. %s",
                    self.table, reason,
                )
            self._unavailable = True

    def mark_invalid(self, column: str, reason: str = "") -> None:
        with self._lock:
            if column not in self._invalid_columns:
                logger.info("Skipping dictionary column %r: %s", column, reason)
            self._invalid_columns.add(column)
            if self._word_column == column:
                self._word_column = None

    def remember_word_column(self, column: str) -> None:
        with self._lock:
            self._word_column = column

    def is_usable(self, column: str) -> bool:
        return not self._unavailable and column not in self._invalid_columns

    def reset(self) -> None:
        """Forget everything learned so far."""
        with self._lock:
            self._word_column = None
            self._meaning_column = None
            self._text_columns = None
            self._invalid_columns.clear()
            self._unavailable = False

    # ------------------------------------------------------------------
    # Probing
    # ------------------------------------------------------------------

    def probe(self) -> list[str]:
        """Return text columns ordered by how likely they hold the headword.

        The table is sampled at most once; the outcome is cached.
        """
        if self._unavailable:
            return []
        if self._text_columns is not None:
            return list(self._text_columns)

        s = self._settings
        try:
            rows = run_query(self._store, Query(self.table).limit(1))
        except SchemaUnavailableError as e:
            self.mark_unavailable(str(e))
            return []
        except HiztegiaError as e:
            logger.warning("Could not sample dictionary table %r: %s", self.table, e)
            return []

        if not rows:
            with self._lock:
                self._text_columns = tuple(s.dictionary_word_columns)
            return list(self._text_columns)

        row = rows[0]
        text_keys = [key for key, value in row.items() if is_textual(value)]
        ordered = [k for k in text_keys if key_matches_hints(k, s.dictionary_word_hints)]
        ordered += [k for k in text_keys if k not in ordered]

        with self._lock:
            if self._meaning_column is None:
                self._meaning_column = next(
                    (k for k in text_keys if key_matches_hints(k, s.dictionary_meaning_hints)),
                    None,
                )
            if self._word_column is None and ordered:
                self._word_column = ordered[0]
            self._text_columns = tuple(ordered) if ordered else tuple(s.dictionary_word_columns)
            logger.debug(
                "Probed dictionary table %r: word=%r meaning=%r text=%r",
                self.table, self._word_column, self._meaning_column, self._text_columns,
            )
        return list(self._text_columns)

    def columns_to_try(self) -> list[str]:
        """Cached word column, ranked candidates, then probed columns."""
        probed = self.probe()
        cached = [self._word_column] if self._word_column else []
        ordered = unique([*cached, *self._settings.dictionary_word_columns, *probed])
        return [column for column in ordered if self.is_usable(column)]

    def search_column(
        self,
        column: str,
        terms: Sequence[str],
        mode: MatchMode,
        limit: int,
    ) -> list[Row]:
        """Rows whose ``column`` matches any of ``terms`` under ``mode``.

        One query per term, stopping once ``limit`` rows are collected.
        A rejected column or a missing table is memoized and yields ``[]``.
        """
        if not self.is_usable(column):
            return []

        per_term_limit = max(20, math.ceil(limit / max(len(terms), 1)))
        collected: list[Row] = []
        for term in terms:
            query = (
                Query(self.table)
                .ilike(column, build_like_pattern(term, mode))
                .limit(per_term_limit)
            )
            try:
                rows = run_query(self._store, query, column=column)
            except SchemaUnavailableError as e:
                self.mark_unavailable(str(e))
                return []
            except ColumnInvalidError as e:
                self.mark_invalid(column, str(e))
                return []
            except HiztegiaError as e:
                logger.warning("Dictionary query on %r failed: %s", column, e)
                return []
            collected.extend(rows)
            if len(collected) >= limit:
                break
        return collected[:limit]

    # ------------------------------------------------------------------
    # Row-level column resolution
    # ------------------------------------------------------------------

    def resolve_word_column(self, row: Row) -> str | None:
        """Pick the headword column of ``row``.

        Strategies, first hit wins: the cached column, a ranked candidate
        name, a hint substring, the first column with text.
        """
        strategies: tuple[ColumnStrategy, ...] = (
            self._cached_word_column,
            self._candidate_word_column,
            self._hinted_word_column,
            _first_text_column,
        )
        for strategy in strategies:
            column = strategy(row)
            if column is not None:
                return column
        return None

    def resolve_meaning_column(self, row: Row, word_column: str | None) -> str | None:
        """Pick the meaning column of ``row``, never ``word_column``."""
        s = self._settings
        cached = self._meaning_column
        if cached and cached != word_column and value_as_text(row.get(cached)):
            return cached

        candidates = {c.lower() for c in s.dictionary_meaning_columns}
        for key, value in row.items():
            if key == word_column or not value_as_text(value):
                continue
            if key.lower() in candidates or key_matches_hints(key, s.dictionary_meaning_hints):
                with self._lock:
                    self._meaning_column = key
                return key

        for key, value in row.items():
            if key == word_column or not value_as_text(value):
                continue
            if not key_matches_hints(key, s.dictionary_word_hints):
                return key

        return next(
            (k for k, v in row.items() if k != word_column and value_as_text(v)),
            None,
        )

    def find_entry_id(self, row: Row) -> str | None:
        """Identifier of the dictionary entry in ``row``, normalized."""
        candidates = {c.lower() for c in self._settings.dictionary_id_columns}
        for key, value in row.items():
            if key.lower() in candidates:
                normalized = normalize_identifier(value)
                if normalized:
                    return normalized
        for key, value in row.items():
            if normalize_column_key(key).endswith("id"):
                normalized = normalize_identifier(value)
                if normalized:
                    return normalized
        return None

    def _cached_word_column(self, row: Row) -> str | None:
        column = self._word_column
        if column and value_as_text(row.get(column)):
            return column
        return None

    def _candidate_word_column(self, row: Row) -> str | None:
        by_lower = {key.lower(): key for key in row}
        for candidate in self._settings.dictionary_word_columns:
            key = by_lower.get(candidate.lower())
            if key is not None and value_as_text(row[key]):
                return key
        return None

    def _hinted_word_column(self, row: Row) -> str | None:
        hints = self._settings.dictionary_word_hints
        for key, value in row.items():
            if value_as_text(value) and key_matches_hints(key, hints):
                return key
        return None


def _first_text_column(row: Row) -> str | None:
    return next((k for k, v in row.items() if value_as_text(v)), None)
