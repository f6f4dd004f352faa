"""Pattern search over the synonym table."""

from __future__ import annotations

import logging

from hiztegia.config import Settings
from hiztegia.exceptions import ColumnInvalidError, HiztegiaError
from hiztegia.models import MatchMode, WordEntry
from hiztegia.normalize import normalize_comparable_text, normalize_search_term, normalize_synonyms
from hiztegia.pattern import (
    build_like_pattern,
    parse_search_pattern,
    sanitize_search_token,
    term_matches_mode,
)
from hiztegia.store import Query, Row, Store, run_query

logger = logging.getLogger(__name__)


def collation_key(word: str) -> tuple[str, str]:
    """Case- and accent-insensitive sort key, stable on ties."""
    return normalize_comparable_text(word), word


class WordSearch:
    """Finds synonym-table rows whose word or one of its synonyms matches."""

    def __init__(self, store: Store, settings: Settings | None = None) -> None:
        self._store = store
        self._settings = settings or Settings()

    def _base_query(self) -> Query:
        s = self._settings
        return (
            Query(s.synonym_table)
            .select(
                s.synonym_id_column,
                s.synonym_word_column,
                s.synonym_list_column,
                s.synonym_level_column,
            )
            .eq(s.synonym_active_column, True)
            .order(s.synonym_word_column)
        )

    def search(self, term: str) -> list[WordEntry]:
        """Ranked entries for ``term`` (``"etx"``, ``"*tasun"``, ``"*bar*"``)."""
        pattern = parse_search_pattern(term)
        if pattern is None:
            return []
        normalized_token = normalize_search_term(pattern.token)
        like_token = sanitize_search_token(pattern.token)
        if not normalized_token or not like_token:
            return []

        s = self._settings
        by_word = self._rows_by_word(like_token, pattern.match_mode)
        by_text = self._rows_by_search_text(like_token)

        merged: dict[str, Row] = {}
        for row in [*by_word, *by_text]:
            identity = row.get(s.synonym_id_column)
            if identity is None:
                identity = row.get(s.synonym_word_column)
            key = str(identity if identity is not None else "").strip()
            if key and key not in merged:
                merged[key] = row

        matching = [
            row for row in merged.values()
            if self._row_matches(row, normalized_token, pattern.match_mode)
        ]
        matching.sort(key=lambda row: collation_key(str(row.get(s.synonym_word_column) or "")))
        return [self._to_entry(row) for row in matching[: s.word_search_limit]]

    def _rows_by_word(self, token: str, mode: MatchMode) -> list[Row]:
        s = self._settings
        query = (
            self._base_query()
            .ilike(s.synonym_word_column, build_like_pattern(token, mode))
            .limit(s.word_search_limit)
        )
        try:
            return run_query(self._store, query, column=s.synonym_word_column)
        except HiztegiaError as e:
            logger.warning("Word query on %r failed: %s", s.synonym_table, e)
            return []

    def _rows_by_search_text(self, token: str) -> list[Row]:
        """Rows whose combined text contains ``token``.

        Without a ``search_text`` column, fall back to a bounded scan of
        active rows; the match-mode filter then runs client side.
        """
        s = self._settings
        query = (
            self._base_query()
            .ilike(s.synonym_search_text_column, f"%{token}%")
            .limit(s.search_text_limit)
        )
        try:
            return run_query(self._store, query, column=s.synonym_search_text_column)
        except ColumnInvalidError:
            logger.info(
                "Column %r missing on %r; scanning up to %d rows",
                s.synonym_search_text_column, s.synonym_table, s.fallback_scan_limit,
            )
        except HiztegiaError as e:
            logger.warning("Search-text query on %r failed: %s", s.synonym_table, e)
            return []

        try:
            return run_query(self._store, self._base_query().limit(s.fallback_scan_limit))
        except HiztegiaError as e:
            logger.warning("Fallback scan of %r failed: %s", s.synonym_table, e)
            return []

    def _row_matches(self, row: Row, normalized_token: str, mode: MatchMode) -> bool:
        s = self._settings
        word = str(row.get(s.synonym_word_column) or "")
        if term_matches_mode(word, normalized_token, mode):
            return True
        return any(
            term_matches_mode(synonym, normalized_token, mode)
            for synonym in normalize_synonyms(row.get(s.synonym_list_column))
        )

    def _to_entry(self, row: Row) -> WordEntry:
        s = self._settings
        level = row.get(s.synonym_level_column)
        return WordEntry(
            id=row.get(s.synonym_id_column),
            word=str(row.get(s.synonym_word_column) or ""),
            synonyms=tuple(normalize_synonyms(row.get(s.synonym_list_column))),
            level=level if isinstance(level, int) and not isinstance(level, bool) else None,
        )
