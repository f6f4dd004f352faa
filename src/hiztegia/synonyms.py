"""Process-wide synonym graph built from one bulk read of the synonym table."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from hiztegia.config import Settings
from hiztegia.exceptions import HiztegiaError
from hiztegia.models import SynonymGraph, SynonymRow
from hiztegia.normalize import lookup_candidates, normalize_synonyms, unique, word_key
from hiztegia.store import Query, Row, Store, run_query

logger = logging.getLogger(__name__)


def build_synonym_graph(rows: Iterable[Row], word_column: str, synonyms_column: str) -> SynonymGraph:
    """Index ``rows`` both ways: word → synonyms and synonym → listing rows."""
    graph = SynonymGraph()
    for row in rows:
        word = str(row.get(word_column) or "").strip()
        key = word_key(word)
        if not key:
            continue

        synonyms = normalize_synonyms(row.get(synonyms_column))
        direct = graph.by_word.setdefault(key, [])
        for synonym in synonyms:
            if word_key(synonym) != key and synonym not in direct:
                direct.append(synonym)

        entry = SynonymRow(word=word, synonyms=tuple(synonyms))
        for synonym in synonyms:
            synonym_key = word_key(synonym)
            if synonym_key:
                graph.reverse_by_synonym.setdefault(synonym_key, []).append(entry)
    return graph


class SynonymCache:
    """Lazily built, explicitly invalidated synonym expansion index.

    The graph is loaded on the first query and kept until :meth:`invalidate`.
    If the bulk read fails, the cache stays unavailable (no retries) and
    every expansion is empty until it is invalidated.
    """

    def __init__(self, store: Store, settings: Settings | None = None) -> None:
        self._store = store
        self._settings = settings or Settings()
        self._lock = threading.Lock()
        self._graph: SynonymGraph | None = None
        self._unavailable = False

    @property
    def loaded(self) -> bool:
        return self._graph is not None

    @property
    def unavailable(self) -> bool:
        return self._unavailable

    def invalidate(self) -> None:
        """Drop the graph; the next query rebuilds it."""
        with self._lock:
            self._graph = None
            self._unavailable = False
        logger.debug("Synonym cache invalidated")

    def graph(self) -> SynonymGraph | None:
        """Return the graph, loading it on first use."""
        graph = self._graph
        if graph is not None:
            return graph
        with self._lock:
            if self._graph is not None:
                return self._graph
            if self._unavailable:
                return None

            s = self._settings
            query = (
                Query(s.synonym_table)
                .select(s.synonym_word_column, s.synonym_list_column)
                .eq(s.synonym_active_column, True)
                .order(s.synonym_word_column)
                .limit(s.synonym_bulk_limit)
            )
            try:
                rows = run_query(self._store, query)
            except HiztegiaError as e:
                logger.warning("Synonym table %r unreadable; expansion disabled: %s",
                               s.synonym_table, e)
                self._unavailable = True
                return None

            self._graph = build_synonym_graph(
                rows, s.synonym_word_column, s.synonym_list_column
            )
            logger.info("Synonym graph loaded: %d words", len(self._graph.by_word))
            return self._graph

    def expand(self, word: str) -> list[str]:
        """Synonyms of ``word`` plus the words that list it as a synonym."""
        return self.expand_many([word]).get(word_key(word), [])

    def expand_many(self, words: Iterable[str]) -> dict[str, list[str]]:
        """Expand several words at once, keyed by their word keys."""
        requests: dict[str, list[str]] = {}
        for word in words:
            key = word_key(word)
            if key and key not in requests:
                requests[key] = unique([key, *lookup_candidates(word)])
        if not requests:
            return {}

        graph = self.graph()
        if graph is None:
            return {}

        return {
            key: _expand_keys(graph, lookup_keys)
            for key, lookup_keys in requests.items()
        }


def _expand_keys(graph: SynonymGraph, lookup_keys: list[str]) -> list[str]:
    excluded = set(lookup_keys)
    merged: dict[str, str] = {}

    def append(value: str) -> None:
        cleaned = value.strip()
        key = word_key(cleaned)
        if key and key not in excluded and key not in merged:
            merged[key] = cleaned

    for key in lookup_keys:
        for synonym in graph.by_word.get(key, ()):
            append(synonym)
    for key in lookup_keys:
        for entry in graph.reverse_by_synonym.get(key, ()):
            append(entry.word)
            for synonym in entry.synonyms:
                append(synonym)
    return list(merged.values())
