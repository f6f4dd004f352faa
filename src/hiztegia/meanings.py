"""Meaning search over the dictionary table.

Rows are gathered column by column (see :class:`DictionarySchemaProber`),
scored against the search token, reduced to the best row per headword,
then enriched with synonyms and definition paragraphs.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from hiztegia.config import Settings
from hiztegia.definitions import DefinitionAggregator
from hiztegia.models import MatchMode, MeaningEntry, SearchPattern
from hiztegia.normalize import (
    normalize_comparable_text,
    normalize_match_text,
    value_as_text,
    word_key,
)
from hiztegia.pattern import build_search_variants, parse_search_pattern, text_matches_mode
from hiztegia.schema import DictionarySchemaProber
from hiztegia.store import Row
from hiztegia.synonyms import SynonymCache
from hiztegia.words import collation_key

logger = logging.getLogger(__name__)

# Scores: lower is better.
EXACT_MATCH = 0
PHRASE_PREFIX_MATCH = 1
PREFIX_MATCH = 2
WHOLE_WORD_MATCH = 3
SUBSTRING_MATCH = 10


def score_candidate(candidate: str, token: str) -> float:
    """Rank ``candidate`` against ``token``; ``math.inf`` means no match.

    Both arguments are compared in :func:`normalize_match_text` form.
    Substring hits score ``10 + index`` so earlier hits rank higher.
    """
    normalized = normalize_match_text(candidate)
    needle = normalize_match_text(token)
    if not normalized or not needle:
        return math.inf
    if normalized == needle:
        return EXACT_MATCH
    if normalized.startswith(f"{needle} "):
        return PHRASE_PREFIX_MATCH
    if normalized.startswith(needle):
        return PREFIX_MATCH
    if f" {needle} " in f" {normalized} ":
        return WHOLE_WORD_MATCH
    index = normalized.find(needle)
    if index >= 0:
        return SUBSTRING_MATCH + index
    return math.inf


@dataclass
class _Candidate:
    word: str
    meaning: str
    score: float
    length: int
    entry_ids: list[str] = field(default_factory=list)

    def beats(self, other: _Candidate) -> bool:
        return (self.score, self.length) < (other.score, other.length)


class MeaningSearch:
    """Dictionary lookups with scored best-match selection."""

    def __init__(
        self,
        prober: DictionarySchemaProber,
        synonyms: SynonymCache,
        definitions: DefinitionAggregator,
        settings: Settings | None = None,
    ) -> None:
        self._prober = prober
        self._synonyms = synonyms
        self._definitions = definitions
        self._settings = settings or Settings()

    def search(self, term: str, limit: int | None = None) -> list[MeaningEntry]:
        """Alphabetically ordered meanings matching ``term``."""
        if limit is None:
            limit = self._settings.meaning_search_limit
        if limit < 1:
            return []
        candidates = self._collect(term, limit)
        ordered = sorted(candidates, key=lambda c: collation_key(c.word))[:limit]
        return self._enrich(ordered)

    def lookup(self, term: str) -> MeaningEntry | None:
        """The single best-scored meaning for ``term``, or ``None``."""
        candidates = self._collect(term, self._settings.lookup_pool_limit)
        if not candidates:
            return None
        best = min(candidates, key=lambda c: (c.score, c.length, collation_key(c.word)))
        return self._enrich([best])[0]

    # ------------------------------------------------------------------
    # Collection
    # ------------------------------------------------------------------

    def _collect(self, term: str, limit: int) -> list[_Candidate]:
        pattern = parse_search_pattern(term)
        if pattern is None or self._prober.unavailable:
            return []

        variants = build_search_variants(pattern.token)
        normalized_token = normalize_comparable_text(pattern.token)
        if not variants or not normalized_token:
            return []

        by_key: dict[str, _Candidate] = {}
        for column in self._prober.columns_to_try():
            rows = self._prober.search_column(column, variants, pattern.match_mode, limit)
            for row in rows:
                self._consider(row, column, pattern, normalized_token, by_key)
            if len(by_key) >= limit or self._prober.unavailable:
                break
        return list(by_key.values())

    def _consider(
        self,
        row: Row,
        column: str,
        pattern: SearchPattern,
        normalized_token: str,
        by_key: dict[str, _Candidate],
    ) -> None:
        word_column = self._prober.resolve_word_column(row) or column
        self._prober.remember_word_column(word_column)

        meaning_column = self._prober.resolve_meaning_column(row, word_column)
        if meaning_column is None:
            return
        word = value_as_text(row.get(word_column))
        meaning = value_as_text(row.get(meaning_column))
        if not word or not meaning:
            return
        if not _matches(word, normalized_token, pattern.match_mode):
            return

        key = word_key(word)
        if not key:
            return
        entry_id = self._prober.find_entry_id(row)
        candidate = _Candidate(
            word=word,
            meaning=meaning,
            score=score_candidate(word, pattern.token),
            length=len(normalize_match_text(word)),
            entry_ids=[entry_id] if entry_id else [],
        )

        current = by_key.get(key)
        if current is None or candidate.beats(current):
            by_key[key] = candidate

    # ------------------------------------------------------------------
    # Enrichment
    # ------------------------------------------------------------------

    def _enrich(self, candidates: list[_Candidate]) -> list[MeaningEntry]:
        if not candidates:
            return []

        entry_ids = [i for c in candidates for i in c.entry_ids]
        definitions_by_id = self._definitions.fetch(entry_ids)
        synonyms_by_key = self._synonyms.expand_many(c.word for c in candidates)

        results = []
        for candidate in candidates:
            paragraphs: dict[str, str] = {}
            for entry_id in candidate.entry_ids:
                for paragraph in definitions_by_id.get(entry_id, ()):
                    dedupe_key = normalize_comparable_text(paragraph)
                    if dedupe_key:
                        paragraphs.setdefault(dedupe_key, paragraph)
            definitions = list(paragraphs.values()) or [candidate.meaning.strip()]
            results.append(MeaningEntry(
                word=candidate.word,
                meaning=candidate.meaning,
                synonyms=tuple(synonyms_by_key.get(word_key(candidate.word), ())),
                definitions=tuple(d for d in definitions if d),
            ))
        return results


def _matches(word: str, normalized_token: str, mode: MatchMode) -> bool:
    return text_matches_mode(normalize_comparable_text(word), normalized_token, mode)
