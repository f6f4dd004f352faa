"""LexicalEngine, the main entry point for the hiztegia library."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from hiztegia.config import Settings
from hiztegia.definitions import DefinitionAggregator
from hiztegia.exceptions import (
    DuplicateEntityError,
    MissingFunctionError,
    SchemaUnavailableError,
    StoreError,
    ValidationError,
)
from hiztegia.meanings import MeaningSearch
from hiztegia.models import AddWordErrorReason, AddWordResult, MeaningEntry, WordEntry
from hiztegia.normalize import unique, word_key
from hiztegia.schema import DictionarySchemaProber
from hiztegia.store import Store, classify_error
from hiztegia.synonyms import SynonymCache
from hiztegia.words import WordSearch

logger = logging.getLogger(__name__)

_PAYLOAD_REASONS = {
    AddWordErrorReason.DUPLICATE.value: AddWordErrorReason.DUPLICATE,
    AddWordErrorReason.MISSING_TABLE.value: AddWordErrorReason.MISSING_TABLE,
    AddWordErrorReason.INVALID.value: AddWordErrorReason.INVALID,
}

_DEFAULT_MESSAGES = {
    AddWordErrorReason.DUPLICATE: "The word is already in the synonym dictionary.",
    AddWordErrorReason.MISSING_TABLE: "The synonym table is missing.",
    AddWordErrorReason.INVALID: "The submitted data is not valid.",
    AddWordErrorReason.ERROR: "The synonym could not be added.",
}


def validate_new_word(word: str, synonyms: Sequence[str]) -> tuple[str, list[str]]:
    """Normalize an ``add_word`` request, raising :class:`ValidationError`.

    The word and every synonym become word keys; empty and self-referencing
    synonyms are dropped.  A single string counts as one synonym.
    """
    if isinstance(synonyms, str):
        synonyms = [synonyms]
    normalized_word = word_key(word)
    cleaned = [
        synonym for synonym in unique(word_key(s) for s in synonyms)
        if synonym and synonym != normalized_word
    ]
    if not normalized_word:
        raise ValidationError("A word is required.")
    if not cleaned:
        raise ValidationError("At least one synonym is required.")
    return normalized_word, cleaned


class LexicalEngine:
    """Search words and meanings in loosely-structured external tables.

    The engine owns three caches (dictionary schema, synonym graph and
    definitions schema).  They can be injected, which keeps tests isolated
    and lets several engines share one cache if desired.
    """

    def __init__(
        self,
        store: Store,
        settings: Settings | None = None,
        *,
        prober: DictionarySchemaProber | None = None,
        synonym_cache: SynonymCache | None = None,
        definitions: DefinitionAggregator | None = None,
    ) -> None:
        self._store = store
        self._settings = settings or Settings()
        self.prober = prober or DictionarySchemaProber(store, self._settings)
        self.synonym_cache = synonym_cache or SynonymCache(store, self._settings)
        self.definitions = definitions or DefinitionAggregator(store, self._settings)
        self._words = WordSearch(store, self._settings)
        self._meanings = MeaningSearch(
            self.prober, self.synonym_cache, self.definitions, self._settings
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def store(self) -> Store:
        return self._store

    def close(self) -> None:
        """Close the underlying store if it supports closing."""
        close = getattr(self._store, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> LexicalEngine:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def search_words(self, term: str) -> list[WordEntry]:
        """Synonym-table rows matching ``term``; never raises."""
        return self._words.search(term)

    def search_meanings(self, term: str, limit: int | None = None) -> list[MeaningEntry]:
        """Dictionary meanings matching ``term``; never raises."""
        return self._meanings.search(term, limit)

    def lookup_meaning(self, term: str) -> MeaningEntry | None:
        """Best dictionary hit for ``term``, or ``None``."""
        return self._meanings.lookup(term)

    def expand_synonyms(self, word: str) -> list[str]:
        """Direct and reverse synonyms of ``word``."""
        return self.synonym_cache.expand(word)

    def reset_caches(self) -> None:
        """Forget every discovered schema and the synonym graph."""
        self.prober.reset()
        self.definitions.reset()
        self.synonym_cache.invalidate()
        logger.info("All engine caches reset")

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_word(self, word: str, synonyms: Sequence[str]) -> AddWordResult:
        """Add ``word`` with ``synonyms`` to the synonym table.

        The synonym cache is invalidated on success.  Failures are returned,
        not raised.
        """
        try:
            normalized_word, cleaned = validate_new_word(word, synonyms)
        except ValidationError as e:
            return AddWordResult.failure(AddWordErrorReason.INVALID, str(e))

        s = self._settings
        try:
            payload = self._store.call(
                s.add_word_function,
                {"p_word": normalized_word, "p_synonyms": cleaned},
            )
        except StoreError as e:
            return self._failure_from_error(e)

        if not isinstance(payload, dict):
            return AddWordResult.failure(
                AddWordErrorReason.ERROR, "Invalid response received from the store."
            )

        if payload.get("ok"):
            self.synonym_cache.invalidate()
            logger.info("Added %r with %d synonym(s)", normalized_word, len(cleaned))
            return AddWordResult(ok=True)

        reason = _PAYLOAD_REASONS.get(
            str(payload.get("reason") or "error").lower(), AddWordErrorReason.ERROR
        )
        message = payload.get("message") or _DEFAULT_MESSAGES[reason]
        return AddWordResult.failure(reason, message)

    def _failure_from_error(self, error: StoreError) -> AddWordResult:
        s = self._settings
        classified = classify_error(error, table=s.synonym_table)
        logger.warning("add_word failed: %s", error)
        if isinstance(classified, MissingFunctionError):
            return AddWordResult.failure(
                AddWordErrorReason.MISSING_FUNCTION,
                f"The {s.add_word_function!r} function is missing from the store.",
            )
        if isinstance(classified, SchemaUnavailableError):
            return AddWordResult.failure(
                AddWordErrorReason.MISSING_TABLE,
                f"The {s.synonym_table!r} table is missing from the store.",
            )
        if isinstance(classified, DuplicateEntityError):
            return AddWordResult.failure(
                AddWordErrorReason.DUPLICATE,
                _DEFAULT_MESSAGES[AddWordErrorReason.DUPLICATE],
            )
        return AddWordResult.failure(AddWordErrorReason.ERROR, error.message)
