"""Domain model dataclasses and enums for hiztegia."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class MatchMode(str, Enum):
    """How a search token is anchored against candidate text."""

    PREFIX = "prefix"
    SUFFIX = "suffix"
    CONTAINS = "contains"


class AddWordErrorReason(str, Enum):
    """Failure categories reported by :meth:`LexicalEngine.add_word`."""

    INVALID = "invalid"
    DUPLICATE = "duplicate"
    MISSING_TABLE = "missing_table"
    MISSING_FUNCTION = "missing_function"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Search results
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class SearchPattern:
    """A parsed search term: the bare token plus its match mode."""

    token: str
    match_mode: MatchMode


@dataclass(frozen=True, slots=True)
class WordEntry:
    """A row of the synonym table."""

    id: str | int | None
    word: str
    synonyms: tuple[str, ...]
    level: int | None


@dataclass(frozen=True, slots=True)
class MeaningEntry:
    """A dictionary hit with its synonyms and definition paragraphs."""

    word: str
    meaning: str
    synonyms: tuple[str, ...] = ()
    definitions: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SynonymRow:
    """A synonym-table row as held by the reverse index."""

    word: str
    synonyms: tuple[str, ...]


# ---------------------------------------------------------------------------
# Discovered schemas
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class DictionarySchema:
    """Columns discovered for the free-form dictionary table."""

    word_column: str | None
    meaning_column: str | None
    text_columns: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class DefinitionsSchema:
    """Columns discovered for the definitions table."""

    reference_columns: tuple[str, ...]
    text_columns: tuple[str, ...]
    order_column: str | None


@dataclass(slots=True)
class SynonymGraph:
    """Bidirectional word/synonym index keyed by word key."""

    by_word: dict[str, list[str]] = field(default_factory=dict)
    reverse_by_synonym: dict[str, list[SynonymRow]] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Mutation results
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class AddWordError:
    """Actionable failure detail for an ``add_word`` call."""

    reason: AddWordErrorReason
    message: str


@dataclass(frozen=True, slots=True)
class AddWordResult:
    """Outcome of an ``add_word`` call."""

    ok: bool
    error: AddWordError | None = None

    @classmethod
    def failure(cls, reason: AddWordErrorReason, message: str) -> AddWordResult:
        return cls(ok=False, error=AddWordError(reason=reason, message=message))
