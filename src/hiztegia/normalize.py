"""Text normalization helpers shared by every search component.

Two families of normalizers live here and must not be mixed up:

* :func:`word_key` is the *identity* form of a word (trim + lowercase).  It
  never folds diacritics, so orthographically distinct words stay distinct
  as synonym-graph keys and deduplication keys.
* :func:`normalize_search_term`, :func:`normalize_comparable_text` and
  :func:`normalize_match_text` fold case and strip combining marks.  They
  are only used for fuzzy comparison against free text.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable
from typing import Any

_WHITESPACE_RE = re.compile(r"\s+")
_NON_WORD_RUN_RE = re.compile(r"[\W_]+")
_EDGE_NON_WORD_RE = re.compile(r"^[\W_]+|[\W_]+$")
_LOOKUP_SEPARATORS_RE = re.compile(r"[;,/|]+")
_COLUMN_KEY_NOISE_RE = re.compile(r"[\s_-]")


def strip_diacritics(value: str) -> str:
    """Decompose ``value`` (NFD) and drop combining marks."""
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def word_key(value: str) -> str:
    """Identity key of a word: trimmed and lower-cased, accents kept."""
    return value.strip().lower()


def normalize_search_term(value: str) -> str:
    return strip_diacritics(value.lower()).strip()


def normalize_comparable_text(value: str) -> str:
    """Lower-case, strip accents and collapse internal whitespace."""
    return _WHITESPACE_RE.sub(" ", strip_diacritics(value.lower())).strip()


def normalize_match_text(value: str) -> str:
    """Comparable text where every punctuation run becomes one space.

    Used when scoring dictionary candidates so that ``"etxe-ko"`` and
    ``"etxe ko"`` compare equal.
    """
    folded = strip_diacritics(value.lower())
    return _WHITESPACE_RE.sub(" ", _NON_WORD_RUN_RE.sub(" ", folded)).strip()


def normalize_paragraph(value: str) -> str:
    """Join the non-empty lines of ``value`` with single spaces."""
    lines = value.replace("\r", "\n").split("\n")
    joined = " ".join(part.strip() for part in lines if part.strip())
    return _WHITESPACE_RE.sub(" ", joined).strip()


def normalize_synonyms(value: Any) -> list[str]:
    """Return the trimmed, de-duplicated, non-empty strings of a list value."""
    if not isinstance(value, (list, tuple)):
        return []
    seen: dict[str, None] = {}
    for item in value:
        text = str(item).strip()
        if text:
            seen.setdefault(text, None)
    return list(seen)


def sanitize_lemma_token(value: str) -> str:
    """Trim and remove leading/trailing non-alphanumeric characters."""
    return _EDGE_NON_WORD_RE.sub("", value.strip())


def lookup_candidates(value: str) -> list[str]:
    """Word keys for ``value`` and each of its ``;,/|``-separated parts.

    Dictionary headwords sometimes hold compound glosses such as
    ``"etxe; egoitza"``; each part is looked up on its own.
    """
    base = value.strip()
    if not base:
        return []

    chunks = [
        token
        for token in (sanitize_lemma_token(c) for c in _LOOKUP_SEPARATORS_RE.split(base))
        if token
    ]
    if not chunks:
        token = sanitize_lemma_token(base)
        chunks = [token] if token else []

    candidates: dict[str, None] = {}
    for chunk in chunks:
        key = word_key(chunk)
        if key:
            candidates.setdefault(key, None)
    return list(candidates)


def value_as_text(value: Any) -> str | None:
    """Render a column value as non-empty text, or ``None``.

    Strings are trimmed; lists of strings are joined with ``", "``.
    """
    if isinstance(value, str):
        trimmed = value.strip()
        return trimmed or None
    if isinstance(value, (list, tuple)):
        parts = [item.strip() for item in value if isinstance(item, str) and item.strip()]
        return ", ".join(parts) if parts else None
    return None


def normalize_identifier(value: Any) -> str | None:
    """Comparable form of an entry identifier (str or int), or ``None``."""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    normalized = str(value).strip()
    return normalized.lower() or None


def normalize_column_key(key: str) -> str:
    """Column name with case, spaces, underscores and dashes removed."""
    return _COLUMN_KEY_NOISE_RE.sub("", key.lower())


def key_matches_hints(key: str, hints: Iterable[str]) -> bool:
    normalized = normalize_column_key(key)
    return any(hint in normalized for hint in hints)


def unique(values: Iterable[str]) -> list[str]:
    """Order-preserving de-duplication."""
    return list(dict.fromkeys(values))
