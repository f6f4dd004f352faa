"""Wildcard search-pattern parsing and match-mode helpers."""

from __future__ import annotations

import re

from hiztegia.models import MatchMode, SearchPattern
from hiztegia.normalize import normalize_search_term, strip_diacritics, unique

WILDCARD = "*"

_OUTER_PUNCTUATION = r"""\s"'`´‘’“”«»‹›()\[\]{}.,;:!?¿¡\-_/\\"""
_OUTER_PUNCTUATION_RE = re.compile(
    rf"^[{_OUTER_PUNCTUATION}]+|[{_OUTER_PUNCTUATION}]+$"
)
_LIKE_METACHARS_RE = re.compile(r"[%_]")
_WHITESPACE_RE = re.compile(r"\s+")


def parse_search_pattern(raw_term: str) -> SearchPattern | None:
    """Split a raw term into its token and match mode.

    ``"*tasun"`` is a suffix search, ``"a*"`` (or plain ``"a"``) a prefix
    search and ``"*bar*"`` a contains search.  Returns ``None`` when nothing
    is left once the wildcards are removed.
    """
    term = raw_term.strip().lower()
    if not term:
        return None

    leading = term.startswith(WILDCARD)
    trailing = term.endswith(WILDCARD)

    token = term
    mode = MatchMode.PREFIX
    if leading and trailing and len(term) >= 2:
        mode = MatchMode.CONTAINS
        token = term[1:-1].strip()
    elif leading:
        mode = MatchMode.SUFFIX
        token = term[1:].strip()
    elif trailing:
        token = term[:-1].strip()

    token = token.replace(WILDCARD, "").strip()
    if not token:
        return None
    return SearchPattern(token=token, match_mode=mode)


def build_like_pattern(token: str, mode: MatchMode) -> str:
    """``%``-wildcard pattern for an ``ILIKE`` filter."""
    if mode is MatchMode.CONTAINS:
        return f"%{token}%"
    if mode is MatchMode.SUFFIX:
        return f"%{token}"
    return f"{token}%"


def text_matches_mode(candidate: str, token: str, mode: MatchMode) -> bool:
    """Compare already-normalized ``candidate`` and ``token`` under ``mode``."""
    if not candidate:
        return False
    if mode is MatchMode.CONTAINS:
        return token in candidate
    if mode is MatchMode.SUFFIX:
        return candidate.endswith(token)
    return candidate.startswith(token)


def term_matches_mode(candidate: str, normalized_token: str, mode: MatchMode) -> bool:
    """Normalize ``candidate`` then test it with :func:`text_matches_mode`."""
    return text_matches_mode(normalize_search_term(candidate), normalized_token, mode)


def sanitize_search_token(term: str) -> str:
    """Neutralize ``LIKE`` metacharacters and collapse whitespace."""
    return _WHITESPACE_RE.sub(" ", _LIKE_METACHARS_RE.sub(" ", term)).strip()


def strip_outer_punctuation(value: str) -> str:
    return _OUTER_PUNCTUATION_RE.sub("", value)


def build_search_variants(token: str) -> list[str]:
    """Spelling variants of ``token`` tried against the dictionary table.

    Recall is favoured over precision: besides the token itself we try it
    without surrounding punctuation, without accents and with one character
    trimmed from either end.
    """
    base = token.strip()
    stripped = strip_outer_punctuation(base)
    candidates = [
        base,
        stripped,
        strip_diacritics(stripped),
        stripped[1:],
        stripped[:-1],
        stripped[1:-1],
    ]
    return unique(c for c in (sanitize_search_token(item) for item in candidates) if c)
