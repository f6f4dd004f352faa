"""Tests for wildcard pattern parsing and match modes."""

import pytest

from hiztegia import MatchMode, SearchPattern, parse_search_pattern
from hiztegia.pattern import (
    build_like_pattern,
    build_search_variants,
    sanitize_search_token,
    term_matches_mode,
    text_matches_mode,
)


class TestParseSearchPattern:
    """Wildcard markers select the match mode."""

    def test_leading_wildcard_is_suffix(self):
        assert parse_search_pattern("*tasun") == SearchPattern("tasun", MatchMode.SUFFIX)

    def test_trailing_wildcard_is_prefix(self):
        assert parse_search_pattern("a*") == SearchPattern("a", MatchMode.PREFIX)

    def test_both_wildcards_is_contains(self):
        assert parse_search_pattern("*bar*") == SearchPattern("bar", MatchMode.CONTAINS)

    def test_plain_term_defaults_to_prefix(self):
        assert parse_search_pattern("Etxe") == SearchPattern("etxe", MatchMode.PREFIX)

    def test_term_is_trimmed_and_lowercased(self):
        assert parse_search_pattern("  ETXE*  ") == SearchPattern("etxe", MatchMode.PREFIX)

    def test_inner_wildcards_are_stripped(self):
        assert parse_search_pattern("*et*xe*") == SearchPattern("etxe", MatchMode.CONTAINS)

    @pytest.mark.parametrize("term", ["", "   ", "*", "**", "***", " * "])
    def test_empty_token_is_no_match(self, term):
        assert parse_search_pattern(term) is None


class TestLikePattern:

    def test_patterns_per_mode(self):
        assert build_like_pattern("etx", MatchMode.PREFIX) == "etx%"
        assert build_like_pattern("etx", MatchMode.SUFFIX) == "%etx"
        assert build_like_pattern("etx", MatchMode.CONTAINS) == "%etx%"

    def test_sanitize_search_token_neutralizes_metacharacters(self):
        assert sanitize_search_token("50%_off  now") == "50 off now"


class TestMatching:
    """Matching is a pure function of normalized input."""

    def test_modes(self):
        assert text_matches_mode("etxeko", "etxe", MatchMode.PREFIX)
        assert not text_matches_mode("etxeko", "eko", MatchMode.PREFIX)
        assert text_matches_mode("alaitasun", "tasun", MatchMode.SUFFIX)
        assert text_matches_mode("bizitoki", "zito", MatchMode.CONTAINS)

    def test_empty_candidate_never_matches(self):
        assert not text_matches_mode("", "a", MatchMode.CONTAINS)

    def test_accent_insensitive(self):
        assert term_matches_mode("Azúcar", "azuc", MatchMode.PREFIX)

    def test_deterministic(self):
        results = {term_matches_mode("Ñabardura", "nab", MatchMode.PREFIX) for _ in range(5)}
        assert results == {True}


class TestSearchVariants:

    def test_variants_for_plain_token(self):
        assert build_search_variants("etxe") == ["etxe", "txe", "etx", "tx"]

    def test_outer_punctuation_and_accents(self):
        variants = build_search_variants("«azúcar»")
        assert variants[0] == "«azúcar»"
        assert "azúcar" in variants
        assert "azucar" in variants

    def test_single_character(self):
        assert build_search_variants("a") == ["a"]
