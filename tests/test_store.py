"""Tests for the query builder and backend error classification."""

import pytest

from hiztegia import (
    ColumnInvalidError,
    DuplicateEntityError,
    MissingFunctionError,
    Query,
    SchemaUnavailableError,
    StoreError,
    TransientQueryError,
)
from hiztegia.store import ErrorKind, FilterOp, Store, classify_error, error_kind, run_query


class TestQuery:

    def test_fluent_building(self):
        q = (
            Query("syn_words")
            .select("hitza", "sinonimoak")
            .ilike("hitza", "etx%")
            .eq("active", True)
            .in_("source_id", [1, 2])
            .order("hitza", ascending=False)
            .limit(10)
        )
        assert q.columns == ("hitza", "sinonimoak")
        assert [f.op for f in q.filters] == [FilterOp.ILIKE, FilterOp.EQ, FilterOp.IN]
        assert q.filters[2].value == (1, 2)
        assert q.order_by == "hitza"
        assert q.ascending is False
        assert q.row_limit == 10

    def test_base_store_is_abstract(self):
        with pytest.raises(NotImplementedError):
            Store().execute(Query("t"))
        with pytest.raises(NotImplementedError):
            Store().call("f", {})


class TestErrorKind:
    """Backend messages and codes map to one error kind."""

    @pytest.mark.parametrize("message, code, table, expected", [
        ('relation "public.diccionario" does not exist', "42P01", "diccionario",
         ErrorKind.MISSING_TABLE),
        ("Could not find the table 'public.diccionario' in the schema cache", "PGRST205",
         "diccionario", ErrorKind.MISSING_TABLE),
        ("no such table: syn_words", None, "syn_words", ErrorKind.MISSING_TABLE),
        ("column diccionario.basque does not exist", "42703", "diccionario",
         ErrorKind.INVALID_COLUMN),
        ("column basque of relation diccionario does not exist", None, "diccionario",
         ErrorKind.INVALID_COLUMN),
        ("operator does not exist: integer ~~* unknown", None, None,
         ErrorKind.INVALID_COLUMN),
        ("no such column: search_text", None, "syn_words", ErrorKind.INVALID_COLUMN),
        ("Could not find the function public.add_synonym_word(p_synonyms, p_word)",
         "PGRST202", None, ErrorKind.MISSING_FUNCTION),
        ("no such function: add_synonym_word", None, None, ErrorKind.MISSING_FUNCTION),
        ('duplicate key value violates unique constraint "syn_words_pkey"', "23505",
         None, ErrorKind.DUPLICATE),
        ("UNIQUE constraint failed: syn_words.hitza", None, None, ErrorKind.DUPLICATE),
        ("canceling statement due to statement timeout", "57014", None,
         ErrorKind.TRANSIENT),
    ])
    def test_classification(self, message, code, table, expected):
        assert error_kind(StoreError(message, code), table) is expected

    def test_missing_table_must_name_the_queried_table(self):
        err = StoreError('relation "public.other" does not exist')
        assert error_kind(err, "diccionario") is ErrorKind.TRANSIENT
        assert error_kind(err) is ErrorKind.MISSING_TABLE

    def test_code_wins_over_message(self):
        err = StoreError("something odd", code="23505")
        assert error_kind(err) is ErrorKind.DUPLICATE


class TestClassifyError:

    def test_exception_types(self):
        assert isinstance(
            classify_error(StoreError("no such table: t"), table="t"), SchemaUnavailableError
        )
        col = classify_error(StoreError("no such column: x"), column="x")
        assert isinstance(col, ColumnInvalidError)
        assert col.column == "x"
        assert isinstance(classify_error(StoreError("no such function: f")), MissingFunctionError)
        assert isinstance(
            classify_error(StoreError("UNIQUE constraint failed: t.a")), DuplicateEntityError
        )
        assert isinstance(classify_error(StoreError("disk I/O error")), TransientQueryError)

    def test_missing_table_keeps_table_name(self):
        err = classify_error(StoreError("no such table: diccionario"), table="diccionario")
        assert err.table == "diccionario"


class TestRunQuery:

    def test_raises_classified_error(self, store):
        with pytest.raises(SchemaUnavailableError) as exc_info:
            run_query(store, Query("nope").limit(1))
        assert isinstance(exc_info.value.__cause__, StoreError)

    def test_invalid_column_carries_guess(self, store):
        with pytest.raises(ColumnInvalidError) as exc_info:
            run_query(store, Query("diccionario").ilike("basque", "a%"), column="basque")
        assert exc_info.value.column == "basque"

    def test_returns_rows(self, seeded_store):
        rows = run_query(seeded_store, Query("diccionario").eq("id", 1))
        assert rows == [{"id": 1, "hitza": "etxe", "esanahia": "casa, hogar"}]
