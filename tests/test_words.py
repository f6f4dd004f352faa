"""Tests for pattern search over the synonym table."""

from concurrent.futures import ThreadPoolExecutor

from hiztegia import LexicalEngine, SQLiteStore, WordEntry, db
from hiztegia.words import WordSearch, collation_key

from conftest import RecordingStore


def _words(results):
    return [entry.word for entry in results]


class TestSearchWords:

    def test_prefix_matches_word_or_synonym(self, engine):
        assert _words(engine.search_words("etx")) == ["egoitza", "etxe"]

    def test_entry_fields(self, engine):
        (entry,) = engine.search_words("alaitasun")
        assert entry == WordEntry(id=4, word="alaitasun", synonyms=("poz", "pozik"), level=3)

    def test_suffix(self, engine):
        assert _words(engine.search_words("*tasun")) == ["alaitasun"]

    def test_contains(self, engine):
        assert _words(engine.search_words("*bizi*")) == ["etxe"]

    def test_inactive_rows_excluded(self, engine):
        assert engine.search_words("zahar") == []

    def test_empty_pattern_makes_no_queries(self, engine, recording):
        assert engine.search_words("**") == []
        assert engine.search_words("   ") == []
        assert recording.queries == []

    def test_accent_insensitive_filter(self, store):
        store.connection.execute("DELETE FROM syn_words")
        db.insert_synonym_row(store.connection, "azukre", ["Azúcar"])
        engine = LexicalEngine(store)
        assert _words(engine.search_words("*ÚCAR")) == ["azukre"]

    def test_results_deduplicated(self, engine):
        # "etxe" is found by both the word query and the search-text query
        results = engine.search_words("etxe")
        assert _words(results).count("etxe") == 1


class TestRobustness:
    """Search degrades instead of raising."""

    def test_non_json_synonym_list(self, seeded_store):
        seeded_store.connection.execute(
            "INSERT INTO syn_words (source_id, hitza, sinonimoak, active, search_text) "
            "VALUES (9, ?, ?, 1, ?)",
            ("etxola", "txabola, borda", "etxola txabola borda"),
        )
        seeded_store.connection.commit()
        results = LexicalEngine(seeded_store).search_words("etx")
        assert _words(results) == ["egoitza", "etxe", "etxola"]
        assert results[2].synonyms == ("txabola, borda",)

    def test_search_from_other_threads(self, engine):
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda _: _words(engine.search_words("etx")), range(8)))
        assert results == [["egoitza", "etxe"]] * 8


class TestSearchTextFallback:
    """Tables without a search_text column are scanned instead."""

    def _store(self):
        st = SQLiteStore(":memory:", create_schema=False)
        st.connection.executescript(
            """
            CREATE TABLE syn_words (
                source_id INTEGER PRIMARY KEY,
                hitza TEXT,
                sinonimoak JSONLIST,
                level INTEGER,
                active BOOLEAN
            );
            """
        )
        st.connection.execute(
            "INSERT INTO syn_words VALUES (1, 'alaitasun', ?, 2, 1)", (["poz", "pozik"],)
        )
        st.connection.execute(
            "INSERT INTO syn_words VALUES (2, 'tristura', ?, 1, 1)", (["atsekabe"],)
        )
        st.connection.commit()
        return st

    def test_synonym_found_by_scan(self):
        with self._store() as st:
            recording = RecordingStore(st)
            results = WordSearch(recording).search("poz")
            assert _words(results) == ["alaitasun"]
            scans = [q for q in recording.queries if q.row_limit == 1200]
            assert len(scans) == 1
            assert all(f.column == "active" for f in scans[0].filters)


class TestWordSearchFailures:

    def test_missing_table_yields_empty(self):
        with SQLiteStore(":memory:", create_schema=False) as st:
            assert WordSearch(st).search("etx") == []


class TestCollation:

    def test_accents_sort_with_base_letter(self):
        words = ["ezti", "éter", "Etxe", "abar"]
        assert sorted(words, key=collation_key) == ["abar", "éter", "Etxe", "ezti"]

    def test_level_only_for_integers(self, store):
        store.connection.execute(
            "INSERT INTO syn_words (source_id, hitza, sinonimoak, level, active, search_text) "
            "VALUES (1, 'hitz', ?, NULL, 1, 'hitz berba')",
            (["berba"],),
        )
        (entry,) = WordSearch(store).search("hitz")
        assert entry.level is None
