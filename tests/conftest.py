"""Shared test fixtures for hiztegia."""

import pytest

from hiztegia import LexicalEngine, SQLiteStore
from hiztegia import db
from hiztegia.store import Store


class RecordingStore(Store):
    """Wraps a store and records every query and function call."""

    def __init__(self, inner):
        self.inner = inner
        self.queries = []
        self.calls = []

    def execute(self, query):
        self.queries.append(query)
        return self.inner.execute(query)

    def call(self, function, params):
        self.calls.append((function, dict(params)))
        return self.inner.call(function, params)

    def queries_on(self, table):
        return [q for q in self.queries if q.table == table]

    def samples_of(self, table):
        """Unfiltered one-row reads, i.e. schema probes."""
        return [
            q for q in self.queries
            if q.table == table and not q.filters and q.row_limit == 1
        ]


@pytest.fixture
def store():
    """Create an in-memory store with the default tables."""
    with SQLiteStore(":memory:") as st:
        yield st


@pytest.fixture
def conn(store):
    return store.connection


@pytest.fixture
def seeded_store(store):
    """Store with synonym, dictionary and definition rows."""
    c = store.connection
    db.insert_synonym_row(c, "etxe", ["egoitza", "bizitoki"], level=1, source_id=1)
    db.insert_synonym_row(c, "egoitza", ["etxe"], level=2, source_id=2)
    db.insert_synonym_row(c, "ederra", ["polita", "dotorea"], level=1, source_id=3)
    db.insert_synonym_row(c, "alaitasun", ["poz", "pozik"], level=3, source_id=4)
    db.insert_synonym_row(c, "zahartu", ["zahar"], level=4, active=False, source_id=5)

    db.insert_dictionary_row(c, "etxe", "casa, hogar", entry_id=1)
    db.insert_dictionary_row(c, "etxeko", "doméstico", entry_id=2)
    db.insert_dictionary_row(c, "egoitza", "sede, residencia", entry_id=3)
    db.insert_dictionary_row(c, "alaitasun", "alegría", entry_id=4)
    db.insert_dictionary_row(c, "ederra", "hermoso", entry_id=5)

    db.insert_definition_row(c, 1, "Bizitzeko eraikina.", order=1)
    db.insert_definition_row(c, 1, "Familia bat bizi den\nlekua.", order=2)
    db.insert_definition_row(c, 1, "bizitzeko  eraikina.", order=3)
    db.insert_definition_row(c, 3, "Erakunde baten egoitza nagusia.", order=1)
    c.commit()
    return store


@pytest.fixture
def recording(seeded_store):
    return RecordingStore(seeded_store)


@pytest.fixture
def engine(recording):
    """Engine over the seeded store, recording store traffic."""
    return LexicalEngine(recording)
