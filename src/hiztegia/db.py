"""SQLite connection, DDL, and the SQLite implementation of :class:`Store`."""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Mapping, Sequence

from hiztegia.config import Settings
from hiztegia.exceptions import DatabaseError, StoreError
from hiztegia.normalize import normalize_synonyms, word_key
from hiztegia.store import FilterOp, Query, Row, Store

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.1"

# ---------------------------------------------------------------------------
# JSONLIST type adapter/converter
# ---------------------------------------------------------------------------

def _adapt_list(obj: list) -> str:
    return json.dumps(obj, ensure_ascii=False)


def _convert_list(data: bytes) -> list | None:
    """Decode a list column; text that is not JSON becomes a one-item list."""
    if data is None or data == b"":
        return None
    try:
        value = json.loads(data)
    except ValueError:
        text = data.decode("utf-8", errors="replace").strip()
        return [text] if text else []
    return value if isinstance(value, list) else [value]


sqlite3.register_adapter(list, _adapt_list)
sqlite3.register_converter("JSONLIST", _convert_list)


def _fold(value: Any) -> str | None:
    """SQL function backing ILIKE: Unicode-aware lower-casing."""
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    return str(value).lower()


# ---------------------------------------------------------------------------
# DDL statements
# ---------------------------------------------------------------------------

_DDL = """
-- Meta table
CREATE TABLE IF NOT EXISTS meta (
    key TEXT NOT NULL,
    value TEXT,
    UNIQUE (key)
);

-- Synonym table
CREATE TABLE IF NOT EXISTS syn_words (
    source_id INTEGER PRIMARY KEY,
    hitza TEXT NOT NULL,
    sinonimoak JSONLIST NOT NULL DEFAULT '[]',
    level INTEGER CHECK( level BETWEEN 1 AND 4 ) DEFAULT 1,
    active BOOLEAN CHECK( active IN (0, 1) ) DEFAULT 1 NOT NULL,
    search_text TEXT
);
CREATE INDEX IF NOT EXISTS syn_words_hitza_index ON syn_words (hitza);
CREATE UNIQUE INDEX IF NOT EXISTS syn_words_active_word_index
    ON syn_words (hz_fold(hitza)) WHERE active = 1;

-- Dictionary table
CREATE TABLE IF NOT EXISTS diccionario (
    id INTEGER PRIMARY KEY,
    hitza TEXT NOT NULL,
    esanahia TEXT
);
CREATE INDEX IF NOT EXISTS diccionario_hitza_index ON diccionario (hitza);

-- Definitions table
CREATE TABLE IF NOT EXISTS diccionario_definiciones (
    id INTEGER PRIMARY KEY,
    diccionario_id INTEGER NOT NULL REFERENCES diccionario (id) ON DELETE CASCADE,
    orden INTEGER DEFAULT 1,
    definizioa TEXT NOT NULL,
    created_at TEXT DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now'))
);
CREATE INDEX IF NOT EXISTS definiciones_diccionario_index
    ON diccionario_definiciones (diccionario_id);
"""


def connect(db_path: str | Path = ":memory:") -> sqlite3.Connection:
    """Open a database connection with engine PRAGMA settings."""
    db_path_str = str(db_path)
    conn = sqlite3.connect(
        db_path_str,
        check_same_thread=False,
        detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
    )
    conn.execute("PRAGMA foreign_keys = ON")
    if db_path_str != ":memory:":
        conn.execute("PRAGMA journal_mode = WAL")
    conn.create_function("hz_fold", 1, _fold, deterministic=True)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Initialize all tables if they don't exist. Set schema version."""
    conn.executescript(_DDL)
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) VALUES ('schema_version', ?)",
        (SCHEMA_VERSION,),
    )
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) "
        "VALUES ('created_at', strftime('%Y-%m-%dT%H:%M:%f', 'now'))",
    )
    conn.commit()


def check_schema_version(conn: sqlite3.Connection) -> None:
    """Verify the database schema version is compatible."""
    try:
        row = conn.execute(
            "SELECT value FROM meta WHERE key = 'schema_version'"
        ).fetchone()
    except sqlite3.OperationalError:
        # meta table doesn't exist - uninitialized DB
        return
    if row is None:
        return
    version = row[0]
    if version != SCHEMA_VERSION:
        raise DatabaseError(
            f"Incompatible schema version: {version} "
            f"(expected {SCHEMA_VERSION})"
        )


# ---------------------------------------------------------------------------
# Row helpers for the default layout
# ---------------------------------------------------------------------------

def build_search_text(word: str, synonyms: Sequence[str]) -> str:
    """Lower-cased word plus synonyms, the content of ``search_text``."""
    return " ".join([word, *synonyms]).lower()


def insert_synonym_row(
    conn: sqlite3.Connection,
    word: str,
    synonyms: Sequence[str],
    *,
    level: int = 1,
    active: bool = True,
    source_id: int | None = None,
) -> int:
    """Insert a ``syn_words`` row, returning its ``source_id``."""
    cleaned = normalize_synonyms(list(synonyms))
    cur = conn.execute(
        "INSERT INTO syn_words (source_id, hitza, sinonimoak, level, active, search_text) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        (source_id, word, cleaned, level, active, build_search_text(word, cleaned)),
    )
    return cur.lastrowid


def insert_dictionary_row(
    conn: sqlite3.Connection,
    word: str,
    meaning: str | None,
    *,
    entry_id: int | None = None,
) -> int:
    """Insert a ``diccionario`` row, returning its id."""
    cur = conn.execute(
        "INSERT INTO diccionario (id, hitza, esanahia) VALUES (?, ?, ?)",
        (entry_id, word, meaning),
    )
    return cur.lastrowid


def insert_definition_row(
    conn: sqlite3.Connection,
    entry_id: int,
    text: str,
    *,
    order: int = 1,
) -> int:
    """Insert a ``diccionario_definiciones`` row, returning its id."""
    cur = conn.execute(
        "INSERT INTO diccionario_definiciones (diccionario_id, orden, definizioa) "
        "VALUES (?, ?, ?)",
        (entry_id, order, text),
    )
    return cur.lastrowid


# ---------------------------------------------------------------------------
# Store implementation
# ---------------------------------------------------------------------------

def quote_identifier(name: str) -> str:
    # Backticks never degrade to string literals the way unknown
    # double-quoted identifiers do in SQLite.
    return "`" + name.replace("`", "``") + "`"


def build_select(query: Query) -> tuple[str, list[Any]]:
    """Render a :class:`Query` as a SQLite statement and its parameters."""
    columns = ", ".join(quote_identifier(c) for c in query.columns) or "*"
    sql = f"SELECT {columns} FROM {quote_identifier(query.table)}"
    params: list[Any] = []

    clauses: list[str] = []
    for flt in query.filters:
        col = quote_identifier(flt.column)
        if flt.op is FilterOp.ILIKE:
            clauses.append(f"hz_fold({col}) LIKE hz_fold(?)")
            params.append(flt.value)
        elif flt.op is FilterOp.EQ:
            clauses.append(f"{col} = ?")
            params.append(flt.value)
        elif flt.op is FilterOp.IN:
            values = list(flt.value)
            placeholders = ", ".join("?" for _ in values)
            clauses.append(f"{col} IN ({placeholders})")
            params.extend(values)
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    if query.order_by:
        direction = "ASC" if query.ascending else "DESC"
        sql += f" ORDER BY {quote_identifier(query.order_by)} {direction}"
    if query.row_limit is not None:
        sql += " LIMIT ?"
        params.append(query.row_limit)
    return sql, params


class SQLiteStore(Store):
    """A :class:`Store` backed by a local SQLite database."""

    def __init__(
        self,
        db_path: str | Path = ":memory:",
        *,
        settings: Settings | None = None,
        create_schema: bool = True,
    ) -> None:
        self._db_path = str(db_path)
        self._settings = settings or Settings()
        self._conn = connect(db_path)
        self._lock = threading.Lock()
        check_schema_version(self._conn)
        if create_schema:
            init_db(self._conn)
        self._functions = {
            self._settings.add_word_function: self._add_synonym_word,
        }

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> SQLiteStore:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def execute(self, query: Query) -> list[Row]:
        sql, params = build_select(query)
        try:
            with self._lock:
                rows = self._conn.execute(sql, params).fetchall()
        except (sqlite3.Error, ValueError) as e:
            raise StoreError(str(e)) from e
        return [dict(row) for row in rows]

    def call(self, function: str, params: Mapping[str, Any]) -> Any:
        handler = self._functions.get(function)
        if handler is None:
            raise StoreError(f"no such function: {function}")
        try:
            with self._lock, self._conn:
                return handler(params)
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e

    # ------------------------------------------------------------------
    # Server-side functions
    # ------------------------------------------------------------------

    def _add_synonym_word(self, params: Mapping[str, Any]) -> dict[str, Any]:
        s = self._settings
        word = word_key(str(params.get("p_word") or ""))
        raw_synonyms = params.get("p_synonyms") or []
        if isinstance(raw_synonyms, str):
            raw_synonyms = [raw_synonyms]
        synonyms = [
            syn for syn in (word_key(str(v)) for v in raw_synonyms)
            if syn and syn != word
        ]
        synonyms = normalize_synonyms(synonyms)
        if not word or not synonyms:
            return {"ok": False, "reason": "invalid", "message": "Word and synonyms are required."}

        table = quote_identifier(s.synonym_table)
        word_col = quote_identifier(s.synonym_word_column)
        active_col = quote_identifier(s.synonym_active_column)
        existing = self._conn.execute(
            f"SELECT 1 FROM {table} WHERE hz_fold({word_col}) = ? AND {active_col} = 1",
            (word,),
        ).fetchone()
        if existing is not None:
            return {
                "ok": False,
                "reason": "duplicate",
                "message": f"Word already exists: {word!r}",
            }

        self._conn.execute(
            f"INSERT INTO {table} ({word_col}, {quote_identifier(s.synonym_list_column)}, "
            f"{quote_identifier(s.synonym_level_column)}, {active_col}, "
            f"{quote_identifier(s.synonym_search_text_column)}) "
            "VALUES (?, ?, ?, 1, ?)",
            (word, synonyms, 1, build_search_text(word, synonyms)),
        )
        logger.info("Added synonym word %r (%d synonyms)", word, len(synonyms))
        return {"ok": True, "reason": None, "message": None}
