"""hiztegia: adaptive lexical search and synonym expansion."""

__version__ = "0.1.0"

from .config import (
    Settings as Settings,
    load_settings as load_settings,
)
from .db import SQLiteStore as SQLiteStore
from .engine import LexicalEngine as LexicalEngine
from .exceptions import (
    ColumnInvalidError as ColumnInvalidError,
    ConfigError as ConfigError,
    DatabaseError as DatabaseError,
    DataImportError as DataImportError,
    DuplicateEntityError as DuplicateEntityError,
    HiztegiaError as HiztegiaError,
    MissingFunctionError as MissingFunctionError,
    SchemaUnavailableError as SchemaUnavailableError,
    StoreError as StoreError,
    TransientQueryError as TransientQueryError,
    ValidationError as ValidationError,
)
from .models import (
    AddWordError as AddWordError,
    AddWordErrorReason as AddWordErrorReason,
    AddWordResult as AddWordResult,
    MatchMode as MatchMode,
    MeaningEntry as MeaningEntry,
    SearchPattern as SearchPattern,
    WordEntry as WordEntry,
)
from .pattern import parse_search_pattern as parse_search_pattern
from .store import Query as Query, Store as Store

__all__ = [
    # Engine and backends
    "LexicalEngine",
    "Store",
    "SQLiteStore",
    "Query",
    # Configuration
    "Settings",
    "load_settings",
    # Models
    "AddWordError",
    "AddWordErrorReason",
    "AddWordResult",
    "MatchMode",
    "MeaningEntry",
    "SearchPattern",
    "WordEntry",
    # Functions
    "parse_search_pattern",
    # Exceptions
    "HiztegiaError",
    "StoreError",
    "SchemaUnavailableError",
    "ColumnInvalidError",
    "TransientQueryError",
    "MissingFunctionError",
    "ValidationError",
    "DuplicateEntityError",
    "ConfigError",
    "DataImportError",
    "DatabaseError",
]
