"""Engine settings and their YAML loader."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Union

import yaml

from hiztegia.exceptions import ConfigError

CONFIG_ENV_VAR = "HIZTEGIA_CONFIG"

# =============================================================================
# Column candidates and hints
# =============================================================================

DICTIONARY_WORD_COLUMN_CANDIDATES = (
    "hitza",
    "basque",
    "palabra",
    "word",
    "termino",
    "term",
    "lemma",
    "entry",
    "entrada",
    "vocablo",
)

DICTIONARY_MEANING_COLUMN_CANDIDATES = (
    "esanahia",
    "spanish",
    "significado",
    "definition",
    "meaning",
    "definizioa",
    "azalpena",
    "deskribapena",
    "descripcion",
    "definicion",
    "glosa",
)

DICTIONARY_WORD_KEY_HINTS = (
    "hitz",
    "basq",
    "palabr",
    "word",
    "term",
    "lemma",
    "entrad",
    "vocabl",
)

DICTIONARY_MEANING_KEY_HINTS = (
    "esanah",
    "spani",
    "signific",
    "defini",
    "mean",
    "azalp",
    "deskrib",
    "descri",
    "glosa",
)

DICTIONARY_ID_COLUMN_CANDIDATES = (
    "id",
    "diccionario_id",
    "dictionary_id",
    "entry_id",
    "word_id",
    "source_id",
)

DEFINITION_REFERENCE_COLUMN_CANDIDATES = (
    "diccionario_id",
    "dictionary_id",
    "entry_id",
    "word_id",
    "id_diccionario",
    "diccionarioid",
    "lemma_id",
)

DEFINITION_TEXT_COLUMN_CANDIDATES = (
    "definizioa",
    "definition",
    "definicion",
    "significado",
    "meaning",
    "esanahia",
    "descripcion",
    "description",
    "deskribapena",
    "azalpena",
    "testua",
    "texto",
    "contenido",
    "acepcion",
)

DEFINITION_ORDER_COLUMN_CANDIDATES = (
    "orden",
    "order",
    "position",
    "indice",
    "index",
    "numero",
    "number",
    "acepcion",
)


@dataclass(frozen=True)
class Settings:
    """Table names, column guesses and query limits used by the engine."""

    # Synonym table
    synonym_table: str = "syn_words"
    synonym_id_column: str = "source_id"
    synonym_word_column: str = "hitza"
    synonym_list_column: str = "sinonimoak"
    synonym_level_column: str = "level"
    synonym_active_column: str = "active"
    synonym_search_text_column: str = "search_text"
    add_word_function: str = "add_synonym_word"

    # Dictionary and definitions tables
    dictionary_table: str = "diccionario"
    definitions_table: str = "diccionario_definiciones"

    dictionary_word_columns: tuple[str, ...] = DICTIONARY_WORD_COLUMN_CANDIDATES
    dictionary_meaning_columns: tuple[str, ...] = DICTIONARY_MEANING_COLUMN_CANDIDATES
    dictionary_word_hints: tuple[str, ...] = DICTIONARY_WORD_KEY_HINTS
    dictionary_meaning_hints: tuple[str, ...] = DICTIONARY_MEANING_KEY_HINTS
    dictionary_id_columns: tuple[str, ...] = DICTIONARY_ID_COLUMN_CANDIDATES
    definition_reference_columns: tuple[str, ...] = DEFINITION_REFERENCE_COLUMN_CANDIDATES
    definition_text_columns: tuple[str, ...] = DEFINITION_TEXT_COLUMN_CANDIDATES
    definition_order_columns: tuple[str, ...] = DEFINITION_ORDER_COLUMN_CANDIDATES

    # Limits
    word_search_limit: int = 200
    search_text_limit: int = 300
    fallback_scan_limit: int = 1200
    synonym_bulk_limit: int = 5000
    definitions_fetch_limit: int = 5000
    meaning_search_limit: int = 200
    lookup_pool_limit: int = 40

    # Extra, free-form options
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Settings:
        """Build settings from a mapping, validating keys and value types."""
        known = {f.name: f for f in fields(cls) if f.name != "extra"}
        values: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}

        for key, value in data.items():
            if key == "extra":
                if not isinstance(value, dict):
                    raise ConfigError("'extra' must be a mapping")
                extra.update(value)
                continue
            if key not in known:
                raise ConfigError(f"Unknown setting: {key!r}")
            default = getattr(cls, key)
            values[key] = _coerce(key, value, default)

        return replace(cls(), **values, extra=extra)

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from ``$HIZTEGIA_CONFIG`` or fall back to defaults."""
        path = os.environ.get(CONFIG_ENV_VAR)
        if not path:
            return cls()
        return load_settings(Path(path))


def _coerce(key: str, value: Any, default: Any) -> Any:
    if isinstance(default, tuple):
        if isinstance(value, str) or not isinstance(value, (list, tuple)):
            raise ConfigError(f"Setting {key!r} must be a list of strings")
        items = tuple(str(item).strip() for item in value if str(item).strip())
        if not items:
            raise ConfigError(f"Setting {key!r} must not be empty")
        return items
    if isinstance(default, int):
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ConfigError(f"Setting {key!r} must be a positive integer")
        return value
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"Setting {key!r} must be a non-empty string")
    return value.strip()


def load_settings(source: Union[str, Path, Mapping[str, Any], None] = None) -> Settings:
    """Load settings from a YAML file, a YAML string or a mapping.

    Args:
        source: Path to a YAML file, YAML text, an already parsed mapping,
            or ``None`` for the defaults.

    Raises:
        ConfigError: If the document cannot be parsed or holds bad values
        FileNotFoundError: If a path is given and does not exist
    """
    if source is None:
        return Settings()
    if isinstance(source, Mapping):
        return Settings.from_mapping(source)

    if isinstance(source, Path) or _is_file_path(source):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        text = path.read_text(encoding="utf-8")
    else:
        text = source

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML: {e}") from e

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping (dictionary)")
    return Settings.from_mapping(data)


def _is_file_path(s: str) -> bool:
    if "\n" in s:
        return False
    if "/" in s or "\\" in s:
        return True
    return s.endswith((".yaml", ".yml"))
