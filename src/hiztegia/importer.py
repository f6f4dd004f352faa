"""
YAML seed import for the SQLite backend.

A seed document lists rows for the three default tables::

    synonyms:
      - word: etxe
        synonyms: [egoitza, bizitoki]
        level: 1
    dictionary:
      - id: 1
        word: etxe
        meaning: casa, hogar
    definitions:
      - entry: 1
        text: Bizitzeko eraikina.
        order: 1
"""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

import yaml

from hiztegia import db as _db
from hiztegia.exceptions import DataImportError

logger = logging.getLogger(__name__)

_SECTIONS = ("synonyms", "dictionary", "definitions")


@dataclass(frozen=True, slots=True)
class ImportSummary:
    """Row counts written by :func:`import_seed`."""

    synonyms: int = 0
    dictionary: int = 0
    definitions: int = 0

    @property
    def total(self) -> int:
        return self.synonyms + self.dictionary + self.definitions


def load_seed(source: Union[str, Path, Mapping[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    """Load and shape-check a seed document.

    Args:
        source: Path to a YAML file, YAML string, or parsed mapping

    Raises:
        DataImportError: If the document cannot be parsed or is malformed
        FileNotFoundError: If a path is given and does not exist
    """
    if isinstance(source, Mapping):
        data: Any = dict(source)
    else:
        if isinstance(source, Path) or ("\n" not in source and source.endswith((".yaml", ".yml"))):
            path = Path(source)
            if not path.exists():
                raise FileNotFoundError(f"File not found: {path}")
            text = path.read_text(encoding="utf-8")
        else:
            text = source
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            mark = getattr(e, "problem_mark", None)
            where = f" (line {mark.line + 1})" if mark else ""
            raise DataImportError(f"Invalid YAML{where}: {e}") from e

    if data is None:
        raise DataImportError("Empty seed document")
    if not isinstance(data, dict):
        raise DataImportError("Seed root must be a mapping (dictionary)")

    unknown = set(data) - set(_SECTIONS)
    if unknown:
        raise DataImportError(f"Unknown seed sections: {', '.join(sorted(unknown))}")

    seed: Dict[str, List[Dict[str, Any]]] = {}
    for section in _SECTIONS:
        rows = data.get(section) or []
        if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
            raise DataImportError(f"Section {section!r} must be a list of mappings")
        seed[section] = rows
    return seed


def _require(row: Mapping[str, Any], field_name: str, section: str, index: int) -> Any:
    value = row.get(field_name)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise DataImportError(f"{section}[{index}]: missing required field {field_name!r}")
    return value


def import_seed(
    conn: sqlite3.Connection,
    source: Union[str, Path, Mapping[str, Any]],
) -> ImportSummary:
    """Insert the rows of a seed document in one transaction."""
    seed = load_seed(source)
    try:
        with conn:
            for i, row in enumerate(seed["synonyms"]):
                synonyms = row.get("synonyms") or []
                if not isinstance(synonyms, list):
                    raise DataImportError(f"synonyms[{i}]: 'synonyms' must be a list")
                _db.insert_synonym_row(
                    conn,
                    str(_require(row, "word", "synonyms", i)).strip(),
                    [str(s) for s in synonyms],
                    level=int(row.get("level", 1)),
                    active=bool(row.get("active", True)),
                    source_id=row.get("id"),
                )
            for i, row in enumerate(seed["dictionary"]):
                _db.insert_dictionary_row(
                    conn,
                    str(_require(row, "word", "dictionary", i)).strip(),
                    row.get("meaning"),
                    entry_id=row.get("id"),
                )
            for i, row in enumerate(seed["definitions"]):
                _db.insert_definition_row(
                    conn,
                    int(_require(row, "entry", "definitions", i)),
                    str(_require(row, "text", "definitions", i)),
                    order=int(row.get("order", i + 1)),
                )
    except (sqlite3.Error, TypeError, ValueError) as e:
        raise DataImportError(f"Could not import seed data: {e}") from e

    summary = ImportSummary(
        synonyms=len(seed["synonyms"]),
        dictionary=len(seed["dictionary"]),
        definitions=len(seed["definitions"]),
    )
    logger.info("Imported %d seed row(s)", summary.total)
    return summary
