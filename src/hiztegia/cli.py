"""
Command-line interface for the lexical search engine.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import Settings, load_settings
from .db import SQLiteStore
from .engine import LexicalEngine
from .exceptions import ConfigError, DatabaseError, DataImportError
from .importer import import_seed
from .models import MeaningEntry, WordEntry

DEFAULT_DB_PATH = Path("hiztegia.db")


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the hiztegia CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(args.config) if args.config else Settings.from_env()
    except (ConfigError, FileNotFoundError) as e:
        print(f"[CONFIG ERROR] {e}", file=sys.stderr)
        return 2

    try:
        store = SQLiteStore(
            args.db,
            settings=settings,
            create_schema=args.func in (cmd_init, cmd_import),
        )
    except DatabaseError as e:
        print(f"[DATABASE ERROR] {e}", file=sys.stderr)
        return 2

    with LexicalEngine(store, settings) as engine:
        return args.func(args, engine)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="hiztegia",
        description="Search words, synonyms and meanings in a dictionary database",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=DEFAULT_DB_PATH,
        help=f"SQLite database file (default: {DEFAULT_DB_PATH})",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML settings file (default: $HIZTEGIA_CONFIG or built-in)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command")

    init_parser = subparsers.add_parser("init", help="Create the database tables")
    init_parser.set_defaults(func=cmd_init)

    import_parser = subparsers.add_parser("import", help="Import rows from a YAML seed file")
    import_parser.add_argument("file", type=Path, help="YAML seed file")
    import_parser.set_defaults(func=cmd_import)

    words_parser = subparsers.add_parser(
        "words",
        help="Search the synonym table (use * for suffix/contains)",
    )
    words_parser.add_argument("term", help="Search term, e.g. etx, *tasun, *bar*")
    words_parser.set_defaults(func=cmd_words)

    meanings_parser = subparsers.add_parser("meanings", help="Search dictionary meanings")
    meanings_parser.add_argument("term", help="Search term")
    meanings_parser.add_argument(
        "--limit",
        type=_positive_int,
        default=None,
        help="Maximum number of results",
    )
    meanings_parser.set_defaults(func=cmd_meanings)

    lookup_parser = subparsers.add_parser("lookup", help="Show the best meaning for a term")
    lookup_parser.add_argument("term", help="Search term")
    lookup_parser.set_defaults(func=cmd_lookup)

    expand_parser = subparsers.add_parser("expand", help="List synonyms of a word")
    expand_parser.add_argument("word", help="Word to expand")
    expand_parser.set_defaults(func=cmd_expand)

    add_parser = subparsers.add_parser("add", help="Add a word with its synonyms")
    add_parser.add_argument("word", help="New word")
    add_parser.add_argument("synonyms", nargs="+", help="One or more synonyms")
    add_parser.set_defaults(func=cmd_add)

    return parser


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {number}")
    return number


def cmd_init(args: argparse.Namespace, engine: LexicalEngine) -> int:
    """Handle init command."""
    print(f"Initialized {args.db}")
    return 0


def cmd_import(args: argparse.Namespace, engine: LexicalEngine) -> int:
    """Handle import command."""
    try:
        summary = import_seed(engine.store.connection, args.file)
    except (DataImportError, FileNotFoundError) as e:
        print(f"\n  [IMPORT ERROR] {e}")
        return 1

    print(f"Imported {summary.total} row(s) into {args.db}")
    print(f"  Synonyms:    {summary.synonyms}")
    print(f"  Dictionary:  {summary.dictionary}")
    print(f"  Definitions: {summary.definitions}")
    return 0


def cmd_words(args: argparse.Namespace, engine: LexicalEngine) -> int:
    """Handle words command."""
    results = engine.search_words(args.term)
    if not results:
        print("No results found.")
        return 1
    _print_words(results)
    return 0


def cmd_meanings(args: argparse.Namespace, engine: LexicalEngine) -> int:
    """Handle meanings command."""
    results = engine.search_meanings(args.term, args.limit)
    if not results:
        print("No results found.")
        return 1
    for entry in results:
        _print_meaning(entry)
    return 0


def cmd_lookup(args: argparse.Namespace, engine: LexicalEngine) -> int:
    """Handle lookup command."""
    entry = engine.lookup_meaning(args.term)
    if entry is None:
        print("No results found.")
        return 1
    _print_meaning(entry)
    return 0


def cmd_expand(args: argparse.Namespace, engine: LexicalEngine) -> int:
    """Handle expand command."""
    synonyms = engine.expand_synonyms(args.word)
    if not synonyms:
        print("No synonyms found.")
        return 1
    print(", ".join(synonyms))
    return 0


def cmd_add(args: argparse.Namespace, engine: LexicalEngine) -> int:
    """Handle add command."""
    result = engine.add_word(args.word, args.synonyms)
    if result.ok:
        print(f"Added {args.word.strip().lower()!r}.")
        return 0
    print(f"[{result.error.reason.value.upper()}] {result.error.message}")
    return 1


def _print_words(results: List[WordEntry]) -> None:
    print(f"{'Word':<24} {'Level':<6} Synonyms")
    print("-" * 72)
    for entry in results:
        level = entry.level if entry.level is not None else "-"
        print(f"{entry.word:<24} {level!s:<6} {', '.join(entry.synonyms)}")


def _print_meaning(entry: MeaningEntry) -> None:
    print(f"\n{entry.word}")
    for i, definition in enumerate(entry.definitions, 1):
        print(f"  {i}. {definition}")
    if entry.synonyms:
        print(f"  Synonyms: {', '.join(entry.synonyms)}")


if __name__ == "__main__":
    sys.exit(main())
