"""Tests for the hiztegia command-line interface."""

import pytest

from hiztegia import __version__
from hiztegia.cli import main
from hiztegia.config import CONFIG_ENV_VAR

SEED = """\
synonyms:
  - word: etxe
    synonyms: [egoitza, bizitoki]
  - word: egoitza
    synonyms: [etxe]
dictionary:
  - id: 1
    word: etxe
    meaning: casa, hogar
definitions:
  - entry: 1
    text: Bizitzeko eraikina.
"""


@pytest.fixture(autouse=True)
def no_env_config(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "hiztegia.db"


@pytest.fixture
def loaded_db(db_path, tmp_path, capsys):
    seed = tmp_path / "seed.yaml"
    seed.write_text(SEED, encoding="utf-8")
    assert main(["--db", str(db_path), "import", str(seed)]) == 0
    capsys.readouterr()
    return db_path


class TestSetupCommands:

    def test_init(self, db_path, capsys):
        assert main(["--db", str(db_path), "init"]) == 0
        assert db_path.exists()
        assert "Initialized" in capsys.readouterr().out

    def test_import(self, db_path, tmp_path, capsys):
        seed = tmp_path / "seed.yaml"
        seed.write_text(SEED, encoding="utf-8")
        assert main(["--db", str(db_path), "import", str(seed)]) == 0
        out = capsys.readouterr().out
        assert "Imported 4 row(s)" in out
        assert "Synonyms:    2" in out

    def test_import_bad_file(self, db_path, tmp_path, capsys):
        seed = tmp_path / "bad.yaml"
        seed.write_text("hitzak: []\n", encoding="utf-8")
        assert main(["--db", str(db_path), "import", str(seed)]) == 1
        assert "[IMPORT ERROR]" in capsys.readouterr().out

    def test_no_command(self, capsys):
        assert main([]) == 1

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_missing_config(self, db_path, tmp_path, capsys):
        code = main(["--db", str(db_path), "--config", str(tmp_path / "nope.yaml"), "init"])
        assert code == 2
        assert "[CONFIG ERROR]" in capsys.readouterr().err

    def test_config_file_used(self, db_path, tmp_path, capsys):
        config = tmp_path / "hiztegia.yaml"
        config.write_text("add_word_function: gehitu_hitza\n", encoding="utf-8")
        main(["--db", str(db_path), "init"])
        code = main(["--db", str(db_path), "--config", str(config), "add", "a", "b"])
        assert code == 0


class TestQueryCommands:

    def test_words(self, loaded_db, capsys):
        assert main(["--db", str(loaded_db), "words", "etx"]) == 0
        out = capsys.readouterr().out
        assert "egoitza" in out
        assert "bizitoki" in out

    def test_words_no_results(self, loaded_db, capsys):
        assert main(["--db", str(loaded_db), "words", "*zzz*"]) == 1
        assert "No results found." in capsys.readouterr().out

    def test_meanings(self, loaded_db, capsys):
        assert main(["--db", str(loaded_db), "meanings", "etxe", "--limit", "5"]) == 0
        out = capsys.readouterr().out
        assert "1. Bizitzeko eraikina." in out
        assert "Synonyms: egoitza, bizitoki" in out

    def test_lookup(self, loaded_db, capsys):
        assert main(["--db", str(loaded_db), "lookup", "etx"]) == 0
        assert "etxe" in capsys.readouterr().out

    def test_expand(self, loaded_db, capsys):
        assert main(["--db", str(loaded_db), "expand", "egoitza"]) == 0
        assert capsys.readouterr().out.strip() == "etxe, bizitoki"

    def test_limit_must_be_positive(self, loaded_db, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--db", str(loaded_db), "meanings", "etxe", "--limit", "0"])
        assert exc_info.value.code == 2
        assert "must be at least 1" in capsys.readouterr().err

    def test_query_on_empty_database(self, db_path, capsys):
        assert main(["--db", str(db_path), "meanings", "etxe"]) == 1
        assert "No results found." in capsys.readouterr().out


class TestAddCommand:

    def test_add_then_duplicate(self, loaded_db, capsys):
        assert main(["--db", str(loaded_db), "add", "Aurten", "oraingoan"]) == 0
        assert "Added 'aurten'." in capsys.readouterr().out

        assert main(["--db", str(loaded_db), "add", "aurten", "gaur"]) == 1
        assert "[DUPLICATE]" in capsys.readouterr().out

    def test_add_invalid(self, loaded_db, capsys):
        assert main(["--db", str(loaded_db), "add", "etxe", "ETXE"]) == 1
        assert "[INVALID]" in capsys.readouterr().out
