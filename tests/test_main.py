"""Tests for the command line tool."""

import json

import pytest

from vanshavali.config import AppConfig, LayoutConfig
from vanshavali.main import main
from vanshavali.parsing import dump_tree_json, load_tree_file


@pytest.fixture
def tree_file(tmp_path, family):
    path = tmp_path / "tree.json"
    path.write_text(dump_tree_json(family), encoding="utf-8")
    return path


class TestCommands:
    def test_layout_writes_dot(self, tree_file, tmp_path, capsys):
        dot = tmp_path / "tree.dot"
        assert main(["layout", str(tree_file), "--dot", str(dot)]) == 0
        out = capsys.readouterr().out
        assert "4 visible persons and 3 edges" in out
        assert "Edge crossings: 0" in out
        assert dot.exists()

    def test_push_then_pull(self, tree_file, tmp_path, family):
        db = tmp_path / "family.db"
        out = tmp_path / "pulled.json"
        assert main(["--db", str(db), "push", str(tree_file)]) == 0
        assert main(["--db", str(db), "pull", "--out", str(out)]) == 0
        assert load_tree_file(out) == family

    def test_second_push_is_refused(self, tree_file, tmp_path):
        db = tmp_path / "family.db"
        assert main(["--db", str(db), "push", str(tree_file)]) == 0
        assert main(["--db", str(db), "push", str(tree_file)]) == 2

    def test_pull_from_empty_database(self, tmp_path):
        assert main(["--db", str(tmp_path / "empty.db"), "pull"]) == 2

    def test_validate(self, tree_file, capsys):
        assert main(["validate", str(tree_file)]) == 0
        assert "No validation issues found" in capsys.readouterr().out

    def test_search(self, tree_file, capsys):
        assert main(["search", str(tree_file), "bhav"]) == 0
        assert "1 persons found" in capsys.readouterr().out

    def test_timeline(self, tree_file, capsys):
        assert main(["timeline", str(tree_file)]) == 0
        first = capsys.readouterr().out.splitlines()[0]
        assert first.startswith("1890\tBIRTH\tMukhya Purush")

    def test_bad_file(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"people": []}), encoding="utf-8")
        assert main(["validate", str(path)]) == 2

    def test_wrongly_typed_field(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"tree": {"id": "r", "name": "R", "gallery": 5}}), encoding="utf-8")
        assert main(["layout", str(path)]) == 2


class TestConfig:
    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("VANSHAVALI_DB", str(tmp_path / "x.db"))
        monkeypatch.setenv("VANSHAVALI_LOG_LEVEL", "debug")
        config = AppConfig.from_env()
        assert config.db_path == tmp_path / "x.db"
        assert config.log_level == "DEBUG"

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("VANSHAVALI_DB", raising=False)
        monkeypatch.delenv("VANSHAVALI_LOG_LEVEL", raising=False)
        assert AppConfig.from_env() == AppConfig()

    def test_layout_config_rejects_negative(self):
        with pytest.raises(ValueError):
            LayoutConfig(node_sep=-1)
