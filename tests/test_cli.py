"""Tests for cli.py — argument handling, I/O and exit codes."""

from __future__ import annotations

import io
import json

import pytest

from flow_layout import cli

SCENE = {
    "components": [{"id": "a"}, {"id": "b"}, {"id": "c"}],
    "connections": [{"from": "a", "to": "b"}, {"from": "b", "to": "c"}],
    "layout": {"mode": "auto"},
}


@pytest.fixture
def scene_file(tmp_path):
    path = tmp_path / "scene.json"
    path.write_text(json.dumps(SCENE))
    return path


class TestMain:
    def test_file_to_stdout(self, scene_file, capsys):
        assert cli.main([str(scene_file)]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out["_layoutApplied"] is True
        assert len(out["components"]) == 3

    def test_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(SCENE)))
        assert cli.main(["-"]) == 0
        assert json.loads(capsys.readouterr().out)["_layoutApplied"] is True

    def test_output_file(self, scene_file, tmp_path):
        target = tmp_path / "out.json"
        assert cli.main([str(scene_file), "-o", str(target)]) == 0
        assert json.loads(target.read_text())["_stageWidth"] >= 1200

    def test_opt_out_scene_unchanged(self, tmp_path, capsys):
        path = tmp_path / "manual.json"
        data = {"components": [{"id": "a", "x": 5, "y": 5}]}
        path.write_text(json.dumps(data))
        assert cli.main([str(path)]) == 0
        assert json.loads(capsys.readouterr().out) == data

    def test_profile_flag_forces_layout(self, tmp_path, capsys):
        path = tmp_path / "manual.json"
        path.write_text(json.dumps({"components": [{"id": "a"}, {"id": "b"}]}))
        assert cli.main([str(path), "--profile", "grid"]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out["_layoutApplied"] is True
        assert out["layout"]["profile"] == "grid"

    def test_resolve_connections(self, scene_file, capsys):
        assert cli.main([str(scene_file), "--resolve-connections"]) == 0
        out = json.loads(capsys.readouterr().out)
        assert all(isinstance(c["from"], dict) for c in out["connections"])


class TestErrors:
    def test_missing_file(self, tmp_path, capsys):
        assert cli.main([str(tmp_path / "nope.json")]) == 2
        assert "input file not found" in capsys.readouterr().err

    def test_invalid_json(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        assert cli.main([str(path)]) == 2
        assert "invalid JSON" in capsys.readouterr().err

    def test_non_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[]")
        assert cli.main([str(path)]) == 2

    def test_empty_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("   "))
        assert cli.main([]) == 2
        assert "no input" in capsys.readouterr().err

    def test_file_not_utf8(self, tmp_path, capsys):
        path = tmp_path / "latin1.json"
        path.write_bytes(b"\xff\xfe{")
        assert cli.main([str(path)]) == 2
        assert "not valid UTF-8" in capsys.readouterr().err

    def test_stdin_not_utf8(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(b"\xff\xfe{"), encoding="utf-8"))
        assert cli.main(["-"]) == 2
        assert "stdin is not valid UTF-8" in capsys.readouterr().err

    def test_bad_choice(self, scene_file, capsys):
        assert cli.main([str(scene_file), "--profile", "spiral"]) == 2
        assert "error:" in capsys.readouterr().err

    def test_unwritable_output(self, scene_file, tmp_path):
        target = tmp_path / "missing-dir" / "out.json"
        assert cli.main([str(scene_file), "-o", str(target)]) == 4
