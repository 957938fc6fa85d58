"""Tests for the interactive menus, driven by scripted input."""

import sys

import pytest

from shrinkray import cli
from shrinkray.config import DEFAULTS, load_settings
from shrinkray.encode.families import EncoderFamily


def scripted(*answers):
    remaining = list(answers)

    def fake_input(prompt=""):
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    return fake_input


def _app(tmp_path, *answers, settings=DEFAULTS):
    return cli.Shrinkray(tmp_path, settings, tmp_path / "shrinkray.conf", input_fn=scripted(*answers))


def test_quit_from_main_menu(tmp_path, capsys):
    _app(tmp_path, "2", "q").run()
    out = capsys.readouterr().out
    assert "=== Shrinkray ===" in out
    assert "handbrake_cpu_quality" in out


def test_end_of_input_quits(tmp_path):
    _app(tmp_path).run()


def test_choose_family(tmp_path):
    assert _app(tmp_path, "x", "4").choose_family() is EncoderFamily.FFMPEG_GPU
    assert _app(tmp_path, "B").choose_family() is None


def test_edit_config_saves_new_value(tmp_path):
    app = _app(tmp_path, "1", "18")
    app.edit_config()
    assert app.settings.handbrake_cpu_quality == 18
    assert load_settings(tmp_path / "shrinkray.conf").handbrake_cpu_quality == 18


def test_edit_config_rejects_invalid_value(tmp_path):
    app = _app(tmp_path, "1", "sharp")
    app.edit_config()
    assert app.settings == DEFAULTS
    assert not (tmp_path / "shrinkray.conf").exists()


def test_setup_directories_creates_folders(tmp_path):
    app = _app(tmp_path)
    app.setup_directories()
    for name in ("Encoded", "ToDelete", "temp"):
        assert (tmp_path / name).is_dir()


def test_input_files_skip_working_folders(tmp_path):
    (tmp_path / "movie.mkv").touch()
    (tmp_path / "Encoded").mkdir()
    (tmp_path / "Encoded" / "movie.x265.mkv").touch()
    (tmp_path / "ToDelete").mkdir()
    (tmp_path / "ToDelete" / "old.mkv").touch()
    assert [p.name for p in _app(tmp_path).input_files()] == ["movie.mkv"]


def test_encode_without_files(tmp_path, capsys):
    _app(tmp_path).encode(EncoderFamily.FFMPEG_CPU)
    assert "No video files found" in capsys.readouterr().out


def test_encode_menu_missing_tool(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(cli.system_util, "has_binary", lambda name: False)
    called = []
    app = _app(tmp_path, "1")
    monkeypatch.setattr(app, "encode", lambda family: called.append(family))
    app.encode_menu()
    assert called == []
    assert "HandBrakeCLI" in capsys.readouterr().out


def test_advanced_clean_temp(tmp_path, capsys):
    (tmp_path / "temp").mkdir()
    (tmp_path / "temp" / "left.over").write_text("x")
    _app(tmp_path, "3", "b").advanced_menu()
    assert not (tmp_path / "temp" / "left.over").exists()
    assert "Removed 1 temp file(s)" in capsys.readouterr().out


def test_main_rejects_missing_root(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "argv", ["shrinkray", str(tmp_path / "absent")])
    with pytest.raises(SystemExit) as exc:
        cli.main()
    assert exc.value.code == 2


def test_main_runs_menu_and_writes_config(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "argv", ["shrinkray", str(tmp_path)])
    monkeypatch.setattr("builtins.input", scripted("q"))
    cli.main()
    assert (tmp_path / "shrinkray.conf").exists()
    assert (tmp_path / "Encoded").is_dir()
    assert (tmp_path / "logs").is_dir()
