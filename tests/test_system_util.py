"""Tests for the system helpers."""

import sys

import pytest

from shrinkray.utils import system_util


def test_which_or_die_names_the_missing_binary(monkeypatch, capsys):
    monkeypatch.setattr(system_util, "has_binary", lambda name: False)
    with pytest.raises(SystemExit) as exc:
        system_util.which_or_die("HandBrakeCLI")
    assert exc.value.code == 2
    err = capsys.readouterr().err
    assert "Install HandBrakeCLI" in err
    assert "ffmpeg" not in err


def test_which_or_die_passes_when_found(monkeypatch):
    monkeypatch.setattr(system_util, "has_binary", lambda name: True)
    system_util.which_or_die("ffmpeg")


def test_run_cmd_returns_output():
    code, out, err = system_util.run_cmd([sys.executable, "-c", "print('hi'); import sys; sys.exit(4)"])
    assert code == 4
    assert out.strip() == "hi"
