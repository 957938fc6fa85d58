"""Tests for the structured logger and its file sink."""

from datetime import datetime

from shrinkray.utils import LogLevel, logger


def _today_log(log_dir):
    return log_dir / f"shrinkray-{datetime.now().strftime('%Y-%m-%d')}.log"


def test_format_kv_keeps_entries_single_line():
    text = logger._format_kv({"file": 'a "b"\nc', "missing": None, "ok": True, "pct": 12.5})
    assert text == 'file="a \\"b\\"\\nc" | missing=null | ok=true | pct=12.5'


def test_console_level_filters(capsys):
    logger.set_log_level(LogLevel.WARN)
    logger.log("quiet.event", LogLevel.INFO)
    logger.log("loud.event", LogLevel.ERROR, code=2)
    out = capsys.readouterr().out
    assert "quiet.event" not in out
    assert "[ERROR] | loud.event | code=2" in out


def test_file_sink_receives_debug_entries(tmp_path, capsys):
    logger.configure_file_sink(tmp_path)
    logger.log("debug.event", LogLevel.DEBUG, n=1)
    logger.file_log("encode.command", LogLevel.DEBUG, cmd="ffmpeg -i a.mkv")
    logger.raw("[stderr] frame=1\r\n")
    logger.configure_file_sink(None)

    content = _today_log(tmp_path).read_text()
    assert "debug.event | n=1" in content
    assert 'encode.command | cmd="ffmpeg -i a.mkv"' in content
    assert "[stderr] frame=1\n" in content
    # DEBUG is below the console level and file_log never reaches the console
    assert capsys.readouterr().out == ""


def test_without_sink_file_only_calls_are_noops(tmp_path):
    logger.file_log("nothing", LogLevel.ERROR)
    logger.raw("nothing")
    assert list(tmp_path.iterdir()) == []


def test_prune_logs(tmp_path):
    old = tmp_path / "shrinkray-2000-01-01.log"
    old.write_text("old\n")
    current = _today_log(tmp_path)
    current.write_text("new\n")
    other = tmp_path / "notes.log"
    other.write_text("keep\n")

    assert logger.prune_logs(tmp_path, 7) == 1
    assert not old.exists()
    assert current.exists()
    assert other.exists()


def test_prune_missing_folder(tmp_path):
    assert logger.prune_logs(tmp_path / "absent", 7) == 0
