"""Tests for progress line parsing."""

import pytest

from shrinkray.encode.progress import ProgressContext, ToolKind, parse_progress, timestamp_to_seconds

PERCENT = ProgressContext(ToolKind.PERCENT)


def test_ffmpeg_timestamp_against_duration():
    ctx = ProgressContext(ToolKind.TIMESTAMP, total_duration=1200)
    line = "frame= 1234 fps= 24 q=28.0 size=   10240KiB time=00:10:00.00 bitrate=1398.1kbits/s speed=1.0x"
    assert parse_progress(line, ctx) == pytest.approx(50.0)


def test_handbrake_task_line():
    assert parse_progress("Encoding: task 1 of 1, 37.50 %", PERCENT) == pytest.approx(37.5)


def test_handbrake_line_with_fps_and_eta():
    line = "Encoding: task 1 of 1, 45.67 % (23.45 fps, avg 24.12 fps, ETA 00h15m42s)"
    assert parse_progress(line, PERCENT) == pytest.approx(45.67)


def test_handbrake_plain_percent_layout():
    assert parse_progress("Encoding: 12.5 %", PERCENT) == pytest.approx(12.5)


def test_task_counter_is_not_read_as_percent():
    line = "Encoding: task 2 of 2, 5.00 %"
    assert parse_progress(line, PERCENT) == pytest.approx(5.0)


@pytest.mark.parametrize("line", ["", "HandBrake has exited.", "Opening input.mkv...", "x264 [info]: frame I:12"])
def test_lines_without_progress_return_none(line):
    assert parse_progress(line, PERCENT) is None
    assert parse_progress(line, ProgressContext(ToolKind.TIMESTAMP, 600)) is None


def test_timestamp_without_duration_is_none():
    line = "frame=10 time=00:00:05.00 bitrate=N/A"
    assert parse_progress(line, ProgressContext(ToolKind.TIMESTAMP, 0)) is None
    assert parse_progress(line, ProgressContext(ToolKind.TIMESTAMP, -3)) is None


def test_results_are_clamped():
    ctx = ProgressContext(ToolKind.TIMESTAMP, total_duration=60)
    assert parse_progress("time=00:02:00.00", ctx) == 100.0
    assert parse_progress("Encoding: task 1 of 1, 100.40 %", PERCENT) == 100.0


def test_timestamp_to_seconds():
    assert timestamp_to_seconds("01", "02", "03.5") == pytest.approx(3723.5)
