"""Tests for job records and size reduction."""

from pathlib import Path

from shrinkray.encode.families import EncoderFamily
from shrinkray.encode.job import EncodeJob, JobOutcome, SessionSummary, reduction_percent


def test_reduction_percent():
    assert reduction_percent(1_000_000_000, 600_000_000) == 40


def test_reduction_percent_empty_input():
    assert reduction_percent(0, 0) == 0
    assert reduction_percent(0, 500) == 0


def test_reduction_percent_can_be_negative():
    assert reduction_percent(100, 150) == -50


def test_summary_totals():
    job = EncodeJob(Path("a.mkv"), Path("out/a.x265.mkv"), EncoderFamily.HANDBRAKE_CPU, 22)
    summary = SessionSummary(outcomes=[
        JobOutcome(job, 0, 1000, 400, 60),
        JobOutcome(job, 0, 3000, 1600, 47),
    ])
    assert summary.total_input == 4000
    assert summary.total_output == 2000
    assert summary.overall_reduction == 50


def test_empty_summary():
    summary = SessionSummary()
    assert summary.total_input == 0
    assert summary.overall_reduction == 0
    assert not summary.cancelled
