"""Tests for the encoder update checks."""

import pytest
import requests

from shrinkray import updates


class FakeResponse:
    def __init__(self, payload=None, status=200, chunks=(), headers=None):
        self.payload = payload
        self.status = status
        self.chunks = chunks
        self.headers = headers or {}

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.exceptions.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload

    def iter_content(self, chunk_size=1):
        return iter(self.chunks)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeSession:
    def __init__(self, responses):
        self.responses = responses
        self.headers = {}
        self.urls = []

    def get(self, url, **kwargs):
        self.urls.append(url)
        response = self.responses[url.rsplit("/", 1)[-1]]
        if isinstance(response, Exception):
            raise response
        return response


def test_version_gt():
    assert updates.version_gt("1.8.0", "1.7.3")
    assert updates.version_gt("v1.10.0", "1.9.9")
    assert updates.version_gt("n7.1", "7.0.2")
    assert not updates.version_gt("1.7.3", "1.7.3")
    assert updates.version_gt("1.8.0", "1.8.0-beta1")
    assert not updates.version_gt("1.8.0-beta1", "1.8.0")
    assert not updates.version_gt("unknown", "1.0")


def test_installed_version_parses_output(monkeypatch):
    monkeypatch.setattr(updates.system_util, "has_binary", lambda name: True)
    monkeypatch.setattr(updates.system_util, "run_cmd",
                        lambda cmd: (0, "HandBrake 1.8.2\n", "[12:00:00] hb_init: starting\n"))
    assert updates.installed_version("HandBrakeCLI") == "1.8.2"


def test_installed_version_missing_tool(monkeypatch):
    monkeypatch.setattr(updates.system_util, "has_binary", lambda name: False)
    assert updates.installed_version("ffmpeg") is None


def test_latest_release():
    session = FakeSession({"latest": FakeResponse({"tag_name": "1.8.2", "assets": []})})
    client = updates.ReleaseClient(session=session)
    assert client.latest_release("HandBrake/HandBrake")["tag_name"] == "1.8.2"
    assert session.urls == ["https://api.github.com/repos/HandBrake/HandBrake/releases/latest"]
    assert "User-Agent" in session.headers


def test_latest_ffmpeg_tag_picks_highest_stable():
    tags = [{"name": "n6.1.1"}, {"name": "n7.1"}, {"name": "n7.0.2"}, {"name": "n7.2-dev"}, {"name": "v1"}]
    client = updates.ReleaseClient(session=FakeSession({"tags?per_page=100": FakeResponse(tags)}))
    assert client.latest_ffmpeg_tag() == "7.1"


def test_network_error_becomes_update_check_error():
    session = FakeSession({"latest": requests.exceptions.ConnectionError("offline")})
    client = updates.ReleaseClient(session=session)
    with pytest.raises(updates.UpdateCheckError):
        client.latest_release("HandBrake/HandBrake")


def test_http_error_becomes_update_check_error():
    client = updates.ReleaseClient(session=FakeSession({"latest": FakeResponse(status=404)}))
    with pytest.raises(updates.UpdateCheckError):
        client.latest_release("HandBrake/HandBrake")


def test_pick_asset_for_windows():
    assets = [
        {"name": "HandBrake-1.8.2-x86_64-Win_GUI.exe"},
        {"name": "HandBrakeCLI-1.8.2-win-x86_64.zip", "browser_download_url": "https://example.invalid/cli.zip"},
    ]
    assert updates.pick_asset(assets, system="Windows")["name"] == "HandBrakeCLI-1.8.2-win-x86_64.zip"
    assert updates.pick_asset(assets, system="Plan9") is None


class FakeClient:
    def latest_release(self, repo):
        return {"tag_name": "1.8.2", "assets": []}

    def latest_ffmpeg_tag(self):
        raise updates.UpdateCheckError("rate limited")


def test_check_updates_reports_per_tool(monkeypatch):
    monkeypatch.setattr(updates, "installed_version", lambda exe: {"HandBrakeCLI": "1.7.3"}.get(exe))
    handbrake, ffmpeg = updates.check_updates(FakeClient())
    assert handbrake.tool == "HandBrakeCLI"
    assert handbrake.latest == "1.8.2"
    assert handbrake.update_available
    assert ffmpeg.installed is None
    assert ffmpeg.error == "rate limited"
    assert not ffmpeg.update_available


def test_download_asset(tmp_path):
    response = FakeResponse(chunks=[b"abc", b"", b"def"], headers={"content-length": "6"})
    dest = tmp_path / "tools" / "HandBrakeCLI.zip"
    updates.download_asset("https://example.invalid/HandBrakeCLI.zip", dest,
                           session=FakeSession({"HandBrakeCLI.zip": response}), show_progress=False)
    assert dest.read_bytes() == b"abcdef"
    assert not (tmp_path / "tools" / "HandBrakeCLI.zip.part").exists()


def test_download_failure_leaves_nothing(tmp_path):
    dest = tmp_path / "HandBrakeCLI.zip"
    session = FakeSession({"HandBrakeCLI.zip": FakeResponse(status=500)})
    with pytest.raises(updates.UpdateCheckError):
        updates.download_asset("https://example.invalid/HandBrakeCLI.zip", dest, session=session,
                               show_progress=False)
    assert list(tmp_path.iterdir()) == []


class FailingWrites(FakeResponse):
    def iter_content(self, chunk_size=1):
        yield b"abc"
        raise OSError(28, "No space left on device")


def test_write_error_removes_partial_file(tmp_path):
    dest = tmp_path / "HandBrakeCLI.zip"
    session = FakeSession({"HandBrakeCLI.zip": FailingWrites()})
    with pytest.raises(OSError):
        updates.download_asset("https://example.invalid/HandBrakeCLI.zip", dest, session=session,
                               show_progress=False)
    assert list(tmp_path.iterdir()) == []
