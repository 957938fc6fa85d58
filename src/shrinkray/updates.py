"""
Encoder update checks against GitHub.

Compares the locally installed HandBrakeCLI and ffmpeg versions with the
newest upstream release (HandBrake) or release tag (FFmpeg) and can download a
HandBrakeCLI release asset for the current platform.
"""
import platform
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
from tqdm import tqdm

from shrinkray import __version__
from shrinkray.utils import LogLevel, logger, system_util
from shrinkray.utils.constants import FFMPEG_REPO, GITHUB_API_URL, HANDBRAKE_REPO

HANDBRAKE_VERSION_REGEX = re.compile(r"HandBrake\s+v?(\d+(?:\.\d+)+)")
FFMPEG_VERSION_REGEX = re.compile(r"ffmpeg version\s+n?(\d+(?:\.\d+)+)")
FFMPEG_TAG_REGEX = re.compile(r"^n(\d+(?:\.\d+)+)$")


class UpdateCheckError(Exception):
    """Raised when release information cannot be fetched."""
    pass


def version_gt(v1: str, v2: str) -> bool:
    """
    Returns True if v1 > v2.

    Numeric parts are compared first; on a tie a stable version (no suffix)
    beats a pre-release (``1.8.0`` > ``1.8.0-beta1``).
    """
    def parse(v):
        v = v.lstrip("vn")
        if "-" in v:
            base, suffix = v.split("-", 1)
            return base, suffix
        return v, ""

    base1, suff1 = parse(v1)
    base2, suff2 = parse(v2)

    try:
        p1 = [int(x) for x in base1.split(".")]
        p2 = [int(x) for x in base2.split(".")]
    except ValueError:
        return False

    if p1 > p2:
        return True
    if p1 < p2:
        return False
    return not suff1 and bool(suff2)


def installed_version(executable: str) -> Optional[str]:
    """Version string reported by ``HandBrakeCLI --version`` / ``ffmpeg -version``, if installed."""
    if not system_util.has_binary(executable):
        return None
    if executable == "HandBrakeCLI":
        cmd, regex = [executable, "--version"], HANDBRAKE_VERSION_REGEX
    else:
        cmd, regex = [executable, "-version"], FFMPEG_VERSION_REGEX
    try:
        code, out, err = system_util.run_cmd(cmd)
    except OSError as e:
        logger.log("update.version_failed", LogLevel.DEBUG, executable=executable, error=str(e))
        return None
    match = regex.search(out + "\n" + err)
    return match.group(1) if match else None


class ReleaseClient:
    """Client for the GitHub releases API."""

    def __init__(self, session: Optional[requests.Session] = None, timeout: int = 15):
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/vnd.github+json",
            "User-Agent": f"shrinkray/{__version__}",
        })
        self.timeout = timeout

    def _get(self, endpoint: str) -> Any:
        url = f"{GITHUB_API_URL}/{endpoint.lstrip('/')}"
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            raise UpdateCheckError(f"Request failed: {e}")
        except ValueError as e:
            raise UpdateCheckError(f"Invalid JSON response: {e}")

    def latest_release(self, repo: str) -> Dict[str, Any]:
        data = self._get(f"repos/{repo}/releases/latest")
        if not isinstance(data, dict) or not data.get("tag_name"):
            raise UpdateCheckError(f"No release information for {repo}")
        return data

    def latest_ffmpeg_tag(self) -> str:
        """Newest stable ``nX.Y`` tag; FFmpeg publishes tags, not GitHub releases."""
        tags = self._get(f"repos/{FFMPEG_REPO}/tags?per_page=100")
        versions = []
        for tag in tags if isinstance(tags, list) else []:
            match = FFMPEG_TAG_REGEX.match(tag.get("name", ""))
            if match:
                versions.append(match.group(1))
        if not versions:
            raise UpdateCheckError("No release tags found for FFmpeg")
        latest = versions[0]
        for version in versions[1:]:
            if version_gt(version, latest):
                latest = version
        return latest


@dataclass
class ToolUpdate:
    tool: str
    installed: Optional[str]
    latest: Optional[str]
    download_url: Optional[str] = None
    error: Optional[str] = None

    @property
    def update_available(self) -> bool:
        if not self.latest:
            return False
        return self.installed is None or version_gt(self.latest, self.installed)


def pick_asset(assets: List[Dict[str, Any]], system: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """HandBrakeCLI download matching the platform, if the release has one."""
    system = system or platform.system()
    suffixes = {"Windows": (".zip",), "Darwin": (".dmg",), "Linux": (".flatpak",)}.get(system, ())
    for asset in assets:
        name = asset.get("name", "")
        if "CLI" not in name or not name.endswith(suffixes):
            continue
        if system == "Windows" and "win" not in name.lower():
            continue
        if "arm64" in name.lower() or "aarch64" in name.lower():
            if platform.machine().lower() not in ("arm64", "aarch64"):
                continue
        return asset
    return None


def check_updates(client: Optional[ReleaseClient] = None) -> List[ToolUpdate]:
    """Installed vs latest versions for HandBrakeCLI and ffmpeg. Network errors are reported per tool."""
    client = client or ReleaseClient()
    results = []

    handbrake = ToolUpdate("HandBrakeCLI", installed_version("HandBrakeCLI"), None)
    try:
        release = client.latest_release(HANDBRAKE_REPO)
        handbrake.latest = release["tag_name"].lstrip("v")
        asset = pick_asset(release.get("assets") or [])
        if asset:
            handbrake.download_url = asset.get("browser_download_url")
    except UpdateCheckError as e:
        handbrake.error = str(e)
    results.append(handbrake)

    ffmpeg = ToolUpdate("ffmpeg", installed_version("ffmpeg"), None)
    try:
        ffmpeg.latest = client.latest_ffmpeg_tag()
    except UpdateCheckError as e:
        ffmpeg.error = str(e)
    results.append(ffmpeg)

    for result in results:
        logger.log("update.check", LogLevel.INFO, tool=result.tool, installed=result.installed,
                   latest=result.latest, update=result.update_available, error=result.error)
    return results


def download_asset(url: str, dest: Path, session: Optional[requests.Session] = None,
                   show_progress: bool = True) -> Path:
    """Stream ``url`` to ``dest`` with a byte progress bar. A partial file never takes the final name."""
    session = session or requests.Session()
    dest.parent.mkdir(parents=True, exist_ok=True)
    partial = dest.with_name(dest.name + ".part")
    try:
        with session.get(url, stream=True, timeout=30) as response:
            response.raise_for_status()
            total = int(response.headers.get("content-length", 0)) or None
            with open(partial, "wb") as fh, tqdm(total=total, unit="B", unit_scale=True,
                                                 desc=dest.name, disable=not show_progress) as bar:
                for chunk in response.iter_content(chunk_size=1 << 16):
                    if chunk:
                        fh.write(chunk)
                        bar.update(len(chunk))
    except requests.exceptions.RequestException as e:
        partial.unlink(missing_ok=True)
        raise UpdateCheckError(f"Download failed: {e}")
    except OSError:
        partial.unlink(missing_ok=True)
        raise
    partial.replace(dest)
    logger.log("update.downloaded", LogLevel.INFO, url=url, dst=str(dest))
    return dest
