"""
This module discovers input videos under a working root and resolves the
output path each one is encoded to.

Output names are derived from the input name: a recognised codec token in the
name (``x264``, ``H.264``, ``XviD`` ...) is swapped for the target codec token,
otherwise the token is appended. Existing files are never overwritten; a
numeric suffix is added until a free name is found.
"""
import re
from pathlib import Path
from typing import Iterable, List

from shrinkray.utils import VIDEO_EXTENSIONS
from shrinkray.utils.file_util import sanitize_filename

CODEC_TOKEN_REGEX = re.compile(
    r"(?<![A-Za-z0-9])(x264|x265|h\.?264|h\.?265|avc|hevc|xvid|divx)(?![A-Za-z0-9])",
    re.IGNORECASE,
)


def list_input_files(root: Path, exclude_dirs: Iterable[Path] = ()) -> List[Path]:
    """Find all video files recursively, skipping excluded folders. Sorted for a stable batch order."""
    excluded = [Path(d).resolve() for d in exclude_dirs]
    files = []
    for p in root.rglob("*"):
        if not p.is_file() or p.suffix.lower() not in VIDEO_EXTENSIONS:
            continue
        resolved = p.resolve()
        if any(resolved.is_relative_to(d) for d in excluded):
            continue
        files.append(p)
    return sorted(files)


def substitute_codec_token(stem: str, target_token: str) -> str:
    """Swap the first codec token in ``stem`` for ``target_token``, or append it."""
    if CODEC_TOKEN_REGEX.search(stem):
        return CODEC_TOKEN_REGEX.sub(target_token, stem, count=1)
    return f"{stem}.{target_token}"


def resolve_output_path(input_path: Path, root: Path, output_root: Path, target_token: str,
                        container: str = ".mkv") -> Path:
    """
    Return a free output path for ``input_path`` under ``output_root``.

    The input's folder structure relative to ``root`` is mirrored. When the
    first candidate exists, `` (1)``, `` (2)`` ... are appended to the stem.
    """
    try:
        rel_parent = input_path.parent.resolve().relative_to(root.resolve())
    except ValueError:
        rel_parent = Path()

    stem = sanitize_filename(substitute_codec_token(input_path.stem, target_token))
    folder = output_root / rel_parent
    candidate = folder / f"{stem}{container}"
    counter = 1
    while candidate.exists():
        candidate = folder / f"{stem} ({counter}){container}"
        counter += 1
    return candidate
