"""
File and folder helpers for the encoding workflow.

This module sanitizes names, formats byte counts for the console and creates
the working folders (output, holding, temp, logs) under the working root.
"""
from pathlib import Path
from typing import Tuple


def sanitize_filename(name: str) -> str:
    """
    Remove invalid filesystem characters from a name.
    Uses str.translate() for optimal performance.
    """
    invalid_chars = '<>:"/\\|?*'
    translation_table = str.maketrans('', '', invalid_chars)
    return name.translate(translation_table).strip()


def human_size(size_bytes: float) -> str:
    """Format a byte count as e.g. ``1.50 GB``."""
    size = float(size_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if abs(size) < 1024:
            return f"{size:.2f} {unit}" if unit != "B" else f"{int(size)} B"
        size /= 1024
    return f"{size:.2f} TB"


def set_root_folders(base: Path, output: str, holding: str, temp: str) -> Tuple[Path, Path, Path]:
    """
    Create and return paths for the output, holding and temp folders under base.

    Raises OSError when a folder cannot be created; callers treat that as fatal.
    """
    output_root = base / output
    holding_root = base / holding
    temp_root = base / temp
    output_root.mkdir(parents=True, exist_ok=True)
    holding_root.mkdir(parents=True, exist_ok=True)
    temp_root.mkdir(parents=True, exist_ok=True)
    return output_root, holding_root, temp_root
