"""
Shrinkray Configuration Module

Loads settings from a flat ``key=value`` file with sensible defaults. The file
is parsed with python-dotenv; unknown keys are ignored and a malformed value
falls back to its default with a warning. ``Settings`` is immutable: editing a
value produces a new instance.
"""

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Tuple

from dotenv import dotenv_values

from shrinkray.utils import HOLDING_FOLDER, LOG_FOLDER, OUTPUT_FOLDER, TEMP_FOLDER, TOOLS_FOLDER, LogLevel, logger


class ConfigError(Exception):
    """Raised when the config file cannot be written or a value is rejected."""
    pass


@dataclass(frozen=True)
class Settings:
    """Application settings loaded once at startup."""

    # Quality values (RF for HandBrake, CRF/CQ for ffmpeg; lower is better)
    handbrake_cpu_quality: int = 22
    handbrake_gpu_quality: int = 24
    ffmpeg_cpu_crf: int = 23
    ffmpeg_gpu_cq: int = 25

    # Encoder presets
    cpu_preset: str = "medium"
    handbrake_gpu_preset: str = "slow"
    ffmpeg_gpu_preset: str = "p5"

    # Folders, relative to the working root
    output_dir: str = OUTPUT_FOLDER
    holding_dir: str = HOLDING_FOLDER
    temp_dir: str = TEMP_FOLDER
    log_dir: str = LOG_FOLDER
    tools_dir: str = TOOLS_FOLDER

    # Toggles
    enable_logging: bool = True
    verbose: bool = False
    move_originals: bool = False

    # Key that cancels the running batch
    cancel_key: str = "q"


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "1", "yes", "on"):
        return True
    if lowered in ("false", "0", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _parse_quality(value: str) -> int:
    quality = int(value.strip())
    if not 0 <= quality <= 51:
        raise ValueError(f"quality out of range 0-51: {quality}")
    return quality


def _parse_name(value: str) -> str:
    name = value.strip()
    if not name or "/" in name or "\\" in name or name in (".", ".."):
        raise ValueError(f"not a plain folder name: {value!r}")
    return name


def _parse_text(value: str) -> str:
    text = value.strip()
    if not text:
        raise ValueError("empty value")
    return text


def _parse_key(value: str) -> str:
    key = value.strip()
    if len(key) != 1:
        raise ValueError(f"cancel key must be a single character: {value!r}")
    return key


_PARSERS: Dict[str, Callable[[str], Any]] = {
    "handbrake_cpu_quality": _parse_quality,
    "handbrake_gpu_quality": _parse_quality,
    "ffmpeg_cpu_crf": _parse_quality,
    "ffmpeg_gpu_cq": _parse_quality,
    "cpu_preset": _parse_text,
    "handbrake_gpu_preset": _parse_text,
    "ffmpeg_gpu_preset": _parse_text,
    "output_dir": _parse_name,
    "holding_dir": _parse_name,
    "temp_dir": _parse_name,
    "log_dir": _parse_name,
    "tools_dir": _parse_name,
    "enable_logging": _parse_bool,
    "verbose": _parse_bool,
    "move_originals": _parse_bool,
    "cancel_key": _parse_key,
}

DEFAULTS = Settings()


def setting_keys() -> Tuple[str, ...]:
    return tuple(f.name for f in dataclasses.fields(Settings))


def _render_value(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def load_settings(path: Path) -> Settings:
    """
    Load settings from ``path``.

    A missing file is created with the built-in defaults. Each malformed value
    is replaced by its default and logged as a warning; the rest still load.
    """
    if not path.exists():
        logger.log("config.defaults", LogLevel.INFO, path=str(path))
        save_settings(DEFAULTS, path)
        return DEFAULTS

    raw = dotenv_values(path)
    values: Dict[str, Any] = {}
    for key, text in raw.items():
        key = key.strip().lower()
        parser = _PARSERS.get(key)
        if parser is None:
            logger.log("config.unknown_key", LogLevel.DEBUG, key=key)
            continue
        if text is None:
            logger.log("config.invalid", LogLevel.WARN, key=key, value=None,
                       default=_render_value(getattr(DEFAULTS, key)))
            continue
        try:
            values[key] = parser(text)
        except ValueError as e:
            logger.log("config.invalid", LogLevel.WARN, key=key, value=text,
                       default=_render_value(getattr(DEFAULTS, key)), error=str(e))

    settings = dataclasses.replace(DEFAULTS, **values)
    logger.log("config.loaded", LogLevel.DEBUG, path=str(path), keys=len(values))
    return settings


def save_settings(settings: Settings, path: Path) -> None:
    """Write every setting as one ``key=value`` line."""
    lines = [f"{key}={_render_value(getattr(settings, key))}" for key in setting_keys()]
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Could not write config file {path}: {e}")


def update_setting(settings: Settings, key: str, raw_value: str) -> Settings:
    """Return a copy of ``settings`` with ``key`` parsed from ``raw_value``."""
    parser = _PARSERS.get(key)
    if parser is None:
        raise ConfigError(f"Unknown setting: {key}")
    try:
        value = parser(raw_value)
    except ValueError as e:
        raise ConfigError(f"Invalid value for {key}: {e}")
    return dataclasses.replace(settings, **{key: value})


def describe(settings: Settings) -> Dict[str, str]:
    """Settings as display strings, in declaration order."""
    return {key: _render_value(getattr(settings, key)) for key in setting_keys()}
