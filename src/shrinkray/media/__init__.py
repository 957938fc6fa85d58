"""Media probing and file discovery.

- probe: ffprobe client (duration, bitrate, streams)
- discovery: input enumeration and output naming
"""

from .probe import (
    MediaProbe,
    ProbeError,
    StreamInfo,
)
from .discovery import (
    list_input_files,
    resolve_output_path,
    substitute_codec_token,
)

__all__ = [
    "MediaProbe",
    "ProbeError",
    "StreamInfo",
    "list_input_files",
    "resolve_output_path",
    "substitute_codec_token",
]
