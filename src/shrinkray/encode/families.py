"""
Encoder families and their command lines.

Each family pairs a tool (HandBrakeCLI or ffmpeg) with an accelerator (CPU or
GPU). The family is chosen once per session and carries everything that
differs between tools: executable, video encoder, quality flag, the stream
progress is printed on and how to read it.
"""
from enum import Enum
from typing import List

from shrinkray.config import Settings
from shrinkray.encode.progress import ToolKind

# Subtitle codecs Matroska rejects, and what ffmpeg converts them to
MKV_CONVERTED_SUBTITLES = {"mov_text": "srt"}


class Accelerator(Enum):
    CPU = "CPU"
    GPU = "GPU"


class Tool(Enum):
    HANDBRAKE = "HandBrake"
    FFMPEG = "FFmpeg"


class EncoderFamily(Enum):
    """Closed set of supported tool/accelerator combinations."""

    HANDBRAKE_CPU = (Tool.HANDBRAKE, Accelerator.CPU)
    HANDBRAKE_GPU = (Tool.HANDBRAKE, Accelerator.GPU)
    FFMPEG_CPU = (Tool.FFMPEG, Accelerator.CPU)
    FFMPEG_GPU = (Tool.FFMPEG, Accelerator.GPU)

    def __init__(self, tool: Tool, accelerator: Accelerator):
        self.tool = tool
        self.accelerator = accelerator

    @property
    def label(self) -> str:
        return f"{self.tool.value} {self.accelerator.value}"

    @property
    def executable(self) -> str:
        return "HandBrakeCLI" if self.tool is Tool.HANDBRAKE else "ffmpeg"

    @property
    def is_gpu(self) -> bool:
        return self.accelerator is Accelerator.GPU

    @property
    def video_encoder(self) -> str:
        if self.tool is Tool.HANDBRAKE:
            return "nvenc_h265" if self.is_gpu else "x265"
        return "hevc_nvenc" if self.is_gpu else "libx265"

    @property
    def tool_kind(self) -> ToolKind:
        return ToolKind.PERCENT if self.tool is Tool.HANDBRAKE else ToolKind.TIMESTAMP

    @property
    def progress_stream(self) -> str:
        """HandBrakeCLI reports progress on stdout, ffmpeg on stderr."""
        return "stdout" if self.tool is Tool.HANDBRAKE else "stderr"

    @property
    def codec_token(self) -> str:
        """Token written into output filenames."""
        return "HEVC" if self.is_gpu else "x265"

    def quality(self, settings: Settings) -> int:
        if self is EncoderFamily.HANDBRAKE_CPU:
            return settings.handbrake_cpu_quality
        if self is EncoderFamily.HANDBRAKE_GPU:
            return settings.handbrake_gpu_quality
        if self is EncoderFamily.FFMPEG_CPU:
            return settings.ffmpeg_cpu_crf
        return settings.ffmpeg_gpu_cq

    def preset(self, settings: Settings) -> str:
        if not self.is_gpu:
            return settings.cpu_preset
        if self.tool is Tool.HANDBRAKE:
            return settings.handbrake_gpu_preset
        return settings.ffmpeg_gpu_preset

    def build_command(self, job, settings: Settings) -> List[str]:
        """Full argv for encoding ``job`` (an ``EncodeJob``)."""
        if self.tool is Tool.HANDBRAKE:
            return self._handbrake_cmd(job, settings)
        return self._ffmpeg_cmd(job, settings)

    def _handbrake_cmd(self, job, settings: Settings) -> List[str]:
        return [
            self.executable,
            "-i", str(job.input_path),
            "-o", str(job.output_path),
            "-e", self.video_encoder,
            "--encoder-preset", self.preset(settings),
            "-q", str(job.quality),
            "--cfr",
            "--all-audio",
            "--aencoder", "copy",
            "--audio-fallback", "aac",
            "--all-subtitles",
        ]

    def _ffmpeg_cmd(self, job, settings: Settings) -> List[str]:
        cmd = [
            self.executable,
            "-hide_banner",
            "-nostdin",
            "-y",
            "-i", str(job.input_path),
            "-map", "0:v:0",
            "-map", "0:a?",
            "-map", "0:s?",
            "-dn",
            "-c:v", self.video_encoder,
            "-preset", self.preset(settings),
        ]
        if self.is_gpu:
            cmd += ["-rc", "vbr", "-cq", str(job.quality)]
        else:
            cmd += ["-crf", str(job.quality)]
        cmd += ["-c:a", "copy", "-c:s", "copy"]
        # MP4 text subtitles cannot be stored in Matroska as-is
        for index, codec in enumerate(job.subtitle_codecs):
            if codec in MKV_CONVERTED_SUBTITLES:
                cmd += [f"-c:s:{index}", MKV_CONVERTED_SUBTITLES[codec]]
        cmd.append(str(job.output_path))
        return cmd


def family_by_index(index: int) -> EncoderFamily:
    """Menu position (1-4) to family."""
    return list(EncoderFamily)[index - 1]
