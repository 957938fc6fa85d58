"""Tests for encoder families and their command lines."""

from pathlib import Path

from shrinkray.config import Settings
from shrinkray.encode.families import EncoderFamily, family_by_index
from shrinkray.encode.job import EncodeJob
from shrinkray.encode.progress import ToolKind


def _job(family, settings):
    return EncodeJob(Path("in.mkv"), Path("out.mkv"), family, family.quality(settings), 60.0)


def test_menu_order():
    assert [family_by_index(i) for i in range(1, 5)] == [
        EncoderFamily.HANDBRAKE_CPU,
        EncoderFamily.HANDBRAKE_GPU,
        EncoderFamily.FFMPEG_CPU,
        EncoderFamily.FFMPEG_GPU,
    ]


def test_family_properties():
    assert EncoderFamily.HANDBRAKE_GPU.executable == "HandBrakeCLI"
    assert EncoderFamily.HANDBRAKE_GPU.tool_kind is ToolKind.PERCENT
    assert EncoderFamily.HANDBRAKE_GPU.progress_stream == "stdout"
    assert EncoderFamily.FFMPEG_CPU.tool_kind is ToolKind.TIMESTAMP
    assert EncoderFamily.FFMPEG_CPU.progress_stream == "stderr"
    assert EncoderFamily.FFMPEG_GPU.codec_token == "HEVC"
    assert EncoderFamily.HANDBRAKE_CPU.codec_token == "x265"
    assert EncoderFamily.FFMPEG_GPU.label == "FFmpeg GPU"


def test_quality_comes_from_settings():
    settings = Settings(handbrake_cpu_quality=19, ffmpeg_gpu_cq=30)
    assert EncoderFamily.HANDBRAKE_CPU.quality(settings) == 19
    assert EncoderFamily.FFMPEG_GPU.quality(settings) == 30
    assert EncoderFamily.HANDBRAKE_GPU.quality(settings) == 24


def test_handbrake_gpu_command():
    settings = Settings()
    cmd = EncoderFamily.HANDBRAKE_GPU.build_command(_job(EncoderFamily.HANDBRAKE_GPU, settings), settings)
    assert cmd[0] == "HandBrakeCLI"
    assert cmd[cmd.index("-e") + 1] == "nvenc_h265"
    assert cmd[cmd.index("-q") + 1] == "24"
    assert cmd[cmd.index("--encoder-preset") + 1] == "slow"
    assert "--all-subtitles" in cmd
    assert cmd[cmd.index("-o") + 1] == "out.mkv"


def test_ffmpeg_cpu_command_uses_crf():
    settings = Settings()
    cmd = EncoderFamily.FFMPEG_CPU.build_command(_job(EncoderFamily.FFMPEG_CPU, settings), settings)
    assert cmd[:2] == ["ffmpeg", "-hide_banner"]
    assert cmd[cmd.index("-c:v") + 1] == "libx265"
    assert cmd[cmd.index("-crf") + 1] == "23"
    assert "-cq" not in cmd
    assert cmd[-1] == "out.mkv"


def test_ffmpeg_gpu_command_uses_cq():
    settings = Settings()
    cmd = EncoderFamily.FFMPEG_GPU.build_command(_job(EncoderFamily.FFMPEG_GPU, settings), settings)
    assert cmd[cmd.index("-c:v") + 1] == "hevc_nvenc"
    assert cmd[cmd.index("-cq") + 1] == "25"
    assert cmd[cmd.index("-preset") + 1] == "p5"
    assert "-crf" not in cmd


def test_ffmpeg_maps_only_playable_streams():
    settings = Settings()
    cmd = EncoderFamily.FFMPEG_CPU.build_command(_job(EncoderFamily.FFMPEG_CPU, settings), settings)
    maps = [cmd[i + 1] for i, arg in enumerate(cmd) if arg == "-map"]
    assert maps == ["0:v:0", "0:a?", "0:s?"]
    assert "-dn" in cmd
    assert "0" not in maps


def test_ffmpeg_converts_mp4_text_subtitles():
    settings = Settings()
    job = EncodeJob(Path("phone.mp4"), Path("phone.HEVC.mkv"), EncoderFamily.FFMPEG_GPU,
                    25, 30.0, subtitle_codecs=("subrip", "mov_text"))
    cmd = EncoderFamily.FFMPEG_GPU.build_command(job, settings)
    assert cmd[cmd.index("-c:s") + 1] == "copy"
    assert cmd[cmd.index("-c:s:1") + 1] == "srt"
    assert "-c:s:0" not in cmd
    assert cmd.index("-c:s:1") > cmd.index("-c:s")
    assert cmd[-1] == "phone.HEVC.mkv"
