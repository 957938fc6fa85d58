"""Tests for input discovery and output naming."""

from shrinkray.media.discovery import list_input_files, resolve_output_path, substitute_codec_token


def test_codec_token_replaced():
    assert substitute_codec_token("Movie.2010.1080p.x264-GRP", "x265") == "Movie.2010.1080p.x265-GRP"
    assert substitute_codec_token("Show S01E02 H.264", "HEVC") == "Show S01E02 HEVC"
    assert substitute_codec_token("clip_XviD", "x265") == "clip_x265"


def test_only_first_token_replaced():
    assert substitute_codec_token("a.x264.h264", "x265") == "a.x265.h264"


def test_token_appended_when_absent():
    assert substitute_codec_token("Holiday Video", "HEVC") == "Holiday Video.HEVC"


def test_token_inside_word_is_not_a_match():
    assert substitute_codec_token("Navcontrol", "x265") == "Navcontrol.x265"


def test_output_mirrors_relative_folder(tmp_path):
    src = tmp_path / "Season 1" / "ep1.x264.mp4"
    src.parent.mkdir()
    src.touch()
    out = resolve_output_path(src, tmp_path, tmp_path / "Encoded", "x265")
    assert out == tmp_path / "Encoded" / "Season 1" / "ep1.x265.mkv"


def test_collisions_get_numeric_suffix(tmp_path):
    src = tmp_path / "movie.avi"
    src.touch()
    encoded = tmp_path / "Encoded"
    encoded.mkdir()
    (encoded / "movie.HEVC.mkv").touch()
    (encoded / "movie.HEVC (1).mkv").touch()

    out = resolve_output_path(src, tmp_path, encoded, "HEVC")
    assert out.name == "movie.HEVC (2).mkv"
    assert not out.exists()


def test_list_input_files_filters_and_excludes(tmp_path):
    (tmp_path / "b.MKV").touch()
    (tmp_path / "a.mp4").touch()
    (tmp_path / "notes.txt").touch()
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "c.avi").touch()
    (tmp_path / "Encoded").mkdir()
    (tmp_path / "Encoded" / "a.x265.mkv").touch()

    files = list_input_files(tmp_path, exclude_dirs=[tmp_path / "Encoded"])
    assert [p.relative_to(tmp_path).as_posix() for p in files] == ["a.mp4", "b.MKV", "sub/c.avi"]


def test_list_input_files_empty_folder(tmp_path):
    assert list_input_files(tmp_path) == []
