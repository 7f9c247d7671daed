"""
Contract tests for the hls-audio command line.

ffmpeg is replaced with a stub encoder; the CLI still parses flags, builds
the config, queues files and drains the stream.
"""

import argparse
import os
from io import BytesIO
from pathlib import Path

import pytest

from hls_audio import cli
from hls_audio.tests.contracts.test_doubles import StubEncoder, arg_value


@pytest.fixture
def songs(tmp_path):
    paths = [tmp_path / "Foo - Bar.mp3", tmp_path / "untitled.mp3"]
    for i, path in enumerate(paths):
        path.write_bytes(f"song-{i}".encode())
    return paths


@pytest.fixture
def stub_ffmpeg(monkeypatch):
    """Replace ffmpeg with a shared StubEncoder."""
    encoder = StubEncoder()
    monkeypatch.setattr(cli, "find_ffmpeg", lambda binary: "/usr/bin/ffmpeg")
    monkeypatch.setattr(cli, "FFmpegEncoder", lambda binary: encoder)
    return encoder


class TestAudioFromPath:
    """Artist and title come from the file name."""

    def test_artist_dash_title(self):
        audio = cli.audio_from_path(Path("/music/Foo - Bar.mp3"), BytesIO(b""), 4)
        assert (audio.id, audio.artist, audio.title) == (4, "Foo", "Bar")

    def test_title_only(self):
        audio = cli.audio_from_path(Path("untitled.mp3"), BytesIO(b""), 0)
        assert (audio.artist, audio.title) == ("Unknown", "untitled")


class TestBuildConfig:
    """Flags are applied over the environment config."""

    def test_flags_override_environment(self, monkeypatch):
        monkeypatch.setenv("HLS_AUDIO_HLS_TIME", "7")
        args = cli.build_parser().parse_args(
            ["a.mp3", "--bitrate", "96k", "--bitrate", "48k", "--output-dir", "out", "--hls-list-size", "6", "--debug"]
        )
        config = cli.build_config(args)

        assert config.bitrates == ("96k", "48k")
        assert config.hls_time == 7
        assert config.hls_list_size == 6
        assert config.debug is True
        assert config.playlist_name == os.path.join("out", "hls-%v/hls-playlist.m3u8")
        assert config.segment_filename == os.path.join("out", "hls-%v/hls-segment-%06d.ts")

    def test_parser_requires_files(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])

    def test_namespace_defaults(self):
        args = cli.build_parser().parse_args(["a.mp3"])
        assert isinstance(args, argparse.Namespace)
        assert args.bitrates is None
        assert args.output_dir == "hls"
        assert args.serve is False


class TestMain:
    """End-to-end CLI runs."""

    def test_streams_every_file(self, songs, tmp_path, stub_ffmpeg):
        out = tmp_path / "out"
        assert cli.main([str(p) for p in songs] + ["--output-dir", str(out)]) == 0

        assert out.is_dir()
        assert stub_ffmpeg.inputs == [b"song-0", b"song-1"]
        assert arg_value(stub_ffmpeg.calls[0][0], "-metadata") == "title=Foo - Bar"
        assert arg_value(stub_ffmpeg.calls[1][0], "-metadata") == "title=Unknown - untitled"

    def test_encoder_failure_exit_code(self, songs, tmp_path, monkeypatch):
        encoder = StubEncoder(fail_on={0})
        monkeypatch.setattr(cli, "find_ffmpeg", lambda binary: "/usr/bin/ffmpeg")
        monkeypatch.setattr(cli, "FFmpegEncoder", lambda binary: encoder)

        assert cli.main([str(songs[0]), "--output-dir", str(tmp_path / "out")]) == 1

    def test_missing_ffmpeg(self, songs, tmp_path, capsys):
        code = cli.main([str(songs[0]), "--ffmpeg", str(tmp_path / "no-ffmpeg"), "--output-dir", str(tmp_path)])
        assert code == 2
        assert "not found" in capsys.readouterr().err

    def test_invalid_config(self, songs, tmp_path, capsys, stub_ffmpeg):
        code = cli.main([str(songs[0]), "--master-playlist-name", "hls/master.m3u8", "--output-dir", str(tmp_path)])
        assert code == 2
        assert "master playlist cannot have a directory" in capsys.readouterr().err

    def test_missing_input_file(self, tmp_path, stub_ffmpeg):
        assert cli.main([str(tmp_path / "nope.mp3"), "--output-dir", str(tmp_path / "out")]) == 1
        assert stub_ffmpeg.calls == []
