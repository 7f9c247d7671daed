"""
Shared pytest fixtures for hls-audio contract tests.

Contract tests use stub encoders instead of ffmpeg. Environment variables
read by the config loader are cleared so the host environment can't leak in.
"""

import threading

import pytest

from hls_audio.tests.contracts.test_doubles import (
    BlockingStubEncoder,
    MasterPlaylistStubEncoder,
    StubEncoder,
    create_audio,
)

ENV_VARS = [
    "HLS_AUDIO_ENV_FILE",
    "HLS_AUDIO_BITRATES",
    "HLS_AUDIO_ENCODING",
    "HLS_AUDIO_HLS_LIST_SIZE",
    "HLS_AUDIO_HLS_TIME",
    "HLS_AUDIO_SEGMENT_FILENAME",
    "HLS_AUDIO_PLAYLIST_NAME",
    "HLS_AUDIO_MASTER_PLAYLIST_NAME",
    "HLS_AUDIO_DEQUEUED_TIMEOUT",
    "HLS_AUDIO_DEBUG",
    "HLS_AUDIO_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Clear hls-audio variables and point the .env loader at a missing file."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HLS_AUDIO_ENV_FILE", str(tmp_path / "missing.env"))


@pytest.fixture
def stub_encoder():
    """Create a stub encoder that records calls."""
    return StubEncoder()


@pytest.fixture
def blocking_encoder():
    """Create a stub encoder that blocks until released."""
    encoder = BlockingStubEncoder()
    yield encoder
    encoder.release()


@pytest.fixture
def master_playlist_encoder():
    """Create a stub encoder that writes ffmpeg-like playlists."""
    return MasterPlaylistStubEncoder()


@pytest.fixture
def fake_audio():
    """Create a fake Audio for testing."""
    return create_audio(b"fake-mp3", audio_id=3, artist="Foo", title="Bar")


@pytest.fixture(autouse=False)
def thread_leak_guard():
    """
    Optional fixture to detect thread leaks between tests.

    Request it explicitly in tests that must not leave threads behind.
    """
    before = set(t.ident for t in threading.enumerate())
    yield
    after = set(t.ident for t in threading.enumerate())
    leaked = after - before
    if leaked:
        leaked_threads = [t for t in threading.enumerate() if t.ident in leaked]
        thread_info = "\n".join(f"  - {t.name} (daemon={t.daemon})" for t in leaked_threads)
        assert False, f"Thread leak detected, shutdown incomplete.\nLeaked threads:\n{thread_info}"
