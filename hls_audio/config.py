"""
Configuration management for hls-audio.

StreamConfig holds every option of a Stream with its default. It is frozen and
validated once, when it is built; an invalid combination is a ConfigError at
construction time and never a runtime failure.

Options can also be read from a .env file and environment variables.
"""

import dataclasses
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple

from dotenv import load_dotenv

from hls_audio.audio import Audio, default_metadata_title
from hls_audio.errors import ConfigError

logger = logging.getLogger(__name__)


# Default codec used with ffmpeg
DEFAULT_ENCODING = "aac"
# Default -hls_list_size for ffmpeg
DEFAULT_HLS_LIST_SIZE = 80
# Default -hls_time for ffmpeg
DEFAULT_HLS_TIME = 5
# Default -hls_segment_filename for ffmpeg
DEFAULT_SEGMENT_FILENAME = "hls-%v/hls-segment-%06d.ts"
# Default variant playlist output name for ffmpeg
DEFAULT_PLAYLIST_NAME = "hls-%v/hls-playlist.m3u8"
# Default -master_pl_name for ffmpeg
DEFAULT_MASTER_PLAYLIST_NAME = "master.m3u8"
# Default wait (seconds) for an observer to take a dequeued notification
DEFAULT_DEQUEUED_TIMEOUT = 1.0
DEFAULT_DEBUG = False
DEFAULT_BITRATES = ("128k", "64k")

MASTER_PLAYLIST_DIRECTORY_ERROR = "master playlist cannot have a directory, it must be root. ffmpeg limitation"

DEFAULT_ENV_FILE = Path("/etc/hls-audio/hls-audio.env")

_BITRATE_RE = re.compile(r"^[0-9]+(\.[0-9]+)?[kKmM]?$")
_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class StreamConfig:
    """
    Immutable Stream options.

    Attributes:
        bitrates: Bitrate ladder, one output variant per entry (e.g. ("128k", "64k"))
        encoding: Default audio codec, overridable per Audio
        hls_list_size: Maximum number of entries kept in each variant playlist
        hls_time: Target segment duration in seconds
        segment_filename: Segment name template, must contain %v (variant) and a %d segment number
        playlist_name: Variant playlist name template, must contain %v
        master_playlist_name: Master playlist file name; ffmpeg only accepts a bare name
        dequeued_timeout: Seconds a dequeued notification waits for an observer before it is dropped
        debug: Log stream progress at INFO instead of DEBUG
        metadata_title: Builds the ``-metadata title=`` value for an Audio
    """
    bitrates: Tuple[str, ...]
    encoding: str = DEFAULT_ENCODING
    hls_list_size: int = DEFAULT_HLS_LIST_SIZE
    hls_time: int = DEFAULT_HLS_TIME
    segment_filename: str = DEFAULT_SEGMENT_FILENAME
    playlist_name: str = DEFAULT_PLAYLIST_NAME
    master_playlist_name: str = DEFAULT_MASTER_PLAYLIST_NAME
    dequeued_timeout: float = DEFAULT_DEQUEUED_TIMEOUT
    debug: bool = DEFAULT_DEBUG
    metadata_title: Callable[[Audio], str] = field(default=default_metadata_title, compare=False, repr=False)

    def __post_init__(self) -> None:
        # Freeze the ladder so callers can't mutate it behind the stream's back
        object.__setattr__(self, "bitrates", tuple(self.bitrates))
        self.validate()

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigError: If configuration is invalid
        """
        if not self.master_playlist_name:
            raise ConfigError("master playlist name cannot be empty")

        # "./master.m3u8" is still at the root, "hls/master.m3u8" and "/master.m3u8" are not
        if os.path.dirname(os.path.normpath(self.master_playlist_name)) != "":
            raise ConfigError(MASTER_PLAYLIST_DIRECTORY_ERROR)

        if not self.bitrates:
            raise ConfigError("at least one bitrate is required")

        for rate in self.bitrates:
            if not isinstance(rate, str) or not _BITRATE_RE.match(rate):
                raise ConfigError(f"invalid bitrate: {rate!r} (expected e.g. '128k')")

        if not self.encoding:
            raise ConfigError("encoding cannot be empty")

        if self.hls_time <= 0:
            raise ConfigError(f"invalid hls_time: {self.hls_time} (must be > 0)")

        if self.hls_list_size < 0:
            raise ConfigError(f"invalid hls_list_size: {self.hls_list_size} (must be >= 0)")

        if self.dequeued_timeout < 0:
            raise ConfigError(f"invalid dequeued_timeout: {self.dequeued_timeout} (must be >= 0)")

        if "%v" not in self.segment_filename:
            raise ConfigError(f"segment filename must contain %v: {self.segment_filename}")

        if "%v" not in self.playlist_name:
            raise ConfigError(f"playlist name must contain %v: {self.playlist_name}")

        if not callable(self.metadata_title):
            raise ConfigError("metadata_title must be callable")

    def with_output_dir(self, output_dir: str) -> "StreamConfig":
        """
        Return a copy whose segment and playlist templates live under output_dir.

        The master playlist name is left alone: ffmpeg writes it next to the
        variant directories.
        """
        return dataclasses.replace(
            self,
            segment_filename=os.path.join(output_dir, self.segment_filename),
            playlist_name=os.path.join(output_dir, self.playlist_name),
        )

    @classmethod
    def load_config(cls, bitrates: Optional[Sequence[str]] = None) -> "StreamConfig":
        """
        Load configuration from environment variables.

        Args:
            bitrates: Bitrate ladder overriding HLS_AUDIO_BITRATES

        Returns:
            StreamConfig instance with loaded values

        Raises:
            ConfigError: If a variable can't be parsed or the result is invalid
        """
        _load_env_file()

        if bitrates is None:
            bitrates = _parse_bitrates(os.getenv("HLS_AUDIO_BITRATES", ",".join(DEFAULT_BITRATES)))

        return cls(
            bitrates=tuple(bitrates),
            encoding=os.getenv("HLS_AUDIO_ENCODING", DEFAULT_ENCODING),
            hls_list_size=_get_int("HLS_AUDIO_HLS_LIST_SIZE", DEFAULT_HLS_LIST_SIZE),
            hls_time=_get_int("HLS_AUDIO_HLS_TIME", DEFAULT_HLS_TIME),
            segment_filename=os.getenv("HLS_AUDIO_SEGMENT_FILENAME", DEFAULT_SEGMENT_FILENAME),
            playlist_name=os.getenv("HLS_AUDIO_PLAYLIST_NAME", DEFAULT_PLAYLIST_NAME),
            master_playlist_name=os.getenv("HLS_AUDIO_MASTER_PLAYLIST_NAME", DEFAULT_MASTER_PLAYLIST_NAME),
            dequeued_timeout=_get_float("HLS_AUDIO_DEQUEUED_TIMEOUT", DEFAULT_DEQUEUED_TIMEOUT),
            debug=os.getenv("HLS_AUDIO_DEBUG", "").lower() in _TRUTHY,
        )


def _load_env_file() -> None:
    """Load environment variables from .env file if it exists."""
    env_path = Path(os.getenv("HLS_AUDIO_ENV_FILE", str(DEFAULT_ENV_FILE)))
    if env_path.exists():
        load_dotenv(env_path, override=False)  # Don't override existing env vars


def _parse_bitrates(value: str) -> Tuple[str, ...]:
    """Parse a comma-separated bitrate ladder, e.g. "128k,64k"."""
    rates = tuple(r.strip() for r in value.split(",") if r.strip())
    if not rates:
        raise ConfigError(f"Invalid HLS_AUDIO_BITRATES: {value!r} (must be a comma-separated list)")
    return rates


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"Invalid {name}: {value} (must be an integer)")


def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigError(f"Invalid {name}: {value} (must be a number)")


def load_config(bitrates: Optional[Sequence[str]] = None) -> StreamConfig:
    """
    Load and validate StreamConfig from environment variables.

    Raises:
        ConfigError: If configuration is invalid
    """
    try:
        return StreamConfig.load_config(bitrates)
    except ConfigError as e:
        logger.error(f"[CONFIG] Configuration error: {e}")
        raise
