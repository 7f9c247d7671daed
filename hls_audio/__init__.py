"""
hls-audio: queue audio and stream it as adaptive-bitrate HLS through ffmpeg.

A Stream drains its queue one Audio at a time, announcing each item on the
dequeued channel and running ffmpeg to append it to a live multi-variant
HLS playlist.
"""

from hls_audio.audio import Audio
from hls_audio.audio_queue import AudioQueue
from hls_audio.config import StreamConfig, load_config
from hls_audio.encoder import Encoder, FFmpegEncoder
from hls_audio.errors import (
    ConfigError,
    EmptyQueueError,
    EncoderError,
    EncodingFailedError,
    HLSAudioError,
)
from hls_audio.ffmpeg_args import bitrates_to_args, build_ffmpeg_args
from hls_audio.http_server import HLSFileServer
from hls_audio.notifier import DequeuedChannel, DequeuedNotifier
from hls_audio.stream import Stream, StreamState

__all__ = [
    "Audio",
    "AudioQueue",
    "ConfigError",
    "DequeuedChannel",
    "DequeuedNotifier",
    "EmptyQueueError",
    "Encoder",
    "EncoderError",
    "EncodingFailedError",
    "FFmpegEncoder",
    "HLSAudioError",
    "HLSFileServer",
    "Stream",
    "StreamConfig",
    "StreamState",
    "bitrates_to_args",
    "build_ffmpeg_args",
    "load_config",
]
