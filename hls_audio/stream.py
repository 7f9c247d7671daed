"""
HLS audio stream.

Stream owns the audio queue and drains it one item at a time: every item is
announced on the dequeued channel, then converted into HLS by a blocking
encoder run. start() returns only once the queue is empty (EmptyQueueError)
or the encoder fails (EncodingFailedError).

State machine:
    IDLE -> DRAINING -> (DEQUEUING -> NOTIFYING -> ENCODING)* -> DRAINED | FAILED
"""

from __future__ import annotations

import enum
import logging
import threading
from typing import Any, Callable, Optional, Sequence

from hls_audio.audio import Audio
from hls_audio.audio_queue import AudioQueue
from hls_audio.config import StreamConfig
from hls_audio.encoder import Encoder, FFmpegEncoder
from hls_audio.errors import EmptyQueueError, EncoderError, EncodingFailedError
from hls_audio.ffmpeg_args import build_ffmpeg_args, resolve_encoding
from hls_audio.notifier import DequeuedChannel, DequeuedNotifier

logger = logging.getLogger(__name__)


class StreamState(enum.Enum):
    """Pipeline state."""
    IDLE = 1
    DRAINING = 2
    DEQUEUING = 3
    NOTIFYING = 4
    ENCODING = 5
    DRAINED = 6
    FAILED = 7


# States in which start() is running
_ACTIVE_STATES = {
    StreamState.DRAINING,
    StreamState.DEQUEUING,
    StreamState.NOTIFYING,
    StreamState.ENCODING,
}


class Stream:
    """
    Queue of audio converted into HLS one item at a time.

    Example:
        stream = Stream(["128k", "64k"], debug=True)
        stream.append(Audio(data=open("song.mp3", "rb"), artist="Foo", title="Bar"))
        try:
            stream.start()
        except EmptyQueueError:
            pass  # everything was streamed
    """

    def __init__(
        self,
        bitrates: Sequence[str],
        encoder: Optional[Encoder] = None,
        on_state_change: Optional[Callable[[StreamState], None]] = None,
        **options: Any,
    ) -> None:
        """
        Initialize a stream.

        Args:
            bitrates: Bitrate ladder, one HLS variant per entry
            encoder: Encoder to run per item (default: FFmpegEncoder)
            on_state_change: Optional callback on every state transition
            **options: Any other StreamConfig field (hls_time, master_playlist_name, ...)

        Raises:
            ConfigError: If the resulting configuration is invalid
        """
        config = StreamConfig(bitrates=tuple(bitrates), **options)
        self._init(config, encoder, on_state_change)

    @classmethod
    def from_config(
        cls,
        config: StreamConfig,
        encoder: Optional[Encoder] = None,
        on_state_change: Optional[Callable[[StreamState], None]] = None,
    ) -> "Stream":
        """Create a stream from an already validated StreamConfig."""
        stream = cls.__new__(cls)
        stream._init(config, encoder, on_state_change)
        return stream

    def _init(
        self,
        config: StreamConfig,
        encoder: Optional[Encoder],
        on_state_change: Optional[Callable[[StreamState], None]],
    ) -> None:
        self._config = config
        self._encoder = encoder if encoder is not None else FFmpegEncoder()
        self._on_state_change = on_state_change
        self._queue = AudioQueue()
        self._notifier = DequeuedNotifier(timeout=config.dequeued_timeout)
        self._state = StreamState.IDLE
        self._state_lock = threading.Lock()

    @property
    def config(self) -> StreamConfig:
        return self._config

    @property
    def state(self) -> StreamState:
        with self._state_lock:
            return self._state

    def append(self, audio: Audio) -> None:
        """Append an Audio to the back of the queue; it will be streamed in turn."""
        size = self._queue.append(audio)
        self._log(f"queue size increased to {size}")

    def queue_size(self) -> int:
        """Return the current size of the queue."""
        return self._queue.size()

    def dequeued(self) -> DequeuedChannel:
        """
        Channel announcing every Audio as it is dequeued for conversion.

        Reading it is optional. An item is dropped if nobody is waiting on the
        channel within dequeued_timeout seconds of its dequeue.
        """
        return self._notifier.channel

    def start(self) -> None:
        """
        Convert every queued Audio into HLS. This is a blocking call.

        It may be called again once it has returned, to stream audio appended
        in the meantime.

        Raises:
            EmptyQueueError: The queue was drained; the normal way for this call to end
            EncodingFailedError: The encoder failed; the run stops at that item
            RuntimeError: start() is already running

        Any other error raised by the encoder, the metadata function or the
        state callback leaves the stream FAILED and propagates.
        """
        with self._state_lock:
            if self._state in _ACTIVE_STATES:
                raise RuntimeError("Stream already started")
            self._state = StreamState.DRAINING

        try:
            if self._on_state_change:
                self._on_state_change(StreamState.DRAINING)
            self._log("started to stream")
            self._run()
        except EmptyQueueError:
            self._set_state(StreamState.DRAINED)
            self._log("queue drained")
            raise
        except EncodingFailedError as e:
            self._set_state(StreamState.FAILED)
            logger.error(f"[STREAM] Failed to execute ffmpeg command: {e}")
            raise
        except BaseException as e:
            self._set_state(StreamState.FAILED)
            logger.error(f"[STREAM] Stopped by unexpected error: {e!r}")
            raise

    def _run(self) -> None:
        while True:
            self._set_state(StreamState.DEQUEUING)
            audio = self._queue.dequeue()
            self._log(f"dequeued {str(audio)!r}, queue size is now {self._queue.size()}")

            self._set_state(StreamState.NOTIFYING)
            self._notifier.notify(audio)

            self._set_state(StreamState.ENCODING)
            encoding = resolve_encoding(self._config, audio)
            if encoding != self._config.encoding:
                self._log(f"overriding encoding, using {encoding} instead of {self._config.encoding}")

            args = build_ffmpeg_args(self._config, audio)
            self._log(f"executing ffmpeg with args: {args!r}")

            try:
                output = self._encoder.run(args, audio.data)
            except EncoderError as e:
                raise EncodingFailedError(audio, e.output, str(e)) from e

            self._log(f"ffmpeg output: {output}")

    def _set_state(self, state: StreamState) -> None:
        with self._state_lock:
            self._state = state
        if self._on_state_change:
            self._on_state_change(state)

    def _log(self, message: str) -> None:
        level = logging.INFO if self._config.debug else logging.DEBUG
        logger.log(level, f"[STREAM] {message}")
