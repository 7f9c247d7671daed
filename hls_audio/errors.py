"""
Error types for hls-audio.

All errors raised by the package derive from HLSAudioError so callers can
catch the whole family at once.
"""

from typing import Optional

from hls_audio.audio import Audio


class HLSAudioError(Exception):
    """Base class for hls-audio errors."""
    pass


class ConfigError(HLSAudioError, ValueError):
    """Invalid stream configuration. Raised at construction, never at runtime."""
    pass


class EmptyQueueError(HLSAudioError):
    """
    There is no more audio to stream in the queue.
    
    Not fatal: the stream drained normally. Append more audio and call
    Stream.start() again to resume.
    """
    
    def __init__(self, message: str = "no audio in queue") -> None:
        super().__init__(message)


class EncoderError(HLSAudioError):
    """
    The encoder could not be launched or exited with a non-zero status.
    
    Attributes:
        returncode: Exit status of the encoder process (None if it never started)
        output: Combined stdout/stderr captured from the encoder
    """
    
    def __init__(self, message: str, returncode: Optional[int] = None, output: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.output = output


class EncodingFailedError(HLSAudioError):
    """
    Stream.start() failed to encode an audio item. The run is over.
    
    The underlying EncoderError is available as __cause__.
    
    Attributes:
        audio: The audio item being encoded when the failure happened
        output: Combined encoder output captured for diagnostics
    """
    
    def __init__(self, audio: Audio, output: str, reason: str = "") -> None:
        super().__init__(f"failed to process audio {audio} in ffmpeg: {output}: {reason}")
        self.audio = audio
        self.output = output
