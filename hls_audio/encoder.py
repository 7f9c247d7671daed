"""
Encoder boundary for hls-audio.

The stream never talks to ffmpeg directly: it hands an argument list and an
input byte stream to an Encoder and blocks until it returns. FFmpegEncoder is
the production implementation; tests inject their own.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import threading
from abc import ABC, abstractmethod
from typing import BinaryIO, List, Optional

from hls_audio.errors import EncoderError

logger = logging.getLogger(__name__)

DEFAULT_FFMPEG_BINARY = "ffmpeg"


class Encoder(ABC):
    """
    Runs the transcoding engine once.

    run() accepts the engine arguments and the input stream, blocks until the
    engine exits and returns its combined output. Any launch failure or
    non-zero exit is raised as EncoderError carrying that output.
    """

    @abstractmethod
    def run(self, args: List[str], stdin: BinaryIO) -> str:
        ...


class FFmpegEncoder(Encoder):
    """
    Runs ffmpeg as a subprocess, piping the audio into its stdin.

    stdout and stderr are merged and captured. The input is copied by a
    feeder thread so a large file can't deadlock against ffmpeg's output.
    """

    def __init__(self, binary: str = DEFAULT_FFMPEG_BINARY, chunk_size: int = 64 * 1024) -> None:
        """
        Args:
            binary: ffmpeg executable name or path
            chunk_size: Bytes per write when copying input into ffmpeg
        """
        self.binary = binary
        self.chunk_size = chunk_size

    def build_command(self, args: List[str]) -> List[str]:
        return [self.binary, *args]

    def run(self, args: List[str], stdin: BinaryIO) -> str:
        cmd = self.build_command(args)
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except OSError as e:
            logger.error(f"[ENCODER] Failed to launch {self.binary}: {e}")
            raise EncoderError(f"failed to launch {self.binary}: {e}") from e

        feeder_error: List[BaseException] = []
        feeder = threading.Thread(
            target=self._feed,
            args=(proc, stdin, feeder_error),
            daemon=True,
            name="FFmpegInputFeeder",
        )
        feeder.start()

        assert proc.stdout is not None
        output = proc.stdout.read().decode("utf-8", errors="replace")
        proc.stdout.close()
        returncode = proc.wait()
        feeder.join()

        if returncode != 0:
            raise EncoderError(
                f"{self.binary} exited with status {returncode}",
                returncode=returncode,
                output=output,
            )

        if feeder_error:
            # ffmpeg succeeded without consuming the whole input; surface the read error
            err = feeder_error[0]
            raise EncoderError(f"failed to read audio input: {err}", returncode=returncode, output=output) from err

        return output

    def _feed(self, proc: subprocess.Popen, source: BinaryIO, errors: List[BaseException]) -> None:
        """Copy source into ffmpeg's stdin, then close it to signal EOF."""
        assert proc.stdin is not None
        try:
            shutil.copyfileobj(source, proc.stdin, self.chunk_size)
        except BrokenPipeError:
            # ffmpeg closed its stdin early; its exit status decides the outcome
            logger.debug("[ENCODER] ffmpeg closed stdin before input was fully written")
        except (OSError, ValueError) as e:
            errors.append(e)
        finally:
            try:
                proc.stdin.close()
            except BrokenPipeError:
                pass


def find_ffmpeg(binary: str = DEFAULT_FFMPEG_BINARY) -> Optional[str]:
    """Return the resolved path of the ffmpeg executable, or None if not installed."""
    return shutil.which(binary)
