"""
Command line entry point for hls-audio.

Queues audio files, converts them into a live HLS stream and optionally
serves the output directory over HTTP.

    python -m hls_audio song1.mp3 song2.mp3 --bitrate 128k --bitrate 64k --serve
"""

import argparse
import dataclasses
import logging
import os
import sys
import threading
import time
from pathlib import Path
from typing import BinaryIO, List, Optional, Sequence

from hls_audio.audio import Audio
from hls_audio.config import StreamConfig, load_config
from hls_audio.encoder import FFmpegEncoder, find_ffmpeg
from hls_audio.errors import ConfigError, EmptyQueueError, HLSAudioError
from hls_audio.http_server import HLSFileServer
from hls_audio.stream import Stream

logger = logging.getLogger(__name__)


def audio_from_path(path: Path, data: BinaryIO, audio_id: int) -> Audio:
    """Build an Audio from a file named "<artist> - <title>.ext" (or just "<title>.ext")."""
    artist, sep, title = path.stem.partition(" - ")
    if not sep:
        artist, title = "Unknown", path.stem
    return Audio(data=data, id=audio_id, artist=artist.strip(), title=title.strip())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hls-audio",
        description="Convert a queue of audio files into a live HLS audio stream",
    )
    parser.add_argument(
        "files",
        nargs="+",
        type=Path,
        help="Audio files to stream, in order",
    )
    parser.add_argument(
        "--bitrate",
        dest="bitrates",
        action="append",
        help="Variant bitrate, repeat for a ladder (default: HLS_AUDIO_BITRATES or 128k,64k)",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default="hls",
        help="Directory for playlists and segments (default: hls)",
    )
    parser.add_argument(
        "--master-playlist-name",
        type=str,
        default=None,
        help="Master playlist file name (default: master.m3u8)",
    )
    parser.add_argument(
        "--hls-time",
        type=int,
        default=None,
        help="Target segment duration in seconds",
    )
    parser.add_argument(
        "--hls-list-size",
        type=int,
        default=None,
        help="Maximum number of segments kept in each playlist",
    )
    parser.add_argument(
        "--ffmpeg",
        type=str,
        default="ffmpeg",
        help="ffmpeg executable (default: ffmpeg)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log stream progress",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Serve the output directory over HTTP and keep serving after the queue drains",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="HTTP port for --serve (default: 8080)",
    )
    return parser


def build_config(args: argparse.Namespace) -> StreamConfig:
    """Environment config with command line flags applied on top."""
    config = load_config(args.bitrates)

    overrides = {}
    if args.master_playlist_name is not None:
        overrides["master_playlist_name"] = args.master_playlist_name
    if args.hls_time is not None:
        overrides["hls_time"] = args.hls_time
    if args.hls_list_size is not None:
        overrides["hls_list_size"] = args.hls_list_size
    if args.debug:
        overrides["debug"] = True
    if overrides:
        config = dataclasses.replace(config, **overrides)

    return config.with_output_dir(args.output_dir)


def _print_dequeued(stream: Stream) -> None:
    for audio in stream.dequeued():
        print(f"dequeued {str(audio)!r}, {stream.queue_size()} left in the queue", flush=True)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    log_level = os.getenv("HLS_AUDIO_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        config = build_config(args)
    except ConfigError as e:
        print(f"hls-audio: {e}", file=sys.stderr)
        return 2

    if find_ffmpeg(args.ffmpeg) is None:
        print(f"hls-audio: {args.ffmpeg} not found", file=sys.stderr)
        return 2

    Path(args.output_dir).mkdir(parents=True, exist_ok=True)
    stream = Stream.from_config(config, encoder=FFmpegEncoder(args.ffmpeg))

    server: Optional[HLSFileServer] = None
    if args.serve:
        server = HLSFileServer(args.output_dir, port=args.port)
        server.start()
        print(f"try 'mplayer http://localhost:{server.server_port}/{config.master_playlist_name}' now", flush=True)

    opened: List[BinaryIO] = []
    try:
        for i, path in enumerate(args.files):
            data = open(path, "rb")
            opened.append(data)
            stream.append(audio_from_path(path, data, i))

        threading.Thread(target=_print_dequeued, args=(stream,), daemon=True, name="DequeuedPrinter").start()

        try:
            stream.start()
        except EmptyQueueError:
            logger.info("All audio streamed")

        if server is not None:
            logger.info("Queue drained, still serving (Ctrl-C to stop)")
            while True:
                time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Shutdown requested")
    except (HLSAudioError, OSError) as e:
        logger.error(f"hls-audio failed: {e}")
        return 1
    finally:
        for data in opened:
            data.close()
        if server is not None:
            server.stop()

    return 0
