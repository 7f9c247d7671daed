"""
ffmpeg argument construction for HLS audio variants.

Pure functions: the same config, audio and ladder always give the same
argument list.
"""

from typing import List, Sequence

from hls_audio.audio import Audio
from hls_audio.config import StreamConfig

# Appends to existing playlists, deletes segments that fell out of the
# window and never writes #EXT-X-ENDLIST so the stream stays live
HLS_FLAGS = "append_list+delete_segments+omit_endlist"


def bitrates_to_args(bitrates: Sequence[str]) -> List[str]:
    """
    Convert a bitrate ladder into ffmpeg variant arguments.

    Every variant maps the single input audio stream with its own bitrate,
    then -var_stream_map lists the variants in ladder order.

    Example:
        >>> bitrates_to_args(["128k", "64k"])
        ['-b:a:0', '128k', '-map', 'a:0', '-b:a:1', '64k', '-map', 'a:0', '-var_stream_map', 'a:0 a:1']
    """
    args: List[str] = []
    stream_map = ""
    for i, rate in enumerate(bitrates):
        args += [f"-b:a:{i}", rate, "-map", "a:0"]
        stream_map += f" a:{i}"

    return args + ["-var_stream_map", stream_map.strip()]


def resolve_encoding(config: StreamConfig, audio: Audio) -> str:
    """Codec for this item: its override if set, the stream default otherwise."""
    return audio.override_encoding or config.encoding


def build_ffmpeg_args(config: StreamConfig, audio: Audio) -> List[str]:
    """
    Build the full ffmpeg argument list (without the executable) for one item.

    Input is read from stdin in real time (-re -i pipe:) and existing output
    is overwritten (-y).
    """
    args = ["-y", "-re", "-i", "pipe:", "-c:a", resolve_encoding(config, audio)]
    args += bitrates_to_args(config.bitrates)
    args += ["-hls_time", str(config.hls_time), "-hls_list_size", str(config.hls_list_size)]
    args += ["-hls_flags", HLS_FLAGS]
    args += ["-metadata", "title=" + config.metadata_title(audio)]
    args += ["-master_pl_name", config.master_playlist_name]
    args += ["-hls_segment_filename", config.segment_filename, config.playlist_name]
    return args
