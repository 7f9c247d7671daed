"""
Audio model for hls-audio.

Defines the Audio dataclass, the unit of work appended to a Stream.
"""

from dataclasses import dataclass, field
from typing import BinaryIO, Dict, Optional


@dataclass(eq=False)
class Audio:
    """
    A single audio item to be converted into HLS.
    
    Ownership of ``data`` passes to the encoder invocation that consumes it;
    callers must not read from it after appending the item to a Stream.
    
    Instances compare by identity so the same item is never confused with an
    equal-looking one while it moves through the queue.
    
    Attributes:
        data: Readable binary stream with the encoded source audio (e.g. an open MP3 file)
        id: Caller-assigned identifier
        artist: Artist name
        title: Track title
        metadata: Optional free-form key/value metadata
        override_encoding: Audio codec to use for this item instead of the stream default
    """
    data: BinaryIO
    id: int = 0
    artist: str = ""
    title: str = ""
    metadata: Optional[Dict[str, str]] = field(default=None)
    override_encoding: Optional[str] = None
    
    def __str__(self) -> str:
        return f"{self.artist} - {self.title}"


def default_metadata_title(audio: Audio) -> str:
    """Default ``-metadata title=`` value: "<artist> - <title>"."""
    return f"{audio.artist} - {audio.title}"
