"""
Audio queue for hls-audio.

Thread-safe FIFO of Audio items waiting to be converted. Any number of
threads may append while the stream's single consumer dequeues.
"""

import logging
import threading
from collections import deque
from typing import Deque, List

from hls_audio.audio import Audio
from hls_audio.errors import EmptyQueueError

logger = logging.getLogger(__name__)


class AudioQueue:
    """
    FIFO queue of Audio items guarded by a lock.

    The lock is only held for the list mutation itself, never while an item
    is being encoded or announced, so appenders are not stalled by a dequeue.
    """

    def __init__(self) -> None:
        self._queue: Deque[Audio] = deque()
        self._lock = threading.Lock()

    def append(self, audio: Audio) -> int:
        """
        Add an Audio to the end of the queue.

        Args:
            audio: Audio to add

        Returns:
            Queue size right after the append
        """
        with self._lock:
            self._queue.append(audio)
            size = len(self._queue)
        logger.debug(f"[QUEUE] Appended {audio} (id={audio.id}), size={size}")
        return size

    def dequeue(self) -> Audio:
        """
        Remove and return the first Audio in the queue.

        Returns:
            Audio from the front of the queue

        Raises:
            EmptyQueueError: If the queue is empty (nothing is consumed)
        """
        with self._lock:
            if not self._queue:
                raise EmptyQueueError()
            audio = self._queue.popleft()
        logger.debug(f"[QUEUE] Dequeued {audio} (id={audio.id})")
        return audio

    def size(self) -> int:
        """Get the number of Audio items in the queue."""
        with self._lock:
            return len(self._queue)

    def __len__(self) -> int:
        return self.size()

    def empty(self) -> bool:
        """Check if the queue is empty."""
        return self.size() == 0

    def clear(self) -> int:
        """
        Drop every pending Audio.

        Returns:
            Number of items dropped
        """
        with self._lock:
            dropped = len(self._queue)
            self._queue.clear()
        logger.debug(f"[QUEUE] Cleared {dropped} item(s)")
        return dropped

    def dump(self) -> List[str]:
        """Dump queue contents for debugging."""
        with self._lock:
            items = list(self._queue)
        return [f"id={a.id}, {a}" for a in items]
