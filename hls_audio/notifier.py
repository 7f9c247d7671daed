"""
Dequeued notifications for hls-audio.

When the stream takes an Audio off its queue it announces it on a
DequeuedChannel. Delivery is best-effort: the item is handed over only if an
observer is waiting to receive it within the configured timeout, otherwise it
is dropped. Nothing is buffered for observers that show up later, and the
stream never waits for delivery to resolve.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import Deque, Iterator, Optional

from hls_audio.audio import Audio

logger = logging.getLogger(__name__)


class DequeuedChannel:
    """
    Rendezvous channel of dequeued Audio.

    A sender only hands an item over when a receiver is blocked in get(), so
    an item is either taken by a live observer or not delivered at all.
    Safe to use from any number of sender and receiver threads.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._receivers = 0  # receivers currently blocked in get()
        self._handoff: Deque[Audio] = deque()  # items promised to waiting receivers

    def get(self, timeout: Optional[float] = None) -> Audio:
        """
        Wait for the next dequeued Audio.

        Args:
            timeout: Seconds to wait, or None to wait forever

        Returns:
            The Audio that was just dequeued

        Raises:
            TimeoutError: If nothing was delivered within timeout
        """
        with self._cond:
            self._receivers += 1
            self._cond.notify_all()
            try:
                if not self._cond.wait_for(lambda: len(self._handoff) > 0, timeout):
                    raise TimeoutError("no audio dequeued within timeout")
                return self._handoff.popleft()
            finally:
                self._receivers -= 1

    def offer(self, audio: Audio, timeout: float) -> bool:
        """
        Hand audio to a waiting receiver, waiting at most timeout seconds for one.

        Returns:
            True if a receiver took the item, False if it was dropped
        """
        with self._cond:
            # Every pending handoff is already claimed by one waiting receiver
            has_free_receiver = lambda: self._receivers > len(self._handoff)
            if not self._cond.wait_for(has_free_receiver, timeout):
                return False
            self._handoff.append(audio)
            self._cond.notify_all()
            return True

    def __iter__(self) -> Iterator[Audio]:
        """Yield dequeued Audio forever (blocks between items)."""
        while True:
            yield self.get()


class DequeuedNotifier:
    """
    Fire-and-forget publisher for the dequeued channel.

    Each notify() starts its own daemon thread that races the delivery
    against the timeout, so a slow or absent observer never delays the
    caller. The notifier holds no lock shared with the audio queue.
    """

    def __init__(self, timeout: float, channel: Optional[DequeuedChannel] = None) -> None:
        """
        Args:
            timeout: Seconds to wait for an observer before dropping an item
            channel: Channel to publish on (a new one by default)
        """
        self.timeout = timeout
        self.channel = channel if channel is not None else DequeuedChannel()
        self.delivered_count = 0
        self.dropped_count = 0
        self._count_lock = threading.Lock()

    def notify(self, audio: Audio) -> threading.Thread:
        """
        Publish audio without blocking.

        Returns:
            The delivery thread (already started)
        """
        thread = threading.Thread(
            target=self._deliver,
            args=(audio,),
            daemon=True,
            name=f"DequeuedNotify-{audio.id}",
        )
        thread.start()
        return thread

    def _deliver(self, audio: Audio) -> None:
        started = time.monotonic()
        delivered = self.channel.offer(audio, self.timeout)
        with self._count_lock:
            if delivered:
                self.delivered_count += 1
            else:
                self.dropped_count += 1
        if delivered:
            logger.debug(f"[NOTIFY] Delivered {audio} after {time.monotonic() - started:.3f}s")
        else:
            logger.debug(f"[NOTIFY] Timed out sending {audio} to dequeued channel, dropped")
