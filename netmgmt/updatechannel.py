"""Per-peer channels delivering network updates."""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

CHANNEL_BUFFER_SIZE = 100


@dataclass
class UpdateMessage:
    """An update destined for one peer."""

    update: Any
    network_map: Any = None


class PeerChannel:
    """Bounded, closeable buffer of update messages for a single peer.

    Receiving from a closed channel first drains what is buffered and
    then yields ``None``.
    """

    def __init__(self, capacity: int = CHANNEL_BUFFER_SIZE) -> None:
        self._capacity = capacity
        self._items: deque[UpdateMessage] = deque()
        self._closed = False
        self._cond = threading.Condition()

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    @property
    def closed(self) -> bool:
        """Whether the channel has been closed."""
        with self._cond:
            return self._closed

    def _offer(self, message: UpdateMessage) -> bool:
        with self._cond:
            if self._closed or len(self._items) >= self._capacity:
                return False
            self._items.append(message)
            self._cond.notify()
            return True

    def get(self, timeout: float | None = None) -> UpdateMessage | None:
        """Wait for the next message; ``None`` once closed and drained.

        Raises queue.Empty when ``timeout`` expires first.
        """
        with self._cond:
            if not self._cond.wait_for(lambda: self._items or self._closed, timeout):
                raise queue.Empty
            return self._items.popleft() if self._items else None

    def get_nowait(self) -> UpdateMessage | None:
        """Return a buffered message, ``None`` if closed, else raise queue.Empty."""
        with self._cond:
            if self._items:
                return self._items.popleft()
            if self._closed:
                return None
            raise queue.Empty

    def close(self) -> None:
        """Close the channel and wake up all waiting receivers."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def __iter__(self) -> Iterator[UpdateMessage]:
        while (message := self.get()) is not None:
            yield message


class UpdateChannel:
    """Keeps one update channel per connected peer.

    ``metrics``, when given, is an object providing the methods
    ``count_send_update_duration(seconds, found, dropped)``,
    ``count_create_channel_duration(seconds, closed)``,
    ``count_close_channels_duration(seconds, count)``,
    ``count_close_channel_duration(seconds)``,
    ``count_get_all_connected_peers_duration(seconds, count)`` and
    ``count_has_channel_duration(seconds)``.
    """

    def __init__(self, metrics: Any = None) -> None:
        self._metrics = metrics
        self._channels: dict[str, PeerChannel] = {}
        self._lock = threading.Lock()

    def send_update(self, peer_id: str, update: UpdateMessage) -> None:
        """Queue an update for the peer, dropping it when the channel is full."""
        start = time.monotonic()
        found = dropped = False
        try:
            with self._lock:
                channel = self._channels.get(peer_id)
                if channel is None:
                    logger.debug("peer %s has no channel", peer_id)
                    return
                found = True
                if channel._offer(update):
                    logger.debug("update was sent to channel for peer %s", peer_id)
                else:
                    dropped = True
                    logger.warning(
                        "channel for peer %s is %d full or closed", peer_id, len(channel)
                    )
        finally:
            if self._metrics is not None:
                self._metrics.count_send_update_duration(
                    time.monotonic() - start, found, dropped
                )

    def create_channel(self, peer_id: str) -> PeerChannel:
        """Open a fresh channel for the peer, closing any previous one."""
        start = time.monotonic()
        closed = False
        try:
            with self._lock:
                previous = self._channels.pop(peer_id, None)
                if previous is not None:
                    closed = True
                    previous.close()
                channel = PeerChannel()
                self._channels[peer_id] = channel
                logger.debug("opened updates channel for a peer %s", peer_id)
                return channel
        finally:
            if self._metrics is not None:
                self._metrics.count_create_channel_duration(time.monotonic() - start, closed)

    def _close_channel(self, peer_id: str) -> None:
        channel = self._channels.pop(peer_id, None)
        if channel is None:
            logger.debug("closing updates channel: peer %s has no channel", peer_id)
            return
        channel.close()
        logger.debug("closed updates channel of a peer %s", peer_id)

    def close_channels(self, peer_ids: Iterable[str]) -> None:
        """Close the channel of every given peer."""
        start = time.monotonic()
        ids = list(peer_ids)
        try:
            with self._lock:
                for peer_id in ids:
                    self._close_channel(peer_id)
        finally:
            if self._metrics is not None:
                self._metrics.count_close_channels_duration(time.monotonic() - start, len(ids))

    def close_channel(self, peer_id: str) -> None:
        """Close the channel of one peer."""
        start = time.monotonic()
        try:
            with self._lock:
                self._close_channel(peer_id)
        finally:
            if self._metrics is not None:
                self._metrics.count_close_channel_duration(time.monotonic() - start)

    def get_all_connected_peers(self) -> set[str]:
        """Return the ids of all peers that have a channel."""
        start = time.monotonic()
        peers: set[str] = set()
        try:
            with self._lock:
                peers = set(self._channels)
            return peers
        finally:
            if self._metrics is not None:
                self._metrics.count_get_all_connected_peers_duration(
                    time.monotonic() - start, len(peers)
                )

    def has_channel(self, peer_id: str) -> bool:
        """Return whether the peer has a channel."""
        start = time.monotonic()
        try:
            with self._lock:
                return peer_id in self._channels
        finally:
            if self._metrics is not None:
                self._metrics.count_has_channel_duration(time.monotonic() - start)