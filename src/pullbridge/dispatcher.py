"""SerializingDispatcher: one-at-a-time, arrival-order processing of channel deliveries.

The channel may invoke its callback from several threads at once. Every
delivery is appended to a FIFO queue; the first caller that finds no drain in
progress becomes the drainer and keeps popping until the queue is empty,
including items that arrive while it works. The lock only guards the queue
and the draining flag, never a handler call.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from pullbridge.config import BridgeConfig
from pullbridge.messages import MESSAGE_ERROR, MESSAGE_SEND, ChannelMessage

if TYPE_CHECKING:
    from pullbridge.channel import Channel

logger = logging.getLogger(__name__)

Handler = Callable[[Mapping[str, object], bytes | None], None]
FaultCallback = Callable[[Exception], None]


class SerializingDispatcher:
    """Route channel deliveries to subject handlers strictly one at a time.

    Each ``send`` delivery is acknowledged after its handler returned,
    including deliveries whose subject has no handler. The first exception
    aborts the dispatcher: it is recorded, ``on_fault`` runs, queued
    deliveries are dropped unacknowledged and the exception propagates to the
    thread that was draining.
    """

    def __init__(
        self,
        channel: Channel,
        handlers: Mapping[str, Handler],
        *,
        config: BridgeConfig | None = None,
        on_fault: FaultCallback | None = None,
    ) -> None:
        """Initialize with the reply channel and the subject -> handler routing table."""
        self._channel = channel
        self._handlers = dict(handlers)
        self._config = config or BridgeConfig()
        self._on_fault = on_fault

        self._lock = threading.Lock()
        self._queue: deque[tuple[Mapping[str, Any], bytes | None]] = deque()
        self._draining = False
        self._idle = threading.Event()
        self._idle.set()
        self._fault: Exception | None = None
        self._acknowledged = 0

    @property
    def acknowledged(self) -> int:
        """Return how many deliveries have been acknowledged."""
        return self._acknowledged

    @property
    def fault(self) -> Exception | None:
        """Return the exception that aborted the dispatcher, if any."""
        return self._fault

    @property
    def pending(self) -> int:
        """Return the number of queued deliveries not yet picked up."""
        with self._lock:
            return len(self._queue)

    def submit(self, message: Mapping[str, Any], data: bytes | None = None) -> None:
        """Enqueue one delivery and drain unless another thread already does."""
        with self._lock:
            if self._fault is not None:
                logger.warning("Dropping delivery after fault: %r", message.get("type"))
                return
            self._queue.append((message, data))
            if self._draining:
                return
            self._draining = True
            self._idle.clear()
        self._drain()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until no drain is active; return ``False`` on timeout."""
        return self._idle.wait(timeout)

    def _drain(self) -> None:
        while True:
            with self._lock:
                if not self._queue:
                    self._draining = False
                    self._idle.set()
                    return
                message, data = self._queue.popleft()
            try:
                self._process(message, data)
            except Exception as exc:
                self._abort(exc)
                raise

    def _abort(self, exc: Exception) -> None:
        with self._lock:
            self._fault = exc
            dropped = len(self._queue)
            self._queue.clear()
            self._draining = False
        logger.exception("Bridge handler failed, aborting context (%d queued deliveries dropped)", dropped)
        try:
            if self._on_fault is not None:
                self._on_fault(exc)
        finally:
            self._idle.set()

    def _process(self, message: Mapping[str, Any], data: bytes | None) -> None:
        envelope = ChannelMessage.from_dict(message)
        if envelope.type == MESSAGE_ERROR:
            logger.warning("Agent reported an error: %s", envelope.description or dict(envelope.payload))
            return
        if envelope.type != MESSAGE_SEND:
            logger.debug("Ignoring %r message", envelope.type)
            return

        subject = envelope.subject
        handler = self._handlers.get(subject) if subject is not None else None
        if handler is None:
            logger.debug("No handler for subject %r", subject)
        else:
            handler(envelope.payload, data)

        self._channel.post(self._config.ack_message, self._config.ack_payload)
        self._acknowledged += 1
