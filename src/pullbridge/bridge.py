"""Bridge: wire a processing context's channel to the protocol handlers."""

from __future__ import annotations

import concurrent.futures
import logging
import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pullbridge.config import BridgeConfig
from pullbridge.dispatcher import Handler, SerializingDispatcher
from pullbridge.errors import ContextAbortedError
from pullbridge.handlers import handle_download, handle_memcpy, handle_patch
from pullbridge.messages import DownloadPayload, MemcpyPayload, PatchPayload

if TYPE_CHECKING:
    from types import TracebackType

    from pullbridge.blobs import ReleaseReport
    from pullbridge.context import ProcessingContext

logger = logging.getLogger(__name__)


class Bridge:
    """Bridge facade for one processing context.

    Typical use by a dump orchestrator::

        with open_bridge(context) as bridge:
            rpc = executor.submit(script.exports_sync.dump, {"executableOnly": False})
            bridge.supervise(rpc, stall_timeout=120)
    """

    def __init__(self, context: ProcessingContext, *, config: BridgeConfig | None = None) -> None:
        """Initialize the dispatcher for ``context``; call :meth:`attach` to start receiving."""
        self._context = context
        self._config = config or BridgeConfig()
        self._attached = False
        self._closed = False
        self._dispatcher = SerializingDispatcher(
            context.channel,
            self._handlers(),
            config=self._config,
            on_fault=self._abort,
        )

    @property
    def context(self) -> ProcessingContext:
        """Return the processing context."""
        return self._context

    @property
    def config(self) -> BridgeConfig:
        """Return the bridge configuration."""
        return self._config

    @property
    def acknowledged(self) -> int:
        """Return the number of acknowledged deliveries."""
        return self._dispatcher.acknowledged

    @property
    def fault(self) -> Exception | None:
        """Return the fault that aborted this context, if any."""
        return self._dispatcher.fault

    def _handlers(self) -> dict[str, Handler]:
        context = self._context
        config = self._config

        def memcpy(payload: Mapping[str, object], data: bytes | None) -> None:
            handle_memcpy(context.store, MemcpyPayload.from_dict(payload), data)

        def download(payload: Mapping[str, object], data: bytes | None) -> None:
            handle_download(context, config, DownloadPayload.from_dict(payload), data)

        def patch(payload: Mapping[str, object], data: bytes | None) -> None:
            handle_patch(context, PatchPayload.from_dict(payload))

        return {"memcpy": memcpy, "download": download, "patch": patch}

    def _abort(self, exc: Exception) -> None:
        logger.error("Aborting context for %s: %s", self._context.basedir, exc)
        self._context.close()

    def deliver(self, message: Mapping[str, Any], data: bytes | None = None) -> None:
        """Feed one channel delivery to the dispatcher."""
        self._dispatcher.submit(message, data)

    def attach(self) -> None:
        """Start receiving deliveries from the context's channel."""
        if self._attached:
            return
        self._context.channel.connect(self.deliver)
        self._attached = True

    def detach(self) -> None:
        """Stop receiving deliveries; queued ones are still processed."""
        if not self._attached:
            return
        self._context.channel.disconnect(self.deliver)
        self._attached = False

    def wait(self, timeout: float | None = None) -> bool:
        """Block until every delivered message was processed.

        Return ``False`` when ``timeout`` expires first. Raise
        :class:`ContextAbortedError` if a handler faulted.
        """
        drained = self._dispatcher.wait(timeout)
        fault = self._dispatcher.fault
        if fault is not None:
            raise ContextAbortedError(fault) from fault
        return drained

    def supervise(
        self,
        rpc: concurrent.futures.Future[Any],
        *,
        poll_interval: float = 1.0,
        stall_timeout: float | None = None,
    ) -> Any:
        """Wait for an agent RPC that drives the dump, then for the queue to drain.

        The agent withholds its next message until it is acknowledged, so a
        faulted context leaves the RPC blocked forever. Raise
        :class:`ContextAbortedError` as soon as a fault is recorded, and
        ``TimeoutError`` when no message was acknowledged for
        ``stall_timeout`` seconds. Return the RPC result.
        """
        last_acknowledged = self.acknowledged
        last_progress = time.monotonic()
        while True:
            try:
                result = rpc.result(timeout=poll_interval)
                break
            except concurrent.futures.TimeoutError:
                pass
            self.wait(0)
            if self.acknowledged != last_acknowledged:
                last_acknowledged = self.acknowledged
                last_progress = time.monotonic()
            elif stall_timeout is not None and time.monotonic() - last_progress > stall_timeout:
                msg = f"No message acknowledged for {stall_timeout} seconds."
                raise TimeoutError(msg)
        self.wait()
        return result

    def close(self, timeout: float | None = 30.0) -> ReleaseReport | None:
        """Detach, wait for the running drain and release the blob store.

        Return ``None`` if the store was already released. Raise
        ``TimeoutError`` without touching the store when a handler is still
        running after ``timeout`` seconds.
        """
        self.detach()
        if self._closed:
            return None
        if not self._dispatcher.wait(timeout):
            msg = f"Bridge for {self._context.basedir} still draining after {timeout} seconds."
            raise TimeoutError(msg)
        self._closed = True
        if self._dispatcher.fault is not None:
            # Already released by the abort.
            return None
        return self._context.close()

    def __enter__(self) -> Bridge:
        self.attach()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def open_bridge(context: ProcessingContext, *, config: BridgeConfig | None = None) -> Bridge:
    """Create a Bridge for ``context`` and attach it to the channel."""
    bridge = Bridge(context, config=config)
    bridge.attach()
    return bridge
