"""Channel protocol and the frida script adapter."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import frida

from pullbridge.errors import ChannelClosedError

if TYPE_CHECKING:
    from frida.core import Script

logger = logging.getLogger(__name__)

MessageCallback = Callable[[Mapping[str, Any], bytes | None], None]


@runtime_checkable
class Channel(Protocol):
    """Bidirectional message channel shared with an injected agent.

    Deliveries may arrive on any thread and may overlap; implementations make
    no ordering promise beyond handing each delivery to every callback.
    """

    def connect(self, callback: MessageCallback) -> None:
        """Register ``callback`` for ``(message, data)`` deliveries."""
        ...

    def disconnect(self, callback: MessageCallback) -> None:
        """Stop delivering to ``callback``."""
        ...

    def post(self, message: Mapping[str, object], data: bytes | None = None) -> None:
        """Send a message (and optional binary payload) to the agent."""
        ...


class FridaScriptChannel:
    """Channel backed by a loaded ``frida.core.Script``."""

    def __init__(self, script: Script) -> None:
        """Initialize with a loaded agent script."""
        self._script = script

    @property
    def script(self) -> Script:
        """Return the wrapped script."""
        return self._script

    def connect(self, callback: MessageCallback) -> None:
        """Register ``callback`` for script messages."""
        self._script.on("message", callback)

    def disconnect(self, callback: MessageCallback) -> None:
        """Unregister ``callback``; a script already destroyed has nothing to detach."""
        try:
            self._script.off("message", callback)
        except ValueError:
            logger.debug("Message callback was not connected to %r", self._script)

    def post(self, message: Mapping[str, object], data: bytes | None = None) -> None:
        """Post a message to the agent."""
        try:
            self._script.post(dict(message), data=data)
        except frida.InvalidOperationError as exc:
            msg = f"Agent script is no longer available: {exc}"
            raise ChannelClosedError(msg) from exc

    def remote_base(self) -> str:
        """Ask the agent for the remote base directory of the dumped bundle."""
        try:
            base = self._script.exports_sync.base()
        except frida.InvalidOperationError as exc:
            msg = f"Agent script is no longer available: {exc}"
            raise ChannelClosedError(msg) from exc
        if not isinstance(base, str) or not base:
            msg = "Agent base() export must return a non-empty string."
            raise TypeError(msg)
        return base
