"""pullbridge: reconstruct files streamed out of an instrumented process."""

import importlib.metadata as importlib_metadata

from pullbridge.blobs import BlobStore, NamedBlob, ReleaseReport, UnnamedBlob
from pullbridge.bridge import Bridge, open_bridge
from pullbridge.channel import Channel, FridaScriptChannel
from pullbridge.config import BridgeConfig
from pullbridge.context import ProcessingContext
from pullbridge.dispatcher import SerializingDispatcher
from pullbridge.errors import (
    BlobNotFoundError,
    ChannelClosedError,
    ContextAbortedError,
    OutOfOrderChunkError,
    PatchSourceMissingError,
    PathEscapeError,
    PullBridgeError,
    SessionInUseError,
    UnknownSessionError,
    WrongBlobKindError,
)
from pullbridge.paths import resolve_local_path


def _detect_version() -> str:
    """Return installed package version or a local fallback when metadata is unavailable."""
    try:
        return importlib_metadata.version("pullbridge")
    except importlib_metadata.PackageNotFoundError:
        return "0.0.0+unknown"


__version__ = _detect_version()

__all__ = [
    "BlobNotFoundError",
    "BlobStore",
    "Bridge",
    "BridgeConfig",
    "Channel",
    "ChannelClosedError",
    "ContextAbortedError",
    "FridaScriptChannel",
    "NamedBlob",
    "OutOfOrderChunkError",
    "PatchSourceMissingError",
    "PathEscapeError",
    "ProcessingContext",
    "PullBridgeError",
    "ReleaseReport",
    "SerializingDispatcher",
    "SessionInUseError",
    "UnknownSessionError",
    "UnnamedBlob",
    "WrongBlobKindError",
    "open_bridge",
    "resolve_local_path",
]
