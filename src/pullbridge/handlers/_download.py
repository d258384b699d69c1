"""Download handler: stream large binaries straight to local files."""

from __future__ import annotations

import logging
import os
import stat
from typing import TYPE_CHECKING, BinaryIO

from pullbridge.blobs import NamedBlob
from pullbridge.errors import SessionInUseError
from pullbridge.paths import resolve_local_path

if TYPE_CHECKING:
    from pathlib import Path

    from pullbridge.config import BridgeConfig
    from pullbridge.context import ProcessingContext
    from pullbridge.messages import DownloadPayload

logger = logging.getLogger(__name__)


def _open_for_write(path: Path, mode: int) -> BinaryIO:
    """Create or truncate ``path`` with exactly ``mode`` permission bits."""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
    try:
        # The process umask must not narrow the mode reported by the device.
        os.fchmod(fd, mode)
        return os.fdopen(fd, "wb")
    except BaseException:
        os.close(fd)
        raise


def handle_download(
    context: ProcessingContext,
    config: BridgeConfig,
    payload: DownloadPayload,
    data: bytes | None = None,
) -> None:
    """Apply one download event: ``begin`` opens, ``data`` appends, ``end`` closes."""
    store = context.store

    if payload.event == "begin":
        if payload.filename is None:
            msg = "download.filename must be a non-empty string."
            raise TypeError(msg)
        if isinstance(store.get(payload.session), NamedBlob):
            raise SessionInUseError(payload.session)

        mode = stat.S_IMODE(payload.mode) if payload.mode is not None else config.default_file_mode
        path = resolve_local_path(context, payload.filename)
        descriptor = _open_for_write(path, mode)
        store.put(payload.session, NamedBlob(filename=payload.filename, descriptor=descriptor))
        logger.debug("download %s: begin %s -> %s (mode %o)", payload.session, payload.filename, path, mode)
        return

    if payload.event == "data":
        blob = store.named(payload.session)
        if data is not None:
            blob.write(data)
        return

    if payload.event == "end":
        blob = store.take_named(payload.session)
        blob.close()
        logger.info("Downloaded %s (%d bytes)", blob.filename, blob.bytes_written)
        return

    logger.debug("download %s: ignoring event %r", payload.session, payload.event)
