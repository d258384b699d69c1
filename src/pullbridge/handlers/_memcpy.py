"""Chunk-copy handler: assemble small binaries in memory."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pullbridge.blobs import UnnamedBlob
from pullbridge.errors import OutOfOrderChunkError

if TYPE_CHECKING:
    from pullbridge.blobs import BlobStore
    from pullbridge.messages import MemcpyPayload

logger = logging.getLogger(__name__)


def handle_memcpy(store: BlobStore, payload: MemcpyPayload, data: bytes | None = None) -> None:
    """Apply one memcpy event to ``store``.

    ``begin`` always resets the session. ``data`` must carry the index right
    after the last accepted chunk; a delivery without bytes is accepted and
    changes nothing. There is no ``end``: a patch reads whatever was gathered.
    """
    if payload.event == "begin":
        if payload.size is None:
            msg = "memcpy.size must be an int."
            raise TypeError(msg)
        store.put(payload.session, UnnamedBlob(size=payload.size))
        logger.debug("memcpy %s: begin, %d bytes declared", payload.session, payload.size)
        return

    if payload.event == "data":
        if payload.index is None:
            msg = "memcpy.index must be an int."
            raise TypeError(msg)
        blob = store.unnamed(payload.session)
        expected = blob.index + 1
        if payload.index != expected:
            raise OutOfOrderChunkError(payload.session, expected, payload.index)
        if data is not None:
            blob.chunks.append(bytes(data))
            blob.index = expected
            logger.debug("memcpy %s: chunk %d, %d bytes", payload.session, expected, len(data))
        return

    logger.debug("memcpy %s: ignoring event %r", payload.session, payload.event)
