"""Patch handler: positioned writes into files produced by earlier downloads."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pullbridge.blobs import UNNAMED, UnnamedBlob, blob_kind
from pullbridge.errors import BlobNotFoundError, PatchSourceMissingError, WrongBlobKindError
from pullbridge.paths import resolve_local_path

if TYPE_CHECKING:
    from pullbridge.blobs import BlobStore
    from pullbridge.context import ProcessingContext
    from pullbridge.messages import PatchPayload

logger = logging.getLogger(__name__)


def _patch_source(store: BlobStore, payload: PatchPayload) -> bytes:
    """Return the bytes a patch writes: a chunk-copy blob, or a zero-filled region."""
    if payload.blob is not None:
        blob = store.get(payload.blob)
        if blob is None:
            raise BlobNotFoundError(payload.blob)
        if not isinstance(blob, UnnamedBlob):
            raise WrongBlobKindError(payload.blob, UNNAMED, blob_kind(blob))
        return blob.buffer()
    if payload.size:
        if payload.size < 0:
            raise PatchSourceMissingError(payload.filename)
        return bytes(payload.size)
    raise PatchSourceMissingError(payload.filename)


def handle_patch(context: ProcessingContext, payload: PatchPayload) -> None:
    """Write the patch source at ``payload.offset`` of an already dumped file.

    The target must exist. The source blob stays in the store.
    """
    path = resolve_local_path(context, payload.filename)
    with open(path, "r+b") as descriptor:
        buffer = _patch_source(context.store, payload)
        descriptor.seek(payload.offset)
        descriptor.write(buffer)
    logger.info("Patched %s at offset %d (%d bytes)", payload.filename, payload.offset, len(buffer))
