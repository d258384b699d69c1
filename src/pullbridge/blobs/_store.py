"""BlobStore: session-keyed arena of in-flight blobs for one processing context."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pullbridge.blobs._blob import NAMED, UNNAMED, NamedBlob, UnnamedBlob, blob_kind
from pullbridge.errors import SessionInUseError, UnknownSessionError, WrongBlobKindError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from pullbridge.blobs._blob import Blob

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReleaseReport:
    """Result of releasing a BlobStore at context teardown."""

    unnamed: int
    named: int
    bytes_freed: int


class BlobStore:
    """Mapping from session identifier to blob state.

    Unnamed blobs stay in the store after a patch consumed them; they are
    released together with everything else by :meth:`close`. Named blobs
    leave the store through :meth:`take_named`, which transfers ownership of
    the open descriptor to the caller.
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._blobs: dict[str, Blob] = {}

    def __len__(self) -> int:
        return len(self._blobs)

    def __contains__(self, session: object) -> bool:
        return session in self._blobs

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._blobs))

    def get(self, session: str) -> Blob | None:
        """Return the blob for ``session`` or ``None``."""
        return self._blobs.get(session)

    def put(self, session: str, blob: Blob) -> None:
        """Store ``blob`` under ``session``, replacing a previous unnamed entry.

        A session that still owns an open file cannot be reused.
        """
        current = self._blobs.get(session)
        if isinstance(current, NamedBlob):
            raise SessionInUseError(session)
        self._blobs[session] = blob

    def unnamed(self, session: str) -> UnnamedBlob:
        """Return the unnamed blob for ``session``."""
        blob = self._blobs.get(session)
        if blob is None:
            raise UnknownSessionError(session)
        if not isinstance(blob, UnnamedBlob):
            raise WrongBlobKindError(session, UNNAMED, blob_kind(blob))
        return blob

    def named(self, session: str) -> NamedBlob:
        """Return the named blob for ``session``."""
        blob = self._blobs.get(session)
        if blob is None:
            raise UnknownSessionError(session)
        if not isinstance(blob, NamedBlob):
            raise WrongBlobKindError(session, NAMED, blob_kind(blob))
        return blob

    def take_named(self, session: str) -> NamedBlob:
        """Remove the named blob for ``session`` and hand its descriptor to the caller."""
        blob = self.named(session)
        del self._blobs[session]
        return blob

    def close(self) -> ReleaseReport:
        """Release every entry, closing descriptors still owned by named blobs.

        All descriptors are closed even when one of them fails; the first
        failure is raised once the store is empty.
        """
        blobs = self._blobs
        self._blobs = {}

        unnamed = 0
        named = 0
        bytes_freed = 0
        failure: OSError | None = None
        for session, blob in blobs.items():
            if isinstance(blob, UnnamedBlob):
                unnamed += 1
                bytes_freed += blob.received
                continue
            named += 1
            try:
                blob.close()
            except OSError as exc:
                logger.exception("Failed to close descriptor of blob %s (%s)", session, blob.filename)
                if failure is None:
                    failure = exc

        if failure is not None:
            raise failure
        return ReleaseReport(unnamed=unnamed, named=named, bytes_freed=bytes_freed)
