"""UnnamedBlob and NamedBlob: the two kinds of in-flight transfer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from typing import BinaryIO

UNNAMED = "unnamed"
NAMED = "named"


@dataclass(slots=True)
class UnnamedBlob:
    """In-memory blob assembled from indexed chunks, later consumed by a patch."""

    size: int
    index: int = 0
    chunks: list[bytes] = field(default_factory=list)

    @property
    def received(self) -> int:
        """Return the number of bytes accumulated so far."""
        return sum(len(chunk) for chunk in self.chunks)

    def buffer(self) -> bytes:
        """Return the accumulated chunks as one contiguous buffer."""
        return b"".join(self.chunks)


@dataclass(slots=True)
class NamedBlob:
    """File-backed blob streamed straight to local storage.

    The descriptor belongs to this entry alone; only the download handler
    writes to it and only the BlobStore hands it out for closing.
    """

    filename: str
    descriptor: BinaryIO
    bytes_written: int = 0

    def write(self, data: bytes) -> int:
        """Append ``data`` at the current position and return the bytes written."""
        written = self.descriptor.write(data)
        self.bytes_written += written
        return written

    def close(self) -> None:
        """Close the descriptor."""
        self.descriptor.close()


Blob = Union[UnnamedBlob, NamedBlob]


def blob_kind(blob: Blob) -> str:
    """Return the kind name of a blob."""
    if isinstance(blob, UnnamedBlob):
        return UNNAMED
    return NAMED
