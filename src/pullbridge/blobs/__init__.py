"""Blob kinds and the per-context BlobStore."""

from pullbridge.blobs._blob import NAMED, UNNAMED, Blob, NamedBlob, UnnamedBlob, blob_kind
from pullbridge.blobs._store import BlobStore, ReleaseReport

__all__ = [
    "NAMED",
    "UNNAMED",
    "Blob",
    "BlobStore",
    "NamedBlob",
    "ReleaseReport",
    "UnnamedBlob",
    "blob_kind",
]
