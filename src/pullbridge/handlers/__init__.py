"""Protocol handlers: chunk-copy, download and patch."""

from pullbridge.handlers._download import handle_download
from pullbridge.handlers._memcpy import handle_memcpy
from pullbridge.handlers._patch import handle_patch

__all__ = [
    "handle_download",
    "handle_memcpy",
    "handle_patch",
]
