"""Map remote paths to local destinations under a context's output directory."""

from __future__ import annotations

import posixpath
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from pullbridge.errors import PathEscapeError

if TYPE_CHECKING:
    from pullbridge.context import ProcessingContext


def resolve_local_path(context: ProcessingContext, remote_path: str) -> Path:
    """Return ``outdir / relative(remote_path, basedir)``, creating its parent directory.

    Directory existence is checked on every call. A path component that
    exists but is not a directory surfaces as the ``OSError`` from mkdir.
    """
    relative = posixpath.relpath(posixpath.normpath(remote_path), posixpath.normpath(context.basedir))
    parts = PurePosixPath(relative).parts
    if not parts or parts[0] == ".." or relative == ".":
        raise PathEscapeError(remote_path)

    local = context.outdir.joinpath(*parts)
    parent = local.parent
    if not parent.is_dir():
        parent.mkdir(parents=True, exist_ok=True)
    return local
