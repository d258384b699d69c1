"""ProcessingContext: per-attached-process state of one dump."""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from pullbridge.blobs import BlobStore, ReleaseReport
from pullbridge.channel import FridaScriptChannel
from pullbridge.config import BridgeConfig

if TYPE_CHECKING:
    from frida.core import Script

    from pullbridge.channel import Channel

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProcessingContext:
    """Everything one bridge needs: remote base, local output directory, channel and blobs.

    Contexts never share a BlobStore; the main application and each plugin
    host get their own.
    """

    basedir: str
    outdir: Path
    channel: Channel
    store: BlobStore = field(default_factory=BlobStore)

    def __post_init__(self) -> None:
        """Normalize the output directory to a Path."""
        self.outdir = Path(self.outdir)

    @classmethod
    def for_remote(
        cls,
        channel: Channel,
        *,
        basedir: str,
        output_root: str | Path,
        config: BridgeConfig | None = None,
    ) -> ProcessingContext:
        """Build a context whose output directory follows the configured layout."""
        config = config or BridgeConfig()
        name = posixpath.basename(posixpath.normpath(basedir))
        if not name or name in (".", ".."):
            msg = f"Remote base directory {basedir!r} has no usable name."
            raise ValueError(msg)
        outdir = Path(output_root) / config.payload_dirname / name
        return cls(basedir=basedir, outdir=outdir, channel=channel)

    @classmethod
    def for_script(
        cls,
        script: Script,
        *,
        output_root: str | Path,
        basedir: str | None = None,
        config: BridgeConfig | None = None,
    ) -> ProcessingContext:
        """Build a context for a loaded agent script.

        Plugin contexts pass the main application's ``basedir`` so that their
        files land inside the same bundle; otherwise the agent is asked.
        """
        channel = FridaScriptChannel(script)
        if basedir is None:
            basedir = channel.remote_base()
        return cls.for_remote(channel, basedir=basedir, output_root=output_root, config=config)

    def close(self) -> ReleaseReport:
        """Release the blob store, closing any descriptor still open."""
        report = self.store.close()
        logger.info(
            "Released blob store for %s: %d unnamed (%d bytes), %d named",
            self.basedir,
            report.unnamed,
            report.bytes_freed,
            report.named,
        )
        return report
