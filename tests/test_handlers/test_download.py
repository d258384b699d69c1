"""Tests for the download handler."""

import stat
from pathlib import Path

import pytest
from conftest import BASEDIR

from pullbridge.blobs import NamedBlob, UnnamedBlob
from pullbridge.config import BridgeConfig
from pullbridge.context import ProcessingContext
from pullbridge.errors import SessionInUseError, UnknownSessionError, WrongBlobKindError
from pullbridge.handlers import handle_download
from pullbridge.messages import DownloadPayload

CONFIG = BridgeConfig()
REMOTE = f"{BASEDIR}/Frameworks/Core.framework/Core"


def _download(
    context: ProcessingContext,
    event: str,
    data: bytes | None = None,
    *,
    session: str = "d1",
    filename: str | None = None,
    mode: int | None = None,
    config: BridgeConfig = CONFIG,
) -> None:
    payload = DownloadPayload(event=event, session=session, filename=filename, mode=mode)
    handle_download(context, config, payload, data)


def _local(context: ProcessingContext) -> Path:
    return context.outdir / "Frameworks" / "Core.framework" / "Core"


def test_download_writes_payloads_in_order(context: ProcessingContext) -> None:
    _download(context, "begin", filename=REMOTE, mode=0o100755)
    _download(context, "data", b"\xcf\xfa\xed\xfe")
    _download(context, "data", b"rest of binary")
    _download(context, "end")

    local = _local(context)
    assert local.read_bytes() == b"\xcf\xfa\xed\xferest of binary"
    assert stat.S_IMODE(local.stat().st_mode) == 0o755
    assert "d1" not in context.store


def test_begin_stores_named_blob(context: ProcessingContext) -> None:
    _download(context, "begin", filename=REMOTE, mode=0o644)
    blob = context.store.named("d1")
    assert blob.filename == REMOTE
    assert blob.bytes_written == 0
    assert _local(context).exists()
    context.close()


def test_mode_is_not_narrowed_by_umask(context: ProcessingContext) -> None:
    _download(context, "begin", filename=REMOTE, mode=0o777)
    _download(context, "end")
    assert stat.S_IMODE(_local(context).stat().st_mode) == 0o777


def test_missing_mode_uses_configured_default(context: ProcessingContext) -> None:
    _download(context, "begin", filename=REMOTE, config=BridgeConfig(default_file_mode=0o600))
    _download(context, "end")
    assert stat.S_IMODE(_local(context).stat().st_mode) == 0o600


def test_begin_truncates_existing_file(context: ProcessingContext) -> None:
    local = _local(context)
    local.parent.mkdir(parents=True)
    local.write_bytes(b"stale content that is long")
    _download(context, "begin", filename=REMOTE, mode=0o644)
    _download(context, "data", b"new")
    _download(context, "end")
    assert local.read_bytes() == b"new"


def test_begin_requires_filename(context: ProcessingContext) -> None:
    with pytest.raises(TypeError, match="download.filename"):
        _download(context, "begin", mode=0o644)


def test_begin_refuses_open_session(context: ProcessingContext) -> None:
    _download(context, "begin", filename=REMOTE, mode=0o644)
    _download(context, "data", b"keep")
    with pytest.raises(SessionInUseError):
        _download(context, "begin", filename=f"{BASEDIR}/Other", mode=0o644)
    _download(context, "end")
    assert _local(context).read_bytes() == b"keep"
    assert not (context.outdir / "Other").exists()


def test_data_counts_bytes(context: ProcessingContext) -> None:
    _download(context, "begin", filename=REMOTE, mode=0o644)
    _download(context, "data", b"abc")
    _download(context, "data", b"defg")
    assert context.store.named("d1").bytes_written == 7
    context.close()


def test_data_without_payload_is_a_no_op(context: ProcessingContext) -> None:
    _download(context, "begin", filename=REMOTE, mode=0o644)
    _download(context, "data", None)
    assert context.store.named("d1").bytes_written == 0
    _download(context, "end")
    assert _local(context).read_bytes() == b""


def test_data_unknown_session(context: ProcessingContext) -> None:
    with pytest.raises(UnknownSessionError):
        _download(context, "data", b"abc")


def test_data_for_unnamed_blob(context: ProcessingContext) -> None:
    context.store.put("d1", UnnamedBlob(size=3))
    with pytest.raises(WrongBlobKindError):
        _download(context, "data", b"abc")


def test_end_unknown_session(context: ProcessingContext) -> None:
    with pytest.raises(UnknownSessionError):
        _download(context, "end")


def test_end_for_unnamed_blob_keeps_entry(context: ProcessingContext) -> None:
    context.store.put("d1", UnnamedBlob(size=3))
    with pytest.raises(WrongBlobKindError):
        _download(context, "end")
    assert "d1" in context.store


def test_end_closes_descriptor(context: ProcessingContext) -> None:
    _download(context, "begin", filename=REMOTE, mode=0o644)
    blob = context.store.named("d1")
    _download(context, "end")
    assert isinstance(blob, NamedBlob)
    assert blob.descriptor.closed


def test_interleaved_sessions(context: ProcessingContext) -> None:
    other = f"{BASEDIR}/Demo"
    _download(context, "begin", session="a", filename=REMOTE, mode=0o644)
    _download(context, "begin", session="b", filename=other, mode=0o755)
    _download(context, "data", b"A1", session="a")
    _download(context, "data", b"B1", session="b")
    _download(context, "data", b"A2", session="a")
    _download(context, "end", session="a")
    _download(context, "end", session="b")
    assert _local(context).read_bytes() == b"A1A2"
    assert (context.outdir / "Demo").read_bytes() == b"B1"
    assert len(context.store) == 0


def test_unknown_event_is_ignored(context: ProcessingContext) -> None:
    _download(context, "progress")
    assert len(context.store) == 0
