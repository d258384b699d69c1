"""Replay a recorded agent conversation through a Bridge, without a device."""

import tempfile
from collections.abc import Mapping
from pathlib import Path

from pullbridge import ProcessingContext, open_bridge


class ReplayChannel:
    """Minimal Channel: keeps callbacks and prints acknowledgements."""

    def __init__(self) -> None:
        self.callbacks = []

    def connect(self, callback) -> None:
        self.callbacks.append(callback)

    def disconnect(self, callback) -> None:
        self.callbacks.remove(callback)

    def post(self, message: Mapping[str, object], data: bytes | None = None) -> None:
        print(f"  <- {dict(message)} ({len(data or b'')} byte)")

    def emit(self, subject: str, data: bytes | None = None, **fields: object) -> None:
        print(f"  -> {subject} {fields}")
        for callback in list(self.callbacks):
            callback({"type": "send", "payload": {"subject": subject, **fields}}, data)


basedir = "/private/var/containers/Bundle/Application/0000/Demo.app"
channel = ReplayChannel()

with tempfile.TemporaryDirectory() as tmp:
    context = ProcessingContext.for_remote(channel, basedir=basedir, output_root=tmp)

    with open_bridge(context) as bridge:
        # ---- download: stream a binary to disk ----
        channel.emit("download", event="begin", session="d1", filename=f"{basedir}/Demo", stat={"mode": 0o100755})
        channel.emit("download", b"\xcf\xfa\xed\xfe" + bytes(28), event="data", session="d1")
        channel.emit("download", event="end", session="d1")

        # ---- memcpy + patch: overwrite the encrypted region ----
        channel.emit("memcpy", event="begin", session="m1", size=4)
        channel.emit("memcpy", b"\x0c\x00\x00\x01", event="data", session="m1", index=1)
        channel.emit("patch", filename=f"{basedir}/Demo", offset=4, blob="m1")
        channel.emit("patch", filename=f"{basedir}/Demo", offset=16, size=8)

        bridge.wait()
        print(f"acknowledged={bridge.acknowledged}")

    local = Path(context.outdir) / "Demo"
    print(f"{local.relative_to(tmp)}: {local.read_bytes().hex()}")
