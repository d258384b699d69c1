"""Shared fixtures: a recording in-process channel and a context rooted in tmp_path."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pytest

from pullbridge.channel import MessageCallback
from pullbridge.context import ProcessingContext

BASEDIR = "/private/var/containers/Bundle/Application/0000/Demo.app"


class RecordingChannel:
    """Channel double that records replies and lets tests emit deliveries."""

    def __init__(self) -> None:
        self.callbacks: list[MessageCallback] = []
        self.posted: list[tuple[dict[str, object], bytes | None]] = []

    def connect(self, callback: MessageCallback) -> None:
        self.callbacks.append(callback)

    def disconnect(self, callback: MessageCallback) -> None:
        self.callbacks.remove(callback)

    def post(self, message: Mapping[str, object], data: bytes | None = None) -> None:
        self.posted.append((dict(message), data))

    def emit(self, message: Mapping[str, Any], data: bytes | None = None) -> None:
        for callback in list(self.callbacks):
            callback(message, data)


def send(subject: str, **fields: object) -> dict[str, object]:
    """Build a ``send`` envelope for ``subject``."""
    return {"type": "send", "payload": {"subject": subject, **fields}}


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def context(tmp_path: Path, channel: RecordingChannel) -> ProcessingContext:
    return ProcessingContext(basedir=BASEDIR, outdir=tmp_path / "out", channel=channel)
