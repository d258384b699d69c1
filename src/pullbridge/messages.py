"""Typed views over the messages an injected agent sends through the channel.

The agent speaks JSON: every delivery is an envelope ``{"type": ..., "payload": ...}``
where ``payload`` carries a ``subject`` that selects the handler. Binary bytes
travel next to the envelope, never inside it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from pullbridge.serde import (
    as_str_object_dict,
    optional_int,
    optional_string,
    require_non_negative_int,
    require_string,
)

MESSAGE_SEND = "send"
MESSAGE_ERROR = "error"


@dataclass(frozen=True, slots=True)
class ChannelMessage:
    """Envelope of one channel delivery."""

    type: str
    payload: Mapping[str, object] = field(default_factory=lambda: MappingProxyType({}))
    description: str | None = None

    def __post_init__(self) -> None:
        """Freeze the payload mapping."""
        object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))

    @property
    def subject(self) -> str | None:
        """Return the payload subject, or ``None`` for envelopes without one."""
        subject = self.payload.get("subject")
        return subject if isinstance(subject, str) else None

    @classmethod
    def from_dict(cls, value: Mapping[str, object]) -> ChannelMessage:
        """Deserialize an envelope as delivered by the channel.

        A payload that is not a mapping (``send("progress")``, log lines) is
        kept empty, so the envelope has no subject; the payload fields are
        validated by the handler selected for a known subject.
        """
        data = as_str_object_dict(value, field_name="message")
        message_type = require_string(data.get("type"), field_name="message.type")
        raw_payload = data.get("payload")
        payload: Mapping[str, object] = {}
        if isinstance(raw_payload, Mapping):
            payload = {str(key): item for key, item in raw_payload.items()}
        description = data.get("description")
        return cls(
            type=message_type,
            payload=payload,
            description=description if isinstance(description, str) else None,
        )


@dataclass(frozen=True, slots=True)
class MemcpyPayload:
    """Chunk-copy event: ``begin`` declares an in-memory blob, ``data`` adds one chunk."""

    event: str
    session: str
    size: int | None = None
    index: int | None = None

    @classmethod
    def from_dict(cls, value: Mapping[str, object]) -> MemcpyPayload:
        """Deserialize a memcpy payload."""
        data = as_str_object_dict(value, field_name="memcpy")
        return cls(
            event=require_string(data.get("event"), field_name="memcpy.event"),
            session=require_string(data.get("session"), field_name="memcpy.session"),
            size=optional_int(data.get("size"), field_name="memcpy.size"),
            index=optional_int(data.get("index"), field_name="memcpy.index"),
        )


@dataclass(frozen=True, slots=True)
class DownloadPayload:
    """Download event: ``begin`` opens a local file, ``data`` appends, ``end`` closes."""

    event: str
    session: str
    filename: str | None = None
    mode: int | None = None

    @classmethod
    def from_dict(cls, value: Mapping[str, object]) -> DownloadPayload:
        """Deserialize a download payload; ``stat.mode`` is flattened into ``mode``."""
        data = as_str_object_dict(value, field_name="download")
        stat = data.get("stat")
        mode = None
        if stat is not None:
            stat_data = as_str_object_dict(stat, field_name="download.stat")
            mode = optional_int(stat_data.get("mode"), field_name="download.stat.mode")
        return cls(
            event=require_string(data.get("event"), field_name="download.event"),
            session=require_string(data.get("session"), field_name="download.session"),
            filename=optional_string(data.get("filename"), field_name="download.filename"),
            mode=mode,
        )


@dataclass(frozen=True, slots=True)
class PatchPayload:
    """Patch request: write a chunk-copy blob, or ``size`` zero bytes, at ``offset``."""

    filename: str
    offset: int
    blob: str | None = None
    size: int | None = None

    @classmethod
    def from_dict(cls, value: Mapping[str, object]) -> PatchPayload:
        """Deserialize a patch payload.

        ``blob`` is honored only when it is a string, as the agent leaves it
        out (or null) for zero-fill requests.
        """
        data = as_str_object_dict(value, field_name="patch")
        blob = data.get("blob")
        return cls(
            filename=require_string(data.get("filename"), field_name="patch.filename"),
            offset=require_non_negative_int(data.get("offset"), field_name="patch.offset"),
            blob=blob if isinstance(blob, str) else None,
            size=optional_int(data.get("size"), field_name="patch.size"),
        )
