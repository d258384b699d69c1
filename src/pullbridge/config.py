"""BridgeConfig: tunables shared by every processing context of one dump."""

from collections.abc import Mapping
from dataclasses import dataclass

from pullbridge.serde import as_str_object_dict, optional_int, optional_string


@dataclass(frozen=True, slots=True)
class BridgeConfig:
    """Bridge configuration.

    ``payload_dirname`` fixes the local layout: a context whose remote base
    directory is ``/private/var/.../Demo.app`` writes below
    ``<output_root>/<payload_dirname>/Demo.app``.
    """

    payload_dirname: str = "Payload"
    ack_type: str = "ack"
    ack_size: int = 1
    default_file_mode: int = 0o644

    def __post_init__(self) -> None:
        """Validate field values."""
        if not self.payload_dirname:
            msg = "BridgeConfig.payload_dirname must be a non-empty string."
            raise ValueError(msg)
        if not self.ack_type:
            msg = "BridgeConfig.ack_type must be a non-empty string."
            raise ValueError(msg)
        if self.ack_size < 1:
            msg = "BridgeConfig.ack_size must be >= 1."
            raise ValueError(msg)
        if not 0 <= self.default_file_mode <= 0o7777:
            msg = "BridgeConfig.default_file_mode must be a permission mode between 0 and 0o7777."
            raise ValueError(msg)

    @property
    def ack_message(self) -> dict[str, object]:
        """Return the acknowledgement envelope posted after each handled message."""
        return {"type": self.ack_type}

    @property
    def ack_payload(self) -> bytes:
        """Return the acknowledgement payload bytes."""
        return bytes(self.ack_size)

    def to_dict(self) -> dict[str, object]:
        """Serialize BridgeConfig to a plain dictionary."""
        return {
            "payload_dirname": self.payload_dirname,
            "ack_type": self.ack_type,
            "ack_size": self.ack_size,
            "default_file_mode": self.default_file_mode,
        }

    @classmethod
    def from_dict(cls, value: Mapping[str, object]) -> "BridgeConfig":
        """Deserialize BridgeConfig from a plain dictionary, defaulting missing keys."""
        data = as_str_object_dict(value, field_name="BridgeConfig")
        defaults = cls()

        payload_dirname = optional_string(data.get("payload_dirname"), field_name="BridgeConfig.payload_dirname")
        ack_type = optional_string(data.get("ack_type"), field_name="BridgeConfig.ack_type")
        ack_size = optional_int(data.get("ack_size"), field_name="BridgeConfig.ack_size")
        default_file_mode = optional_int(data.get("default_file_mode"), field_name="BridgeConfig.default_file_mode")

        return cls(
            payload_dirname=payload_dirname if payload_dirname is not None else defaults.payload_dirname,
            ack_type=ack_type if ack_type is not None else defaults.ack_type,
            ack_size=ack_size if ack_size is not None else defaults.ack_size,
            default_file_mode=default_file_mode if default_file_mode is not None else defaults.default_file_mode,
        )
