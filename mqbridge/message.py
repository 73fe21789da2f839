"""Bridge message envelope: body, MQMD-style header and typed properties.

Messages are serialised as msgpack maps whose keys and omission rules match
the envelope exchanged with the MQ side of the bridge.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field, fields
from enum import IntEnum
from typing import Any, Callable, Optional

import msgpack
from msgpack.exceptions import UnpackException


class MessageDecodeError(ValueError):
    """Raised when bytes cannot be decoded into a bridge message."""


class PropertyType(IntEnum):
    """Type codes stored alongside every property value."""

    STRING = 0
    INT8 = 1
    INT16 = 2
    INT32 = 3
    INT64 = 4
    FLOAT32 = 5
    FLOAT64 = 6
    BOOL = 7
    BYTES = 8
    NULL = 9


_INT_BITS = {
    PropertyType.INT8: 8,
    PropertyType.INT16: 16,
    PropertyType.INT32: 32,
    PropertyType.INT64: 64,
}

_ZERO_VALUES: dict[PropertyType, Any] = {
    PropertyType.STRING: "",
    PropertyType.INT8: 0,
    PropertyType.INT16: 0,
    PropertyType.INT32: 0,
    PropertyType.INT64: 0,
    PropertyType.FLOAT32: 0.0,
    PropertyType.FLOAT64: 0.0,
    PropertyType.BOOL: False,
    PropertyType.BYTES: b"",
    PropertyType.NULL: None,
}

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _wrap_int(value: int, bits: int) -> int:
    """Truncate an integer to a signed integer of the given width."""
    half = 1 << (bits - 1)
    return ((value + half) % (1 << bits)) - half


def _to_float32(value: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError as exc:
        raise ValueError(f"{value!r} does not fit in a 32-bit float") from exc


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (bool, int, float, str, bytes, bytearray)):
        return not value
    return False


def _header_field(key: str, kind: type, default: Any) -> Any:
    return field(default=default, metadata={"key": key, "kind": kind})


@dataclass
class BridgeHeader:
    """Message descriptor fields carried between MQ and NATS."""

    version: int = _header_field("version", int, 0)
    report: int = _header_field("report", int, 0)
    msg_type: int = _header_field("type", int, 0)
    expiry: int = _header_field("exp", int, 0)
    feedback: int = _header_field("feed", int, 0)
    encoding: int = _header_field("enc", int, 0)
    coded_char_set_id: int = _header_field("charset", int, 0)
    format: str = _header_field("format", str, "")
    priority: int = _header_field("priority", int, 0)
    persistence: int = _header_field("persist", int, 0)
    msg_id: bytes = _header_field("msg_id", bytes, b"")
    correl_id: bytes = _header_field("corr_id", bytes, b"")
    backout_count: int = _header_field("backout", int, 0)
    reply_to_q: str = _header_field("rep_q", str, "")
    reply_to_q_mgr: str = _header_field("rep_qmgr", str, "")
    user_identifier: str = _header_field("user_id", str, "")
    accounting_token: bytes = _header_field("acct_token", bytes, b"")
    appl_identity_data: str = _header_field("appl_id", str, "")
    put_appl_type: int = _header_field("appl_type", int, 0)
    put_appl_name: str = _header_field("appl_name", str, "")
    put_date: str = _header_field("date", str, "")
    put_time: str = _header_field("time", str, "")
    appl_origin_data: str = _header_field("appl_orig_data", str, "")
    group_id: bytes = _header_field("grp_id", bytes, b"")
    msg_seq_number: int = _header_field("seq", int, 0)
    offset: int = _header_field("offset", int, 0)
    msg_flags: int = _header_field("flags", int, 0)
    original_length: int = _header_field("orig_length", int, 0)
    reply_to_channel: str = _header_field("reply_to_channel", str, "")

    def to_wire(self) -> dict[str, Any]:
        """Return the non-empty fields keyed by their wire names."""
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value:
                out[f.metadata["key"]] = bytes(value) if f.metadata["kind"] is bytes else value
        return out

    @classmethod
    def from_wire(cls, data: Any) -> BridgeHeader:
        """Build a header from a decoded wire map, ignoring unknown keys."""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise MessageDecodeError("message header is not a map")
        values: dict[str, Any] = {}
        for f in fields(cls):
            key = f.metadata["key"]
            if key not in data or data[key] is None:
                continue
            values[f.name] = _decode_header_value(key, f.metadata["kind"], data[key])
        return cls(**values)


def _decode_header_value(key: str, kind: type, value: Any) -> Any:
    if kind is int:
        if not _is_int(value) or not _INT32_MIN <= value <= _INT32_MAX:
            raise MessageDecodeError(f"header field {key!r} is not a 32-bit integer")
        return value
    if kind is str:
        if not isinstance(value, str):
            raise MessageDecodeError(f"header field {key!r} is not a string")
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    raise MessageDecodeError(f"header field {key!r} is not a byte string")


@dataclass
class Property:
    """A property value together with its type code."""

    type: Any = PropertyType.STRING
    value: Any = None

    def pack(self, packer: msgpack.Packer, single_packer: msgpack.Packer) -> bytes:
        entries: list[tuple[str, bytes]] = []
        if self.type != PropertyType.STRING:
            entries.append(("type", packer.pack(int(self.type))))
        if not _is_empty(self.value):
            value = self.value
            if self.type == PropertyType.FLOAT32 and isinstance(value, float):
                entries.append(("value", single_packer.pack(value)))
            else:
                if isinstance(value, bytearray):
                    value = bytes(value)
                entries.append(("value", packer.pack(value)))
        parts = [packer.pack_map_header(len(entries))]
        for key, blob in entries:
            parts.append(packer.pack(key))
            parts.append(blob)
        return b"".join(parts)


def _coerce(value: Any, prop_type: PropertyType) -> Any:
    """Check that value suits prop_type and return it in stored form."""
    if prop_type is PropertyType.NULL:
        if value is not None:
            raise TypeError("a null property must have the value None")
        return None
    if prop_type is PropertyType.STRING:
        if not isinstance(value, str):
            raise TypeError(f"a string property can't hold {type(value).__name__}")
        return value
    if prop_type is PropertyType.BOOL:
        if not isinstance(value, bool):
            raise TypeError(f"a bool property can't hold {type(value).__name__}")
        return value
    if prop_type in _INT_BITS:
        if not _is_int(value):
            raise TypeError(f"an integer property can't hold {type(value).__name__}")
        bits = _INT_BITS[prop_type]
        if not -(1 << (bits - 1)) <= value < (1 << (bits - 1)):
            raise ValueError(f"{value} does not fit in a {bits}-bit integer")
        return value
    if prop_type in (PropertyType.FLOAT32, PropertyType.FLOAT64):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"a float property can't hold {type(value).__name__}")
        return _to_float32(float(value)) if prop_type is PropertyType.FLOAT32 else float(value)
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise TypeError(f"a bytes property can't hold {type(value).__name__}")
    return bytes(value)


def _infer_type(value: Any) -> PropertyType:
    if value is None:
        return PropertyType.NULL
    if isinstance(value, str):
        return PropertyType.STRING
    if isinstance(value, bool):
        return PropertyType.BOOL
    if isinstance(value, int):
        return PropertyType.INT64
    if isinstance(value, float):
        return PropertyType.FLOAT64
    if isinstance(value, (bytes, bytearray, memoryview)):
        return PropertyType.BYTES
    raise TypeError(f"can't set property of type {type(value).__name__!r}")


@dataclass
class BridgeMessage:
    """The NATS-side wrapper for an MQ message."""

    body: bytes = b""
    header: BridgeHeader = field(default_factory=BridgeHeader)
    properties: dict[str, Property] = field(default_factory=dict)

    def set_property(self, name: str, value: Any, prop_type: Any = None) -> None:
        """Store a property, inferring its type from the value unless one is given.

        Without an explicit type, integers are stored as 64-bit and floats as
        64-bit. TypeError is raised for unsupported values.
        """
        if prop_type is None:
            ptype = _infer_type(value)
        else:
            ptype = PropertyType(prop_type)
        self.properties[name] = Property(type=ptype, value=_coerce(value, ptype))

    def _raw(self, name: str, prop_type: PropertyType) -> Any:
        prop = self.properties.get(name)
        if prop is None or prop.type != prop_type:
            return None
        return prop.value

    def _sized_int(self, name: str, prop_type: PropertyType) -> Optional[int]:
        value = self._raw(name, prop_type)
        if not _is_int(value):
            return None
        return _wrap_int(value, _INT_BITS[prop_type])

    def get_typed_property(self, name: str) -> Any:
        """Return the property's value in its stored type.

        KeyError is raised if the property is missing, has an unknown type or
        holds a value that does not match its type. Null properties give None.
        """
        prop = self.properties.get(name)
        if prop is None:
            raise KeyError(name)
        if prop.type == PropertyType.NULL:
            return None
        getter = _GETTERS.get(prop.type)
        if getter is None:
            raise KeyError(f"property {name!r} has unknown type {prop.type!r}")
        value = getter(self, name)
        if value is None:
            raise KeyError(f"property {name!r} does not hold a value of its type")
        return value

    def get_string_property(self, name: str) -> Optional[str]:
        """Return a string property, or None if missing or of another type."""
        value = self._raw(name, PropertyType.STRING)
        return value if isinstance(value, str) else None

    def get_int8_property(self, name: str) -> Optional[int]:
        """Return an 8-bit integer property, or None."""
        return self._sized_int(name, PropertyType.INT8)

    def get_int16_property(self, name: str) -> Optional[int]:
        """Return a 16-bit integer property, or None."""
        return self._sized_int(name, PropertyType.INT16)

    def get_int32_property(self, name: str) -> Optional[int]:
        """Return a 32-bit integer property, or None."""
        return self._sized_int(name, PropertyType.INT32)

    def get_int64_property(self, name: str) -> Optional[int]:
        """Return a 64-bit integer property, or None."""
        return self._sized_int(name, PropertyType.INT64)

    def get_float32_property(self, name: str) -> Optional[float]:
        """Return a 32-bit float property at single precision, or None."""
        value = self._raw(name, PropertyType.FLOAT32)
        return _to_float32(value) if isinstance(value, float) else None

    def get_float64_property(self, name: str) -> Optional[float]:
        """Return a 64-bit float property, or None."""
        value = self._raw(name, PropertyType.FLOAT64)
        return value if isinstance(value, float) else None

    def get_bool_property(self, name: str) -> Optional[bool]:
        """Return a bool property, or None."""
        value = self._raw(name, PropertyType.BOOL)
        return value if isinstance(value, bool) else None

    def get_bytes_property(self, name: str) -> Optional[bytes]:
        """Return a bytes property, or None."""
        value = self._raw(name, PropertyType.BYTES)
        return bytes(value) if isinstance(value, (bytes, bytearray)) else None

    def has_property(self, name: str) -> bool:
        """Return True if the property exists."""
        return name in self.properties

    def delete_property(self, name: str) -> Any:
        """Remove a property and return its value, or None if it was absent."""
        prop = self.properties.pop(name, None)
        return None if prop is None else prop.value

    def encode(self) -> bytes:
        """Serialise the message to msgpack bytes."""
        packer = msgpack.Packer(use_bin_type=True)
        single_packer = msgpack.Packer(use_bin_type=True, use_single_float=True)

        sections: list[tuple[str, bytes]] = []
        if self.body:
            sections.append(("body", packer.pack(bytes(self.body))))
        header = self.header.to_wire()
        if header:
            sections.append(("header", packer.pack(header)))
        if self.properties:
            parts = [packer.pack_map_header(len(self.properties))]
            for name, prop in self.properties.items():
                parts.append(packer.pack(name))
                parts.append(prop.pack(packer, single_packer))
            sections.append(("props", b"".join(parts)))

        out = [packer.pack_map_header(len(sections))]
        for key, blob in sections:
            out.append(packer.pack(key))
            out.append(blob)
        return b"".join(out)


_GETTERS: dict[PropertyType, Callable[[BridgeMessage, str], Any]] = {
    PropertyType.STRING: BridgeMessage.get_string_property,
    PropertyType.INT8: BridgeMessage.get_int8_property,
    PropertyType.INT16: BridgeMessage.get_int16_property,
    PropertyType.INT32: BridgeMessage.get_int32_property,
    PropertyType.INT64: BridgeMessage.get_int64_property,
    PropertyType.FLOAT32: BridgeMessage.get_float32_property,
    PropertyType.FLOAT64: BridgeMessage.get_float64_property,
    PropertyType.BOOL: BridgeMessage.get_bool_property,
    PropertyType.BYTES: BridgeMessage.get_bytes_property,
}


def _decode_properties(raw: Any) -> dict[str, Property]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise MessageDecodeError("message properties are not a map")
    props: dict[str, Property] = {}
    for name, entry in raw.items():
        if not isinstance(name, str) or not isinstance(entry, dict):
            raise MessageDecodeError("malformed message property")
        type_code = entry.get("type", 0)
        if type_code is None:
            type_code = 0
        if not _is_int(type_code):
            raise MessageDecodeError(f"property {name!r} has a non-integer type")
        try:
            ptype: Any = PropertyType(type_code)
        except ValueError:
            ptype = type_code
        value = entry.get("value")
        if value is None:
            value = _ZERO_VALUES.get(ptype)
        props[name] = Property(type=ptype, value=value)
    return props


def decode_bridge_message(data: Optional[bytes]) -> BridgeMessage:
    """Decode msgpack bytes into a BridgeMessage.

    MessageDecodeError is raised for None or malformed input.
    """
    if data is None:
        raise MessageDecodeError("attempt to decode bridge message of zero length")
    try:
        raw = msgpack.unpackb(bytes(data), raw=False)
    except (ValueError, TypeError, UnpackException) as exc:
        raise MessageDecodeError(f"invalid bridge message: {exc}") from exc
    if not isinstance(raw, dict):
        raise MessageDecodeError("bridge message is not a map")

    body = raw.get("body")
    if body is None:
        body = b""
    elif isinstance(body, str):
        body = body.encode("utf-8")
    elif not isinstance(body, (bytes, bytearray)):
        raise MessageDecodeError("message body is not a byte string")

    return BridgeMessage(
        body=bytes(body),
        header=BridgeHeader.from_wire(raw.get("header")),
        properties=_decode_properties(raw.get("props")),
    )