import struct

import pytest

from mqbridge.message import (
    BridgeHeader,
    BridgeMessage,
    MessageDecodeError,
    Property,
    PropertyType,
    decode_bridge_message,
)

EXPECTED = [
    ("string", "hello world", PropertyType.STRING),
    ("int8", 9, PropertyType.INT8),
    ("int16", 259, PropertyType.INT16),
    ("int32", 222222222, PropertyType.INT32),
    ("int64", 222222222222222222, PropertyType.INT64),
    ("float32", 3.14, PropertyType.FLOAT32),
    ("float64", 6.4999, PropertyType.FLOAT64),
    ("bool", True, PropertyType.BOOL),
    ("bytes", b"one two three four", PropertyType.BYTES),
]


def _matches(expected, actual):
    if isinstance(expected, float):
        return actual == pytest.approx(expected, rel=1e-6)
    return actual == expected


def _full_message():
    msg = BridgeMessage(b"hello world")
    for name, value, ptype in EXPECTED:
        msg.set_property(name, value, ptype)
    return msg


def test_encode_decode():
    msg = BridgeMessage(b"hello world")
    msg.header = BridgeHeader(version=1, report=2)

    copy = decode_bridge_message(msg.encode())
    assert copy.body == b"hello world"
    assert copy.body == msg.body
    assert copy.header.version == msg.header.version
    assert copy.header.report == msg.header.report
    assert copy.header == msg.header


def test_empty_message_is_empty_map():
    assert BridgeMessage().encode() == b"\x80"


def test_body_only_wire_format():
    assert BridgeMessage(b"hi").encode() == b"\x81\xa4body\xc4\x02hi"


def test_bad_decode():
    with pytest.raises(MessageDecodeError):
        decode_bridge_message(b"hello world")


def test_nil_decode():
    with pytest.raises(MessageDecodeError):
        decode_bridge_message(None)


def test_empty_decode():
    with pytest.raises(MessageDecodeError):
        decode_bridge_message(b"")


@pytest.mark.parametrize("name,value,ptype", EXPECTED)
def test_property_types(name, value, ptype):
    msg = BridgeMessage(b"hello world")
    msg.set_property(name, value, ptype)

    assert _matches(value, msg.get_typed_property(name))
    assert _matches(value, getattr(msg, f"get_{name}_property")(name))
    assert msg.has_property(name)
    assert getattr(msg, f"get_{name}_property")("bad") is None


def test_property_types_round_trip():
    msg = _full_message()
    copy = decode_bridge_message(msg.encode())
    for name, value, _ in EXPECTED:
        assert _matches(value, copy.get_typed_property(name))
        assert copy.get_typed_property(name) == msg.get_typed_property(name)


def test_float32_is_packed_single_precision():
    msg = BridgeMessage()
    msg.set_property("f", 3.14, PropertyType.FLOAT32)
    assert b"\xca" + struct.pack(">f", 3.14) in msg.encode()


def test_int_property_is_64_bit():
    msg = BridgeMessage()
    msg.set_property("test", 3333)
    assert msg.get_typed_property("test") == 3333
    assert msg.get_int64_property("test") == 3333
    assert msg.properties["test"].type == PropertyType.INT64
    assert msg.has_property("test")


def test_null_property():
    msg = BridgeMessage()
    msg.set_property("test", None)
    assert msg.get_typed_property("test") is None
    assert msg.properties["test"].type == PropertyType.NULL
    assert msg.has_property("test")
    with pytest.raises(KeyError):
        msg.get_typed_property("bad")


def test_null_property_round_trip():
    msg = BridgeMessage()
    msg.set_property("test", None)
    copy = decode_bridge_message(msg.encode())
    assert copy.has_property("test")
    assert copy.get_typed_property("test") is None


def test_zero_values_round_trip():
    msg = BridgeMessage()
    msg.set_property("s", "")
    msg.set_property("b", False)
    msg.set_property("i", 0, PropertyType.INT16)
    copy = decode_bridge_message(msg.encode())
    assert copy.get_string_property("s") == ""
    assert copy.get_bool_property("b") is False
    assert copy.get_int16_property("i") == 0


def test_delete_property():
    msg = BridgeMessage()
    msg.set_property("test", "hello")
    assert msg.get_typed_property("test") == "hello"
    assert msg.has_property("test")

    assert msg.delete_property("test") == "hello"
    assert not msg.has_property("test")
    assert msg.delete_property("test") is None


def test_mismatch_property():
    msg = BridgeMessage()
    msg.set_property("test", "hello")
    assert msg.get_int32_property("test") is None


def test_unknown_type():
    msg = BridgeMessage()
    with pytest.raises(TypeError):
        msg.set_property("test", ["hello", "world"])


def test_explicit_type_mismatch():
    msg = BridgeMessage()
    with pytest.raises(TypeError):
        msg.set_property("test", "hello", PropertyType.INT8)
    with pytest.raises(ValueError):
        msg.set_property("test", 300, PropertyType.INT8)
    assert not msg.has_property("test")


def test_unknown_type_on_get():
    msg = BridgeMessage()
    msg.properties["test"] = Property(type=-1, value=[1, 2, 3])
    with pytest.raises(KeyError):
        msg.get_typed_property("test")


@pytest.mark.parametrize(
    "ptype,value,getter",
    [
        (PropertyType.STRING, -1, "get_string_property"),
        (PropertyType.INT8, "hello", "get_int8_property"),
        (PropertyType.INT16, "hello", "get_int16_property"),
        (PropertyType.INT32, "hello", "get_int32_property"),
        (PropertyType.INT64, "hello", "get_int64_property"),
        (PropertyType.FLOAT32, "hello", "get_float32_property"),
        (PropertyType.FLOAT64, "hello", "get_float64_property"),
    ],
)
def test_bad_property_values(ptype, value, getter):
    msg = BridgeMessage()
    msg.properties["test"] = Property(type=ptype, value=value)
    assert getattr(msg, getter)("test") is None
    with pytest.raises(KeyError):
        msg.get_typed_property("test")


def test_header_bytes_round_trip():
    msg = BridgeMessage(b"x")
    msg.header = BridgeHeader(msg_id=b"cafebabe", reply_to_q="Q1", priority=4)
    copy = decode_bridge_message(msg.encode())
    assert copy.header.msg_id == b"cafebabe"
    assert copy.header.reply_to_q == "Q1"
    assert copy.header.priority == 4