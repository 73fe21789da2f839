import pytest

from mqbridge.interchange import build_interchange_message, main
from mqbridge.message import decode_bridge_message

EXPECTED = {
    "string": "hello world",
    "int8": 9,
    "int16": 259,
    "int32": 222222222,
    "int64": 222222222222222222,
    "float64": 6.4999,
    "bool": True,
    "bytes": b"one two three four",
}


def _check(msg):
    for name, value in EXPECTED.items():
        assert msg.get_typed_property(name) == value
    assert msg.get_typed_property("float32") == pytest.approx(3.14, rel=1e-6)
    assert msg.body == b"hello world"
    assert msg.header.version == 1
    assert msg.header.report == 2
    assert msg.header.msg_id == b"cafebabe"


def test_build_interchange_message():
    _check(build_interchange_message())


def test_main_writes_decodable_file(tmp_path):
    out = tmp_path / "interchange.bin"
    assert main(["-o", str(out)]) == 0
    _check(decode_bridge_message(out.read_bytes()))


def test_written_file_matches_encoding(tmp_path):
    out = tmp_path / "interchange.bin"
    main(["-o", str(out)])
    assert out.read_bytes() == build_interchange_message().encode()


def test_main_fails_without_output():
    assert main([]) == 1


def test_main_fails_on_unwritable_path(tmp_path):
    out = tmp_path / "missing" / "interchange.bin"
    assert main(["-o", str(out)]) == 1
    assert not out.exists()