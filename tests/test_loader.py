from dataclasses import dataclass, field
from typing import Any

import pytest

from mqbridge.config import ConnectorType, default_bridge_config
from mqbridge.fields import ConfigError
from mqbridge.loader import (
    load_config_from_file,
    load_config_from_map,
    load_config_from_string,
    parse_config_text,
)
from mqbridge.paths import validate_file_path


@dataclass
class SimpleConf:
    name: str = ""
    age: int = 0
    opt_out: bool = False
    balance: float = 0.0


@dataclass
class MapConf:
    one: dict[str, Any] = field(default_factory=dict)
    two: dict[str, Any] = field(default_factory=dict)


CONFIG = """
    Name: "stephen"
    Age: 28
    OptOut: true
    Balance: 5.5
"""


def test_load_from_string():
    config = load_config_from_string(CONFIG, SimpleConf(), False)
    assert config == SimpleConf("stephen", 28, True, 5.5)


def test_load_from_file(tmp_path):
    path = tmp_path / "prefix.conf"
    path.write_text(CONFIG)
    full = validate_file_path(str(path))
    config = load_config_from_file(full, SimpleConf(), False)
    assert config == SimpleConf("stephen", 28, True, 5.5)


def test_load_from_missing_file():
    with pytest.raises(ConfigError):
        load_config_from_file("/foo/bar/baz", SimpleConf(), False)


def test_load_from_map():
    text = """
    One: {
    Name: "stephen"
    Age: 28
    OptOut: true
    Balance: 5.5
    }, Two: {
    Name: "zero"
    Age: 32
    OptOut: false
    Balance: 7.7
    }
    """
    config = load_config_from_string(text, MapConf(), False)
    one = load_config_from_map(config.one, SimpleConf(), False)
    two = load_config_from_map(config.two, SimpleConf(), False)
    assert one == SimpleConf("stephen", 28, True, 5.5)
    assert two == SimpleConf("zero", 32, False, 7.7)


def test_equal_sign_and_space():
    text = """
    name: "stephen"
    age = 28
    optout true
    balance: 5.5
    """
    assert load_config_from_string(text, SimpleConf(), False) == SimpleConf(
        "stephen", 28, True, 5.5
    )


def test_unquoted_values_and_arrays():
    data = parse_config_text(
        'Interface: localhost:8080\nints: [10, 15, -1]\nstrings: 43a\n'
        'Children: [{Name: "mister", Child:{Name: "zero"}}]'
    )
    assert data == {
        "Interface": "localhost:8080",
        "ints": [10, 15, -1],
        "strings": "43a",
        "Children": [{"Name": "mister", "Child": {"Name": "zero"}}],
    }


def test_comments_booleans_and_sizes():
    data = parse_config_text("# note\na: yes // trailing\nb: off\nc: 2kb\nd: 'x\\y'")
    assert data == {"a": True, "b": False, "c": 2048, "d": "x\\y"}


def test_variables():
    assert parse_config_text("port: 4222\nlisten: $port") == {"port": 4222, "listen": 4222}
    with pytest.raises(ConfigError):
        parse_config_text("listen: $mqbridge_no_such_variable_here")


@pytest.mark.parametrize("text", ['a: "open', "a: [1, 2", "a: {b: 1", "a: }"])
def test_parse_errors(text):
    with pytest.raises(ConfigError):
        parse_config_text(text)


def test_empty_text():
    assert parse_config_text("") == {}


def test_bridge_config_from_string():
    text = """
    ReconnectInterval: 1000
    NATS: {Servers: ["nats://localhost:4222"], ConnectTimeout: 2000}
    Connect: [{Type: "Queue2NATS", Subject: "test", Queue: "DEV.QUEUE.1",
               MQ: {QueueManager: "QM1"}, ExcludeHeaders: true}]
    """
    config = load_config_from_string(text, default_bridge_config(), False)
    assert config.reconnect_interval == 1000
    assert config.nats.servers == ["nats://localhost:4222"]
    assert config.stan.pub_ack_wait == 5000
    assert len(config.connect) == 1
    assert config.connect[0].type == ConnectorType.QUEUE2NATS.value
    assert config.connect[0].mq.queue_manager == "QM1"
    assert config.connect[0].exclude_headers is True