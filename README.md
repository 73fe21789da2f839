# mqbridge

Building blocks for a bridge between MQ queues and topics and NATS subjects
and channels:

- a message envelope (`BridgeMessage`) that carries a body, an MQMD-style
  header (`BridgeHeader`) and typed properties, encoded with MessagePack;
- configuration types (`BridgeConfig`, `ConnectorConfig` and friends) and a
  loader that fills them from configuration text, a file or a plain mapping;
- a streaming approximate `Histogram` for request timings.

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Messages

`mqbridge.message.BridgeMessage` holds the body bytes, a `BridgeHeader` and a
dictionary of named `Property` objects. Each property remembers its
`PropertyType` (`STRING`, `INT8`, `INT16`, `INT32`, `INT64`, `FLOAT32`,
`FLOAT64`, `BOOL`, `BYTES` or `NULL`), so values come back with the type they
were stored with.

```python
from mqbridge.message import BridgeMessage, PropertyType, decode_bridge_message

msg = BridgeMessage(b"hello world")
msg.set_property("greeting", "hello")
msg.set_property("answer", 42)                     # stored as INT64
msg.set_property("small", 9, PropertyType.INT8)    # explicit type

data = msg.encode()

copy = decode_bridge_message(data)
print(copy.body)
print(copy.get_typed_property("greeting"))
print(copy.get_int8_property("small"))
print(copy.has_property("answer"))
```

When no type is given, `set_property` infers one: `None` is `NULL`, `str` is
`STRING`, `bool` is `BOOL`, `int` is `INT64`, `float` is `FLOAT64` and byte
strings are `BYTES`. Other values raise `TypeError`; an integer that does not
fit the requested width raises `ValueError`.

`get_typed_property` returns the value in its stored type (`None` for a null
property) and raises `KeyError` when the property is missing, has an unknown
type or holds a value that does not match it. The sized getters
(`get_string_property`, `get_int8_property` to `get_int64_property`,
`get_float32_property`, `get_float64_property`, `get_bool_property`,
`get_bytes_property`) return `None` unless the property exists with exactly
that type. `delete_property` removes a property and returns its value, or
`None` if there was none.

`decode_bridge_message` raises `MessageDecodeError` (a `ValueError`) for
`None` or for bytes that are not a bridge message.

### Interchange file

The `mqbridge-interchange` command writes a reference message (body
`hello world`, a header with version 1, report 2 and message id `cafebabe`,
and one property of every non-null type) to the file given with `-o`. Other
implementations can read it to check they agree on the format. The same
message is available in code from
`mqbridge.interchange.build_interchange_message()`.

```
mqbridge-interchange -o interchange.bin
```

## Configuration

`mqbridge.config.default_bridge_config()` returns a `BridgeConfig` with a
5000 ms reconnect interval, coloured and timestamped logging without debug or
trace output, and streaming defaults (5000 ms publish-ack wait, 2000 ms
connect wait, discover prefix `_STAN.discover`, 16384 in-flight acks).
`ConnectorType` lists the connector kinds, from `Queue2NATS` to `NATS2Topic`.

`mqbridge.loader` fills any of these dataclasses, or your own, from text:

```python
from mqbridge.config import default_bridge_config
from mqbridge.loader import load_config_from_file, load_config_from_string

config = default_bridge_config()
load_config_from_string(
    """
    reconnectinterval: 2000
    nats: { servers: ["nats://localhost:4222"], connecttimeout: 2000 }
    connect: [
      { type: "Queue2NATS", queue: "DEV.QUEUE.1", subject: "test" }
    ]
    """,
    config,
    False,
)

load_config_from_file("bridge.conf", config, False)
```

The text syntax separates keys from values with `:`, `=` or whitespace and
entries with newlines or commas; it has `{ }` maps, `[ ]` lists, `#` and
`//` comments, unquoted strings, size suffixes such as `10kb`, and `$name`
references to earlier keys or environment variables. `parse_config_text`
returns the parsed dictionary, and `load_config_from_map` fills an object from
a dictionary you already have.

A field is looked up under its configuration key (for the bridge types, names
such as `ReconnectInterval` or `ConnectTimeout`) and then under that key in
lower case. With `strict` set to `False`, values already on the object act as
defaults for keys the text leaves out, and fields of unsupported types are
skipped. With `strict` set to `True`, every field must be present and of a
supported kind (bool, int, float, str, `dict[str, Any]`, `HostPort`, nested
dataclasses, and lists of these). Bad values, and files that can't be read,
raise `ConfigError`.

`mqbridge.hostport.HostPort` fields accept a bare port (`8080`) or a
`host:port` string; `mqbridge.fields.parse_host_port` does that parsing on its
own. `validate_file_path` and `validate_dir_path` in `mqbridge.paths` return
the absolute path of an existing file or directory, raising `ValueError` for
an empty path and `FileNotFoundError`, `IsADirectoryError` or
`NotADirectoryError` otherwise.

## Histogram

```python
from mqbridge.histogram import Histogram

h = Histogram(20)
for value in (12, 14, 18, 22, 30):
    h.add(value)

print(h.count(), h.mean(), h.quantile(0.5))
```

When more distinct values arrive than there are bins, the two closest bins
are merged into their weighted average. `quantile` returns -1 when the
quantile lies beyond the data. `scale` multiplies every bin value, which
helps when turning nanoseconds into milliseconds.

## What this package does not do

It does not run a bridge. There is no server that connects to NATS, NATS
streaming or an MQ queue manager, no connectors that move messages, no
reconnect handling and no HTTP monitoring endpoint. The configuration types
describe such a bridge, but nothing in the package acts on them.