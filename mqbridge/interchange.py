"""Write a reference bridge message to a file for cross-implementation checks."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from mqbridge.message import BridgeHeader, BridgeMessage, PropertyType

logger = logging.getLogger(__name__)

_PROPERTIES = (
    ("string", "hello world", PropertyType.STRING),
    ("int8", 9, PropertyType.INT8),
    ("int16", 259, PropertyType.INT16),
    ("int32", 222222222, PropertyType.INT32),
    ("int64", 222222222222222222, PropertyType.INT64),
    ("float32", 3.14, PropertyType.FLOAT32),
    ("float64", 6.4999, PropertyType.FLOAT64),
    ("bool", True, PropertyType.BOOL),
    ("bytes", b"one two three four", PropertyType.BYTES),
)


def build_interchange_message() -> BridgeMessage:
    """Return the reference message with a header and one property of each type."""
    msg = BridgeMessage(b"hello world")
    msg.header = BridgeHeader(version=1, report=2, msg_id=b"cafebabe")
    for name, value, ptype in _PROPERTIES:
        msg.set_property(name, value, ptype)
    return msg


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Encode the reference message and write it to the -o path."""
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    parser = argparse.ArgumentParser(description="write the bridge interchange file")
    parser.add_argument("-o", dest="output", default="", help="output filepath")
    args = parser.parse_args(argv)

    try:
        Path(args.output).write_bytes(build_interchange_message().encode())
    except OSError as exc:
        logger.error("error - %s", exc)
        return 1

    logger.info("wrote interchange file to %s", args.output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())