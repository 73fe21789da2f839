"""Read configuration text, files and maps into configuration dataclasses.

The text format is a relaxed JSON: keys and values are separated by ":",
"=" or whitespace; entries by newlines or commas; comments start with "#"
or "//"; strings may be left unquoted; "$name" refers to an earlier key or
an environment variable.
"""

from __future__ import annotations

import os
import re
from typing import Any

from mqbridge.fields import ConfigError, parse_struct

_INT_RE = re.compile(r"[+-]?\d+")
_FLOAT_RE = re.compile(r"[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?")
_SIZE_RE = re.compile(r"([+-]?\d+)(k|kb|m|mb|g|gb)", re.IGNORECASE)
_SIZES = {
    "k": 1000,
    "kb": 1024,
    "m": 1000**2,
    "mb": 1024**2,
    "g": 1000**3,
    "gb": 1024**3,
}
_BOOLS = {"true": True, "yes": True, "on": True, "false": False, "no": False, "off": False}
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\", "/": "/", "'": "'"}


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.scopes: list[dict[str, Any]] = []

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _error(self, message: str) -> ConfigError:
        line = self.text.count("\n", 0, self.pos) + 1
        return ConfigError(f"config parse error on line {line}: {message}")

    def _skip_blank(self) -> None:
        while True:
            c = self._peek()
            if c and c in " \t\r\n,":
                self.pos += 1
            elif c == "#" or self.text.startswith("//", self.pos):
                end = self.text.find("\n", self.pos)
                self.pos = len(self.text) if end < 0 else end
            else:
                return

    def _skip_spaces(self, newlines: bool = False) -> None:
        chars = " \t\r\n" if newlines else " \t"
        while self._peek() and self._peek() in chars:
            self.pos += 1

    def parse(self) -> dict[str, Any]:
        return self._map_body(None)

    def _map_body(self, closing: Any) -> dict[str, Any]:
        result: dict[str, Any] = {}
        self.scopes.append(result)
        try:
            while True:
                self._skip_blank()
                c = self._peek()
                if not c:
                    if closing:
                        raise self._error("unterminated map")
                    return result
                if c == closing:
                    self.pos += 1
                    return result
                if c in "}]":
                    raise self._error(f"unexpected {c!r}")
                key = self._key()
                self._skip_spaces()
                if self._peek() and self._peek() in ":=":
                    self.pos += 1
                    self._skip_spaces(newlines=True)
                if not self._peek():
                    raise self._error(f"missing value for key {key!r}")
                result[key] = self._value()
                after = self._peek()
                if after and after not in " \t\r\n,#/" and after != closing:
                    raise self._error(f"unexpected {after!r} after value of {key!r}")
        finally:
            self.scopes.pop()

    def _key(self) -> str:
        if self._peek() in ('"', "'"):
            return self._quoted()
        start = self.pos
        while self._peek() and self._peek() not in " \t\r\n:={[,#":
            self.pos += 1
        if self.pos == start:
            raise self._error("missing key")
        return self.text[start : self.pos]

    def _value(self) -> Any:
        c = self._peek()
        if c == "{":
            self.pos += 1
            return self._map_body("}")
        if c == "[":
            return self._array()
        if c in ('"', "'"):
            return self._quoted()
        start = self.pos
        while self._peek() and self._peek() not in " \t\r\n,]}#":
            self.pos += 1
        token = self.text[start : self.pos]
        if not token:
            raise self._error(f"unexpected {c!r}")
        return self._scalar(token)

    def _array(self) -> list[Any]:
        self.pos += 1
        items: list[Any] = []
        while True:
            self._skip_blank()
            c = self._peek()
            if not c:
                raise self._error("unterminated array")
            if c == "]":
                self.pos += 1
                return items
            if c == "}":
                raise self._error("unexpected '}' in array")
            items.append(self._value())

    def _quoted(self) -> str:
        quote = self._peek()
        self.pos += 1
        chars: list[str] = []
        while True:
            c = self._peek()
            if not c:
                raise self._error("unterminated string")
            self.pos += 1
            if c == quote:
                return "".join(chars)
            if c == "\\" and quote == '"':
                esc = self._peek()
                self.pos += 1
                if esc == "u":
                    digits = self.text[self.pos : self.pos + 4]
                    if not re.fullmatch(r"[0-9a-fA-F]{4}", digits):
                        raise self._error("bad unicode escape")
                    chars.append(chr(int(digits, 16)))
                    self.pos += 4
                elif esc in _ESCAPES:
                    chars.append(_ESCAPES[esc])
                else:
                    raise self._error(f"bad escape \\{esc}")
            else:
                chars.append(c)

    def _scalar(self, token: str) -> Any:
        lowered = token.lower()
        if lowered in _BOOLS:
            return _BOOLS[lowered]
        if _INT_RE.fullmatch(token):
            return int(token)
        if _FLOAT_RE.fullmatch(token):
            return float(token)
        size = _SIZE_RE.fullmatch(token)
        if size:
            return int(size.group(1)) * _SIZES[size.group(2).lower()]
        if token.startswith("$") and len(token) > 1:
            return self._variable(token[1:])
        return token

    def _variable(self, name: str) -> Any:
        for scope in reversed(self.scopes):
            if name in scope:
                return scope[name]
        if name in os.environ:
            value = os.environ[name]
            return value if value.startswith("$") else self._scalar(value)
        raise self._error(f"variable reference for {name!r} on line could not be resolved")


def parse_config_text(text: str) -> dict[str, Any]:
    """Parse configuration text into a dictionary."""
    return _Parser(text).parse()


def load_config_from_string(config_string: str, config: Any, strict: bool) -> Any:
    """Parse config_string and fill the dataclass instance config from it."""
    return parse_struct(parse_config_text(config_string), config, strict)


def load_config_from_file(config_file: Any, config: Any, strict: bool) -> Any:
    """Read a configuration file and fill config from it.

    Existing values act as defaults unless strict is set, in which case every
    field must be present in the file.
    """
    try:
        with open(config_file, encoding="utf-8") as fh:
            text = fh.read()
    except OSError as exc:
        raise ConfigError(f"error reading configuration file: {exc}") from exc
    return load_config_from_string(text, config, strict)


def load_config_from_map(data: dict[str, Any], config: Any, strict: bool) -> Any:
    """Fill config from an already parsed map."""
    return parse_struct(data, config, strict)