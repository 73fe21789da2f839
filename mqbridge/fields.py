"""Fill configuration dataclasses from parsed configuration maps.

A field is looked up under the key in its metadata (or its own name), then
under that key in lower case. Fields without a metadata key also match any
configuration key that equals the field name once case and underscores are
ignored, so ``opt_out`` matches ``OptOut``.
"""

from __future__ import annotations

import dataclasses
import inspect
import re
import typing
from typing import Any, Optional

from mqbridge.hostport import HostPort

_INT_RE = re.compile(r"[+-]?\d+")

_UNKNOWN_TYPE = (
    "unknown field type in configuration {}, bool, int, float, string, hostport "
    "and arrays/structs of those are supported"
)

_KNOWN_NAMES: dict[str, Any] = {
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "dict": dict,
    "list": list,
    "Dict": dict,
    "List": list,
    "Any": Any,
    "typing.Any": Any,
    "HostPort": HostPort,
}


class ConfigError(ValueError):
    """Raised when configuration data can't be read into a config object."""


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_boolean(key_name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() == "true"
    raise ConfigError(f"error parsing {key_name} option {value!r}")


def _parse_int(key_name: str, value: Any) -> int:
    if _is_int(value):
        return value
    if isinstance(value, str) and _INT_RE.fullmatch(value):
        return int(value)
    raise ConfigError(f"unable to parse integer {value!r} for key {key_name}")


def _parse_float(key_name: str, value: Any) -> float:
    if isinstance(value, float):
        return value
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            pass
    raise ConfigError(f"unable to parse float {value!r} for key {key_name}")


def _parse_string(key_name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"error parsing {key_name} option {value!r}")
    return value


def _split_host_port(text: str) -> Optional[tuple[str, str]]:
    if text.startswith("["):
        end = text.find("]")
        if end < 0 or text[end + 1 : end + 2] != ":":
            return None
        return text[1:end], text[end + 2 :]
    host, sep, port = text.rpartition(":")
    if not sep or ":" in host:
        return None
    return host, port


def parse_host_port(key_name: str, value: Any) -> HostPort:
    """Read a HostPort from a bare port number or a "host:port" string."""
    if _is_int(value):
        return HostPort(port=value)
    if isinstance(value, str):
        parts = _split_host_port(value)
        if parts is None:
            raise ConfigError(f"unable to parse hostport {value} for key {key_name}")
        host, port = parts
        if not _INT_RE.fullmatch(port):
            raise ConfigError(f"unable to parse port {value} for key {key_name}")
        return HostPort(host=host, port=int(port))
    raise ConfigError(f"error parsing hostport option {value!r} for key {key_name}")


def _convert_element(elem_type: type, value: Any) -> Any:
    if elem_type is str and isinstance(value, str):
        return value
    if elem_type is int:
        if _is_int(value):
            return value
        if isinstance(value, float):
            return int(value)
    if elem_type is float and (_is_int(value) or isinstance(value, float)):
        return float(value)
    raise TypeError


def _parse_primitive_array(key_name: str, elem_type: type, value: Any) -> list:
    if isinstance(value, list):
        try:
            return [_convert_element(elem_type, e) for e in value]
        except TypeError:
            raise ConfigError(
                f"error parsing {key_name} option {value!r}, contents are not convertable"
            ) from None
    try:
        return [_convert_element(elem_type, value)]
    except TypeError:
        raise ConfigError(
            f"error parsing {key_name} option {value!r}, single element is not convertable"
        ) from None


def _parse_structs(key_name: str, elem_type: type, value: Any, strict: bool) -> list:
    if isinstance(value, list):
        out = []
        for e in value:
            if not isinstance(e, dict):
                raise ConfigError("struct array contained invalid value")
            out.append(parse_struct(e, elem_type(), strict))
        return out
    if isinstance(value, dict):
        return [parse_struct(value, elem_type(), strict)]
    raise ConfigError(f"error parsing {key_name} option {value!r}")


def _parse_host_ports(key_name: str, value: Any) -> list[HostPort]:
    if isinstance(value, list):
        return [parse_host_port(key_name, e) for e in value]
    return [parse_host_port(key_name, value)]


def _normalise(name: str) -> str:
    return name.replace("_", "").lower()


def _lookup(data: dict, f: dataclasses.Field) -> Any:
    key = f.metadata.get("key", f.name)
    for candidate in (key, key.lower()):
        value = data.get(candidate)
        if value is not None:
            return value
    if "key" not in f.metadata:
        wanted = _normalise(f.name)
        for k, value in data.items():
            if isinstance(k, str) and _normalise(k) == wanted and value is not None:
                return value
    return None


def _is_dataclass_type(tp: Any) -> bool:
    return isinstance(tp, type) and dataclasses.is_dataclass(tp)


def _split_top_level(text: str, separator: str) -> list[str]:
    parts = []
    depth = 0
    current = []
    for ch in text:
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        if ch == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    parts.append("".join(current).strip())
    return parts


def _resolve_fallback(annotation: Any, known: dict[str, Any]) -> Any:
    """Resolve a string annotation made of known names, else return it as is."""
    if not isinstance(annotation, str):
        return annotation
    text = annotation.strip()
    if text in known:
        return known[text]
    bracket = text.find("[")
    if bracket < 0 or not text.endswith("]"):
        return text
    base = text[:bracket].strip()
    args = [_resolve_fallback(a, known) for a in _split_top_level(text[bracket + 1 : -1], ",")]
    if any(isinstance(a, str) for a in args):
        return text
    if base in ("list", "List") and len(args) == 1:
        return list[args[0]]
    if base in ("dict", "Dict") and len(args) == 2:
        return dict[args[0], args[1]]
    return text


def _collect_default_types(cls: type, known: dict[str, Any], seen: set) -> None:
    """Record dataclass types reachable through field defaults."""
    if cls in seen:
        return
    seen.add(cls)
    for f in dataclasses.fields(cls):
        found = None
        if dataclasses.is_dataclass(f.default) and not isinstance(f.default, type):
            found = type(f.default)
        elif _is_dataclass_type(f.default_factory):
            found = f.default_factory
        if found is not None:
            known.setdefault(found.__name__, found)
            _collect_default_types(found, known, seen)


def _field_types(cls: type) -> dict[str, Any]:
    known = dict(_KNOWN_NAMES)
    module = inspect.getmodule(cls)
    if module is not None:
        for name, value in vars(module).items():
            if isinstance(value, type):
                known.setdefault(name, value)
    _collect_default_types(cls, known, set())
    known[cls.__name__] = cls
    return {f.name: _resolve_fallback(f.type, known) for f in dataclasses.fields(cls)}


def parse_struct(data: Optional[dict], config: Any, strict: bool) -> Any:
    """Set the fields of the dataclass instance config from data and return it.

    Without strict, fields missing from data keep their values and fields of
    unsupported types are skipped. With strict, every settable field must be
    present, and private or unsupported fields are errors.
    """
    data = data or {}
    hints = _field_types(type(config))

    for f in dataclasses.fields(config):
        if not f.init or f.name.startswith("_"):
            if strict:
                raise ConfigError(f"unsettable field in configuration struct {f.name}")
            continue

        name = f.name
        value = _lookup(data, f)
        if value is None:
            if strict:
                raise ConfigError(f"missing field in configuration file {name}")
            continue

        tp = hints.get(name, f.type)
        origin = typing.get_origin(tp)

        if tp is bool:
            setattr(config, name, _parse_boolean(name, value))
        elif tp is int:
            setattr(config, name, _parse_int(name, value))
        elif tp is float:
            setattr(config, name, _parse_float(name, value))
        elif tp is str:
            setattr(config, name, _parse_string(name, value))
        elif tp is dict or origin is dict:
            if not isinstance(value, dict):
                raise ConfigError(
                    f"map field {name} doesn't have a matching map in the config file"
                )
            args = typing.get_args(tp)
            if args and (args[0] is not str or args[1] is not Any):
                raise ConfigError("only map[string]interface{} fields are supported")
            setattr(config, name, value)
        elif tp is list or origin is list:
            args = typing.get_args(tp)
            elem = args[0] if args else None
            if elem in (str, int, float):
                setattr(config, name, _parse_primitive_array(name, elem, value))
            elif elem is HostPort:
                setattr(config, name, _parse_host_ports(name, value))
            elif _is_dataclass_type(elem):
                setattr(config, name, _parse_structs(name, elem, value, strict))
            elif strict:
                raise ConfigError(_UNKNOWN_TYPE.format(name))
        elif tp is HostPort:
            setattr(config, name, parse_host_port(name, value))
        elif _is_dataclass_type(tp):
            if not isinstance(value, dict):
                raise ConfigError(
                    f"struct field {name} doesn't have a matching map in the config file"
                )
            current = getattr(config, name)
            if current is None:
                current = tp()
                setattr(config, name, current)
            parse_struct(value, current, strict)
        elif strict:
            raise ConfigError(_UNKNOWN_TYPE.format(name))

    return config