"""
KV3 text serialization.

Writes a header line followed by the root object. The output parses back
to an equal tree, which is what round-trip tests and benchmarks rely on.
"""

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from typing import Final

from kv3._header import DEFAULT_GENERIC_FORMAT
from kv3._header import DEFAULT_TEXT_ENCODING
from kv3._model import KV3Document
from kv3._model import KVFlaggedValue
from kv3._model import KVObject
from kv3._model import KVType
from kv3._model import KVValue

_IDENTIFIER_RE: Final = re.compile(r"[A-Za-z_][A-Za-z0-9_.]*")
_CONTROL_LIMIT: Final = 0x20

_STRING_ESCAPES: Final = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


@dataclass(frozen=True)
class EncodeConfig:
    """
    Configures KV3 encoding behavior with immutable settings.

    encoding and format are written to the header verbatim; only the text
    encoding family can be produced. With multiline_strings, strings that
    contain line breaks are written as triple-quoted literals when that
    form reproduces them exactly.

    Integers are written as plain digits, so a UINT64 value that fits in
    INT64 reads back as INT64. Parsed trees never hold such values.
    """

    indent: str | int = "\t"
    encoding: str = DEFAULT_TEXT_ENCODING
    format: str = DEFAULT_GENERIC_FORMAT
    multiline_strings: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.indent, str | int) or isinstance(
            self.indent, bool
        ):
            raise TypeError("indent must be a string or an integer")
        if not isinstance(self.multiline_strings, bool):
            raise TypeError("multiline_strings must be a boolean")
        for name in ("encoding", "format"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ValueError(f"{name} must be a non-empty string")
            if any(c.isspace() for c in value) or "-->" in value:
                raise ValueError(f"{name} cannot appear in a KV3 header")
        if self.encoding.partition(":")[0] != "text":
            raise ValueError("only the text encoding can be written")


def _get_indent_string(indent: str | int, level: int) -> str:
    """Generate indentation string for given level."""
    if isinstance(indent, int):
        return " " * (indent * level)
    return indent * level


def _encode_quoted(s: str) -> str:
    """Encode string as a single-line quoted literal."""
    result = ['"']
    for char in s:
        escaped = _STRING_ESCAPES.get(char)
        if escaped is not None:
            result.append(escaped)
        elif ord(char) < _CONTROL_LIMIT:
            result.append(f"\\u{ord(char):04x}")
        else:
            result.append(char)
    result.append('"')
    return "".join(result)


def _fits_multiline(s: str) -> bool:
    # The parser drops one line break after the opening and one before the
    # closing quotes, so a trailing CR would merge into the delimiter.
    return "\n" in s and '"""' not in s and not s.endswith("\r")


def _encode_string(s: str, config: EncodeConfig) -> str:
    if config.multiline_strings and _fits_multiline(s):
        return f'"""\n{s}\n"""'
    return _encode_quoted(s)


def _encode_key(key: str) -> str:
    if _IDENTIFIER_RE.fullmatch(key):
        return key
    return _encode_quoted(key)


def _encode_double(n: float) -> str:
    if not math.isfinite(n):
        msg = "Out of range float values are not KV3 compliant"
        raise ValueError(msg)
    return repr(n)


def _encode_blob(data: bytes) -> str:
    if not data:
        return "#[]"
    return "#[ " + " ".join(f"{byte:02x}" for byte in data) + " ]"


def _encode_value(value: KVValue, config: EncodeConfig, level: int) -> str:  # noqa: PLR0911
    """Encode any KV3 value at the given nesting level."""
    if isinstance(value, KVFlaggedValue):
        if value.type is not KVType.STRING:
            msg = (
                f"flag {value.flag_name!r} can only be written on STRING "
                f"values, not {value.type.name}"
            )
            raise ValueError(msg)
        return f"{value.flag_name}:{_encode_string(value.value, config)}"  # type: ignore[arg-type]

    payload: Any = value.value
    match value.type:
        case KVType.NULL:
            return "null"
        case KVType.BOOLEAN:
            return "true" if payload else "false"
        case KVType.INT64 | KVType.UINT64:
            return str(payload)
        case KVType.DOUBLE:
            return _encode_double(payload)
        case KVType.STRING:
            return _encode_string(payload, config)
        case KVType.BINARY_BLOB:
            return _encode_blob(payload)
        case KVType.ARRAY:
            return _encode_array(payload, config, level)
        case KVType.OBJECT:
            return _encode_object(payload, config, level)
    raise TypeError(f"Unknown KVType {value.type!r}")


def _is_open_container(encoded: str) -> bool:
    return encoded not in ("{}", "[]") and encoded[0] in "{["


def _encode_object(obj: KVObject, config: EncodeConfig, level: int) -> str:
    """Encode an object with one member per line."""
    if not obj:
        return "{}"

    indent_str = _get_indent_string(config.indent, level)
    inner_indent = _get_indent_string(config.indent, level + 1)

    lines = ["{"]
    for key, value in obj.items():
        encoded = _encode_value(value, config, level + 1)
        if _is_open_container(encoded):
            lines.append(f"{inner_indent}{_encode_key(key)} =")
            lines.append(f"{inner_indent}{encoded}")
        else:
            lines.append(f"{inner_indent}{_encode_key(key)} = {encoded}")

    lines.append(f"{indent_str}}}")
    return "\n".join(lines)


def _encode_array(arr: KVObject, config: EncodeConfig, level: int) -> str:
    """Encode an array with one element per line and trailing commas."""
    if not arr:
        return "[]"

    indent_str = _get_indent_string(config.indent, level)
    inner_indent = _get_indent_string(config.indent, level + 1)

    lines = ["["]
    for item in arr.as_sequence():
        encoded = _encode_value(item, config, level + 1)
        lines.append(f"{inner_indent}{encoded},")

    lines.append(f"{indent_str}]")
    return "\n".join(lines)


def encode_document(
    obj: KV3Document | KVObject | Mapping[str, Any], **kwargs: Any
) -> str:
    """
    Serializes a document, a root KVObject, or a plain mapping to KV3 text.

    A KV3Document supplies its own encoding and format unless overridden
    by keyword arguments.
    """
    if isinstance(obj, KV3Document):
        kwargs = {"encoding": obj.encoding, "format": obj.format, **kwargs}
        root = obj.root
    elif isinstance(obj, KVObject):
        root = obj
    elif isinstance(obj, Mapping):
        root = KVObject.from_python(obj)
    else:
        msg = f"Object of type {type(obj).__name__} is not a KV3 document"
        raise TypeError(msg)

    if root.is_array:
        raise ValueError("the root of a KV3 document must be an object")

    config = EncodeConfig(**kwargs)
    header = f"<!-- kv3 encoding:{config.encoding} format:{config.format} -->"
    return f"{header}\n{_encode_object(root, config, 0)}\n"
