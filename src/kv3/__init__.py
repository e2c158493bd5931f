"""
KeyValues3 (KV3) text parsing library.

Parses KV3 documents into an immutable typed tree of objects, arrays,
scalars and flagged values, and serializes trees back to KV3 text. The API
mirrors the standard library json module: loads/load and dumps/dump.
"""

from typing import IO
from typing import Any

from kv3._encoder import EncodeConfig
from kv3._encoder import encode_document
from kv3._errors import DuplicateKeyError
from kv3._errors import KeyNotFoundError
from kv3._errors import KV3DecodeError
from kv3._errors import LexError
from kv3._errors import MalformedDocumentError
from kv3._errors import MalformedHeaderError
from kv3._errors import MalformedNumberError
from kv3._errors import ParseError
from kv3._errors import TypeMismatchError
from kv3._errors import UnknownFlagError
from kv3._errors import UnsupportedEncodingError
from kv3._header import DEFAULT_GENERIC_FORMAT
from kv3._header import DEFAULT_TEXT_ENCODING
from kv3._header import HeaderInfo
from kv3._header import parse_header
from kv3._lexer import KV3Lexer
from kv3._lexer import KV3Token
from kv3._lexer import TokenType
from kv3._lexer import classify_number
from kv3._model import KeyValueCollection
from kv3._model import KV3Document
from kv3._model import KVFlag
from kv3._model import KVFlaggedValue
from kv3._model import KVObject
from kv3._model import KVType
from kv3._model import KVValue
from kv3._parser import KV3Parser
from kv3._parser import ParseConfig
from kv3._parser import decode_document
from kv3._profile import PROFILE_HOT_PATHS
from kv3._profile import HotPathStats
from kv3._profile import clear_hot_path_stats
from kv3._profile import format_hot_path_stats
from kv3._profile import get_hot_path_stats

__version__ = "0.1.0"


def _decode_utf8(data: bytes) -> str:
    """Decodes document bytes; an invalid byte raises LexError."""
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        valid_prefix = data[: e.start].decode("utf-8")
        raise LexError(
            "Invalid UTF-8 byte",
            data.decode("utf-8", errors="replace"),
            len(valid_prefix),
        ) from e


def loads(data: bytes | str, **kwargs: Any) -> KV3Document:
    """
    Parses a KV3 document from bytes or text.

    Keyword arguments build a ParseConfig. All failures raise a
    KV3DecodeError subclass; no partial tree is ever returned.
    """
    if isinstance(data, bytes | bytearray | memoryview):
        text = _decode_utf8(bytes(data))
    elif isinstance(data, str):
        text = data
    else:
        kind = type(data).__name__
        msg = f"the KV3 document must be str or bytes, not {kind}"
        raise TypeError(msg)

    config = ParseConfig(**kwargs)
    return decode_document(text, config)


parse_document = loads


def load(fp: IO[bytes] | IO[str], **kwargs: Any) -> KV3Document:
    """
    Parses a KV3 document from a binary or text file-like object.
    """
    if not hasattr(fp, "read"):
        raise TypeError("fp must have a read() method")

    return loads(fp.read(), **kwargs)


def dumps(obj: Any, **kwargs: Any) -> str:
    """
    Serializes a KV3Document, KVObject or plain mapping to KV3 text.

    Keyword arguments build an EncodeConfig.
    """
    return encode_document(obj, **kwargs)


def dump(obj: Any, fp: IO[str], **kwargs: Any) -> None:
    """
    Serializes to a text file-like object.
    """
    if not hasattr(fp, "write"):
        raise TypeError("fp must have a write() method")

    fp.write(dumps(obj, **kwargs))


__all__ = [
    "DEFAULT_GENERIC_FORMAT",
    "DEFAULT_TEXT_ENCODING",
    "PROFILE_HOT_PATHS",
    "DuplicateKeyError",
    "EncodeConfig",
    "HeaderInfo",
    "HotPathStats",
    "KV3DecodeError",
    "KV3Document",
    "KV3Lexer",
    "KV3Parser",
    "KV3Token",
    "KVFlag",
    "KVFlaggedValue",
    "KVObject",
    "KVType",
    "KVValue",
    "KeyNotFoundError",
    "KeyValueCollection",
    "LexError",
    "MalformedDocumentError",
    "MalformedHeaderError",
    "MalformedNumberError",
    "ParseConfig",
    "ParseError",
    "TokenType",
    "TypeMismatchError",
    "UnknownFlagError",
    "UnsupportedEncodingError",
    "classify_number",
    "clear_hot_path_stats",
    "dump",
    "dumps",
    "format_hot_path_stats",
    "get_hot_path_stats",
    "load",
    "loads",
    "parse_document",
    "parse_header",
]
