"""
Error taxonomy for KV3 decoding and property access.

Decode errors carry the offending position in the document as a character
offset, a UTF-8 byte offset, and a line/column pair. Property-access errors
carry the key they were raised for.
"""

from typing import Any

from kv3._utf8_mapper import UTF8PositionMapper

type Position = int


class KV3DecodeError(ValueError):
    """
    Handles KV3 parsing failures with precise position and context information.

    Error state containing position, line/column numbers, and the byte offset
    into the UTF-8 encoded document to help users locate syntax issues.
    """

    def __init__(self, msg: str, doc: str = "", pos: Position = 0) -> None:
        if not isinstance(msg, str):
            raise TypeError("msg must be a string")
        if not isinstance(pos, int) or pos < 0:
            raise ValueError("pos must be a non-negative integer")

        self.msg = msg
        self.doc = doc
        self.pos = pos

        # Compute line and column numbers from position
        self.lineno = doc.count("\n", 0, pos) + 1 if doc else 1
        self.colno = pos - doc.rfind("\n", 0, pos) if doc else pos + 1
        self.byte_offset = (
            UTF8PositionMapper(doc).char_to_byte(pos) if doc else pos
        )

        super().__init__(f"{msg} at line {self.lineno}, column {self.colno}")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.msg, self.doc, self.pos)


class MalformedHeaderError(KV3DecodeError):
    """The leading `<!-- kv3 ... -->` comment is missing or malformed."""


class UnsupportedEncodingError(KV3DecodeError):
    """The header names an encoding family this package cannot decode."""

    def __init__(
        self, family: str, doc: str = "", pos: Position = 0
    ) -> None:
        self.family = family
        super().__init__(f"Unsupported encoding family {family!r}", doc, pos)

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.family, self.doc, self.pos)


class LexError(KV3DecodeError):
    """Raised by the tokenizer; it does not attempt recovery."""


class MalformedNumberError(LexError):
    """A numeric literal is malformed or out of the 64-bit ranges."""


class ParseError(KV3DecodeError):
    """Unexpected token during tree construction."""


class MalformedDocumentError(ParseError):
    """The document body is not a single root object."""


class UnknownFlagError(ParseError):
    """A flagged value uses an identifier outside the flag vocabulary."""

    def __init__(self, flag: str, doc: str = "", pos: Position = 0) -> None:
        self.flag = flag
        super().__init__(f"Unknown flag {flag!r}", doc, pos)

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.flag, self.doc, self.pos)


class DuplicateKeyError(ParseError):
    """The same key appears twice in one object."""

    def __init__(self, key: str, doc: str = "", pos: Position = 0) -> None:
        self.key = key
        super().__init__(f"Duplicate key {key!r}", doc, pos)

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.key, self.doc, self.pos)


class KeyNotFoundError(KeyError):
    """Raised by accessors when the requested key is absent."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(key)

    def __str__(self) -> str:
        return f"No key {self.key!r}"


class TypeMismatchError(TypeError):
    """
    Raised by accessors when the stored value type does not match the request.
    """

    def __init__(self, key: str | None, expected: str, actual: str) -> None:
        self.key = key
        self.expected = expected
        self.actual = actual
        subject = "Value" if key is None else f"Value for key {key!r}"
        super().__init__(f"{subject} is {actual}, expected {expected}")
