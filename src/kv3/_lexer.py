"""
Tokenizer for the KV3 text encoding.

Scans the document body character by character and produces tokens on
demand. Comments are skipped; a run of line breaks becomes a single
NEWLINE token, which the parser uses as an entry separator.
"""

import math
import re
import string
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any
from typing import Final

from kv3._errors import LexError
from kv3._errors import MalformedNumberError
from kv3._model import INT64_MAX
from kv3._model import INT64_MIN
from kv3._model import UINT64_MAX
from kv3._model import KVType
from kv3._model import KVValue
from kv3._profile import ProfileContext

type Position = int


class TokenType(Enum):
    """Lexical token kinds of the KV3 text encoding."""

    IDENTIFIER = "identifier"
    STRING = "string"
    MULTILINE_STRING = "multiline_string"
    NUMBER = "number"
    TRUE = "true"
    FALSE = "false"
    NULL = "null"
    BINARY_BLOB = "binary_blob"
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"
    EQUALS = "="
    COMMA = ","
    COLON = ":"
    NEWLINE = "newline"


@dataclass(frozen=True)
class KV3Token:
    """
    A token with its source slice and position.

    `value` holds the decoded payload: the unescaped text of strings, the
    classified KVValue of numbers, and the bytes of binary blobs.
    """

    type: TokenType
    text: str
    start: Position
    end: Position
    value: Any = None


_IDENT_START: Final = frozenset(string.ascii_letters + "_")
_IDENT_CHARS: Final = _IDENT_START | frozenset(string.digits + ".")
_DIGITS: Final = frozenset(string.digits)
_HEX_DIGITS: Final = frozenset(string.hexdigits)
_INLINE_WHITESPACE: Final = frozenset(" \t")
_LINE_BREAKS: Final = frozenset("\r\n")

_PUNCTUATION: Final = {
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "=": TokenType.EQUALS,
    ",": TokenType.COMMA,
    ":": TokenType.COLON,
}

_KEYWORDS: Final = {
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "null": TokenType.NULL,
}

_ESCAPES: Final = {
    '"': '"',
    "'": "'",
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

_NUMBER_RE: Final = re.compile(r"-?[0-9]+(\.[0-9]+)?([eE][+-]?[0-9]+)?")
# Most significant digits a 64-bit integer can have
_MAX_INTEGER_DIGITS: Final = 20

_MULTILINE_QUOTE: Final = '"""'


def classify_number(literal: str) -> tuple[KVType, int | float]:
    """
    Classifies a numeric literal and returns its KVType and value.

    A decimal point or exponent makes a DOUBLE; otherwise the literal is
    INT64 if it fits, else UINT64 if it is non-negative and fits. Raises
    ValueError for anything else.
    """
    match = _NUMBER_RE.fullmatch(literal)
    if match is None:
        raise ValueError(f"Invalid number literal {literal!r}")

    if match.group(1) or match.group(2):
        number = float(literal)
        if math.isinf(number):
            raise ValueError(f"{literal} is out of DOUBLE range")
        return KVType.DOUBLE, number

    digits = literal.lstrip("-").lstrip("0") or "0"
    if len(digits) <= _MAX_INTEGER_DIGITS:
        integer = -int(digits) if literal[0] == "-" else int(digits)
        if INT64_MIN <= integer <= INT64_MAX:
            return KVType.INT64, integer
        if 0 <= integer <= UINT64_MAX:
            return KVType.UINT64, integer

    raise ValueError(f"{literal} is out of 64-bit integer range")


class KV3Lexer:
    """
    Tokenizes KV3 text starting at a given offset.

    Tokens are produced lazily by next_token(); reset() restarts scanning
    from any offset. Errors are raised immediately with no recovery.
    """

    def __init__(self, text: str, pos: Position = 0) -> None:
        self.text = text
        self.length = len(text)
        self.pos = 0
        self.reset(pos)

    def reset(self, pos: Position = 0) -> None:
        """Moves the scan position to `pos`."""
        if not 0 <= pos <= self.length:
            raise ValueError(f"pos {pos} is outside the text")
        self.pos = pos

    def peek(self, offset: int = 0) -> str:
        """Returns the character at pos + offset without advancing."""
        index = self.pos + offset
        return self.text[index] if index < self.length else "\0"

    def tokens(self) -> Iterator[KV3Token]:
        """Yields the remaining tokens."""
        while (token := self.next_token()) is not None:
            yield token

    def skip_trivia(self) -> Position | None:
        """
        Skips whitespace and comments.

        Returns the offset of the first line break crossed outside a block
        comment, or None if no line break was crossed.
        """
        first_break = None

        while self.pos < self.length:
            char = self.text[self.pos]
            if char in _INLINE_WHITESPACE:
                self.pos += 1
            elif char in _LINE_BREAKS:
                if first_break is None:
                    first_break = self.pos
                self.pos += 1
            elif char == "/" and self.peek(1) == "/":
                self.pos += 2
                while (
                    self.pos < self.length
                    and self.text[self.pos] not in _LINE_BREAKS
                ):
                    self.pos += 1
            elif char == "/" and self.peek(1) == "*":
                end = self.text.find("*/", self.pos + 2)
                if end == -1:
                    raise LexError(
                        "Unterminated block comment starting at",
                        self.text,
                        self.pos,
                    )
                self.pos = end + 2
            else:
                break

        return first_break

    def next_token(self) -> KV3Token | None:
        """Returns the next token or None if at end."""
        first_break = self.skip_trivia()
        if first_break is not None:
            return KV3Token(
                TokenType.NEWLINE,
                self.text[first_break : self.pos],
                first_break,
                self.pos,
            )

        if self.pos >= self.length:
            return None

        char = self.text[self.pos]
        start = self.pos

        if char in _PUNCTUATION:
            self.pos += 1
            return KV3Token(_PUNCTUATION[char], char, start, self.pos)
        elif char == '"':
            if self.text.startswith(_MULTILINE_QUOTE, self.pos):
                return self.scan_multiline_string()
            return self.scan_string()
        elif char in _DIGITS or char == "-":
            return self.scan_number()
        elif char in _IDENT_START:
            return self.scan_identifier()
        elif char == "#" and self.peek(1) == "[":
            return self.scan_binary_blob()
        else:
            raise LexError(f"Unexpected character {char!r}", self.text, start)

    def scan_string(self) -> KV3Token:
        """Scans a single-line quoted string, decoding escape sequences."""
        with ProfileContext("scan_string"):
            start = self.pos
            self.pos += 1
            chunks: list[str] = []
            chunk_start = self.pos

            while self.pos < self.length:
                char = self.text[self.pos]
                if char == '"':
                    chunks.append(self.text[chunk_start : self.pos])
                    self.pos += 1
                    return KV3Token(
                        TokenType.STRING,
                        self.text[start : self.pos],
                        start,
                        self.pos,
                        "".join(chunks),
                    )
                elif char == "\\":
                    chunks.append(self.text[chunk_start : self.pos])
                    chunks.append(self._scan_escape(start))
                    chunk_start = self.pos
                elif char in _LINE_BREAKS:
                    break
                else:
                    self.pos += 1

            raise LexError("Unterminated string starting at", self.text, start)

    def _scan_escape(self, string_start: Position) -> str:
        """Decodes the escape sequence at pos and advances past it."""
        escape_pos = self.pos
        if escape_pos + 1 >= self.length:
            raise LexError(
                "Unterminated string starting at", self.text, string_start
            )

        next_char = self.text[escape_pos + 1]
        if next_char in _ESCAPES:
            self.pos += 2
            return _ESCAPES[next_char]
        elif next_char == "u":
            hex_digits = self.text[escape_pos + 2 : escape_pos + 6]
            if len(hex_digits) != 4 or not all(  # noqa: PLR2004
                c in _HEX_DIGITS for c in hex_digits
            ):
                raise LexError(
                    f"Invalid unicode escape sequence: \\u{hex_digits}",
                    self.text,
                    escape_pos,
                )
            self.pos += 6
            return chr(int(hex_digits, 16))

        raise LexError(
            f"Invalid escape sequence: \\{next_char}", self.text, escape_pos
        )

    def scan_multiline_string(self) -> KV3Token:
        """
        Scans a triple-quoted string.

        The line break right after the opening quotes and the one right
        before the closing quotes are delimiters; everything between is
        copied verbatim, line endings included.
        """
        with ProfileContext("scan_multiline_string"):
            start = self.pos
            content_start = start + len(_MULTILINE_QUOTE)
            if self.text.startswith("\r\n", content_start):
                content_start += 2
            elif self.text.startswith("\n", content_start):
                content_start += 1

            close = self.text.find(_MULTILINE_QUOTE, content_start)
            if close == -1:
                raise LexError(
                    "Unterminated multi-line string starting at",
                    self.text,
                    start,
                )

            content_end = close
            if self.text.endswith("\r\n", content_start, close):
                content_end -= 2
            elif self.text.endswith("\n", content_start, close):
                content_end -= 1

            self.pos = close + len(_MULTILINE_QUOTE)
            return KV3Token(
                TokenType.MULTILINE_STRING,
                self.text[start : self.pos],
                start,
                self.pos,
                self.text[content_start:content_end],
            )

    def scan_number(self) -> KV3Token:
        """Scans and classifies a numeric literal."""
        with ProfileContext("scan_number"):
            start = self.pos
            self.pos += 1

            # Consume everything that could belong to the literal so that
            # input such as 12ab is rejected as a whole
            while self.pos < self.length:
                char = self.text[self.pos]
                if char in _IDENT_CHARS or (
                    char in "+-" and self.text[self.pos - 1] in "eE"
                ):
                    self.pos += 1
                else:
                    break

            literal = self.text[start : self.pos]
            try:
                kv_type, number = classify_number(literal)
            except ValueError as e:
                raise MalformedNumberError(str(e), self.text, start) from e

            return KV3Token(
                TokenType.NUMBER,
                literal,
                start,
                self.pos,
                KVValue(kv_type, number),
            )

    def scan_identifier(self) -> KV3Token:
        """Scans a bare identifier; true, false and null become literals."""
        start = self.pos
        self.pos += 1
        while self.pos < self.length and self.text[self.pos] in _IDENT_CHARS:
            self.pos += 1

        word = self.text[start : self.pos]
        token_type = _KEYWORDS.get(word, TokenType.IDENTIFIER)
        return KV3Token(token_type, word, start, self.pos, word)

    def scan_binary_blob(self) -> KV3Token:
        """Scans a `#[ 00 ff ... ]` binary blob literal."""
        with ProfileContext("scan_binary_blob"):
            start = self.pos
            self.pos += 2
            data = bytearray()

            while True:
                while (
                    self.pos < self.length
                    and self.text[self.pos] in " \t\r\n"
                ):
                    self.pos += 1

                if self.pos >= self.length:
                    raise LexError(
                        "Unterminated binary blob starting at",
                        self.text,
                        start,
                    )

                if self.text[self.pos] == "]":
                    self.pos += 1
                    break

                pair = self.text[self.pos : self.pos + 2]
                if len(pair) != 2 or not all(  # noqa: PLR2004
                    c in _HEX_DIGITS for c in pair
                ):
                    raise LexError(
                        "Invalid byte in binary blob", self.text, self.pos
                    )
                data.append(int(pair, 16))
                self.pos += 2

            return KV3Token(
                TokenType.BINARY_BLOB,
                self.text[start : self.pos],
                start,
                self.pos,
                bytes(data),
            )
