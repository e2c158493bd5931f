"""
Recursive descent parser building the KV3 value model from tokens.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Final
from typing import Literal

from kv3._errors import DuplicateKeyError
from kv3._errors import MalformedDocumentError
from kv3._errors import ParseError
from kv3._errors import UnknownFlagError
from kv3._errors import UnsupportedEncodingError
from kv3._header import parse_header
from kv3._lexer import KV3Lexer
from kv3._lexer import KV3Token
from kv3._lexer import TokenType
from kv3._model import KV3Document
from kv3._model import KVFlag
from kv3._model import KVFlaggedValue
from kv3._model import KVObject
from kv3._model import KVType
from kv3._model import KVValue
from kv3._profile import ProfileContext

logger = logging.getLogger(__name__)

type DuplicateKeyPolicy = Literal["error", "last"]

_FLAG_NAME_RE: Final = re.compile(r"[A-Za-z_][A-Za-z0-9_.]*")

_KEY_TOKENS: Final = frozenset(
    {
        TokenType.IDENTIFIER,
        TokenType.STRING,
        TokenType.TRUE,
        TokenType.FALSE,
        TokenType.NULL,
    }
)
_WORD_TOKENS: Final = frozenset(
    {TokenType.IDENTIFIER, TokenType.TRUE, TokenType.FALSE, TokenType.NULL}
)
_STRING_TOKENS: Final = frozenset(
    {TokenType.STRING, TokenType.MULTILINE_STRING}
)
_LITERALS: Final = {
    TokenType.TRUE: KVValue(KVType.BOOLEAN, True),
    TokenType.FALSE: KVValue(KVType.BOOLEAN, False),
    TokenType.NULL: KVValue(KVType.NULL),
}


@dataclass(frozen=True)
class ParseConfig:
    """
    Configures KV3 parsing behavior with immutable settings.

    duplicate_keys selects what happens when a key repeats within one
    object: "error" raises DuplicateKeyError, "last" keeps the first
    position with the last value. extra_flags extends the flag vocabulary;
    such flags are stored as plain strings. max_depth bounds the nesting
    of objects and arrays.
    """

    duplicate_keys: DuplicateKeyPolicy = "error"
    extra_flags: frozenset[str] = frozenset()
    max_depth: int = 256

    def __post_init__(self) -> None:
        if self.duplicate_keys not in ("error", "last"):
            raise ValueError("duplicate_keys must be 'error' or 'last'")
        if isinstance(self.extra_flags, str):
            raise TypeError("extra_flags must be a collection of names")
        extra_flags = frozenset(self.extra_flags)
        for name in extra_flags:
            if not isinstance(name, str) or not _FLAG_NAME_RE.fullmatch(name):
                raise ValueError(f"invalid flag name {name!r}")
        object.__setattr__(self, "extra_flags", extra_flags)
        if (
            not isinstance(self.max_depth, int)
            or isinstance(self.max_depth, bool)
            or self.max_depth < 1
        ):
            raise ValueError("max_depth must be a positive integer")


class KV3Parser:
    """
    Recursive descent parser over a KV3Lexer token stream.

    Holds one token of lookahead. Objects and arrays separate entries with
    commas, line breaks, or both; a trailing separator is allowed.
    """

    def __init__(self, lexer: KV3Lexer, config: ParseConfig) -> None:
        self.lexer = lexer
        self.config = config
        self.current_token: KV3Token | None = None
        self._depth = 0

    @property
    def text(self) -> str:
        return self.lexer.text

    def advance_token(self) -> KV3Token | None:
        """Advances to next token and returns it."""
        self.current_token = self.lexer.next_token()
        return self.current_token

    def skip_newlines(self) -> None:
        while (
            self.current_token is not None
            and self.current_token.type is TokenType.NEWLINE
        ):
            self.advance_token()

    def _current_pos(self) -> int:
        if self.current_token is not None:
            return self.current_token.start
        return self.lexer.pos

    def _at(self, token_type: TokenType) -> bool:
        return (
            self.current_token is not None
            and self.current_token.type is token_type
        )

    def expect_token(self, token_type: TokenType, what: str) -> KV3Token:
        """Expects a specific token type and advances."""
        token = self.current_token
        if token is None or token.type is not token_type:
            raise ParseError(
                f"Expecting {what}", self.text, self._current_pos()
            )
        self.advance_token()
        return token

    def parse_document(self) -> KVObject:
        """Parses a whole document body; the root must be an object."""
        self.advance_token()
        self.skip_newlines()
        if not self._at(TokenType.LBRACE):
            raise MalformedDocumentError(
                "Expecting root object", self.text, self._current_pos()
            )

        root = self.parse_object()

        self.skip_newlines()
        if self.current_token is not None:
            raise ParseError("Extra data", self.text, self.current_token.start)
        return root

    def parse_value(self) -> KVValue:
        """Parses any KV3 value based on current token."""
        self.skip_newlines()
        token = self.current_token
        if token is None:
            raise ParseError("Expecting value", self.text, self.lexer.pos)

        if token.type is TokenType.LBRACE:
            return KVValue(KVType.OBJECT, self.parse_object())
        elif token.type is TokenType.LBRACKET:
            return KVValue(KVType.ARRAY, self.parse_array())
        elif token.type in _STRING_TOKENS:
            self.advance_token()
            return KVValue(KVType.STRING, token.value)
        elif token.type is TokenType.NUMBER:
            self.advance_token()
            return token.value  # type: ignore[no-any-return]
        elif token.type is TokenType.BINARY_BLOB:
            self.advance_token()
            return KVValue(KVType.BINARY_BLOB, token.value)
        elif token.type in _WORD_TOKENS:
            return self._parse_word_value(token)
        else:
            raise ParseError("Expecting value", self.text, token.start)

    def _parse_word_value(self, token: KV3Token) -> KVValue:
        """Parses true/false/null, or a flagged value when `:` follows."""
        self.advance_token()
        follower = self.current_token
        if (
            follower is not None
            and follower.type is TokenType.COLON
            and follower.start == token.end
        ):
            return self._parse_flagged_value(token)

        literal = _LITERALS.get(token.type)
        if literal is None:
            raise ParseError("Expecting value", self.text, token.start)
        return literal

    def _parse_flagged_value(self, flag_token: KV3Token) -> KVFlaggedValue:
        flag = self._resolve_flag(flag_token)
        self.advance_token()

        token = self.current_token
        if token is None or token.type not in _STRING_TOKENS:
            raise ParseError(
                f"Expecting string after flag '{flag_token.text}:'",
                self.text,
                self._current_pos(),
            )
        self.advance_token()
        return KVFlaggedValue(KVType.STRING, token.value, flag=flag)

    def _resolve_flag(self, token: KV3Token) -> KVFlag | str:
        try:
            return KVFlag(token.text)
        except ValueError:
            pass
        if token.text in self.config.extra_flags:
            return token.text
        raise UnknownFlagError(token.text, self.text, token.start)

    def _parse_key(self) -> tuple[str, KV3Token]:
        token = self.current_token
        if token is None or token.type not in _KEY_TOKENS:
            raise ParseError(
                "Expecting property name", self.text, self._current_pos()
            )
        self.advance_token()
        return token.value, token

    def _handle_continuation(self, closer: TokenType) -> None:
        """Consumes the separator after an entry; the closer may replace it."""
        token = self.current_token
        if token is None:
            raise ParseError(
                "Expecting ',' delimiter", self.text, self.lexer.pos
            )

        if token.type is TokenType.COMMA:
            self.advance_token()
        elif token.type is TokenType.NEWLINE:
            self.skip_newlines()
            if self._at(TokenType.COMMA):
                self.advance_token()
        elif token.type is not closer:
            raise ParseError("Expecting ',' delimiter", self.text, token.start)

    def _enter_container(self, token: KV3Token) -> None:
        self._depth += 1
        if self._depth > self.config.max_depth:
            raise ParseError(
                "Maximum nesting depth exceeded", self.text, token.start
            )

    def parse_object(self) -> KVObject:
        """Parses `{ key = value ... }`."""
        with ProfileContext("parse_object"):
            self._enter_container(self.expect_token(TokenType.LBRACE, "'{'"))
            properties: dict[str, KVValue] = {}

            while True:
                self.skip_newlines()
                if self._at(TokenType.RBRACE):
                    break

                key, key_token = self._parse_key()
                self.skip_newlines()
                self.expect_token(TokenType.EQUALS, "'=' delimiter")
                value = self.parse_value()

                if key in properties and self.config.duplicate_keys == "error":
                    raise DuplicateKeyError(key, self.text, key_token.start)
                properties[key] = value

                self._handle_continuation(TokenType.RBRACE)

            self.expect_token(TokenType.RBRACE, "'}'")
            self._depth -= 1
            return KVObject(properties)

    def parse_array(self) -> KVObject:
        """Parses `[ value, ... ]` into an index-keyed KVObject."""
        with ProfileContext("parse_array"):
            self._enter_container(
                self.expect_token(TokenType.LBRACKET, "'['")
            )
            values: list[KVValue] = []

            while True:
                self.skip_newlines()
                if self._at(TokenType.RBRACKET):
                    break

                values.append(self.parse_value())
                self._handle_continuation(TokenType.RBRACKET)

            self.expect_token(TokenType.RBRACKET, "']'")
            self._depth -= 1
            return KVObject.from_values(values)


def _decode_text(text: str, body_offset: int, config: ParseConfig) -> KVObject:
    lexer = KV3Lexer(text, body_offset)
    parser = KV3Parser(lexer, config)
    return parser.parse_document()


# Decoders by encoding family; binary families are not supported
_DECODERS: Final[dict[str, Callable[[str, int, ParseConfig], KVObject]]] = {
    "text": _decode_text,
}


def decode_document(text: str, config: ParseConfig) -> KV3Document:
    """
    Parses a complete KV3 document: header, then the body.

    The encoding family named in the header selects the decoder.
    """
    with ProfileContext("decode_document", len(text)):
        header = parse_header(text)
        family = header.encoding.partition(":")[0]

        decoder = _DECODERS.get(family)
        if decoder is None:
            raise UnsupportedEncodingError(
                family, text, max(text.find(header.encoding), 0)
            )

        root = decoder(text, header.body_offset, config)
        logger.debug(
            "Parsed KV3 %s document with %d root entries",
            header.format,
            root.count,
        )
        return KV3Document(header.encoding, header.format, root)
