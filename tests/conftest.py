"""
Pytest configuration and shared fixtures for kv3 tests.

Provides the reference KV3 documents and immutable test case containers
for malformed input.
"""

from dataclasses import dataclass
from pathlib import Path

import pytest

import kv3

FILES_DIR = Path(__file__).parent / "files"

TEXT_ENCODING = "text:version{e21c7f3c-8a33-41c5-9977-a76d3a32aa0d}"
GENERIC_FORMAT = "generic:version{7412167c-06e9-4698-aff2-e63eb59037e7}"
HEADER = f"<!-- kv3 encoding:{TEXT_ENCODING} format:{GENERIC_FORMAT} -->\n"


def make_document(body: str) -> str:
    """Prefixes a body with the standard text/generic header."""
    return HEADER + body


@dataclass(frozen=True)
class KV3TestCase:
    """
    Immutable container for KV3 test case data.

    Holds a document body and the error type it must raise.
    """

    description: str
    body: str
    error: type[kv3.KV3DecodeError]


@pytest.fixture
def reference_lf() -> bytes:
    """The reference document with LF line endings, as raw bytes."""
    return (FILES_DIR / "KeyValues3_LF.kv3").read_bytes()


@pytest.fixture
def reference_crlf(reference_lf: bytes) -> bytes:
    """The reference document converted to CRLF line endings."""
    return reference_lf.replace(b"\n", b"\r\n")


@pytest.fixture
def kv3_fail_cases() -> list[KV3TestCase]:
    """
    Provides document bodies that must fail, with the expected error type.
    """
    return [
        KV3TestCase("unclosed object", "{\n\ta = 1\n", kv3.ParseError),
        KV3TestCase("mismatched brace", "{\n\ta = [ 1, 2 }\n}", kv3.ParseError),
        KV3TestCase("extra close", "{\n}\n}", kv3.ParseError),
        KV3TestCase("missing equals", '{\n\ta "b"\n}', kv3.ParseError),
        KV3TestCase("missing value", "{\n\ta =\n}", kv3.ParseError),
        KV3TestCase("double comma", "{\n\ta = [1,,2]\n}", kv3.ParseError),
        KV3TestCase("bare word value", "{\n\ta = hello\n}", kv3.ParseError),
        KV3TestCase("two members one line", "{ a = 1 b = 2 }", kv3.ParseError),
        KV3TestCase("truncated string", '{\n\ta = "abc\n}', kv3.LexError),
        KV3TestCase("truncated at eof", '{\n\ta = "abc', kv3.LexError),
        KV3TestCase("bad escape", '{\n\ta = "\\q"\n}', kv3.LexError),
        KV3TestCase("open block comment", "{\n/* never closed\n}", kv3.LexError),
        KV3TestCase("open multi-line", '{\n\ta = """\nabc\n}', kv3.LexError),
        KV3TestCase("stray character", "{\n\ta = @\n}", kv3.LexError),
        KV3TestCase("odd blob", "{\n\ta = #[ 0 ]\n}", kv3.LexError),
        KV3TestCase("bad number", "{\n\ta = 12ab\n}", kv3.MalformedNumberError),
        KV3TestCase("lone minus", "{\n\ta = -\n}", kv3.MalformedNumberError),
        KV3TestCase("no exponent", "{\n\ta = 1e\n}", kv3.MalformedNumberError),
        KV3TestCase(
            "integer too large",
            "{\n\ta = 18446744073709551616\n}",
            kv3.MalformedNumberError,
        ),
        KV3TestCase(
            "negative too small",
            "{\n\ta = -9223372036854775809\n}",
            kv3.MalformedNumberError,
        ),
        KV3TestCase("unknown flag", '{\n\ta = bogus:"x"\n}', kv3.UnknownFlagError),
        KV3TestCase("duplicate key", "{\n\ta = 1\n\ta = 2\n}", kv3.DuplicateKeyError),
        KV3TestCase("array root", "[ 1, 2 ]", kv3.MalformedDocumentError),
        KV3TestCase("scalar root", '"just a string"', kv3.MalformedDocumentError),
        KV3TestCase("empty body", "", kv3.MalformedDocumentError),
    ]
