"""
Recognition of the KV3 header comment.

Every KV3 document opens with a single-line comment such as

    <!-- kv3 encoding:text:version{e21c7f3c-...} format:generic:version{...} -->

naming the encoding (which selects the decoder) and the format (opaque to
this package). The header parser works on text or raw bytes and reports
where the body starts in the units of its input.
"""

import logging
import re
from dataclasses import dataclass
from typing import Final

from kv3._errors import MalformedHeaderError

logger = logging.getLogger(__name__)

TEXT_ENCODING_GUID: Final = "{e21c7f3c-8a33-41c5-9977-a76d3a32aa0d}"
GENERIC_FORMAT_GUID: Final = "{7412167c-06e9-4698-aff2-e63eb59037e7}"

DEFAULT_TEXT_ENCODING: Final = f"text:version{TEXT_ENCODING_GUID}"
DEFAULT_GENERIC_FORMAT: Final = f"generic:version{GENERIC_FORMAT_GUID}"

_HEADER_PATTERN: Final = (
    r"<!--[ \t]+kv3[ \t]+encoding:(\S*)[ \t]+format:(\S*)[ \t]+-->"
    r"[ \t]*(?:\r?\n|\Z)"
)
_HEADER_RE: Final = re.compile(_HEADER_PATTERN)
_HEADER_BYTES_RE: Final = re.compile(_HEADER_PATTERN.encode("ascii"))

_BOM: Final = "\ufeff"
_BOM_BYTES: Final = _BOM.encode("utf-8")


@dataclass(frozen=True)
class HeaderInfo:
    """Identifiers from the header and the offset where the body begins."""

    encoding: str
    format: str
    body_offset: int


def _char_offset(data: str | bytes, offset: int) -> int:
    """Converts an offset into the input to a character offset."""
    if isinstance(data, bytes):
        return len(data[:offset].decode("utf-8", errors="replace"))
    return offset


def parse_header(data: str | bytes) -> HeaderInfo:
    """
    Parses the leading header comment of a KV3 document.

    A UTF-8 byte order mark before the header is skipped. Returns the
    encoding and format identifiers verbatim and the offset just past the
    header's line terminator.
    """
    match: re.Match[str] | re.Match[bytes] | None
    if isinstance(data, bytes):
        start = len(_BOM_BYTES) if data.startswith(_BOM_BYTES) else 0
        match = _HEADER_BYTES_RE.match(data, start)
        doc = data.decode("utf-8", errors="replace")
    elif isinstance(data, str):
        start = len(_BOM) if data.startswith(_BOM) else 0
        match = _HEADER_RE.match(data, start)
        doc = data
    else:
        msg = f"header must be str or bytes, not {type(data).__name__}"
        raise TypeError(msg)

    if match is None:
        raise MalformedHeaderError(
            "Expecting '<!-- kv3 encoding:... format:... -->' header",
            doc,
            0,
        )

    identifiers: list[str] = []
    for name, index in (("encoding", 1), ("format", 2)):
        token = match.group(index)
        pos = _char_offset(data, match.start(index))
        if isinstance(token, bytes):
            try:
                token = token.decode("utf-8")
            except UnicodeDecodeError as e:
                raise MalformedHeaderError(
                    f"Invalid UTF-8 in header {name} identifier", doc, pos
                ) from e

        if not token:
            raise MalformedHeaderError(
                f"Empty {name} identifier in header", doc, pos
            )
        if "-->" in token:
            raise MalformedHeaderError(
                f"Header {name} identifier contains '-->'", doc, pos
            )
        identifiers.append(token)

    encoding, format_ = identifiers

    logger.debug("KV3 header: encoding=%s format=%s", encoding, format_)
    return HeaderInfo(encoding, format_, match.end())
