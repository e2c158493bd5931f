"""Character to UTF-8 byte position mapping for error diagnostics."""

from __future__ import annotations

from typing import Final

_ASCII_LIMIT: Final = 127


class UTF8PositionMapper:
    """Maps character offsets in decoded text back to UTF-8 byte offsets.

    KV3 documents arrive as bytes but are lexed as text, so diagnostics
    report both. A checkpoint table keeps lookups on large documents from
    re-encoding the whole prefix.
    """

    def __init__(self, text: str, checkpoint_interval: int = 256) -> None:
        """Initialize position mapper with checkpoint system.

        Args:
            text: The decoded document text
            checkpoint_interval: Characters between checkpoints
        """
        self.text: Final = text
        self.checkpoint_interval: Final = checkpoint_interval
        # index i holds the byte offset of character i * checkpoint_interval
        self.checkpoints: list[int] = []
        self._is_ascii_only = text.isascii()

        if not self._is_ascii_only:
            self._build_checkpoints()

    def _build_checkpoints(self) -> None:
        byte_pos = 0

        for char_pos, char in enumerate(self.text):
            if char_pos % self.checkpoint_interval == 0:
                self.checkpoints.append(byte_pos)
            byte_pos += _utf8_length(char)

    def char_to_byte(self, char_pos: int) -> int:
        """Convert character position to byte position.

        Args:
            char_pos: Character position in the decoded text

        Returns:
            Byte position in the UTF-8 encoded text
        """
        if self._is_ascii_only:
            return char_pos

        char_pos = min(char_pos, len(self.text))
        index = min(
            char_pos // self.checkpoint_interval, len(self.checkpoints) - 1
        )
        if index < 0:
            return 0

        byte_pos = self.checkpoints[index]
        for i in range(index * self.checkpoint_interval, char_pos):
            byte_pos += _utf8_length(self.text[i])

        return byte_pos


def _utf8_length(char: str) -> int:
    code_point = ord(char)
    if code_point <= _ASCII_LIMIT:
        return 1
    elif code_point < 0x800:
        return 2
    elif code_point < 0x10000:
        return 3
    return 4
