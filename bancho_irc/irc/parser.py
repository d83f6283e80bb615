"""IRC line framing and tokenizing."""

from __future__ import annotations

import codecs
from dataclasses import dataclass


@dataclass(slots=True)
class IRCLine:
    """One framed command, split on single spaces like Bancho sends it.

    ``tokens[0]`` is the prefix (``:nick!cho@ppy.sh``) or, for prefix-less
    lines such as ``PING``, the command itself. ``tokens[1]`` is the verb
    for every prefixed line.
    """

    raw: str
    tokens: list[str]

    @property
    def verb(self) -> str | None:
        return self.tokens[1] if len(self.tokens) > 1 else None

    @property
    def nick(self) -> str:
        """Nickname from the prefix (``:nick!user@host`` -> ``nick``)."""
        return parse_prefix_nick(self.tokens[0]) if self.tokens else ""

    def trailing(self, index: int) -> str:
        """Re-join ``tokens[index:]`` and drop the leading ':' marker."""
        text = " ".join(self.tokens[index:])
        return text[1:] if text.startswith(":") else text

    def param(self, index: int, default: str = "") -> str:
        return self.tokens[index] if len(self.tokens) > index else default


def tokenize(line: str) -> IRCLine:
    return IRCLine(raw=line, tokens=line.split(" "))


def parse_prefix_nick(prefix: str) -> str:
    if prefix.startswith(":"):
        prefix = prefix[1:]
    return prefix.split("!", 1)[0]


class LineFramer:
    """Reassembles newline-delimited lines from arbitrary socket reads.

    Carriage returns are dropped wherever they appear (Bancho sometimes sends
    them and sometimes does not). A trailing partial line stays buffered until
    the read that completes it. Multi-byte UTF-8 sequences split across reads
    are decoded once complete.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        return self._buffer

    def reset(self) -> None:
        self._decoder.reset()
        self._buffer = ""

    def feed(self, data: bytes | str) -> list[str]:
        if isinstance(data, bytes):
            data = self._decoder.decode(data)
        self._buffer += data.replace("\r", "")
        lines: list[str] = []
        while (index := self._buffer.find("\n")) != -1:
            lines.append(self._buffer[:index])
            self._buffer = self._buffer[index + 1 :]
        return lines
