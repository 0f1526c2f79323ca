"""Incremental parser separating chat text from an embedded ``<updated_document>`` block.

The LLM answers conversationally and, when it changes a document, includes
the full new document between ``<updated_document>`` and
``</updated_document>``. Chunks arrive at arbitrary boundaries (down to a
single character), so the parser is a four-state machine that never holds
back more than one tag's worth of text. A candidate that diverges from the
tag is flushed whole, diverging character included.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from venture_lab.errors import StreamInterruptedError

OPEN_TAG = "<updated_document>"
CLOSE_TAG = "</updated_document>"


class ParserState(StrEnum):
    TEXT = "text"
    MAYBE_OPEN = "maybe-open"
    CONTENT = "content"
    MAYBE_CLOSE = "maybe-close"


@dataclass(frozen=True)
class ParsedChunk:
    """Output for one fed chunk: new chat text and, at most once, the finished document."""

    chat_text: str
    document: str | None = None


class StreamParser:
    """Feed chunks with :meth:`feed`, then call :meth:`finalize` at end of stream."""

    def __init__(self) -> None:
        self._state = ParserState.TEXT
        self._tag = ""
        self._document: list[str] = []

    @property
    def state(self) -> ParserState:
        return self._state

    def feed(self, chunk: str) -> ParsedChunk:
        chat: list[str] = []
        document: str | None = None

        for char in chunk:
            match self._state:
                case ParserState.TEXT:
                    if char == "<":
                        self._state = ParserState.MAYBE_OPEN
                        self._tag = char
                    else:
                        chat.append(char)

                case ParserState.MAYBE_OPEN:
                    self._tag += char
                    if self._tag == OPEN_TAG:
                        self._state = ParserState.CONTENT
                        self._tag = ""
                        self._document = []
                    elif not OPEN_TAG.startswith(self._tag):
                        chat.append(self._tag)
                        self._tag = ""
                        self._state = ParserState.TEXT

                case ParserState.CONTENT:
                    if char == "<":
                        self._state = ParserState.MAYBE_CLOSE
                        self._tag = char
                    else:
                        self._document.append(char)

                case ParserState.MAYBE_CLOSE:
                    self._tag += char
                    if self._tag == CLOSE_TAG:
                        document = "".join(self._document)
                        self._document = []
                        self._tag = ""
                        self._state = ParserState.TEXT
                    elif not CLOSE_TAG.startswith(self._tag):
                        self._document.append(self._tag)
                        self._tag = ""
                        self._state = ParserState.CONTENT

        return ParsedChunk(chat_text="".join(chat), document=document)

    def finalize(self) -> None:
        """Raise ``StreamInterruptedError`` if the stream ended inside a tag or block."""
        if self._state != ParserState.TEXT:
            self._tag = ""
            self._document = []
            raise StreamInterruptedError


def parse_response(text: str) -> tuple[str, str | None]:
    """Parse a complete response in one call. Returns ``(chat_text, document)``."""
    parser = StreamParser()
    parsed = parser.feed(text)
    parser.finalize()
    return parsed.chat_text, parsed.document
