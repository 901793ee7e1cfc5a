"""
Stream processor service - incremental decoding of streamed JSON bodies.
The server streams one JSON object per line; any whitespace-separated
concatenation of JSON values is accepted.
"""

from __future__ import annotations
import codecs
import json
from typing import Any, Iterable, Iterator, List

from ...errors import DecodeError


class JsonStreamDecoder:
    """Buffers text chunks and hands out every complete JSON value."""

    def __init__(self):
        self._decoder = json.JSONDecoder()
        self._utf8 = codecs.getincrementaldecoder('utf-8')()
        self._buffer = ""

    def feed_bytes(self, chunk: bytes) -> List[Any]:
        """Decode a raw network chunk; multi-byte characters may be split across chunks."""
        try:
            text = self._utf8.decode(chunk)
        except UnicodeDecodeError as e:
            raise DecodeError(f"error decoding stream: {e}") from e
        return self.feed(text)

    def feed(self, text: str) -> List[Any]:
        """Buffer text and return the values completed by it."""
        self._buffer += text
        return self._drain(final=False)

    def close(self) -> List[Any]:
        """Flush the buffer; anything left that is not a JSON value is an error."""
        try:
            self._buffer += self._utf8.decode(b'', final=True)
        except UnicodeDecodeError as e:
            raise DecodeError(f"error decoding stream: {e}") from e
        return self._drain(final=True)

    def _drain(self, final: bool) -> List[Any]:
        values: List[Any] = []
        while True:
            pending = self._buffer.lstrip()
            if not pending:
                self._buffer = ""
                return values
            try:
                value, end = self._decoder.raw_decode(pending)
            except json.JSONDecodeError as e:
                # Only a failure running into the end of the buffer can be an incomplete value
                if final or (not values and "\n" in pending[e.pos:]):
                    self._buffer = ""
                    raise DecodeError(f"error decoding stream: {e}") from e
                # Values completed before a malformed one are handed out first
                self._buffer = pending
                return values
            if end == len(pending) and not final and not isinstance(value, (dict, list, str)):
                # A bare number or literal at the end of the buffer may still grow
                self._buffer = pending
                return values
            values.append(value)
            self._buffer = pending[end:]


def iter_json_values(chunks: Iterable[bytes]) -> Iterator[Any]:
    """Yield JSON values from an iterable of byte chunks as soon as they complete."""
    decoder = JsonStreamDecoder()
    for chunk in chunks:
        if not chunk:
            continue
        if isinstance(chunk, str):
            values = decoder.feed(chunk)
        else:
            values = decoder.feed_bytes(chunk)
        for value in values:
            yield value
    for value in decoder.close():
        yield value
