from __future__ import annotations
import codecs
from typing import Iterator, List, Optional

import httpx

from .config import CHUNK_SIZE
from .http_client import Deadline, iter_within


def iter_chunks(
    response: httpx.Response,
    chunk_size: int = CHUNK_SIZE,
    deadline: Optional[Deadline] = None,
) -> Iterator[bytes]:
    """Yield body bytes as they arrive, never more than chunk_size at a time.

    Reads are not coalesced: a short network read stays a short chunk. Once
    deadline has passed the next read raises httpx.ReadTimeout.
    """
    for data in iter_within(response.iter_bytes(), deadline):
        for start in range(0, len(data), chunk_size):
            yield data[start:start + chunk_size]


def split_segments(text: str) -> List[str]:
    """Split on newlines, trim each piece and drop the empty ones."""
    return [s for s in (item.strip() for item in text.split("\n")) if s]


class SegmentSplitter:
    """Turns a sequence of byte chunks into trimmed, non-empty text segments.

    Without reassembly every chunk is split on its own, so a line crossing a
    chunk boundary comes out as two segments. With reassembly the trailing
    fragment of a chunk is held back and prepended to the next one; a fragment
    longer than max_carry is emitted as is.
    """

    def __init__(self, reassemble: bool = False, max_carry: int = CHUNK_SIZE) -> None:
        self.reassemble = reassemble
        self.max_carry = max_carry
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._carry = ""

    def feed(self, chunk: bytes) -> List[str]:
        text = self._decoder.decode(chunk)
        if not self.reassemble:
            return split_segments(text)

        head, sep, tail = (self._carry + text).rpartition("\n")
        if len(tail) > self.max_carry:
            self._carry = ""
            return split_segments(head + sep + tail)
        self._carry = tail
        return split_segments(head)

    def flush(self) -> List[str]:
        """Return whatever is still held back once the stream has ended."""
        text = self._carry + self._decoder.decode(b"", final=True)
        self._carry = ""
        return split_segments(text)
