"""
Incremental decoders for streamed generation responses.

Full generation streams one JSON document split into arbitrary chunks;
section regeneration streams newline-delimited JSON objects. Both decoders
take raw bytes so multi-byte UTF-8 characters split across chunks are
reassembled before parsing.
"""

import codecs
import json
from typing import Any, AsyncIterator, Dict, Optional

from saveyourgoblin.utils.logger import get_logger

from .cancellation import CancellationToken
from .errors import NoDataReturned

logger = get_logger(__name__)


class DocumentStreamDecoder:
    """
    Recovers a single JSON object from a chunked text stream.

    After each chunk the whole buffer is parsed; a parse failure only means
    the document is incomplete and is never surfaced to the caller.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""
        self.document: Optional[Dict[str, Any]] = None

    @property
    def done(self) -> bool:
        return self.document is not None

    def _try_parse(self) -> bool:
        try:
            parsed = json.loads(self._buffer)
        except ValueError:
            return False
        if not isinstance(parsed, dict):
            return False
        self.document = parsed
        return True

    def feed(self, chunk: bytes) -> bool:
        """
        Add a chunk.

        Returns:
            True once a complete document has been recovered
        """
        if self.done:
            return True
        self._buffer += self._decoder.decode(chunk)
        return self._try_parse()

    def finish(self) -> Dict[str, Any]:
        """
        Raises:
            NoDataReturned: If the stream never formed a complete document
        """
        if not self.done:
            self._buffer += self._decoder.decode(b"", final=True)
            if not self._buffer.strip() or not self._try_parse():
                raise NoDataReturned("No content was generated")
        return self.document


class SectionStreamDecoder:
    """
    Reads NDJSON lines and keeps the last object for one section.

    Malformed lines are logged and skipped; lines for other sections are
    ignored.
    """

    def __init__(self, section: str):
        self.section = section
        self._decoder = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""
        self.result: Optional[Dict[str, Any]] = None

    def _consume(self, line: str) -> None:
        line = line.strip()
        if not line:
            return
        try:
            parsed = json.loads(line)
        except ValueError:
            logger.warning(f"Skipping malformed stream line: {line[:80]}")
            return
        if isinstance(parsed, dict) and parsed.get("section") == self.section:
            self.result = parsed

    def feed(self, chunk: bytes) -> None:
        self._buffer += self._decoder.decode(chunk)
        *lines, self._buffer = self._buffer.split("\n")
        for line in lines:
            self._consume(line)

    def finish(self) -> Dict[str, Any]:
        """
        Raises:
            NoDataReturned: If no line for the section was received
        """
        self._buffer += self._decoder.decode(b"", final=True)
        tail, self._buffer = self._buffer, ""
        self._consume(tail)
        if self.result is None:
            raise NoDataReturned("No regenerated data received")
        return self.result


async def decode_document(
    chunks: AsyncIterator[bytes], cancel_token: Optional[CancellationToken] = None
) -> Dict[str, Any]:
    """Drive a DocumentStreamDecoder; stops reading once the document is complete."""
    decoder = DocumentStreamDecoder()
    async for chunk in chunks:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        if decoder.feed(chunk):
            break
    if cancel_token is not None:
        cancel_token.raise_if_cancelled()
    return decoder.finish()


async def decode_sections(
    chunks: AsyncIterator[bytes],
    section: str,
    cancel_token: Optional[CancellationToken] = None,
) -> Dict[str, Any]:
    """Drive a SectionStreamDecoder to the end of the stream."""
    decoder = SectionStreamDecoder(section)
    async for chunk in chunks:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        decoder.feed(chunk)
    if cancel_token is not None:
        cancel_token.raise_if_cancelled()
    return decoder.finish()
