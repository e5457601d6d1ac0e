from __future__ import annotations

import io
import logging
from typing import BinaryIO, List, Optional

from stencil.stencil_datatypes import SourceOpenFailed

logger = logging.getLogger(__name__)


class Source:
    """An owned handle over one program's input bytes.

    Carries a human readable label, a byte cursor with single-byte pushback,
    and `offset`, the number of leading bytes that were consumed before the
    compiler saw the text (so reported positions stay relative to the file).
    """

    def __init__(self, label: str, fp: BinaryIO):
        self.label = label
        self.fp = fp
        self.offset = 0
        self.line_offset = 0
        self._pushback: List[int] = []
        self.closed = False

    @classmethod
    def from_file(cls, path: str) -> 'Source':
        try:
            fp = open(path, "rb")
        except OSError as e:
            raise SourceOpenFailed(path, e.strerror or str(e)) from e
        return cls(path, fp)

    @classmethod
    def from_buffer(cls, label: str, data: bytes | str) -> 'Source':
        if isinstance(data, str):
            data = data.encode("utf-8")
        return cls(label, io.BytesIO(data))

    def getc(self) -> Optional[int]:
        """Returns the next byte, or None at end of input."""
        if self._pushback:
            return self._pushback.pop()
        b = self.fp.read(1)
        return b[0] if b else None

    def ungetc(self, c: Optional[int]):
        """Pushes a byte back; the last byte pushed is the next one read."""
        if c is not None:
            self._pushback.append(c)

    def read(self, size: int = -1) -> bytes:
        head = bytearray()
        while self._pushback and (size < 0 or len(head) < size):
            head.append(self._pushback.pop())
        if size < 0:
            return bytes(head) + self.fp.read()
        if len(head) < size:
            head += self.fp.read(size - len(head))
        return bytes(head)

    def text(self, encoding: str = "utf-8") -> str:
        return self.read().decode(encoding, errors="replace")

    def skip_shebang(self) -> int:
        """Discards a leading '#!' line. Returns the number of bytes skipped."""
        c = self.getc()
        c2 = self.getc()
        if c == ord("#") and c2 == ord("!"):
            skipped = 2
            while True:
                c = self.getc()
                if c is None:
                    break
                skipped += 1
                if c == ord("\n"):
                    self.line_offset += 1
                    break
            self.offset += skipped
            logger.debug("skipped %d byte interpreter line in %s", skipped, self.label)
            return skipped
        self.ungetc(c2)
        self.ungetc(c)
        return 0

    def close(self):
        if self.closed:
            return
        self.closed = True
        self._pushback.clear()
        self.fp.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self) -> str:
        return f"<Source {self.label!r} offset={self.offset}>"
