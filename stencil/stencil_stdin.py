from __future__ import annotations

import logging
import sys
import threading
from typing import BinaryIO, Optional

from stencil.stencil_datatypes import StdinAlreadyConsumed
from stencil.stencil_source import Source

logger = logging.getLogger(__name__)

# Standard input is drained in pieces of this size.
READ_CHUNK = 128


class StdinClaim:
    """The single right to drain standard input for one invocation.

    Passed explicitly to every component that may want standard input.
    The first `acquire()` reads the stream to exhaustion; any later call,
    from any holder, raises StdinAlreadyConsumed without touching the stream.
    """

    def __init__(self, stream: Optional[BinaryIO] = None, chunk_size: int = READ_CHUNK):
        self._stream = stream
        self.chunk_size = chunk_size
        self._lock = threading.Lock()
        self._captured: Optional[bytes] = None

    @property
    def consumed(self) -> bool:
        return self._captured is not None

    @property
    def captured(self) -> Optional[bytes]:
        return self._captured

    def acquire(self) -> Source:
        with self._lock:
            if self._captured is not None:
                raise StdinAlreadyConsumed()
            stream = self._stream if self._stream is not None else sys.stdin.buffer
            buf = bytearray()
            while True:
                chunk = stream.read(self.chunk_size)
                if not chunk:
                    break
                buf += chunk
            self._captured = bytes(buf)
        logger.debug("captured %d bytes from stdin", len(self._captured))
        return Source.from_buffer("[stdin]", self._captured)
