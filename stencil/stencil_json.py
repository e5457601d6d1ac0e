"""
Chunked JSON reading.

`JsonTokener` accepts input piecewise and reports after every chunk whether
it needs more input, has produced one complete top-level value, or has hit
an error. `read_json_object` drives it over a Source in fixed-size reads.
"""
from __future__ import annotations

import enum
import json
import logging
from typing import Any, Optional

from stencil.stencil_datatypes import InvalidConfigFormat

logger = logging.getLogger(__name__)

CHUNK_SIZE = 128
MAX_DEPTH = 32

_WHITESPACE = frozenset(b" \t\r\n")
_OPENERS = frozenset(b"{[")
_CLOSERS = frozenset(b"}]")
_QUOTE = ord('"')
_BACKSLASH = ord("\\")


class TokenerState(enum.Enum):
    CONTINUE = "continue"
    SUCCESS = "success"
    ERROR = "error"


class JsonTokener:
    """Incremental recognizer for a single top-level JSON value.

    Containers are delimited by tracking string and nesting state byte by
    byte; the value completes as soon as the outermost bracket closes and
    any bytes after it are ignored. Scalars complete only at end of input.
    """

    def __init__(self, max_depth: int = MAX_DEPTH):
        self.max_depth = max_depth
        self.state = TokenerState.CONTINUE
        self.value: Any = None
        self.error: Optional[str] = None
        self._buf = bytearray()
        self._scalar: Optional[bool] = None
        self._depth = 0
        self._in_string = False
        self._escape = False

    def feed(self, chunk: bytes) -> TokenerState:
        if self.state is not TokenerState.CONTINUE:
            return self.state
        for b in chunk:
            if self._scalar is None:
                if b in _WHITESPACE:
                    continue
                self._scalar = b not in _OPENERS
            self._buf.append(b)
            if self._scalar:
                continue
            if self._in_string:
                if self._escape:
                    self._escape = False
                elif b == _BACKSLASH:
                    self._escape = True
                elif b == _QUOTE:
                    self._in_string = False
                continue
            if b == _QUOTE:
                self._in_string = True
            elif b in _OPENERS:
                self._depth += 1
                if self._depth > self.max_depth:
                    return self._fail(f"nesting deeper than {self.max_depth}")
            elif b in _CLOSERS:
                self._depth -= 1
                if self._depth == 0:
                    return self._complete()
        return self.state

    def finish(self) -> TokenerState:
        """Signals end of input."""
        if self.state is not TokenerState.CONTINUE:
            return self.state
        if self._scalar is None:
            return self._fail("empty input")
        if not self._scalar:
            return self._fail("unexpected end of input")
        return self._complete()

    def _complete(self) -> TokenerState:
        try:
            self.value = json.loads(self._buf.decode("utf-8"))
        except ValueError as e:
            return self._fail(str(e))
        self.state = TokenerState.SUCCESS
        self._buf = bytearray()
        return self.state

    def _fail(self, message: str) -> TokenerState:
        self.state = TokenerState.ERROR
        self.error = message
        self.value = None
        self._buf = bytearray()
        return self.state


def read_json_object(source, chunk_size: int = CHUNK_SIZE) -> dict:
    """Reads exactly one JSON object from source.

    Raises InvalidConfigFormat when the input is not well-formed JSON or its
    top-level value is not an object; nothing partial is returned.
    """
    tok = JsonTokener()
    while True:
        chunk = source.read(chunk_size)
        if not chunk:
            state = tok.finish()
            break
        state = tok.feed(chunk)
        if state is not TokenerState.CONTINUE:
            break

    if state is not TokenerState.SUCCESS:
        logger.debug("JSON parse of %s failed: %s", getattr(source, "label", source), tok.error)
        raise InvalidConfigFormat(detail=tok.error)
    if not isinstance(tok.value, dict):
        raise InvalidConfigFormat(detail=f"expected a JSON object, got {type(tok.value).__name__}")
    return tok.value
