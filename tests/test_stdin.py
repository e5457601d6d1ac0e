import io

import pytest

from stencil.stencil_datatypes import StdinAlreadyConsumed
from stencil.stencil_stdin import StdinClaim


class CountingStream(io.BytesIO):
    def __init__(self, data):
        super().__init__(data)
        self.reads = []

    def read(self, size=-1):
        self.reads.append(size)
        return super().read(size)


def test_acquire_returns_stdin_source():
    claim = StdinClaim(io.BytesIO(b"hello"))
    src = claim.acquire()
    assert src.label == "[stdin]"
    assert src.read() == b"hello"
    assert claim.consumed
    assert claim.captured == b"hello"

def test_acquire_reads_in_bounded_chunks():
    data = b"x" * 1000
    stream = CountingStream(data)
    claim = StdinClaim(stream, chunk_size=64)
    assert claim.acquire().read() == data
    assert all(size == 64 for size in stream.reads)
    assert len(stream.reads) == 1000 // 64 + 2

def test_second_acquire_fails_and_keeps_capture():
    stream = CountingStream(b"once")
    claim = StdinClaim(stream)
    claim.acquire()
    reads = len(stream.reads)
    with pytest.raises(StdinAlreadyConsumed):
        claim.acquire()
    assert len(stream.reads) == reads
    assert claim.captured == b"once"

def test_empty_stdin_still_counts_as_consumed():
    claim = StdinClaim(io.BytesIO(b""))
    assert claim.acquire().read() == b""
    with pytest.raises(StdinAlreadyConsumed):
        claim.acquire()

def test_unused_claim_never_touches_stream():
    stream = CountingStream(b"data")
    claim = StdinClaim(stream)
    assert not claim.consumed
    assert stream.reads == []
