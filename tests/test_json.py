import json

import pytest

from stencil.stencil_datatypes import InvalidConfigFormat
from stencil.stencil_json import JsonTokener, TokenerState, read_json_object
from stencil.stencil_source import Source

DOC = b'{"name": "x", "nested": {"list": [1, 2, {"deep": null}]}, "tricky": "a } ] \\" {", "n": -1.5e3}'


@pytest.mark.parametrize("chunk_size", [1, 2, 3, 7, 16, 128, 4096])
def test_chunking_is_transparent(chunk_size):
    src = Source.from_buffer("t", DOC)
    assert read_json_object(src, chunk_size=chunk_size) == json.loads(DOC)

def test_tokener_reports_continue_until_complete():
    tok = JsonTokener()
    assert tok.feed(b'{"a": ') is TokenerState.CONTINUE
    assert tok.feed(b'[1, 2]') is TokenerState.CONTINUE
    assert tok.feed(b'}') is TokenerState.SUCCESS
    assert tok.value == {"a": [1, 2]}

def test_tokener_ignores_leading_whitespace_and_trailing_bytes():
    tok = JsonTokener()
    assert tok.feed(b'  \n{"a": 1} garbage') is TokenerState.SUCCESS
    assert tok.value == {"a": 1}
    assert tok.feed(b"more") is TokenerState.SUCCESS

def test_tokener_unicode_split_across_chunks():
    data = '{"k": "héllo"}'.encode("utf-8")
    tok = JsonTokener()
    for i in range(len(data)):
        state = tok.feed(data[i:i + 1])
    assert state is TokenerState.SUCCESS
    assert tok.value == {"k": "héllo"}

def test_tokener_scalar_completes_at_end_of_input():
    tok = JsonTokener()
    assert tok.feed(b"42") is TokenerState.CONTINUE
    assert tok.finish() is TokenerState.SUCCESS
    assert tok.value == 42

def test_tokener_depth_limit():
    tok = JsonTokener(max_depth=3)
    assert tok.feed(b"[[[[1]]]]") is TokenerState.ERROR
    assert "nesting" in tok.error
    assert tok.value is None

def test_tokener_syntax_error_discards_value():
    tok = JsonTokener()
    assert tok.feed(b'{"a": 1,}') is TokenerState.ERROR
    assert tok.value is None

@pytest.mark.parametrize("data", [
    b"",
    b"   ",
    b'{"a": 1',
    b'{"a": }',
    b"[1, 2, 3]",
    b'"just a string"',
    b"true",
    b"12",
    b"{'single': 1}",
    b'{"bad": "\xff"}',
])
def test_read_json_object_rejects(data):
    with pytest.raises(InvalidConfigFormat):
        read_json_object(Source.from_buffer("t", data))

def test_read_json_object_empty_object():
    assert read_json_object(Source.from_buffer("t", b"{}")) == {}

def test_duplicate_keys_last_wins():
    assert read_json_object(Source.from_buffer("t", b'{"a": 1, "a": 2}')) == {"a": 2}
