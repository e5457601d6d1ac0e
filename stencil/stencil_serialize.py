from __future__ import annotations

import json
import os
from typing import Any, Optional

import yaml


# --------------------------
# Helpers
# --------------------------

def _norm_text(data: bytes | bytearray | str) -> str:
    if isinstance(data, (bytes, bytearray)):
        return data.decode("utf-8", errors="replace")
    return str(data)


def detect_format(path: Optional[str] = None, data_hint: Optional[str] = None) -> Optional[str]:
    """
    Returns 'json' or 'yaml' for a module file.
    Uses the file extension first; falls back to sniffing the text.
    """
    ext = os.path.splitext(path or "")[1].lower()
    if ext == ".json":
        return 'json'
    if ext in (".yaml", ".yml"):
        return 'yaml'
    if data_hint is not None:
        s = data_hint.lstrip()
        if s.startswith('{') or s.startswith('['):
            return 'json'
        return 'yaml'
    return None


# --------------------------
# Public API
# --------------------------

def deserialize(data: bytes | bytearray | str, *, fmt: Optional[str] = None) -> Any:
    """
    Convert module file content to plain Python structures.
    JSON that fails to parse is retried as YAML (a superset); YAML errors propagate.
    """
    text = _norm_text(data)
    f = fmt or detect_format(data_hint=text)
    if f == 'json':
        try:
            return json.loads(text)
        except ValueError:
            return yaml.safe_load(text)
    if f == 'yaml':
        return yaml.safe_load(text)
    raise ValueError(f"Unsupported module format: {fmt!r}")


def load_file(path: str) -> Any:
    with open(path, "rb") as f:
        data = f.read()
    return deserialize(data, fmt=detect_format(path))


__all__ = [
    "deserialize",
    "detect_format",
    "load_file",
]
