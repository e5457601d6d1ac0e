from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from stencil.stencil_datatypes import InvalidConfigFormat
from stencil.stencil_json import read_json_object
from stencil.stencil_source import Source
from stencil.stencil_stdin import StdinClaim

logger = logging.getLogger(__name__)

SEARCH_PATH_ENV = "STENCIL_SEARCH_PATH"
DEFAULT_SEARCH_PATH = "/usr/share/stencil/*.json:/usr/share/stencil/*.yaml:./*.json:./*.yaml"


@dataclass
class ParseConfig:
    """Compiler switches set from the command line."""
    lstrip_blocks: bool = True
    trim_blocks: bool = True
    strict_declarations: bool = False
    dump_ast: bool = False


def search_path(environ: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    return env.get(SEARCH_PATH_ENV, DEFAULT_SEARCH_PATH)


def split_search_path(path: str) -> List[str]:
    # Empty segments are kept; "a::b" has three entries.
    return path.split(":")


@dataclass
class MergeRequest:
    """One -e (inline) or -E (file) configuration payload."""
    option: str
    payload: str
    prefix: Optional[str] = None

    @classmethod
    def parse(cls, option: str, arg: str) -> 'MergeRequest':
        """Splits an optional leading `prefix=` off the option argument.

        Text before the first '=' counts as a prefix only if it cannot be the
        start of a JSON document.
        """
        head, sep, rest = arg.partition("=")
        if sep and not any(ch in head for ch in '{["'):
            return cls(option, rest, head)
        return cls(option, arg, None)

    @property
    def inline(self) -> bool:
        return self.option == "e"


class ConfigMerger:
    """Accumulates -e/-E payloads into one configuration object."""

    def __init__(self, stdin: StdinClaim):
        self.stdin = stdin
        self.env: Optional[Dict[str, Any]] = None

    def open(self, request: MergeRequest) -> Source:
        if request.inline:
            return Source.from_buffer("[-e argument]", request.payload)
        if request.payload == "-":
            return self.stdin.acquire()
        return Source.from_file(request.payload)

    def merge(self, request: MergeRequest) -> Dict[str, Any]:
        with self.open(request) as src:
            try:
                obj = read_json_object(src)
            except InvalidConfigFormat as e:
                raise InvalidConfigFormat(request.option, e.detail) from e

        if self.env is None:
            self.env = {}

        if request.prefix:
            dest = self.env.get(request.prefix)
            if not isinstance(dest, dict):
                dest = self.env[request.prefix] = {}
        else:
            dest = self.env

        logger.debug("merging %d keys from -%s into %s", len(obj), request.option,
                     repr(request.prefix) if request.prefix else "top level")
        dest.update(obj)
        return self.env

    def take(self) -> Optional[Dict[str, Any]]:
        """Hands the configuration object over to the caller."""
        env, self.env = self.env, None
        return env
