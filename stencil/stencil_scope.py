"""
Builds the scope chain a program runs in.

    root  (global -> globals)
      └── globals  (REQUIRE_SEARCH_PATH, configuration variables, std-lib)

Lookups start at root and fall through to globals.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Callable, Mapping, Optional

from stencil.stencil_config import split_search_path
from stencil.stencil_datatypes import Scope

logger = logging.getLogger(__name__)

SEARCH_PATH_KEY = "REQUIRE_SEARCH_PATH"
GLOBAL_KEY = "global"

_INVALID_NAME_CHARS = re.compile(r"[^A-Za-z0-9_]")


def sanitize_key(key: str) -> str:
    return _INVALID_NAME_CHARS.sub("_", key)


def register_variable(scope: Scope, key: str, value: Any):
    # Keys that sanitize to the same name overwrite each other.
    scope[sanitize_key(key)] = value


def build_globals(env: Optional[Mapping[str, Any]],
                  search_path: str,
                  install_stdlib: Optional[Callable[[Scope], None]] = None) -> Scope:
    globals_ = Scope()
    globals_[SEARCH_PATH_KEY] = split_search_path(search_path)

    if env:
        for key, value in env.items():
            register_variable(globals_, key, value)

    # The installer must leave existing names alone so configuration wins.
    if install_stdlib is not None:
        install_stdlib(globals_)

    logger.debug("globals: %s", globals_)
    return globals_


def build_root(globals_: Scope) -> Scope:
    root = Scope(parent=globals_)
    root[GLOBAL_KEY] = globals_
    return root
