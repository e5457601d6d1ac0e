from __future__ import annotations

import logging
import os
from typing import Any, Iterable, List, Optional

import yaml

from stencil.stencil_config import split_search_path
from stencil.stencil_datatypes import ExecuteError, Scope
from stencil.stencil_scope import SEARCH_PATH_KEY, register_variable
from stencil.stencil_serialize import load_file

logger = logging.getLogger(__name__)

_DIRECTORY_EXTENSIONS = (".json", ".yaml", ".yml")


def _candidates(name: str, entry: str) -> List[str]:
    rel = name.replace(".", "/")
    if "*" in entry:
        return [entry.replace("*", rel)]
    # Entries without a placeholder name a directory.
    base = entry or "."
    return [os.path.join(base, rel + ext) for ext in _DIRECTORY_EXTENSIONS]


def resolve_module(name: str, search_path: Iterable[str]) -> Optional[str]:
    for entry in search_path:
        for path in _candidates(name, str(entry)):
            if os.path.isfile(path):
                return path
    return None


def load_module(name: str, search_path: Iterable[str]) -> Any:
    path = resolve_module(name, search_path)
    if path is None:
        raise ExecuteError(f"Unable to resolve module '{name}'")
    logger.debug("loading module %s from %s", name, path)
    try:
        return load_file(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ExecuteError(f"Unable to load module '{name}' from {path}: {e}") from e


def preload_modules(scope: Scope, modules: Optional[List[str]]):
    """Binds each requested module into scope, in request order."""
    if not modules:
        return
    search_path = scope.get(SEARCH_PATH_KEY) or []
    if isinstance(search_path, str):
        search_path = split_search_path(search_path)
    elif not isinstance(search_path, list):
        raise ExecuteError(f"{SEARCH_PATH_KEY} must be a list or string")
    for name in modules:
        register_variable(scope, name, load_module(name, search_path))
