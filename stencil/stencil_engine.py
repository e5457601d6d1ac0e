"""
The compile/execute boundary.

The driver only talks to an `Engine` through the `EngineContext` it creates:
compile a Source into an entry point, install the standard library into
globals, execute the entry against the root scope, and close. The bundled
`MustacheEngine` treats the program as a Mustache template.
"""
from __future__ import annotations

import collections.abc
import inspect
import logging
import os
import re
import sys
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Literal, Optional, TextIO

import pystache
from pystache.context import KeyNotFoundError
from pystache.parser import ParsingError

from stencil.stencil_config import ParseConfig
from stencil.stencil_datatypes import CompileError, ExecuteError, Scope
from stencil.stencil_modules import preload_modules
from stencil.stencil_source import Source

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """The structured result of executing an entry point."""
    status: Literal['success', 'error']
    value: Any = None
    error_message: Optional[str] = None

    def format_error(self) -> str:
        if self.status != 'error':
            return ""
        return str(self.error_message or "Unknown error")


class EngineContext(ABC):
    """One execution context (compiler state plus VM) for a single run."""

    def __init__(self, config: ParseConfig):
        self.config = config

    @abstractmethod
    def compile(self, source: Source) -> Any:
        """Returns an entry point or raises CompileError."""

    @abstractmethod
    def install_stdlib(self, scope: Scope) -> None:
        """Binds library names into scope without replacing existing ones."""

    @abstractmethod
    async def execute(self, entry: Any, root: Scope, modules: Optional[List[str]]) -> ExecutionResult:
        ...

    def dump(self, entry: Any) -> str:
        return repr(entry)

    def close(self) -> None:
        pass


class Engine(ABC):
    @abstractmethod
    def create_context(self, config: ParseConfig) -> EngineContext:
        ...


# ===================================================================
# Standard library
# ===================================================================

class StdLib:
    """Library bindings for templates.

    Methods named `_name` are exposed as `name`. Zero-argument functions are
    interpolated (`{{time}}`); one-argument functions are section lambdas
    that receive the raw section text (`{{#trim}} ... {{/trim}}`).
    """

    def _time(self): return int(time.time())
    def _cwd(self): return os.getcwd()
    def _pid(self): return os.getpid()
    def _trim(self, text): return text.strip()

    def install(self, scope: Scope):
        for name, member in inspect.getmembers(self):
            if name.startswith('_') and not name.startswith('__') and callable(member):
                scope.setdefault(name[1:], member)


# ===================================================================
# Mustache engine
# ===================================================================

_BLOCK_TAG = r"\{\{[#^/!][^}]*\}\}"
_LSTRIP_RE = re.compile(r"^[ \t]+(?=" + _BLOCK_TAG + ")", re.MULTILINE)
_TRIM_RE = re.compile("(" + _BLOCK_TAG + r")\r?\n")


def _tmpl_normalize_value(v):
    """Convert scope values into plain Python types for Mustache."""
    if isinstance(v, Scope):
        return _scope_to_dict(v)
    if isinstance(v, collections.abc.Mapping):
        return {k: _tmpl_normalize_value(val) for k, val in v.items()}
    if isinstance(v, list):
        return [_tmpl_normalize_value(x) for x in v]
    return v


def _scope_to_dict(scope: Scope) -> dict:
    """Flatten the scope and its parents into a single plain dict."""
    out: dict = {}
    # Populate from the outermost scope inwards so inner bindings override.
    for s in reversed(scope.chain()):
        for k, v in s.bindings.items():
            out[k] = _tmpl_normalize_value(v)
    return out


class MustacheContext(EngineContext):

    def __init__(self, config: ParseConfig, stdout: Optional[TextIO] = None):
        super().__init__(config)
        self.stdout = stdout
        self.stdlib = StdLib()
        self.renderer = pystache.Renderer(
            escape=lambda u: u,
            missing_tags='strict' if config.strict_declarations else 'ignore',
        )

    def prepare(self, text: str) -> str:
        """Applies lstrip_blocks/trim_blocks to block tags.

        Only tags sharing a line with other content are affected. Mustache
        itself always removes a block tag that stands alone on its line,
        along with its indentation and newline, so -l and -r cannot keep that
        whitespace.
        """
        if self.config.lstrip_blocks:
            text = _LSTRIP_RE.sub("", text)
        if self.config.trim_blocks:
            text = _TRIM_RE.sub(r"\1", text)
        return text

    def compile(self, source: Source):
        # pystache reports no positions, so source.offset is not used here.
        text = self.prepare(source.text())
        try:
            return pystache.parse(text)
        except (ParsingError, ValueError) as e:
            raise CompileError(f"Syntax error in {source.label}: {e}\n") from e

    def install_stdlib(self, scope: Scope):
        self.stdlib.install(scope)

    async def execute(self, entry, root: Scope, modules: Optional[List[str]]) -> ExecutionResult:
        try:
            preload_modules(root, modules)
            output = self.renderer.render(entry, _scope_to_dict(root))
        except ExecuteError as e:
            return ExecutionResult(status='error', error_message=e.message)
        except KeyNotFoundError as e:
            return ExecutionResult(status='error', error_message=f"Reference error: {e}")
        except Exception as e:
            return ExecutionResult(status='error', error_message=f"Runtime error: {type(e).__name__}: {e}")

        logger.debug("rendered %d characters", len(output))
        out = self.stdout or sys.stdout
        out.write(output)
        out.flush()
        return ExecutionResult(status='success', value=output)


class MustacheEngine(Engine):
    def __init__(self, stdout: Optional[TextIO] = None):
        self.stdout = stdout

    def create_context(self, config: ParseConfig) -> MustacheContext:
        return MustacheContext(config, self.stdout)
