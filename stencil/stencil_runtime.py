from __future__ import annotations

import logging
import sys
from typing import Any, Dict, List, Optional, TextIO

from stencil.stencil_config import ParseConfig, search_path as default_search_path
from stencil.stencil_datatypes import CompileError, Scope
from stencil.stencil_engine import Engine, MustacheEngine
from stencil.stencil_scope import build_globals, build_root
from stencil.stencil_source import Source

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_EXECUTE = 1
EXIT_COMPILE = 2


class ScriptRunner:
    """Compiles a program, binds its globals, and executes it.

    One call to `run` walks: shebang check, compile, build globals, build
    root, execute, cleanup. Globals, root and the engine context are
    released on every path out of `run`.
    """

    def __init__(self,
                 engine: Optional[Engine] = None,
                 config: Optional[ParseConfig] = None,
                 *,
                 search_path: Optional[str] = None,
                 stdout: Optional[TextIO] = None,
                 stderr: Optional[TextIO] = None):
        self.engine = engine or MustacheEngine(stdout=stdout)
        self.config = config or ParseConfig()
        self.search_path = search_path if search_path is not None else default_search_path()
        self.stdout = stdout
        self.stderr = stderr
        self.result = None

    async def run(self,
                  source: Source,
                  *,
                  skip_shebang: bool = False,
                  env: Optional[Dict[str, Any]] = None,
                  modules: Optional[List[str]] = None) -> int:
        stdout = self.stdout or sys.stdout
        stderr = self.stderr or sys.stderr
        ctx = self.engine.create_context(self.config)
        globals_: Optional[Scope] = None
        root: Optional[Scope] = None
        self.result = None

        try:
            if skip_shebang:
                source.skip_shebang()

            logger.debug("compiling %s", source.label)
            try:
                entry = ctx.compile(source)
            except CompileError as e:
                print(e.message, end="", file=stderr)
                return EXIT_COMPILE

            if self.config.dump_ast:
                print(ctx.dump(entry), file=stdout)
                return EXIT_OK

            globals_ = build_globals(env, self.search_path, ctx.install_stdlib)
            root = build_root(globals_)

            logger.debug("executing %s with modules %s", source.label, modules or [])
            self.result = await ctx.execute(entry, root, modules)
            if self.result.status == 'error':
                print(self.result.format_error(), file=stderr)
                return EXIT_EXECUTE
            return EXIT_OK
        finally:
            if globals_ is not None:
                globals_.release()
            if root is not None:
                root.release()
            ctx.close()
