import pytest

from stencil.stencil_datatypes import CompileError
from stencil.stencil_engine import Engine, EngineContext, ExecutionResult


class RecordingContext(EngineContext):
    def __init__(self, engine, config):
        super().__init__(config)
        self.engine = engine

    def compile(self, source):
        self.engine.log.append("compile")
        text = source.text()
        self.engine.compiled = text
        if self.engine.compile_error is not None:
            raise CompileError(self.engine.compile_error)
        return text

    def install_stdlib(self, scope):
        self.engine.log.append("stdlib")
        for name, value in self.engine.stdlib.items():
            scope.setdefault(name, value)

    async def execute(self, entry, root, modules):
        self.engine.log.append("execute")
        self.engine.globals_scope = root.parent
        self.engine.seen_root = dict(root.bindings)
        self.engine.seen_globals = dict(root.parent.bindings)
        self.engine.modules = modules
        return ExecutionResult(status=self.engine.status, value=entry,
                               error_message=self.engine.error_message)

    def close(self):
        self.engine.log.append("close")


class RecordingEngine(Engine):
    """Stands in for the compiler and VM; remembers what it was handed."""

    def __init__(self):
        self.log = []
        self.config = None
        self.compiled = None
        self.compile_error = None
        self.status = "success"
        self.error_message = None
        self.stdlib = {"print": "lib:print", "length": "lib:length"}
        self.globals_scope = None
        self.seen_root = None
        self.seen_globals = None
        self.modules = None

    def create_context(self, config):
        self.config = config
        self.log.append("create")
        return RecordingContext(self, config)


@pytest.fixture
def recording_engine():
    return RecordingEngine()
