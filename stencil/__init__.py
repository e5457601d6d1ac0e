from stencil.stencil_datatypes import (
    Scope,
    StencilError,
    UsageError,
    SourceConflict,
    SourceOpenFailed,
    NoSourceSpecified,
    StdinAlreadyConsumed,
    InvalidConfigFormat,
    CompileError,
    ExecuteError,
)
from stencil.stencil_source import Source
from stencil.stencil_stdin import StdinClaim
from stencil.stencil_config import ParseConfig, MergeRequest, ConfigMerger
from stencil.stencil_engine import Engine, EngineContext, ExecutionResult, MustacheEngine
from stencil.stencil_runtime import ScriptRunner

__all__ = [
    "Scope",
    "StencilError",
    "UsageError",
    "SourceConflict",
    "SourceOpenFailed",
    "NoSourceSpecified",
    "StdinAlreadyConsumed",
    "InvalidConfigFormat",
    "CompileError",
    "ExecuteError",
    "Source",
    "StdinClaim",
    "ParseConfig",
    "MergeRequest",
    "ConfigMerger",
    "Engine",
    "EngineContext",
    "ExecutionResult",
    "MustacheEngine",
    "ScriptRunner",
]
