from .compiler import compile_unit
from .engine import ExecutionRealm, run_unit
from .injector import inject, serialize_data
from .realm import QuickJSRealm, build_realm
from .types import CompiledUnit, Deadline, ExecutionState, RunOutcome, ScriptMode, ScriptRequest

__all__ = [
    "CompiledUnit",
    "Deadline",
    "ExecutionRealm",
    "ExecutionState",
    "QuickJSRealm",
    "RunOutcome",
    "ScriptMode",
    "ScriptRequest",
    "build_realm",
    "compile_unit",
    "inject",
    "run_unit",
    "serialize_data",
]
