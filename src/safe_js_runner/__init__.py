from ._logging import configure_logging
from .errors import (
    CompileFailed,
    RealmError,
    RuntimeThrew,
    ScriptError,
    SerializationFailed,
    TimedOut,
    ValidationRejected,
)
from .execution.types import ScriptMode
from .extractor import extract_variable_names
from .policy import RunnerPolicy, ScriptResult
from .runner import ScriptExecutor, execute
from .validator import BLOCKED_KEYWORDS, validate_script

__all__ = [
    "BLOCKED_KEYWORDS",
    "CompileFailed",
    "RealmError",
    "RunnerPolicy",
    "RuntimeThrew",
    "ScriptError",
    "ScriptExecutor",
    "ScriptMode",
    "ScriptResult",
    "SerializationFailed",
    "TimedOut",
    "ValidationRejected",
    "configure_logging",
    "execute",
    "extract_variable_names",
    "validate_script",
]
