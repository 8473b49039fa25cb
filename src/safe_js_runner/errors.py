"""Failure taxonomy for script execution.

Every failure inside the engine is raised as a ``ScriptError`` subclass and
converted to a failed ``ScriptResult`` at the ``execute`` boundary. The
``kind`` attribute is copied to ``ScriptResult.error_kind``.

Hierarchy:
    ScriptError
    ├── ValidationRejected   oversize script or denylisted token
    ├── SerializationFailed  caller data cannot be rendered as JSON
    ├── CompileFailed        malformed script syntax
    ├── RuntimeThrew         script threw or produced an unusable result
    ├── TimedOut             execution budget exceeded
    └── RealmError           realm could not be built in a trusted state
"""

from __future__ import annotations


class ScriptError(Exception):
    """Base class for every failure the engine reports as a result.

    Example:
        ```python
        try:
            raise TimedOut("Script execution timed out after 1000ms")
        except ScriptError as exc:
            print(exc.kind)
        ```
    """

    kind = "error"

    def __init__(self, message: str) -> None:
        """Store the message shown to callers.

        Example:
            ```python
            err = ScriptError("boom")
            ```
        """
        super().__init__(message)
        self.message = message


class ValidationRejected(ScriptError):
    """Script was rejected before any realm was built."""

    kind = "validation"


class SerializationFailed(ScriptError):
    """Caller data could not be serialized to JSON text."""

    kind = "serialization"


class CompileFailed(ScriptError):
    """Wrapped script failed to parse inside the realm."""

    kind = "compile"


class RuntimeThrew(ScriptError):
    """Script raised inside the realm or returned a value that cannot cross back."""

    kind = "runtime"


class TimedOut(ScriptError):
    """Script exceeded its execution budget and was interrupted."""

    kind = "timeout"


class RealmError(ScriptError):
    """A realm could not be brought into its scrubbed, trusted state."""

    kind = "realm"
