from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ScriptMode(str, Enum):
    """How a script's output is collected."""

    VALUE = "value"
    TEMPLATE = "template"


class ExecutionState(str, Enum):
    """Stages one request passes through; each is visited at most once."""

    RECEIVED = "received"
    VALIDATED = "validated"
    REALM_BUILT = "realm_built"
    DATA_INJECTED = "data_injected"
    EXECUTING = "executing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ScriptRequest:
    """One execution ask, consumed once.

    Example:
        ```python
        req = ScriptRequest(code="return $.price;", data={"price": 1}, mode=ScriptMode.VALUE)
        ```
    """

    code: str
    data: Any = None
    mode: ScriptMode = ScriptMode.VALUE


@dataclass(frozen=True, slots=True)
class CompiledUnit:
    """User code wrapped for one mode, ready to evaluate in a realm.

    Example:
        ```python
        unit = CompiledUnit(mode=ScriptMode.VALUE, source="(function () { return 1; })()")
        ```
    """

    mode: ScriptMode
    source: str
    variable_names: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RunOutcome:
    """Normalized response of the script runner.

    ``payload`` is whatever the realm handed back; for well-behaved scripts it
    is JSON text or None.

    Example:
        ```python
        out = RunOutcome(payload="3500")
        ```
    """

    payload: Any = None
    error: str | None = None
    error_kind: str | None = None
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        """Return True when the script ran to completion.

        Example:
            ```python
            assert RunOutcome(payload="1").ok
            ```
        """
        return self.error is None


@dataclass(slots=True)
class Deadline:
    """Wall-clock budget shared by every evaluation of one request.

    Example:
        ```python
        deadline = Deadline(timeout_ms=1000)
        remaining = deadline.remaining_seconds()
        ```
    """

    timeout_ms: int
    started: float = field(default_factory=time.monotonic)

    def elapsed_ms(self) -> float:
        """Return milliseconds spent since the deadline started.

        Example:
            ```python
            spent = Deadline(timeout_ms=1000).elapsed_ms()
            ```
        """
        return (time.monotonic() - self.started) * 1000.0

    def remaining_seconds(self) -> float:
        """Return the remaining budget in seconds, never negative.

        Example:
            ```python
            left = Deadline(timeout_ms=1000).remaining_seconds()
            ```
        """
        return max(0.0, (self.timeout_ms - self.elapsed_ms()) / 1000.0)

    @property
    def expired(self) -> bool:
        """Return True once the budget is used up.

        Example:
            ```python
            assert not Deadline(timeout_ms=1000).expired
            ```
        """
        return self.elapsed_ms() >= self.timeout_ms

    def timeout_message(self) -> str:
        """Return the caller-facing timeout message.

        Example:
            ```python
            assert "timed out" in Deadline(timeout_ms=5).timeout_message()
            ```
        """
        return f"Script execution timed out after {self.timeout_ms}ms"
