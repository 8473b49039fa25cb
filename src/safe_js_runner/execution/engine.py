from __future__ import annotations

import logging
from typing import Any, Protocol

from ..errors import CompileFailed, RuntimeThrew, TimedOut
from .compiler import compile_check_source
from .types import CompiledUnit, Deadline, RunOutcome

logger = logging.getLogger(__name__)


class ExecutionRealm(Protocol):
    def evaluate(self, source: str, deadline: Deadline) -> Any:
        """Evaluate source inside the realm and return a JSON-compatible primitive.

        Example:
            ```python
            value = realm.evaluate("1 + 1", Deadline(timeout_ms=1000))
            ```
        """
        ...

    def close(self) -> None:
        """Discard the realm.

        Example:
            ```python
            realm.close()
            ```
        """
        ...


def run_unit(
    realm: ExecutionRealm,
    unit: CompiledUnit,
    timeout_ms: int,
    *,
    deadline: Deadline | None = None,
) -> RunOutcome:
    """Compile and execute a unit under one deadline and normalize the outcome.

    The deadline is measured from invocation unless the caller passes one
    that already covers earlier steps of the same request.

    Example:
        ```python
        outcome = run_unit(realm, compile_unit("return 1;", ScriptMode.VALUE), 1000)
        ```
    """
    budget = deadline or Deadline(timeout_ms=timeout_ms)
    try:
        realm.evaluate(compile_check_source(unit), budget)
    except TimedOut as exc:
        return RunOutcome(error=exc.message, error_kind=exc.kind, timed_out=True)
    except RuntimeThrew as exc:
        return RunOutcome(error=exc.message, error_kind=CompileFailed.kind)

    try:
        payload = realm.evaluate(unit.source, budget)
    except TimedOut as exc:
        logger.debug("Script interrupted after %.1fms", budget.elapsed_ms())
        return RunOutcome(error=exc.message, error_kind=exc.kind, timed_out=True)
    except RuntimeThrew as exc:
        return RunOutcome(error=exc.message, error_kind=exc.kind)
    return RunOutcome(payload=payload)
