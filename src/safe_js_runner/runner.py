from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any

from .errors import RuntimeThrew, ScriptError
from .execution.compiler import compile_unit
from .execution.engine import ExecutionRealm, run_unit
from .execution.injector import inject
from .execution.realm import build_realm
from .execution.types import Deadline, ExecutionState, RunOutcome, ScriptMode, ScriptRequest
from .policy import RunnerPolicy, ScriptResult
from .validator import validate_script

logger = logging.getLogger(__name__)

RealmFactory = Callable[[RunnerPolicy], ExecutionRealm]

_TEMPLATE_RETURN_MESSAGE = "Template script did not produce variables (top-level return is not supported)"
_UNSERIALIZABLE_MESSAGE = "Script result could not be serialized to JSON"


def _resolve_policy(policy: RunnerPolicy | None, policy_file: str | None) -> RunnerPolicy:
    """Resolve the effective policy object for a run.

    Example:
        ```python
        policy = _resolve_policy(None, "/tmp/policy.toml")
        ```
    """
    if policy is not None and policy_file is not None:
        raise ValueError("Provide either 'policy' or 'policy_file', not both")
    if policy is None and policy_file is not None:
        return RunnerPolicy.from_file(policy_file)
    if policy is None:
        return RunnerPolicy()
    return policy


def _resolve_mode(mode: ScriptMode | str) -> ScriptMode:
    """Coerce a mode name into ``ScriptMode``.

    Example:
        ```python
        assert _resolve_mode("template") is ScriptMode.TEMPLATE
        ```
    """
    try:
        return ScriptMode(mode)
    except ValueError:
        raise ValueError(f"mode must be 'value' or 'template', got {mode!r}") from None


def _decode_payload(payload: Any, mode: ScriptMode) -> ScriptResult:
    """Turn the JSON text handed back by the realm into a result.

    Example:
        ```python
        result = _decode_payload('{"a": 1}', ScriptMode.TEMPLATE)
        ```
    """
    if mode is ScriptMode.TEMPLATE:
        # A top-level return replaces the accumulator with an arbitrary value.
        try:
            decoded = json.loads(payload) if isinstance(payload, str) else None
        except json.JSONDecodeError:
            decoded = None
        except RecursionError as exc:
            raise RuntimeThrew(_UNSERIALIZABLE_MESSAGE) from exc
        if not isinstance(decoded, dict):
            raise RuntimeThrew(_TEMPLATE_RETURN_MESSAGE)
        return ScriptResult.ok_variables(decoded)

    if payload is None:
        return ScriptResult.ok_value(None)
    if not isinstance(payload, str):
        raise RuntimeThrew(_UNSERIALIZABLE_MESSAGE)
    try:
        return ScriptResult.ok_value(json.loads(payload))
    except (json.JSONDecodeError, RecursionError) as exc:
        raise RuntimeThrew(_UNSERIALIZABLE_MESSAGE) from exc


def _result_from_outcome(outcome: RunOutcome, mode: ScriptMode) -> ScriptResult:
    """Convert a runner outcome into the caller-facing result.

    Example:
        ```python
        result = _result_from_outcome(RunOutcome(payload="1"), ScriptMode.VALUE)
        ```
    """
    if outcome.timed_out:
        return ScriptResult.failure(outcome.error or "Script execution timed out", "timeout", timed_out=True)
    if outcome.error is not None:
        return ScriptResult.failure(outcome.error, outcome.error_kind)
    return _decode_payload(outcome.payload, mode)


class ScriptExecutor:
    """Run widget scripts, one fresh realm per call.

    ``realm_factory`` builds the realm for each call; it receives the
    executor's policy and must never return a shared instance.

    Example:
        ```python
        executor = ScriptExecutor(RunnerPolicy(timeout_ms=500))
        result = executor.execute("return $.price * 1000;", {"price": 3.5})
        ```
    """

    def __init__(
        self,
        policy: RunnerPolicy | None = None,
        *,
        realm_factory: RealmFactory = build_realm,
    ) -> None:
        """Store the policy and realm factory.

        Example:
            ```python
            executor = ScriptExecutor()
            ```
        """
        self._policy = policy or RunnerPolicy()
        self._realm_factory = realm_factory

    @property
    def policy(self) -> RunnerPolicy:
        """Return the policy applied to every call.

        Example:
            ```python
            timeout = ScriptExecutor().policy.timeout_ms
            ```
        """
        return self._policy

    def execute(
        self,
        code: str,
        data: Any = None,
        mode: ScriptMode | str = ScriptMode.VALUE,
    ) -> ScriptResult:
        """Execute one script and return a result; script failures never raise.

        Example:
            ```python
            result = ScriptExecutor().execute("var a = 1; var b = a + 1;", mode="template")
            ```
        """
        request = ScriptRequest(code=code, data=data, mode=_resolve_mode(mode))
        try:
            result = self._run(request)
        except ScriptError as exc:
            logger.warning("Script execution failed: %s", exc.message)
            return ScriptResult.failure(exc.message, exc.kind, timed_out=exc.kind == "timeout")
        if not result.success:
            logger.warning("Script execution failed: %s", result.error)
        return result

    def _run(self, request: ScriptRequest) -> ScriptResult:
        """Walk one request through validation, realm build, injection and execution.

        Example:
            ```python
            result = executor._run(ScriptRequest(code="return 1;"))
            ```
        """
        state = ExecutionState.RECEIVED
        validate_script(request.code, self._policy)
        state = self._advance(state, ExecutionState.VALIDATED)

        realm = self._realm_factory(self._policy)
        try:
            state = self._advance(state, ExecutionState.REALM_BUILT)
            unit = compile_unit(request.code, request.mode)
            deadline = Deadline(timeout_ms=self._policy.timeout_ms)
            inject(realm, request.data, deadline)
            state = self._advance(state, ExecutionState.DATA_INJECTED)
            state = self._advance(state, ExecutionState.EXECUTING)
            outcome = run_unit(realm, unit, self._policy.timeout_ms, deadline=deadline)
        finally:
            realm.close()

        result = _result_from_outcome(outcome, request.mode)
        self._advance(state, ExecutionState.SUCCEEDED if result.success else ExecutionState.FAILED)
        return result

    @staticmethod
    def _advance(current: ExecutionState, target: ExecutionState) -> ExecutionState:
        """Record a state transition in the debug log.

        Example:
            ```python
            state = ScriptExecutor._advance(ExecutionState.RECEIVED, ExecutionState.VALIDATED)
            ```
        """
        logger.debug("Script execution %s -> %s", current.value, target.value)
        return target


def execute(
    code: str,
    data: Any = None,
    mode: ScriptMode | str = ScriptMode.VALUE,
    policy: RunnerPolicy | None = None,
    policy_file: str | None = None,
) -> ScriptResult:
    """Execute an untrusted widget script against ``data`` in a fresh isolated realm.

    Example:
        ```python
        from safe_js_runner import execute
        result = execute("return $.price * 1000;", {"price": 3.5})
        assert result.value == 3500
        ```
    """
    resolved_policy = _resolve_policy(policy, policy_file)
    return ScriptExecutor(resolved_policy).execute(code, data, mode)
