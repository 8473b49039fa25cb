"""Isolated realm builder.

Every realm is a brand-new QuickJS context with its own runtime, its own
object graph and its own built-ins. Nothing from the Python host is ever
registered in it: no callables, no host objects. Globals are reduced to an
allowlist of self-contained utilities and the absence of reflective or
code-generating primitives is verified before the realm is handed out.

Objects reachable from realm globals (including constructors found by
walking ``constructor`` chains) are realm-local; the QuickJS object model
shares no type with Python's.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import quickjs

from ..errors import RealmError, RuntimeThrew, ScriptError, TimedOut
from ..policy import RunnerPolicy
from .types import Deadline

logger = logging.getLogger(__name__)

SAFE_GLOBALS: frozenset[str] = frozenset(
    {
        "Array",
        "Boolean",
        "Date",
        "Error",
        "Infinity",
        "JSON",
        "Map",
        "Math",
        "NaN",
        "Number",
        "Object",
        "RangeError",
        "ReferenceError",
        "RegExp",
        "Set",
        "String",
        "SyntaxError",
        "TypeError",
        "decodeURI",
        "decodeURIComponent",
        "encodeURI",
        "encodeURIComponent",
        "isFinite",
        "isNaN",
        "parseFloat",
        "parseInt",
        "undefined",
    }
)

REQUIRED_ABSENT: tuple[str, ...] = (
    "Function",
    "eval",
    "Proxy",
    "Reflect",
    "Symbol",
    "WeakRef",
    "FinalizationRegistry",
    "globalThis",
    "process",
    "require",
)

# QuickJS raises an uncatchable InternalError with this text from its interrupt handler.
_INTERRUPTED_MARKER = "interrupted"

_SCRUB_SOURCE = """
(function (global, keep) {
  var names = Object.getOwnPropertyNames(global);
  var removed = 0;
  for (var i = 0; i < names.length; i++) {
    if (keep.indexOf(names[i]) === -1 && delete global[names[i]]) {
      removed++;
    }
  }
  return removed;
})(this, %s)
"""

_PRESENCE_SOURCE = """
(function (global, names) {
  var present = [];
  for (var i = 0; i < names.length; i++) {
    if (names[i] in global) {
      present.push(names[i]);
    }
  }
  return present.join(",");
})(this, %s)
"""


class QuickJSRealm:
    """One isolated evaluation environment, valid for a single request.

    Use it as a context manager; leaving the block drops the QuickJS context
    so nothing outlives the call.

    Example:
        ```python
        with build_realm(RunnerPolicy()) as realm:
            realm.evaluate("1 + 1", Deadline(timeout_ms=1000))
        ```
    """

    def __init__(self, context: quickjs.Context) -> None:
        """Wrap an already configured QuickJS context.

        Example:
            ```python
            realm = QuickJSRealm(quickjs.Context())
            ```
        """
        self._context: quickjs.Context | None = context

    def __enter__(self) -> "QuickJSRealm":
        """Return the realm itself.

        Example:
            ```python
            with build_realm() as realm:
                pass
            ```
        """
        return self

    def __exit__(self, *exc_info: Any) -> None:
        """Discard the realm when the request completes.

        Example:
            ```python
            realm.__exit__(None, None, None)
            ```
        """
        self.close()

    @property
    def closed(self) -> bool:
        """Return True once the realm has been discarded.

        Example:
            ```python
            assert not build_realm().closed
            ```
        """
        return self._context is None

    def close(self) -> None:
        """Drop the QuickJS context; the realm cannot be used afterwards.

        Example:
            ```python
            realm.close()
            ```
        """
        self._context = None

    def evaluate(self, source: str, deadline: Deadline) -> Any:
        """Evaluate source in the realm under the remaining budget of ``deadline``.

        Returns JSON-compatible primitives only. Raises ``TimedOut`` when the
        interrupt handler fires or the budget is already spent, and
        ``RuntimeThrew`` for anything the script throws.

        Example:
            ```python
            value = realm.evaluate("'a' + 'b'", Deadline(timeout_ms=1000))
            ```
        """
        if self._context is None:
            raise RealmError("Realm has already been discarded")
        if deadline.expired:
            raise TimedOut(deadline.timeout_message())
        self._context.set_time_limit(deadline.remaining_seconds())
        try:
            result = self._context.eval(source)
        except quickjs.JSException as exc:
            message = str(exc)
            if _INTERRUPTED_MARKER in message or deadline.expired:
                raise TimedOut(deadline.timeout_message()) from exc
            raise RuntimeThrew(message) from exc
        if isinstance(result, quickjs.Object):
            raise RuntimeThrew("Realm returned an object handle instead of JSON text")
        return result

    def _scrub_globals(self, keep: frozenset[str], deadline: Deadline) -> int:
        """Delete every global not in ``keep`` and return how many were removed.

        Example:
            ```python
            removed = realm._scrub_globals(SAFE_GLOBALS, Deadline(timeout_ms=1000))
            ```
        """
        removed = self.evaluate(_SCRUB_SOURCE % json.dumps(sorted(keep)), deadline)
        return int(removed or 0)

    def _present_globals(self, names: tuple[str, ...], deadline: Deadline) -> list[str]:
        """Return which of ``names`` are still reachable from the global object.

        Example:
            ```python
            leftover = realm._present_globals(REQUIRED_ABSENT, Deadline(timeout_ms=1000))
            ```
        """
        joined = self.evaluate(_PRESENCE_SOURCE % json.dumps(list(names)), deadline)
        return [name for name in str(joined or "").split(",") if name]


def build_realm(policy: RunnerPolicy | None = None) -> QuickJSRealm:
    """Create a fresh, scrubbed realm with the policy's resource limits applied.

    Raises ``RealmError`` if any reflective primitive survives scrubbing.

    Example:
        ```python
        with build_realm(RunnerPolicy(memory_limit_mb=32)) as realm:
            pass
        ```
    """
    resolved = policy or RunnerPolicy()
    context = quickjs.Context()
    context.set_memory_limit(resolved.memory_limit_mb * 1024 * 1024)
    context.set_max_stack_size(resolved.max_stack_kb * 1024)
    realm = QuickJSRealm(context)

    keep = SAFE_GLOBALS.difference(resolved.blocked_globals)
    must_be_absent = tuple(dict.fromkeys((*REQUIRED_ABSENT, *resolved.blocked_globals)))
    deadline = Deadline(timeout_ms=resolved.timeout_ms)
    try:
        removed = realm._scrub_globals(keep, deadline)
        leftover = realm._present_globals(must_be_absent, deadline)
    except ScriptError as exc:
        realm.close()
        raise RealmError(f"Failed to prepare isolated realm: {exc.message}") from exc
    if leftover:
        realm.close()
        raise RealmError(f"Realm still exposes blocked globals: {', '.join(leftover)}")
    logger.debug("Built isolated realm; removed %d globals", removed)
    return realm
