from __future__ import annotations

import tomllib
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any


def _default_policy_path() -> Path:
    """Return bundled default policy TOML path.

    Example:
        ```python
        path = _default_policy_path()
        ```
    """
    return Path(__file__).with_name("default_policy.toml")


def _read_policy_toml(path: Path) -> dict[str, Any]:
    """Read policy TOML and return normalized policy dictionary.

    Example:
        ```python
        raw = _read_policy_toml(Path("/tmp/policy.toml"))
        ```
    """
    if not path.exists():
        return {
            "timeout_ms": 1000,
            "max_script_length": 10_000,
            "memory_limit_mb": 64,
            "max_stack_kb": 512,
            "extra_blocked_keywords": [],
            "blocked_globals": [],
        }
    raw = tomllib.loads(path.read_text(encoding="utf-8"))
    policy_obj = raw.get("policy", raw)
    if not isinstance(policy_obj, dict):
        raise ValueError("Policy config must be a TOML table")
    return policy_obj


def _tuple_of_str(value: Any, field_name: str) -> tuple[str, ...]:
    """Validate and normalize a list-of-strings policy field.

    Example:
        ```python
        names = _tuple_of_str(["Date", "Map"], "blocked_globals")
        ```
    """
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"'{field_name}' must be a list of strings")
    out: list[str] = []
    for item in value:
        if not isinstance(item, str) or not item:
            raise ValueError(f"'{field_name}' must contain only non-empty strings")
        out.append(item)
    return tuple(out)


def _positive_int(value: Any, field_name: str) -> int:
    """Validate a strictly positive integer policy field.

    Example:
        ```python
        timeout = _positive_int(1000, "timeout_ms")
        ```
    """
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"'{field_name}' must be a positive integer")
    return value


_DEFAULT_POLICY_RAW = _read_policy_toml(_default_policy_path())
DEFAULT_TIMEOUT_MS = int(_DEFAULT_POLICY_RAW.get("timeout_ms", 1000))
DEFAULT_MAX_SCRIPT_LENGTH = int(_DEFAULT_POLICY_RAW.get("max_script_length", 10_000))
DEFAULT_MEMORY_LIMIT_MB = int(_DEFAULT_POLICY_RAW.get("memory_limit_mb", 64))
DEFAULT_MAX_STACK_KB = int(_DEFAULT_POLICY_RAW.get("max_stack_kb", 512))
DEFAULT_EXTRA_BLOCKED_KEYWORDS = _tuple_of_str(
    _DEFAULT_POLICY_RAW.get("extra_blocked_keywords", []), "extra_blocked_keywords"
)
DEFAULT_BLOCKED_GLOBALS = _tuple_of_str(
    _DEFAULT_POLICY_RAW.get("blocked_globals", []), "blocked_globals"
)


@dataclass(frozen=True, slots=True)
class RunnerPolicy:
    """Read-only guardrails for untrusted widget scripts.

    A policy is immutable and may be shared by any number of concurrent
    executions.

    Example:
        ```python
        policy = RunnerPolicy(timeout_ms=500, extra_blocked_keywords=("fetch",))
        ```
    """

    timeout_ms: int = DEFAULT_TIMEOUT_MS
    max_script_length: int = DEFAULT_MAX_SCRIPT_LENGTH
    memory_limit_mb: int = DEFAULT_MEMORY_LIMIT_MB
    max_stack_kb: int = DEFAULT_MAX_STACK_KB
    extra_blocked_keywords: tuple[str, ...] = DEFAULT_EXTRA_BLOCKED_KEYWORDS
    blocked_globals: tuple[str, ...] = DEFAULT_BLOCKED_GLOBALS
    config_path: str | None = None

    def __post_init__(self) -> None:
        """Validate limits after dataclass initialization.

        Example:
            ```python
            RunnerPolicy(timeout_ms=250)
            ```
        """
        _positive_int(self.timeout_ms, "timeout_ms")
        _positive_int(self.max_script_length, "max_script_length")
        _positive_int(self.memory_limit_mb, "memory_limit_mb")
        _positive_int(self.max_stack_kb, "max_stack_kb")
        # Lists are accepted for convenience and frozen into tuples.
        object.__setattr__(
            self,
            "extra_blocked_keywords",
            _tuple_of_str(self.extra_blocked_keywords, "extra_blocked_keywords"),
        )
        object.__setattr__(
            self, "blocked_globals", _tuple_of_str(self.blocked_globals, "blocked_globals")
        )

    @classmethod
    def from_file(cls, config_path: str) -> "RunnerPolicy":
        """Create a policy instance from a TOML file.

        Example:
            ```python
            policy = RunnerPolicy.from_file("/tmp/policy.toml")
            ```
        """
        path = Path(config_path)
        if not path.exists():
            raise ValueError(f"Policy file not found: {config_path}")
        raw = _read_policy_toml(path)
        return cls(
            timeout_ms=raw.get("timeout_ms", DEFAULT_TIMEOUT_MS),
            max_script_length=raw.get("max_script_length", DEFAULT_MAX_SCRIPT_LENGTH),
            memory_limit_mb=raw.get("memory_limit_mb", DEFAULT_MEMORY_LIMIT_MB),
            max_stack_kb=raw.get("max_stack_kb", DEFAULT_MAX_STACK_KB),
            extra_blocked_keywords=_tuple_of_str(
                raw.get("extra_blocked_keywords", []), "extra_blocked_keywords"
            ),
            blocked_globals=_tuple_of_str(raw.get("blocked_globals", []), "blocked_globals"),
            config_path=config_path,
        )


@dataclass(slots=True)
class ScriptResult:
    """Normalized outcome of one script execution.

    A result is either a success carrying ``value`` (value mode) or
    ``variables`` (template mode), or a failure carrying ``error``; never both.

    Example:
        ```python
        result = ScriptResult.ok_value(42)
        ```
    """

    success: bool
    value: Any = None
    variables: dict[str, Any] | None = None
    error: str | None = None
    error_kind: str | None = None
    timed_out: bool = False

    def __post_init__(self) -> None:
        """Reject results that mix an output with an error.

        Example:
            ```python
            ScriptResult(success=False, error="boom")
            ```
        """
        if self.success:
            if self.error is not None or self.error_kind is not None or self.timed_out:
                raise ValueError("A successful result cannot carry an error")
            return
        if self.error is None:
            raise ValueError("A failed result must carry an error message")
        if self.value is not None or self.variables is not None:
            raise ValueError("A failed result cannot carry a value or variables")

    @classmethod
    def ok_value(cls, value: Any) -> "ScriptResult":
        """Build a successful value-mode result.

        Example:
            ```python
            result = ScriptResult.ok_value(3500)
            ```
        """
        return cls(success=True, value=value)

    @classmethod
    def ok_variables(cls, variables: dict[str, Any]) -> "ScriptResult":
        """Build a successful template-mode result.

        Example:
            ```python
            result = ScriptResult.ok_variables({"a": 1, "b": 2})
            ```
        """
        return cls(success=True, variables=dict(variables))

    @classmethod
    def failure(cls, error: str, kind: str | None = None, *, timed_out: bool = False) -> "ScriptResult":
        """Build a failed result.

        Example:
            ```python
            result = ScriptResult.failure("Script too large: 10001 characters (max 10000)", "validation")
            ```
        """
        return cls(success=False, error=error, error_kind=kind, timed_out=timed_out)

    def to_dict(self) -> dict[str, Any]:
        """Return the result as a plain JSON-ready mapping.

        Example:
            ```python
            payload = ScriptResult.ok_value(1).to_dict()
            ```
        """
        return asdict(self)
