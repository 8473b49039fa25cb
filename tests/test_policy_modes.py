from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

from safe_js_runner import RunnerPolicy, execute
from safe_js_runner.policy import DEFAULT_MAX_SCRIPT_LENGTH, DEFAULT_TIMEOUT_MS


def test_bundled_defaults() -> None:
    policy = RunnerPolicy()
    assert DEFAULT_TIMEOUT_MS == 1000
    assert DEFAULT_MAX_SCRIPT_LENGTH == 10_000
    assert policy.timeout_ms == 1000
    assert policy.max_script_length == 10_000
    assert policy.extra_blocked_keywords == ()
    assert policy.blocked_globals == ()


def test_policy_is_read_only() -> None:
    policy = RunnerPolicy()
    with pytest.raises(FrozenInstanceError):
        policy.timeout_ms = 5  # type: ignore[misc]


def test_lists_are_frozen_into_tuples() -> None:
    policy = RunnerPolicy(extra_blocked_keywords=["fetch"], blocked_globals=["Date"])  # type: ignore[arg-type]
    assert policy.extra_blocked_keywords == ("fetch",)
    assert policy.blocked_globals == ("Date",)


@pytest.mark.parametrize("field", ["timeout_ms", "max_script_length", "memory_limit_mb", "max_stack_kb"])
def test_limits_must_be_positive(field: str) -> None:
    with pytest.raises(ValueError, match=field):
        RunnerPolicy(**{field: 0})


def test_policy_file_sets_limits_and_extra_keywords(tmp_path: Path) -> None:
    policy_file = tmp_path / "policy.toml"
    policy_file.write_text(
        (
            "[policy]\n"
            "timeout_ms = 150\n"
            "max_script_length = 40\n"
            "extra_blocked_keywords = [\"fetch\"]\n"
            "blocked_globals = [\"Date\"]\n"
        ),
        encoding="utf-8",
    )

    policy = RunnerPolicy.from_file(str(policy_file))
    assert policy.timeout_ms == 150
    assert policy.config_path == str(policy_file)

    keyword_result = execute("return fetch;", policy_file=str(policy_file))
    assert keyword_result.success is False
    assert "forbidden keyword: fetch" in (keyword_result.error or "")

    size_result = execute("return 1;" + " " * 40, policy_file=str(policy_file))
    assert size_result.success is False
    assert "too large" in (size_result.error or "")

    date_result = execute("return typeof Date;", policy_file=str(policy_file))
    assert date_result.success is True
    assert date_result.value == "undefined"

    loop_result = execute("while (true) {}", policy_file=str(policy_file))
    assert loop_result.success is False
    assert "timed out after 150ms" in (loop_result.error or "")


def test_policy_file_accepts_top_level_keys(tmp_path: Path) -> None:
    policy_file = tmp_path / "policy.toml"
    policy_file.write_text("timeout_ms = 250\n", encoding="utf-8")
    policy = RunnerPolicy.from_file(str(policy_file))
    assert policy.timeout_ms == 250
    assert policy.max_script_length == DEFAULT_MAX_SCRIPT_LENGTH


def test_policy_file_rejects_bad_types(tmp_path: Path) -> None:
    policy_file = tmp_path / "policy.toml"
    policy_file.write_text("[policy]\nblocked_globals = \"Date\"\n", encoding="utf-8")
    with pytest.raises(ValueError, match="blocked_globals"):
        RunnerPolicy.from_file(str(policy_file))


def test_missing_policy_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="not found"):
        RunnerPolicy.from_file(str(tmp_path / "missing.toml"))


def test_execute_rejects_policy_and_policy_file_together(tmp_path: Path) -> None:
    policy_file = tmp_path / "policy.toml"
    policy_file.write_text("[policy]\ntimeout_ms = 100\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Provide either 'policy' or 'policy_file'"):
        execute("return 1;", policy=RunnerPolicy(), policy_file=str(policy_file))


def test_extra_keywords_cannot_shrink_base_denylist() -> None:
    result = execute("return $.constructor;", {"a": 1}, policy=RunnerPolicy(extra_blocked_keywords=("fetch",)))
    assert result.success is False
    assert "forbidden keyword: constructor" in (result.error or "")


def test_unremovable_blocked_global_fails_closed() -> None:
    result = execute("return 1;", policy=RunnerPolicy(blocked_globals=("NaN",)))
    assert result.success is False
    assert result.error_kind == "realm"
    assert "NaN" in (result.error or "")
