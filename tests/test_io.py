import math

import pytest

from safe_js_runner import execute


@pytest.mark.parametrize(
    "data",
    [
        None,
        0,
        -17,
        2.75,
        True,
        "zürich ✓",
        [],
        {},
        [1, "two", None, False, {"three": [3.5]}],
        {"quote": {"symbol": "BTC", "price": 64123.5, "tags": ["crypto", "spot"]}, "ok": True},
    ],
)
def test_return_dollar_round_trips_data(data) -> None:
    """`return $` hands back a structurally equal value."""
    result = execute("return $;", data)
    assert result.success is True
    assert result.value == data


def test_absent_data_is_null() -> None:
    assert execute("return $ === null;").value is True
    assert execute("return $ === null;", None).value is True


def test_string_data_cannot_break_out_of_injection() -> None:
    data = {"text": '");var pwned = 1;//', "quote": "'", "slash": "\\", "sep": " "}
    result = execute("return [$, typeof pwned];", data)
    assert result.success is True
    assert result.value == [data, "undefined"]


def test_nan_data_is_a_serialization_failure() -> None:
    result = execute("return $;", {"x": math.nan})
    assert result.success is False
    assert result.error_kind == "serialization"
    assert "JSON-serializable" in (result.error or "")


def test_unserializable_data_is_a_serialization_failure() -> None:
    result = execute("return $;", {"when": object()})
    assert result.success is False
    assert result.error_kind == "serialization"


def test_circular_data_is_a_serialization_failure() -> None:
    data: list = []
    data.append(data)
    result = execute("return $;", data)
    assert result.success is False
    assert result.error_kind == "serialization"


def test_template_collects_declared_variables() -> None:
    result = execute("var a = 1; var b = a + 1;", mode="template")
    assert result.success is True
    assert result.variables == {"a": 1, "b": 2}
    assert result.value is None


def test_template_reads_data() -> None:
    result = execute("var total = $.price * $.quantity;", {"price": 10, "quantity": 3}, mode="template")
    assert result.success is True
    assert result.variables == {"total": 30}


def test_template_supports_let_and_const() -> None:
    result = execute('const greeting = "hello"; let count = 5;', mode="template")
    assert result.variables == {"greeting": "hello", "count": 5}


def test_template_excludes_reserved_prefix() -> None:
    result = execute("var __vars2 = 1; var __secret = 2; var shown = 3;", mode="template")
    assert result.success is True
    assert result.variables == {"shown": 3}


def test_template_never_reports_reserved_names() -> None:
    result = execute("var __vars = {}; var __stringify2 = 1; var shown = 3;", mode="template")
    assert result.success is True
    variables = result.variables or {}
    assert variables["shown"] == 3
    assert not [name for name in variables if name.startswith("__")]


def test_template_skips_unbound_and_block_scoped_names() -> None:
    code = """
var declaredOnly;
if ($.flag) { let inner = 1; }
for (const item of [1, 2]) {}
var outer = "kept";
"""
    result = execute(code, {"flag": True}, mode="template")
    assert result.success is True
    assert result.variables == {"outer": "kept"}


def test_template_keeps_null_and_drops_functions() -> None:
    result = execute("var empty = null; var fn = function () {}; var n = 0;", mode="template")
    assert result.variables == {"empty": None, "n": 0}


def test_template_top_level_return_is_rejected() -> None:
    result = execute("var a = 1; return 5;", mode="template")
    assert result.success is False
    assert result.error_kind == "runtime"
    assert "did not produce variables" in (result.error or "")


def test_template_reserved_declarations_do_not_break_collection() -> None:
    result = execute("var __stringify = 1; var a = 2;", mode="template")
    assert result.success is True
    assert result.variables == {"a": 2}


DEEP_NESTING = "var a = []; for (var i = 0; i < 5000; i++) { a = [a]; }"


def test_deeply_nested_value_result_is_a_runtime_failure() -> None:
    result = execute(DEEP_NESTING + " return a;")
    assert result.success is False
    assert result.error_kind == "runtime"
    assert "could not be serialized" in (result.error or "")


def test_deeply_nested_template_variable_is_a_runtime_failure() -> None:
    result = execute(DEEP_NESTING, mode="template")
    assert result.success is False
    assert result.error_kind == "runtime"
    assert "could not be serialized" in (result.error or "")
