import pytest

from safe_js_runner import extract_variable_names


def test_names_are_returned_in_declaration_order() -> None:
    code = "const title = $.name; var price = 1; let change = -0.5;"
    assert extract_variable_names(code) == ("title", "price", "change")


def test_duplicate_declarations_appear_once() -> None:
    assert extract_variable_names("var a = 1; var b = 2; var a = 3;") == ("a", "b")


def test_reserved_prefix_is_skipped() -> None:
    assert extract_variable_names("var __vars = 1; var _one = 2; var __x; var y;") == ("_one", "y")


def test_dollar_names_are_collected() -> None:
    assert extract_variable_names("var $price = 1; let total$ = 2;") == ("$price", "total$")


def test_only_the_first_binding_of_a_list_is_found() -> None:
    assert extract_variable_names("var a = 1, b = 2;") == ("a",)


def test_destructuring_and_keyword_lookalikes_are_ignored() -> None:
    code = "const { a, b } = $; var [c] = []; variables = 1; myvar = 2; letter = 3;"
    assert extract_variable_names(code) == ()


def test_nested_declarations_are_candidates() -> None:
    code = "function f() { var inner = 1; } for (let i = 0; i < 2; i++) {}"
    assert extract_variable_names(code) == ("inner", "i")


@pytest.mark.parametrize("code", ["", "return 1;", "// just a comment"])
def test_scripts_without_declarations(code: str) -> None:
    assert extract_variable_names(code) == ()
