"""Wrap user code into the source evaluated for each mode.

Both wrappers receive the realm's ``JSON.stringify`` as an argument before
any user code runs and hand their output back as JSON text. User code runs
in an inner function, so its declarations never shadow ``__stringify``.
"""

from __future__ import annotations

from ..extractor import extract_variable_names
from .types import CompiledUnit, ScriptMode

_VALUE_WRAPPER = """(function (__stringify) {
  var __result = (function () {
%s
  })();
  return __result === undefined ? undefined : __stringify(__result);
})(JSON.stringify)"""

_TEMPLATE_WRAPPER = """(function (__stringify) {
  var __collected = (function () {
    var __vars = {};
%s
%s
    return __vars;
  })();
  return __stringify(__collected);
})(JSON.stringify)"""


def wrap_value_code(code: str) -> str:
    """Wrap code as the body of an immediately invoked function.

    A top-level ``return`` yields the result; no return yields ``undefined``.

    Example:
        ```python
        src = wrap_value_code("return 42;")
        ```
    """
    return _VALUE_WRAPPER % code


def wrap_template_code(code: str, variable_names: tuple[str, ...]) -> str:
    """Wrap code so that bound declared names are copied into the accumulator.

    Example:
        ```python
        src = wrap_template_code("var a = 1;", ("a",))
        ```
    """
    collect = "\n".join(
        f"    if (typeof {name} !== 'undefined') __vars['{name}'] = {name};" for name in variable_names
    )
    return _TEMPLATE_WRAPPER % (code, collect)


def compile_unit(code: str, mode: ScriptMode) -> CompiledUnit:
    """Build the compiled unit for ``mode``.

    Example:
        ```python
        unit = compile_unit("var a = 1;", ScriptMode.TEMPLATE)
        ```
    """
    if mode is ScriptMode.TEMPLATE:
        names = extract_variable_names(code)
        return CompiledUnit(mode=mode, source=wrap_template_code(code, names), variable_names=names)
    return CompiledUnit(mode=mode, source=wrap_value_code(code))


def compile_check_source(unit: CompiledUnit) -> str:
    """Return source that parses the unit without running any of it.

    Example:
        ```python
        src = compile_check_source(compile_unit("return 1;", ScriptMode.VALUE))
        ```
    """
    return "void (function () {\n%s\n});" % unit.source
