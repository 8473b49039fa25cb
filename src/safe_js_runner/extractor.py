"""Lexical scan for top-level variable candidates used by template mode."""

from __future__ import annotations

import re

RESERVED_PREFIX = "__"

_DECLARATION_PATTERN = re.compile(
    r"\b(?:var|let|const)\s+([A-Za-z_$][A-Za-z0-9_$]*)",
    re.ASCII,
)

# Keywords and names that would refer to wrapper function state.
_JS_RESERVED_WORDS = frozenset(
    {
        "arguments",
        "await",
        "break",
        "case",
        "catch",
        "class",
        "const",
        "continue",
        "debugger",
        "default",
        "delete",
        "do",
        "else",
        "enum",
        "export",
        "extends",
        "false",
        "finally",
        "for",
        "function",
        "if",
        "implements",
        "import",
        "in",
        "instanceof",
        "interface",
        "let",
        "new",
        "null",
        "package",
        "private",
        "protected",
        "public",
        "return",
        "static",
        "super",
        "switch",
        "this",
        "throw",
        "true",
        "try",
        "typeof",
        "var",
        "void",
        "while",
        "with",
        "yield",
    }
)


def extract_variable_names(code: str) -> tuple[str, ...]:
    """Collect names declared with ``var``/``let``/``const``, de-duplicated in discovery order.

    Scoping is not resolved: a name declared in a nested block is still a
    candidate. Template accumulation only copies candidates that are bound
    when it runs, which drops such names. Names with the reserved ``__``
    prefix are skipped so user code cannot collide with wrapper bookkeeping.

    Example:
        ```python
        assert extract_variable_names("var a = 1; let b = a + 1;") == ("a", "b")
        ```
    """
    names: dict[str, None] = {}
    for match in _DECLARATION_PATTERN.finditer(code):
        name = match.group(1)
        if name.startswith(RESERVED_PREFIX) or name in _JS_RESERVED_WORDS:
            continue
        names.setdefault(name, None)
    return tuple(names)
