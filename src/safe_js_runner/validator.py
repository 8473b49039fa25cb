"""Static pre-execution screening of widget scripts.

This is a cheap first filter, not the security boundary. The denylist is a
textual heuristic and can be bypassed by building names at runtime (for
example ``obj["constr" + "uctor"]``) or by Unicode escapes. Such bypasses
only ever reach realm-local objects; isolation is provided by the realm
(see ``execution.realm`` and ``execution.injector``).
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from .errors import ValidationRejected
from .policy import RunnerPolicy

BLOCKED_KEYWORDS: tuple[str, ...] = (
    "constructor",
    "__proto__",
    "prototype",
    "Function",
    "eval",
    "import",
    "globalThis",
    "process",
    "require",
    "Proxy",
    "Reflect",
    "Symbol",
    "WeakRef",
    "FinalizationRegistry",
)


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    """Compile a whole-word pattern for one keyword.

    ASCII word boundaries match JavaScript's ``\\b``: letters, digits and
    ``_`` extend a word, ``$`` does not.

    Example:
        ```python
        assert _keyword_pattern("eval").search("return eval(x)")
        ```
    """
    return re.compile(rf"\b{re.escape(keyword)}\b", re.ASCII)


_BASE_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (keyword, _keyword_pattern(keyword)) for keyword in BLOCKED_KEYWORDS
)


def blocked_keywords(policy: RunnerPolicy | None = None) -> tuple[str, ...]:
    """Return the effective denylist: base keywords plus policy extras.

    Example:
        ```python
        keywords = blocked_keywords(RunnerPolicy(extra_blocked_keywords=("fetch",)))
        ```
    """
    extras = policy.extra_blocked_keywords if policy is not None else ()
    return tuple(dict.fromkeys((*BLOCKED_KEYWORDS, *extras)))


def find_forbidden_keyword(code: str, extra_keywords: Iterable[str] = ()) -> str | None:
    """Return the first denylisted token used as a whole word, or None.

    Example:
        ```python
        assert find_forbidden_keyword("return $.constructor;") == "constructor"
        assert find_forbidden_keyword("return $.constructors;") is None
        ```
    """
    for keyword, pattern in _BASE_PATTERNS:
        if pattern.search(code):
            return keyword
    for keyword in extra_keywords:
        if keyword not in BLOCKED_KEYWORDS and _keyword_pattern(keyword).search(code):
            return keyword
    return None


def validate_script(code: str, policy: RunnerPolicy | None = None) -> None:
    """Raise ``ValidationRejected`` when a script is oversized or uses a denylisted token.

    Example:
        ```python
        validate_script("return $.price * 1000;")
        ```
    """
    resolved = policy or RunnerPolicy()
    if not isinstance(code, str):
        raise ValidationRejected(f"Script must be text, got {type(code).__name__}")
    try:
        code.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise ValidationRejected(
            f"Script contains a character that cannot be encoded as UTF-8 at position {exc.start}"
        ) from exc
    if len(code) > resolved.max_script_length:
        raise ValidationRejected(
            f"Script too large: {len(code)} characters (max {resolved.max_script_length})"
        )
    keyword = find_forbidden_keyword(code, resolved.extra_blocked_keywords)
    if keyword is not None:
        raise ValidationRejected(f"Script contains forbidden keyword: {keyword}")
