"""Data injection: host value -> canonical JSON text -> parsed inside the realm.

The realm never receives a host object. The caller's data is rendered to
text on the host and materialized by the realm's own ``JSON.parse``, so
every object reachable from ``$`` has realm-local type identity.
"""

from __future__ import annotations

import json
from typing import Any

from ..errors import SerializationFailed
from .engine import ExecutionRealm
from .types import Deadline

DATA_BINDING = "$"


def serialize_data(data: Any) -> str:
    """Render caller data as canonical JSON text; None becomes ``null``.

    Example:
        ```python
        assert serialize_data({"price": 3.5}) == '{"price":3.5}'
        ```
    """
    try:
        return json.dumps(data, allow_nan=False, ensure_ascii=True, separators=(",", ":"))
    except (TypeError, ValueError, RecursionError) as exc:
        raise SerializationFailed(f"Data is not JSON-serializable: {exc}") from exc


def injection_source(data_json: str) -> str:
    """Return realm source that parses ``data_json`` and binds it to ``$``.

    The JSON text is embedded as an escaped string literal, so it is parsed
    as data and never evaluated as code.

    Example:
        ```python
        src = injection_source("null")
        ```
    """
    return f"var {DATA_BINDING} = JSON.parse({json.dumps(data_json)});"


def inject(realm: ExecutionRealm, data: Any, deadline: Deadline) -> None:
    """Serialize ``data`` on the host and bind the realm-side parse result to ``$``.

    Example:
        ```python
        inject(realm, {"price": 3.5}, Deadline(timeout_ms=1000))
        ```
    """
    realm.evaluate(injection_source(serialize_data(data)), deadline)
