"""
Element canonicalization.

Turns an arbitrary structured element into the string that seeds its random
stream. Identical structures always produce identical strings. Mapping keys
keep their insertion order, so ``{"a": 1, "b": 2}`` and ``{"b": 2, "a": 1}``
canonicalize differently and count as distinct elements.
"""

from __future__ import annotations

import json
from typing import Any, Callable

Canonicalizer = Callable[[Any], str]


def canonicalize(element: Any) -> str:
    """
    Return the canonical string form of ``element``.

    Strings are returned unchanged. Everything else is encoded as compact
    JSON; tuples encode like lists, ``bytes`` as their hex digest and sets as
    a list ordered by each member's own canonical form.

    Raises:
        TypeError: If the element contains a value JSON cannot represent.

    Example:
        >>> canonicalize("token")
        'token'
        >>> canonicalize({"a": [1, 2], "b": None})
        '{"a":[1,2],"b":null}'
    """
    if isinstance(element, str):
        return element
    return json.dumps(
        element,
        separators=(",", ":"),
        ensure_ascii=False,
        default=_encode_fallback,
    )


def _encode_fallback(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=canonicalize)
    raise TypeError(
        f"Object of type {type(value).__name__} cannot be canonicalized"
    )
