"""Structural equality for attribute values.

Change detection on records and models compares the incoming value of each
key with the stored one. Two values that hold the same content through
different objects (a fresh dict with the same items, a rebuilt list) must
compare equal so that idempotent updates stay silent.

Semantics, by type:
    identical objects   equal
    bool                equal only to a bool with the same value (``True != 1``)
    Mapping             same key set, values deep-equal
    list / tuple        same concrete type and length, items deep-equal in order
    everything else     ``==`` (sets, numbers, strings, dataclasses, ...)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def deep_equal(a: Any, b: Any) -> bool:
    """Return True when ``a`` and ``b`` are structurally equal."""
    if a is b:
        return True

    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b

    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if a.keys() != b.keys():
            return False
        return all(deep_equal(value, b[key]) for key, value in a.items())

    if isinstance(a, (list, tuple)) or isinstance(b, (list, tuple)):
        if type(a) is not type(b) or len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b, strict=True))

    if isinstance(a, Mapping) or isinstance(b, Mapping):
        return False

    return bool(a == b)
