"""Helpers for nested settings documents (plain JSON dicts)."""

import copy
from collections.abc import Callable, Iterable
from typing import Any

from app.constants import REDACTED


def deep_merge(base: dict[str, Any], update: dict[str, Any]) -> dict[str, Any]:
    """Return *base* with *update* merged in.

    Nested dicts merge key by key; lists and scalars in *update* replace the
    value in *base*. Neither argument is mutated. A value equal to the
    redaction marker is ignored, so a client echoing back a masked secret
    leaves the stored secret unchanged.
    """
    merged = copy.deepcopy(base)
    for key, value in update.items():
        if value == REDACTED:
            continue
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def get_path(data: dict[str, Any], path: str) -> Any:
    """Read a dotted path (``"smtp.auth.pass"``); ``None`` when any part is missing."""
    node: Any = data
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def transform_paths(
    data: dict[str, Any],
    paths: Iterable[str],
    func: Callable[[Any], Any],
) -> dict[str, Any]:
    """Deep copy of *data* with *func* applied to every non-empty value at *paths*.

    Missing paths, ``None`` and empty strings are left untouched.
    """
    result = copy.deepcopy(data)
    for path in paths:
        *parents, leaf = path.split(".")
        node: Any = result
        for part in parents:
            node = node.get(part) if isinstance(node, dict) else None
            if node is None:
                break
        if not isinstance(node, dict):
            continue
        value = node.get(leaf)
        if value is None or value == "":
            continue
        node[leaf] = func(value)
    return result


def mask_paths(data: dict[str, Any], paths: Iterable[str]) -> dict[str, Any]:
    """Replace every populated secret at *paths* with the redaction marker."""
    return transform_paths(data, paths, lambda _value: REDACTED)
