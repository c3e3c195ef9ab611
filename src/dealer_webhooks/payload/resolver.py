"""Path resolver — extracts one value from a payload by source path.

Missing is never fatal: any path that cannot be followed resolves to ``""``
so optional upstream fields cannot abort a delivery.
"""

from __future__ import annotations

import re

from dealer_webhooks.payload.json_value import (
    JsonArray,
    JsonObject,
    JsonValue,
    stringify,
)

_PATH_DELIMITERS = re.compile(r"[.\[\]]+")


def split_path(path: str) -> list[str]:
    """Split ``customer.phones[0].number`` into ``["customer", "phones", "0", "number"]``."""
    return [token for token in _PATH_DELIMITERS.split(path) if token]


def lookup(root: JsonValue, path: str) -> JsonValue | None:
    """Return the node at *path*, or None if any step is missing."""
    node: JsonValue | None = root
    for token in split_path(path):
        if isinstance(node, JsonObject):
            node = node.get(token)
        elif isinstance(node, JsonArray):
            node = node.at(int(token)) if token.isascii() and token.isdigit() else None
        else:
            return None
        if node is None:
            return None
    return node


def resolve(root: JsonValue, path: str) -> str:
    """Resolve *path* against *root* and stringify the result.

    Returns ``""`` when the path is absent, crosses a ``null`` or a scalar,
    or indexes an array out of range.
    """
    node = lookup(root, path)
    if node is None:
        return ""
    return stringify(node)
