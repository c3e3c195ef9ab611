"""Payload flattener — lists every scalar leaf with its path.

Only used by the discovery API, so operators can pick source paths from a
captured sample. Never called on the ingestion path.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from dealer_webhooks.payload.json_value import (
    JsonArray,
    JsonNull,
    JsonObject,
    JsonScalar,
    JsonValue,
)

_PATH_DELIMITERS = re.compile(r"[.\[\]]")


class FlatField(NamedTuple):
    """A discovered ``(path, scalar)`` pair."""

    path: str
    value: JsonScalar


def flatten(value: JsonValue | None) -> list[FlatField]:
    """Walk *value* depth-first and return its scalar leaves in source order.

    Arrays are indexed as ``parent[i]`` and object members are joined with
    ``.``. A top-level ``null`` (or ``None``) yields no fields at all, while a
    ``null`` nested in a container is reported as a leaf. Empty containers
    contribute nothing.

    Members whose key is empty or contains ``.``, ``[`` or ``]`` are skipped
    along with everything below them: no source path can address them, so
    every emitted path resolves back to its value.
    """
    result: list[FlatField] = []
    if value is None or isinstance(value, JsonNull):
        return result
    _walk(value, "", result)
    return result


def _addressable(key: str) -> bool:
    return bool(key) and not _PATH_DELIMITERS.search(key)


def _walk(node: JsonValue, prefix: str, result: list[FlatField]) -> None:
    if isinstance(node, JsonArray):
        for index, item in enumerate(node.items):
            _walk(item, f"{prefix}[{index}]", result)
    elif isinstance(node, JsonObject):
        for key, member in node.members.items():
            if not _addressable(key):
                continue
            _walk(member, f"{prefix}.{key}" if prefix else key, result)
    else:
        result.append(FlatField(prefix, node))
