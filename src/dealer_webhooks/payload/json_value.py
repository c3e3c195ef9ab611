"""Typed JSON value model.

Incoming webhook bodies are arbitrary, provider-defined JSON. They are parsed
once into this closed set of node types so the flattener and the path
resolver walk an explicit tree instead of probing ``dict``/``list`` objects.

Object members keep their source order (``dict`` insertion order).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from dealer_webhooks.errors.hook_errors import MalformedPayloadError


@dataclass(frozen=True)
class JsonNull:
    """JSON ``null``."""


@dataclass(frozen=True)
class JsonBool:
    value: bool


@dataclass(frozen=True)
class JsonNumber:
    value: int | float


@dataclass(frozen=True)
class JsonString:
    value: str


@dataclass(frozen=True)
class JsonArray:
    items: tuple[JsonValue, ...] = ()

    def at(self, index: int) -> JsonValue | None:
        """Return the item at *index*, or None when out of range."""
        if 0 <= index < len(self.items):
            return self.items[index]
        return None


@dataclass(frozen=True)
class JsonObject:
    members: dict[str, JsonValue] = field(default_factory=dict)

    def get(self, key: str) -> JsonValue | None:
        """Return the member named *key*, or None when absent."""
        return self.members.get(key)


JsonScalar: TypeAlias = JsonNull | JsonBool | JsonNumber | JsonString
JsonValue: TypeAlias = JsonScalar | JsonArray | JsonObject

JSON_NULL = JsonNull()

# Containers nested deeper than this are rejected as malformed.
MAX_DEPTH = 256


def is_scalar(value: JsonValue) -> bool:
    """Return True for leaf nodes (null, bool, number, string)."""
    return not isinstance(value, JsonArray | JsonObject)


def from_python(obj: Any) -> JsonValue:
    """Convert a decoded Python JSON structure into a :data:`JsonValue`.

    Raises:
        MalformedPayloadError: If *obj* holds a type JSON cannot represent or
            nests containers deeper than :data:`MAX_DEPTH`.
    """
    return _convert(obj, 0)


def _convert(obj: Any, depth: int) -> JsonValue:
    if obj is None:
        return JSON_NULL
    # bool is a subclass of int, so it has to be checked first
    if isinstance(obj, bool):
        return JsonBool(obj)
    if isinstance(obj, int | float):
        return JsonNumber(obj)
    if isinstance(obj, str):
        return JsonString(obj)
    if isinstance(obj, list | tuple | dict) and depth >= MAX_DEPTH:
        raise MalformedPayloadError(f"JSON nested deeper than {MAX_DEPTH} levels")
    if isinstance(obj, list | tuple):
        return JsonArray(tuple(_convert(item, depth + 1) for item in obj))
    if isinstance(obj, dict):
        return JsonObject({str(key): _convert(val, depth + 1) for key, val in obj.items()})
    raise MalformedPayloadError(f"unsupported JSON type: {type(obj).__name__}")


def to_python(value: JsonValue) -> Any:
    """Convert a :data:`JsonValue` back into plain Python objects."""
    if isinstance(value, JsonNull):
        return None
    if isinstance(value, JsonBool | JsonNumber | JsonString):
        return value.value
    if isinstance(value, JsonArray):
        return [to_python(item) for item in value.items]
    return {key: to_python(val) for key, val in value.members.items()}


def _reject_constant(name: str) -> Any:
    msg = f"non-standard JSON constant: {name}"
    raise ValueError(msg)


def parse_json(raw: str | bytes) -> JsonValue:
    """Parse a raw request body.

    An empty (or whitespace-only) body is an absent payload and parses to
    ``null``. ``NaN`` and ``Infinity`` are rejected, and so is nesting too
    deep to walk.

    Raises:
        MalformedPayloadError: If the body is not valid JSON.
    """
    try:
        text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        if not text.strip():
            return JSON_NULL
        decoded = json.loads(text, parse_constant=_reject_constant)
    except ValueError as exc:
        raise MalformedPayloadError(f"request body is not valid JSON: {exc}") from exc
    except RecursionError as exc:
        msg = f"JSON nested deeper than {MAX_DEPTH} levels"
        raise MalformedPayloadError(msg) from exc
    return from_python(decoded)


def stringify(value: JsonValue) -> str:
    """Render a node as the string handed to the mapping stage.

    Strings are returned verbatim, ``null`` becomes ``""``, booleans render
    as ``true``/``false`` and integral numbers lose their fractional part.
    Containers render as compact JSON.
    """
    if isinstance(value, JsonNull):
        return ""
    if isinstance(value, JsonString):
        return value.value
    if isinstance(value, JsonBool):
        return "true" if value.value else "false"
    if isinstance(value, JsonNumber):
        number = value.value
        if isinstance(number, float) and number.is_integer() and abs(number) < 1e21:
            return str(int(number))
        return repr(number) if isinstance(number, float) else str(number)
    return json.dumps(to_python(value), separators=(",", ":"), ensure_ascii=False)
