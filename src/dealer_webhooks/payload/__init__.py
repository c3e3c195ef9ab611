"""Payload model — typed JSON values, flattening and path resolution."""

from dealer_webhooks.payload.flatten import FlatField, flatten
from dealer_webhooks.payload.json_value import (
    JSON_NULL,
    JsonArray,
    JsonBool,
    JsonNull,
    JsonNumber,
    JsonObject,
    JsonScalar,
    JsonString,
    JsonValue,
    from_python,
    parse_json,
    stringify,
    to_python,
)
from dealer_webhooks.payload.resolver import lookup, resolve, split_path

__all__ = [
    "JSON_NULL",
    "FlatField",
    "JsonArray",
    "JsonBool",
    "JsonNull",
    "JsonNumber",
    "JsonObject",
    "JsonScalar",
    "JsonString",
    "JsonValue",
    "flatten",
    "from_python",
    "lookup",
    "parse_json",
    "resolve",
    "split_path",
    "stringify",
    "to_python",
]
