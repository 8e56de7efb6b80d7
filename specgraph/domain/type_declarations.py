"""Render DTO JSON Schemas as TypeScript interface declarations."""
from __future__ import annotations

import re
from typing import Any, Dict

from specgraph.domain.errors import ValidationError
from specgraph.domain.json_tree import depth, from_json


def validate_json_schema(schema: Any, max_depth: int) -> None:
    """Raise ValidationError unless schema is an object with a type and bounded depth."""
    if not isinstance(schema, dict):
        raise ValidationError("Invalid JSON Schema: must be an object")
    if not schema.get("type"):
        raise ValidationError("Invalid JSON Schema: missing type field")
    if depth(from_json(schema)) > max_depth:
        raise ValidationError(f"JSON Schema exceeds maximum depth of {max_depth}")


def to_pascal_case(name: str) -> str:
    text = re.sub(r"[-_\s]+(.)?", lambda m: m.group(1).upper() if m.group(1) else "", name)
    return text[:1].upper() + text[1:]


def render_interface(name: str, schema: Dict[str, Any]) -> str:
    """Render `export interface Name { ... }` for a DTO schema.

    Schemas without properties have no interface body and become a type alias.
    """
    type_name = to_pascal_case(name)
    if schema.get("type") == "object" and schema.get("properties"):
        return f"export interface {type_name} {_render_body(schema)}"
    return f"export type {type_name} = {_render_type(schema)};"


def _render_body(schema: Dict[str, Any], indent: int = 0) -> str:
    if schema.get("type") == "object" and schema.get("properties"):
        pad = "  " * indent
        required = set(schema.get("required") or [])
        props = []
        for key, value in schema["properties"].items():
            optional = "" if key in required else "?"
            props.append(f"{pad}  {key}{optional}: {_render_type(value, indent + 1)};")
        return "{\n" + "\n".join(props) + f"\n{pad}}}"
    return _render_type(schema, indent)


def _render_type(schema: Any, indent: int = 0) -> str:
    if not isinstance(schema, dict) or not schema.get("type"):
        return "any"

    kind = schema["type"]
    if kind == "string":
        if schema.get("enum"):
            return " | ".join(f"'{value}'" for value in schema["enum"])
        return "string"
    if kind in ("number", "integer"):
        return "number"
    if kind == "boolean":
        return "boolean"
    if kind == "null":
        return "null"
    if kind == "array":
        if schema.get("items"):
            return f"{_render_type(schema['items'], indent)}[]"
        return "any[]"
    if kind == "object":
        if schema.get("properties"):
            return _render_body(schema, indent)
        return "Record<string, any>"
    return "any"
