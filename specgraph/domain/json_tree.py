"""Tagged tree for free-form JSON documents (request/response specs, DTO schemas).

Stored columns hold plain JSON; the engine lifts them into these nodes when it
needs to reason about shape, so emptiness and depth checks never poke at
untyped values.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Union


@dataclass(frozen=True)
class JsonObject:
    members: Dict[str, "JsonNode"] = field(default_factory=dict)
    tag: str = "object"


@dataclass(frozen=True)
class JsonArray:
    items: List["JsonNode"] = field(default_factory=list)
    tag: str = "array"


@dataclass(frozen=True)
class JsonString:
    value: str
    tag: str = "string"


@dataclass(frozen=True)
class JsonNumber:
    value: Union[int, float]
    tag: str = "number"


@dataclass(frozen=True)
class JsonBoolean:
    value: bool
    tag: str = "boolean"


@dataclass(frozen=True)
class JsonNull:
    tag: str = "null"


JsonNode = Union[JsonObject, JsonArray, JsonString, JsonNumber, JsonBoolean, JsonNull]


def _children(value: Any) -> List[Any]:
    if isinstance(value, dict):
        return list(value.values())
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def _scalar(value: Any) -> JsonNode:
    if value is None:
        return JsonNull()
    # bool before number: bool is an int subclass
    if isinstance(value, bool):
        return JsonBoolean(value)
    if isinstance(value, (int, float)):
        return JsonNumber(value)
    if isinstance(value, str):
        return JsonString(value)
    raise TypeError(f"Unsupported JSON value of type {type(value).__name__}")


def _take(built: List[Any], count: int) -> List[Any]:
    start = len(built) - count
    taken = built[start:]
    del built[start:]
    return taken


def from_json(value: Any) -> JsonNode:
    """
    Lift a decoded JSON value into the tagged tree.

    Containers are expanded with an explicit stack and built once their
    children are, so nesting depth is bounded by memory, not the call stack.
    """
    built: List[JsonNode] = []
    stack = [(value, False)]
    while stack:
        current, expanded = stack.pop()
        if not isinstance(current, (dict, list, tuple)):
            built.append(_scalar(current))
            continue
        children = _children(current)
        if not expanded:
            stack.append((current, True))
            stack.extend((child, False) for child in reversed(children))
            continue
        items = _take(built, len(children))
        if isinstance(current, dict):
            built.append(JsonObject(dict(zip((str(key) for key in current), items))))
        else:
            built.append(JsonArray(items))
    return built[0]


def to_json(node: JsonNode) -> Any:
    """Lower a tagged tree back into plain JSON values."""
    built: List[Any] = []
    stack = [(node, False)]
    while stack:
        current, expanded = stack.pop()
        if isinstance(current, JsonObject):
            children = list(current.members.values())
        elif isinstance(current, JsonArray):
            children = list(current.items)
        else:
            built.append(None if isinstance(current, JsonNull) else current.value)
            continue
        if not expanded:
            stack.append((current, True))
            stack.extend((child, False) for child in reversed(children))
            continue
        items = _take(built, len(children))
        if isinstance(current, JsonObject):
            built.append(dict(zip(current.members, items)))
        else:
            built.append(items)
    return built[0]


def is_empty(node: JsonNode) -> bool:
    """True for null, empty objects and empty arrays."""
    if isinstance(node, JsonNull):
        return True
    if isinstance(node, JsonObject):
        return not node.members
    if isinstance(node, JsonArray):
        return not node.items
    return False


def is_blank_spec(value: Any) -> bool:
    """True when a stored spec column carries no content; only the top level is looked at."""
    if value is None:
        return True
    if isinstance(value, (dict, list, tuple)):
        return not value
    return False


def depth(node: JsonNode) -> int:
    """
    Nesting depth of a tree: scalars and empty containers are 0, every
    container level with children adds one.
    """
    deepest = 0
    stack = [(node, 0)]
    while stack:
        current, level = stack.pop()
        deepest = max(deepest, level)
        if isinstance(current, JsonObject):
            stack.extend((child, level + 1) for child in current.members.values())
        elif isinstance(current, JsonArray):
            stack.extend((child, level + 1) for child in current.items)
    return deepest
