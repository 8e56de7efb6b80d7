"""Tests for the tagged JSON tree."""
import pytest

from specgraph.domain.json_tree import (
    JsonArray, JsonBoolean, JsonNull, JsonNumber, JsonObject, JsonString,
    depth, from_json, is_blank_spec, is_empty, to_json,
)


class TestFromJson:

    def test_booleans_are_not_numbers(self):
        assert from_json(True) == JsonBoolean(True)
        assert from_json(0) == JsonNumber(0)

    def test_nested_document(self):
        node = from_json({"name": "x", "tags": ["a", None], "score": 1.5})

        assert isinstance(node, JsonObject)
        assert node.members["name"] == JsonString("x")
        assert node.members["tags"] == JsonArray([JsonString("a"), JsonNull()])
        assert node.members["score"] == JsonNumber(1.5)

    def test_unsupported_value(self):
        with pytest.raises(TypeError):
            from_json({1, 2})

    def test_to_json_restores_value(self):
        document = {"type": "object", "properties": {"id": {"type": "integer"}}, "required": ["id"], "nullable": False}
        assert to_json(from_json(document)) == document


class TestEmptiness:

    @pytest.mark.parametrize("value, expected", [
        (None, True),
        ({}, True),
        ([], True),
        ({"type": "object"}, False),
        ([None], False),
        ("", False),
        (0, False),
    ])
    def test_is_blank_spec(self, value, expected):
        assert is_blank_spec(value) is expected

    def test_is_empty_on_nodes(self):
        assert is_empty(JsonObject())
        assert not is_empty(JsonBoolean(False))


class TestDepth:

    def test_scalars_and_empty_containers(self):
        assert depth(from_json("x")) == 0
        assert depth(from_json({})) == 0
        assert depth(from_json([])) == 0

    def test_nested_schema(self):
        schema = {"type": "object", "properties": {"id": {"type": "integer"}}}
        assert depth(from_json(schema)) == 3

    def test_deep_list_does_not_recurse(self):
        value = "leaf"
        for _ in range(2000):
            value = [value]
        assert depth(from_json(value)) == 2000

    def test_deep_object_round_trip(self):
        value = {"type": "string"}
        for _ in range(3000):
            value = {"nested": value}

        node = from_json(value)
        lowered = to_json(node)

        assert depth(node) == 3001
        for _ in range(3000):
            lowered = lowered["nested"]
        assert lowered == {"type": "string"}

    def test_blank_spec_only_looks_at_top_level(self):
        value = {}
        for _ in range(3000):
            value = {"nested": value}
        assert is_blank_spec(value) is False
