"""Tests for JSON Schema validation and TypeScript rendering."""
import pytest

from specgraph.domain.errors import ValidationError
from specgraph.domain.type_declarations import render_interface, to_pascal_case, validate_json_schema


class TestValidateJsonSchema:

    def test_accepts_object_schema(self):
        validate_json_schema({"type": "object", "properties": {"id": {"type": "integer"}}}, max_depth=10)

    @pytest.mark.parametrize("schema, message", [
        ([], "must be an object"),
        ("string", "must be an object"),
        ({"properties": {}}, "missing type field"),
        ({"type": ""}, "missing type field"),
    ])
    def test_rejects_invalid(self, schema, message):
        with pytest.raises(ValidationError, match=message):
            validate_json_schema(schema, max_depth=10)

    def test_rejects_very_deep_schema(self):
        schema = {"type": "string"}
        for _ in range(3000):
            schema = {"type": "object", "properties": {"child": schema}}

        with pytest.raises(ValidationError, match="maximum depth of 10"):
            validate_json_schema(schema, max_depth=10)

    def test_rejects_deep_schema(self):
        schema = {"type": "object", "properties": {"id": {"type": "integer"}}}

        validate_json_schema(schema, max_depth=3)
        with pytest.raises(ValidationError, match="maximum depth of 2"):
            validate_json_schema(schema, max_depth=2)


class TestToPascalCase:

    @pytest.mark.parametrize("name, expected", [
        ("user profile", "UserProfile"),
        ("order_item", "OrderItem"),
        ("payment-request", "PaymentRequest"),
        ("Address", "Address"),
        ("trailing-", "Trailing"),
    ])
    def test_conversion(self, name, expected):
        assert to_pascal_case(name) == expected


class TestRenderInterface:

    def test_enum_and_array(self):
        schema = {
            "type": "object",
            "properties": {
                "status": {"type": "string", "enum": ["open", "closed"]},
                "tags": {"type": "array", "items": {"type": "string"}},
                "extra": {"type": "array"},
            },
            "required": ["status"],
        }

        assert render_interface("ticket", schema) == (
            "export interface Ticket {\n"
            "  status: 'open' | 'closed';\n"
            "  tags?: string[];\n"
            "  extra?: any[];\n"
            "}"
        )

    def test_nested_object_and_record(self):
        schema = {
            "type": "object",
            "properties": {
                "address": {
                    "type": "object",
                    "properties": {"city": {"type": "string"}},
                    "required": ["city"],
                },
                "metadata": {"type": "object"},
                "active": {"type": "boolean"},
                "unknown": {},
            },
            "required": ["address"],
        }

        assert render_interface("customer", schema) == (
            "export interface Customer {\n"
            "  address: {\n"
            "    city: string;\n"
            "  };\n"
            "  metadata?: Record<string, any>;\n"
            "  active?: boolean;\n"
            "  unknown?: any;\n"
            "}"
        )

    def test_schema_without_properties_is_alias(self):
        assert render_interface("raw", {"type": "object"}) == "export type Raw = Record<string, any>;"
