"""Tests for domain specifications and filtering."""
from __future__ import annotations

import pytest

from specgraph.domain.specifications import (
    AndSpecification, NotSpecification, OrSpecification,
    ApiHasDescription, ApiHasDtoRole, ApiHasSpec, ApiWithMethod, ApiWithWriteMethod,
    IdIn, SequenceWithStatus, filter_by_specification,
)


APIS = [
    {"id": "a1", "method": "GET", "description": "List", "request_spec": {}, "response_spec": {"type": "array"}},
    {"id": "a2", "method": "post", "description": None, "request_spec": {"type": "object"}, "response_spec": None},
    {"id": "a3", "method": "PATCH", "description": "", "request_spec": [], "response_spec": {}},
]


def _ids(items):
    return [item["id"] for item in items]


class TestComposition:

    def test_and_or_not(self):
        write = ApiWithWriteMethod()
        described = ApiHasDescription()

        assert isinstance(write.and_(described), AndSpecification)
        assert isinstance(write.or_(described), OrSpecification)
        assert isinstance(write.not_(), NotSpecification)

        assert _ids(filter_by_specification(APIS, write.and_(described.not_()))) == ["a2", "a3"]
        assert _ids(filter_by_specification(APIS, write.not_().or_(described))) == ["a1"]


class TestApiSpecifications:

    def test_method_is_case_insensitive(self):
        assert _ids(filter_by_specification(APIS, ApiWithMethod(["post"]))) == ["a2"]

    def test_write_methods(self):
        assert _ids(filter_by_specification(APIS, ApiWithWriteMethod())) == ["a2", "a3"]

    @pytest.mark.parametrize("field_name, expected", [
        ("request_spec", ["a2"]),
        ("response_spec", ["a1"]),
    ])
    def test_blank_specs(self, field_name, expected):
        assert _ids(filter_by_specification(APIS, ApiHasSpec(field_name))) == expected

    def test_dto_role(self):
        links = [{"api_id": "a1", "role": "res"}, {"api_id": "a2", "role": "req"}]
        assert _ids(filter_by_specification(APIS, ApiHasDtoRole(links, "res"))) == ["a1"]


class TestMembership:

    def test_id_in_accepts_generators(self):
        spec = IdIn(item for item in ["a1", "a3"])
        assert _ids(filter_by_specification(APIS, spec)) == ["a1", "a3"]

    def test_sequence_status(self):
        sequences = [{"id": "s1", "parse_status": "error"}, {"id": "s2", "parse_status": "success"}]
        assert _ids(filter_by_specification(sequences, SequenceWithStatus("error"))) == ["s1"]
