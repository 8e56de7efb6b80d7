"""Tests for the artifact lifecycle service."""
from __future__ import annotations

import pytest
from unittest.mock import Mock

from specgraph.application.artifact_service import ArtifactService
from specgraph.domain.errors import ConflictError, NotFoundError, ValidationError
from specgraph.domain.events import ArtifactCreated, SequenceDiagramParsed, event_publisher


class TestProjectsAndModules:

    def test_create_project_gets_code(self, service):
        project = service.create_project("Order Management", "Orders")
        assert project["code"].startswith("OM-")

    def test_module_codes_are_allocated(self, service, sample_project):
        first = service.create_module(sample_project["id"], "Users")
        second = service.create_module(sample_project["id"], "Orders", parent_id=first["id"])
        assert first["mod_code"] == "MOD-001"
        assert second["mod_code"] == "MOD-002"
        assert second["parent_id"] == first["id"]

    def test_unknown_project(self, service):
        with pytest.raises(NotFoundError):
            service.create_module("missing", "Users")

    def test_blank_title(self, service, sample_project):
        with pytest.raises(ValidationError):
            service.create_module(sample_project["id"], "   ")

    def test_created_event(self, service, sample_project):
        handler = Mock()
        event_publisher.subscribe(ArtifactCreated, handler)

        module = service.create_module(sample_project["id"], "Users")

        event = handler.call_args[0][0]
        assert event.artifact_type == "module"
        assert event.aggregate_id == module["id"]
        assert event.code == "MOD-001"


class TestMoveModule:

    def test_move_to_new_parent(self, service, sample_project):
        a = service.create_module(sample_project["id"], "A")
        b = service.create_module(sample_project["id"], "B")
        moved = service.move_module(b["id"], a["id"])
        assert moved["parent_id"] == a["id"]

        assert service.move_module(b["id"], None)["parent_id"] is None

    def test_cannot_be_own_parent(self, service, sample_project):
        a = service.create_module(sample_project["id"], "A")
        with pytest.raises(ValidationError, match="own parent"):
            service.move_module(a["id"], a["id"])

    def test_cannot_move_below_descendant(self, service, sample_project):
        a = service.create_module(sample_project["id"], "A")
        b = service.create_module(sample_project["id"], "B", parent_id=a["id"])
        c = service.create_module(sample_project["id"], "C", parent_id=b["id"])
        with pytest.raises(ValidationError, match="circular"):
            service.move_module(a["id"], c["id"])


class TestDeletion:

    def test_module_with_children_is_kept(self, service, storage, sample_project):
        parent = service.create_module(sample_project["id"], "Parent")
        service.create_module(sample_project["id"], "Child", parent_id=parent["id"])
        with pytest.raises(ConflictError):
            service.delete_module(parent["id"])
        assert storage.get_module(parent["id"]) is not None

    def test_module_with_use_cases_is_kept(self, service, sample_project):
        module = service.create_module(sample_project["id"], "M")
        service.create_use_case(module["id"], "UC")
        with pytest.raises(ConflictError, match="use cases"):
            service.delete_module(module["id"])

    def test_use_case_with_diagrams_is_kept(self, service, sample_project):
        module = service.create_module(sample_project["id"], "M")
        use_case = service.create_use_case(module["id"], "UC")
        service.create_sequence(use_case["id"], "Flow")
        with pytest.raises(ConflictError, match="sequence diagrams"):
            service.delete_use_case(use_case["id"])

    def test_explicit_cleanup_then_delete(self, service, storage, sample_project):
        module = service.create_module(sample_project["id"], "M")
        use_case = service.create_use_case(module["id"], "UC")
        sequence = service.create_sequence(use_case["id"], "Flow")

        service.delete_sequence(sequence["id"])
        service.delete_use_case(use_case["id"])
        service.delete_module(module["id"])

        assert storage.get_module(module["id"]) is None

    def test_codes_are_not_reused_after_delete(self, service, sample_project):
        first = service.create_module(sample_project["id"], "M1")
        service.delete_module(first["id"])
        second = service.create_module(sample_project["id"], "M2")
        assert second["mod_code"] == "MOD-002"

    def test_linked_dto_is_kept(self, service, sample_project):
        api = service.create_api(sample_project["id"], "GET", "/users", "List users")
        dto = service.create_dto(sample_project["id"], "User", "response")
        service.link_api_dto(api["id"], dto["id"], "res")
        with pytest.raises(ConflictError):
            service.delete_dto(dto["id"])


class TestSequences:

    def test_valid_source_is_formatted_and_parsed(self, service, sample_project):
        handler = Mock()
        event_publisher.subscribe(SequenceDiagramParsed, handler)
        module = service.create_module(sample_project["id"], "M")
        use_case = service.create_use_case(module["id"], "UC")

        sequence = service.create_sequence(
            use_case["id"], "Flow", "sequenceDiagram\nloop retry\nA->>B: GET /x\nend"
        )

        assert sequence["sd_code"] == "SD-001"
        assert sequence["parse_status"] == "success"
        assert sequence["parse_error"] is None
        assert sequence["mermaid_src"] == "sequenceDiagram\nloop retry\n  A->>B: GET /x\nend"
        assert handler.call_args[0][0].call_count == 1

    def test_invalid_source_is_stored_with_error(self, service, sample_project):
        module = service.create_module(sample_project["id"], "M")
        use_case = service.create_use_case(module["id"], "UC")

        sequence = service.create_sequence(use_case["id"], "Flow", "sequenceDiagram\nalt x\nA->>B: hi")

        assert sequence["parse_status"] == "error"
        assert sequence["parse_error"] == "Unclosed alt block"

    def test_update_source_changes_status(self, service, sample_project):
        module = service.create_module(sample_project["id"], "M")
        use_case = service.create_use_case(module["id"], "UC")
        sequence = service.create_sequence(use_case["id"], "Flow")
        assert sequence["parse_status"] == "pending"

        updated = service.update_sequence_source(sequence["id"], "sequenceDiagram\nA->>B: GET /x")
        assert updated["parse_status"] == "success"

        assert service.reparse_sequence(sequence["id"])["parse_status"] == "success"

    def test_sequence_codes_are_project_wide(self, service, sample_project):
        module = service.create_module(sample_project["id"], "M")
        uc1 = service.create_use_case(module["id"], "UC1")
        uc2 = service.create_use_case(module["id"], "UC2")
        assert service.create_sequence(uc1["id"], "F1")["sd_code"] == "SD-001"
        assert service.create_sequence(uc2["id"], "F2")["sd_code"] == "SD-002"


class TestContractsAndDtos:

    def test_api_code_uses_domain(self, service, sample_project):
        api = service.create_api(sample_project["id"], "get", "/users/{id}", "Get user", domain="user service!!")
        assert api["api_code"] == "API-USER-SERVICE-001"
        assert api["method"] == "GET"
        assert api["domain"] == "USER-SERVICE"

    def test_duplicate_endpoint_rejected(self, service, sample_project):
        service.create_api(sample_project["id"], "GET", "/users", "List users")
        with pytest.raises(ConflictError, match="GET /users"):
            service.create_api(sample_project["id"], "GET", "/users", "List users again")

    @pytest.mark.parametrize("method, endpoint", [
        ("FETCH", "/users"),
        ("GET", "users"),
        ("GET", ""),
    ])
    def test_invalid_contract(self, service, sample_project, method, endpoint):
        with pytest.raises(ValidationError):
            service.create_api(sample_project["id"], method, endpoint, "Bad")

    def test_dto_kind_and_schema_are_validated(self, service, sample_project):
        with pytest.raises(ValidationError):
            service.create_dto(sample_project["id"], "X", "payload")
        with pytest.raises(ValidationError, match="missing type"):
            service.create_dto(sample_project["id"], "X", "request", {"properties": {}})

    def test_role_must_match_kind(self, service, sample_project):
        api = service.create_api(sample_project["id"], "POST", "/users", "Create user")
        dto = service.create_dto(sample_project["id"], "User", "response")
        with pytest.raises(ValidationError, match="does not match role"):
            service.link_api_dto(api["id"], dto["id"], "req")

    def test_duplicate_dto_link_rejected(self, service, sample_project):
        api = service.create_api(sample_project["id"], "POST", "/users", "Create user")
        dto = service.create_dto(sample_project["id"], "Create user", "request")
        link = service.link_api_dto(api["id"], dto["id"], "req")
        assert link["role"] == "req"
        with pytest.raises(ConflictError):
            service.link_api_dto(api["id"], dto["id"], "req")

    def test_duplicate_sequence_link_rejected(self, service, sample_project):
        module = service.create_module(sample_project["id"], "M")
        use_case = service.create_use_case(module["id"], "UC")
        sequence = service.create_sequence(use_case["id"], "Flow")
        api = service.create_api(sample_project["id"], "GET", "/users", "List users")

        service.link_api_sequence(api["id"], sequence["id"])
        with pytest.raises(ConflictError):
            service.link_api_sequence(api["id"], sequence["id"])

    def test_render_dto_type_declaration(self, service, sample_project):
        dto = service.create_dto(sample_project["id"], "user profile", "response", {
            "type": "object",
            "required": ["id"],
            "properties": {"id": {"type": "integer"}, "name": {"type": "string"}},
        })
        assert service.render_dto_type_declaration(dto["id"]) == (
            "export interface UserProfile {\n  id: number;\n  name?: string;\n}"
        )


class TestWithMockStorage:

    def test_allocation_happens_before_write(self):
        storage = Mock()
        storage.get_project.return_value = {"id": "p1"}
        storage.create_module.return_value = {"id": "m1"}
        allocator = Mock()
        allocator.allocate_module_code.return_value = "MOD-009"
        calls = Mock()
        calls.attach_mock(allocator.allocate_module_code, "allocate")
        calls.attach_mock(storage.create_module, "create")

        ArtifactService(storage, allocator).create_module("p1", "Users")

        assert [c[0] for c in calls.mock_calls] == ["allocate", "create"]
        storage.create_module.assert_called_once_with("p1", "MOD-009", "Users", None, None, 0)
