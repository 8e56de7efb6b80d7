"""Tests for API link auto-detection."""
from __future__ import annotations

import pytest
from unittest.mock import Mock

from specgraph.application.consistency_analyzer import ConsistencyAnalyzer
from specgraph.application.link_resolver import LinkResolver, find_matching_contract
from specgraph.diagram.parser import ParsedCall
from specgraph.domain.errors import ConflictError, NotFoundError
from specgraph.domain.events import LinksDetected, event_publisher


def _api(api_id, method, endpoint):
    return {"id": api_id, "api_code": f"API-GEN-{api_id}", "method": method, "endpoint": endpoint}


def _call(method, path, line_number=2):
    return ParsedCall(
        source="A", target="B", sequence=0, line_number=line_number,
        raw=f"A->>B: {method} {path}", method=method, path=path,
    )


class TestFindMatchingContract:

    def test_method_and_template_must_match(self):
        contracts = [_api("1", "POST", "/orders/{id}"), _api("2", "GET", "/orders/{id}")]
        assert find_matching_contract(_call("GET", "/orders/9"), contracts)["id"] == "2"

    def test_first_match_wins(self):
        contracts = [_api("1", "GET", "/orders/*"), _api("2", "GET", "/orders/{id}")]
        assert find_matching_contract(_call("GET", "/orders/9"), contracts)["id"] == "1"

    def test_no_match(self):
        assert find_matching_contract(_call("GET", "/users"), [_api("1", "GET", "/orders")]) is None

    def test_non_api_call(self):
        call = ParsedCall(source="A", target="B", sequence=0, line_number=1, raw="A->B: hi", description="hi")
        assert find_matching_contract(call, [_api("1", "GET", "/orders")]) is None


class TestLinkResolverWithMockStorage:

    def _storage(self, src):
        storage = Mock()
        storage.get_sequence.return_value = {
            "id": "seq-1", "project_id": "p1", "sd_code": "SD-001", "mermaid_src": src,
        }
        storage.get_project_apis.return_value = [_api("api-1", "GET", "/users/{id}")]
        storage.create_api_sequence_link.side_effect = lambda api_id, seq_id, step_ref=None, line_number=None: {
            "id": f"link-{line_number}", "api_id": api_id, "sequence_id": seq_id,
            "step_ref": step_ref, "line_number": line_number,
        }
        return storage

    def test_missing_sequence(self):
        storage = Mock()
        storage.get_sequence.return_value = None
        with pytest.raises(NotFoundError):
            LinkResolver(storage).auto_detect("nope")

    def test_creates_link_with_line_and_step(self):
        storage = self._storage("sequenceDiagram\nA->>B: GET /users/42\nA->>B: GET /unknown")

        links = LinkResolver(storage).auto_detect("seq-1")

        assert len(links) == 1
        storage.create_api_sequence_link.assert_called_once_with(
            "api-1", "seq-1", step_ref="A->>B: GET /users/42", line_number=2
        )

    def test_duplicate_links_are_ignored(self):
        storage = self._storage("sequenceDiagram\nA->>B: GET /users/42")
        storage.create_api_sequence_link.side_effect = ConflictError("exists")

        assert LinkResolver(storage).auto_detect("seq-1") == []

    def test_publishes_links_detected(self):
        handler = Mock()
        event_publisher.subscribe(LinksDetected, handler)
        storage = self._storage("sequenceDiagram\nA->>B: GET /users/42")

        LinkResolver(storage).auto_detect("seq-1")

        event = handler.call_args[0][0]
        assert event.created_link_ids == ["link-2"]
        assert event.project_id == "p1"


class TestLinkResolverEndToEnd:

    def test_detects_and_is_idempotent(self, storage, service, sample_project):
        module = service.create_module(sample_project["id"], "Orders")
        use_case = service.create_use_case(module["id"], "List items")
        api = service.create_api(sample_project["id"], "GET", "/orders/{id}/items", "List order items")
        sequence = service.create_sequence(
            use_case["id"],
            "List items flow",
            "sequenceDiagram\nClient->>API: GET /orders/42/items",
        )
        resolver = LinkResolver(storage)

        links = resolver.auto_detect(sequence["id"])

        assert len(links) == 1
        assert links[0]["api_id"] == api["id"]
        assert links[0]["line_number"] == 2
        assert links[0]["step_ref"] == "Client->>API: GET /orders/42/items"

        assert resolver.auto_detect(sequence["id"]) == []
        assert len(storage.get_sequence_links(sequence["id"])) == 1

    def test_detected_link_satisfies_consistency_check(self, storage, service, sample_project):
        pid = sample_project["id"]
        module = service.create_module(pid, "Users")
        use_case = service.create_use_case(module["id"], "View user")
        api = service.create_api(pid, "GET", "/users/{id}", "Get user")
        sequence = service.create_sequence(
            use_case["id"], "View user flow", "sequenceDiagram\nUser->>System: GET /users/{id}"
        )

        links = LinkResolver(storage).auto_detect(sequence["id"])

        assert [(link["api_id"], link["step_ref"], link["line_number"]) for link in links] == [
            (api["id"], "User->>System: GET /users/{id}", 2)
        ]

        report = ConsistencyAnalyzer(storage).check_project(pid)
        issue_types = {issue.type for issue in report.issues}
        assert "api-sequence-consistency" not in issue_types
        assert "dto-usage" in issue_types
