"""Tests for domain events and event handling."""
from __future__ import annotations

import logging

import pytest
from unittest.mock import Mock
from datetime import datetime

from specgraph.application.event_handlers import register_event_handlers
from specgraph.domain.events import (
    DomainEvent, CodeAllocated, ConsistencyChecked, SequenceDiagramParsed,
    DomainEventPublisher, event_publisher
)


class TestDomainEvent:
    """Test base domain event functionality."""

    def test_defaults_are_filled(self):
        event = DomainEvent(event_id="", timestamp=None, aggregate_id="agg-1")

        assert event.event_id
        assert isinstance(event.timestamp, datetime)

    def test_custom_values_are_kept(self):
        stamp = datetime(2024, 1, 1, 12, 0, 0)
        event = CodeAllocated(
            event_id="evt-1",
            timestamp=stamp,
            aggregate_id="p1",
            project_id="p1",
            scope_type="MODULE",
            code="MOD-001",
        )

        assert event.event_id == "evt-1"
        assert event.timestamp == stamp
        assert event.code == "MOD-001"


class TestDomainEventPublisher:
    """Test the singleton publisher."""

    def test_singleton(self):
        assert DomainEventPublisher() is event_publisher

    def test_publish_to_matching_subscribers_only(self):
        allocated = Mock()
        checked = Mock()
        event_publisher.subscribe(CodeAllocated, allocated)
        event_publisher.subscribe(ConsistencyChecked, checked)

        event = CodeAllocated(event_id="", timestamp=None, aggregate_id="p1",
                              project_id="p1", scope_type="MODULE", code="MOD-001")
        event_publisher.publish(event)

        allocated.assert_called_once_with(event)
        checked.assert_not_called()

    def test_failing_handler_does_not_stop_others(self):
        failing = Mock(side_effect=RuntimeError("boom"))
        healthy = Mock()
        event_publisher.subscribe(CodeAllocated, failing)
        event_publisher.subscribe(CodeAllocated, healthy)

        event_publisher.publish(CodeAllocated(event_id="", timestamp=None, aggregate_id="p1",
                                              project_id="p1", scope_type="MODULE", code="MOD-001"))

        healthy.assert_called_once()


class TestEventHandlers:

    def test_parse_failures_are_logged(self, caplog):
        register_event_handlers()

        with caplog.at_level(logging.INFO):
            event_publisher.publish(SequenceDiagramParsed(
                event_id="", timestamp=None, aggregate_id="seq-1", project_id="p1",
                parse_status="error", parse_error="Unclosed loop block", call_count=0,
            ))

        assert "[AUDIT] Sequence diagram seq-1 parsed: error" in caplog.text
        assert "Unclosed loop block" in caplog.text

    def test_integrity_alert_on_errors(self, caplog):
        register_event_handlers()

        with caplog.at_level(logging.WARNING):
            event_publisher.publish(ConsistencyChecked(
                event_id="", timestamp=None, aggregate_id="p1", project_id="p1",
                total_issues=3, errors=2,
            ))

        assert "[INTEGRITY] Project p1 has 2 consistency errors" in caplog.text
