"""Event handlers for domain events."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from specgraph.domain.events import (
        ArtifactCreated,
        ArtifactDeleted,
        CodeAllocated,
        ConsistencyChecked,
        LinksDetected,
        SequenceDiagramParsed,
    )

logger = logging.getLogger(__name__)


class AuditLogHandler:
    """Logs all domain events for audit trail."""

    def handle_code_allocated(self, event: CodeAllocated) -> None:
        logger.debug(f"[AUDIT] Code allocated: {event.code} ({event.scope_type}) in project {event.project_id}")

    def handle_artifact_created(self, event: ArtifactCreated) -> None:
        logger.info(f"[AUDIT] {event.artifact_type} created: {event.aggregate_id} - {event.code}")

    def handle_artifact_deleted(self, event: ArtifactDeleted) -> None:
        logger.info(f"[AUDIT] {event.artifact_type} deleted: {event.aggregate_id}")

    def handle_sequence_parsed(self, event: SequenceDiagramParsed) -> None:
        logger.info(
            f"[AUDIT] Sequence diagram {event.aggregate_id} parsed: "
            f"{event.parse_status} ({event.call_count} calls)"
        )

    def handle_links_detected(self, event: LinksDetected) -> None:
        logger.info(f"[AUDIT] Auto-detected {len(event.created_link_ids)} links for sequence {event.aggregate_id}")

    def handle_consistency_checked(self, event: ConsistencyChecked) -> None:
        logger.info(f"[AUDIT] Consistency check for project {event.project_id}: {event.total_issues} issues")


class ParseFailureHandler:
    """Surfaces diagrams that were stored with parse errors."""

    def handle_sequence_parsed(self, event: SequenceDiagramParsed) -> None:
        if event.parse_status == "error":
            logger.warning(f"[PARSE] Sequence diagram {event.aggregate_id} has errors: {event.parse_error}")


class IntegrityAlertHandler:
    """Raises the log level when a check finds blocking problems."""

    def handle_consistency_checked(self, event: ConsistencyChecked) -> None:
        if event.errors:
            logger.warning(f"[INTEGRITY] Project {event.project_id} has {event.errors} consistency errors")


def register_event_handlers():
    """Register all event handlers with the publisher."""
    from specgraph.domain.events import (
        event_publisher,
        ArtifactCreated,
        ArtifactDeleted,
        CodeAllocated,
        ConsistencyChecked,
        LinksDetected,
        SequenceDiagramParsed,
    )

    audit = AuditLogHandler()
    parse_failures = ParseFailureHandler()
    integrity = IntegrityAlertHandler()

    # Audit handlers (all events)
    event_publisher.subscribe(CodeAllocated, audit.handle_code_allocated)
    event_publisher.subscribe(ArtifactCreated, audit.handle_artifact_created)
    event_publisher.subscribe(ArtifactDeleted, audit.handle_artifact_deleted)
    event_publisher.subscribe(SequenceDiagramParsed, audit.handle_sequence_parsed)
    event_publisher.subscribe(LinksDetected, audit.handle_links_detected)
    event_publisher.subscribe(ConsistencyChecked, audit.handle_consistency_checked)

    event_publisher.subscribe(SequenceDiagramParsed, parse_failures.handle_sequence_parsed)
    event_publisher.subscribe(ConsistencyChecked, integrity.handle_consistency_checked)
