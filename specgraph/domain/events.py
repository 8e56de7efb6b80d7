"""Domain events for decoupled side effects and integrations."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional
from uuid import uuid4

logger = logging.getLogger(__name__)


@dataclass
class DomainEvent:
    """Base class for all domain events."""
    event_id: str
    timestamp: Optional[datetime]
    aggregate_id: str

    def __post_init__(self):
        if not self.event_id:
            object.__setattr__(self, 'event_id', str(uuid4()))
        if not self.timestamp:
            object.__setattr__(self, 'timestamp', datetime.now())


@dataclass
class CodeAllocated(DomainEvent):
    """Raised when a counter hands out a new code."""
    project_id: str
    scope_type: str
    code: str


@dataclass
class ArtifactCreated(DomainEvent):
    """Raised when a module, use case, diagram, contract or DTO is created."""
    project_id: str
    artifact_type: str
    code: str


@dataclass
class ArtifactDeleted(DomainEvent):
    """Raised when an artifact is deleted."""
    project_id: str
    artifact_type: str


@dataclass
class SequenceDiagramParsed(DomainEvent):
    """Raised when diagram source is (re)parsed and its status stored."""
    project_id: str
    parse_status: str
    parse_error: Optional[str]
    call_count: int


@dataclass
class LinksDetected(DomainEvent):
    """Raised after link auto-detection ran over a diagram."""
    project_id: str
    created_link_ids: List[str]


@dataclass
class ConsistencyChecked(DomainEvent):
    """Raised after a consistency report is produced."""
    project_id: str
    total_issues: int
    errors: int


class DomainEventPublisher:
    """Singleton publisher for domain events."""

    _instance: DomainEventPublisher | None = None
    _subscribers: Dict[type, List[Callable[[DomainEvent], None]]]

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._subscribers = {}
        return cls._instance

    def subscribe(self, event_type: type[DomainEvent], handler: Callable[[DomainEvent], None]) -> None:
        """Subscribe a handler to an event type."""
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []
        self._subscribers[event_type].append(handler)

    def publish(self, event: DomainEvent) -> None:
        """Publish an event to all subscribers."""
        event_type = type(event)
        if event_type in self._subscribers:
            for handler in self._subscribers[event_type]:
                try:
                    handler(event)
                except Exception:
                    # Handlers are side effects; the main operation already succeeded
                    logger.exception(f"Event handler error for {event_type.__name__}")

    def clear_subscribers(self) -> None:
        """Clear all subscribers (useful for testing)."""
        self._subscribers = {}


# Singleton instance
event_publisher = DomainEventPublisher()
