"""Specification pattern for reusable artifact filters."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Collection, Dict, Iterable, List, Set

from specgraph.domain.entities import WRITE_METHODS
from specgraph.domain.json_tree import is_blank_spec


class Specification(ABC):
    """Abstract base for specifications (query filters)."""

    @abstractmethod
    def is_satisfied_by(self, candidate: Dict[str, Any]) -> bool:
        """Check if candidate satisfies this specification."""
        pass

    def and_(self, other: Specification) -> Specification:
        """Combine with AND logic."""
        return AndSpecification(self, other)

    def or_(self, other: Specification) -> Specification:
        """Combine with OR logic."""
        return OrSpecification(self, other)

    def not_(self) -> Specification:
        """Negate this specification."""
        return NotSpecification(self)


class AndSpecification(Specification):
    """AND composite specification."""

    def __init__(self, left: Specification, right: Specification):
        self.left = left
        self.right = right

    def is_satisfied_by(self, candidate: Dict[str, Any]) -> bool:
        return self.left.is_satisfied_by(candidate) and self.right.is_satisfied_by(candidate)


class OrSpecification(Specification):
    """OR composite specification."""

    def __init__(self, left: Specification, right: Specification):
        self.left = left
        self.right = right

    def is_satisfied_by(self, candidate: Dict[str, Any]) -> bool:
        return self.left.is_satisfied_by(candidate) or self.right.is_satisfied_by(candidate)


class NotSpecification(Specification):
    """NOT specification."""

    def __init__(self, spec: Specification):
        self.spec = spec

    def is_satisfied_by(self, candidate: Dict[str, Any]) -> bool:
        return not self.spec.is_satisfied_by(candidate)


# Membership

class IdIn(Specification):
    """Artifacts whose ID is in a given set (e.g. the IDs referenced by links)."""

    def __init__(self, ids: Iterable[str]):
        self.ids: Set[str] = set(ids)

    def is_satisfied_by(self, candidate: Dict[str, Any]) -> bool:
        return candidate.get("id") in self.ids


# API contract specifications

class ApiWithMethod(Specification):
    """Contracts using one of the given HTTP methods."""

    def __init__(self, methods: Collection[str]):
        self.methods = {method.upper() for method in methods}

    def is_satisfied_by(self, api: Dict[str, Any]) -> bool:
        return (api.get("method") or "").upper() in self.methods


class ApiWithWriteMethod(ApiWithMethod):
    """POST, PUT and PATCH contracts; these are expected to carry a request body."""

    def __init__(self):
        super().__init__(WRITE_METHODS)


class ApiHasDescription(Specification):

    def is_satisfied_by(self, api: Dict[str, Any]) -> bool:
        return bool(api.get("description"))


class ApiHasSpec(Specification):
    """Contracts whose request_spec or response_spec carries content."""

    def __init__(self, field_name: str):
        self.field_name = field_name

    def is_satisfied_by(self, api: Dict[str, Any]) -> bool:
        return not is_blank_spec(api.get(self.field_name))


class ApiHasDtoRole(Specification):
    """Contracts linked to at least one DTO in the given role."""

    def __init__(self, dto_links: Iterable[Dict[str, Any]], role: str):
        self.api_ids = {link["api_id"] for link in dto_links if link["role"] == role}

    def is_satisfied_by(self, api: Dict[str, Any]) -> bool:
        return api.get("id") in self.api_ids


# Sequence diagram specifications

class SequenceWithStatus(Specification):

    def __init__(self, status: str):
        self.status = status

    def is_satisfied_by(self, sequence: Dict[str, Any]) -> bool:
        return sequence.get("parse_status") == self.status


# Helper function to filter collections

def filter_by_specification(items: List[Dict[str, Any]], spec: Specification) -> List[Dict[str, Any]]:
    """Filter a collection using a specification."""
    return [item for item in items if spec.is_satisfied_by(item)]
