"""Service for API contract and DTO validation logic."""
from __future__ import annotations

from specgraph.diagram.parser import HTTP_METHODS
from specgraph.domain.entities import DtoKind, LinkRole, ROLE_KINDS
from specgraph.domain.errors import ValidationError, ConflictError
from specgraph.domain.ports import StoragePort


class ContractValidationService:
    """Validates API contract and DTO operations."""

    def __init__(self, storage: StoragePort) -> None:
        self._storage = storage

    def validate_title(self, title: str, kind: str = "API") -> str:
        """Validate and normalize an artifact title."""
        if not title or not title.strip():
            raise ValidationError(f"{kind} title is required and cannot be empty")
        return title.strip()

    def validate_method(self, method: str) -> str:
        """Validate and normalize an HTTP method."""
        normalized = (method or "").strip().upper()
        if normalized not in HTTP_METHODS:
            raise ValidationError(f"Unsupported HTTP method: {method}")
        return normalized

    def validate_endpoint(self, endpoint: str) -> str:
        """Endpoints are path templates starting with '/'."""
        if not endpoint or not endpoint.strip():
            raise ValidationError("API endpoint is required and cannot be empty")
        endpoint = endpoint.strip()
        if not endpoint.startswith("/"):
            raise ValidationError(f"API endpoint must start with '/': {endpoint}")
        if any(char.isspace() for char in endpoint):
            raise ValidationError(f"API endpoint cannot contain whitespace: {endpoint}")
        return endpoint

    def check_duplicate_endpoint(
        self, project_id: str, method: str, endpoint: str, exclude_id: str | None = None
    ) -> None:
        """Check if (method, endpoint) already exists in project."""
        for api in self._storage.find_apis(project_id, method, endpoint):
            if exclude_id is None or api["id"] != exclude_id:
                raise ConflictError(f"API {method} {endpoint} already exists in this project")

    def validate_dto_kind(self, kind: str) -> str:
        try:
            return DtoKind(kind).value
        except ValueError as exc:
            raise ValidationError(f"DTO kind must be 'request' or 'response', got '{kind}'") from exc

    def validate_link_role(self, role: str, dto_kind: str) -> str:
        """Role `req` needs a request DTO and `res` a response DTO."""
        try:
            link_role = LinkRole(role)
        except ValueError as exc:
            raise ValidationError(f"Link role must be 'req' or 'res', got '{role}'") from exc
        if ROLE_KINDS[link_role].value != dto_kind:
            raise ValidationError(f"DTO kind '{dto_kind}' does not match role '{role}'")
        return link_role.value
