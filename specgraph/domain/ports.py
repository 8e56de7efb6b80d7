"""Ports the engine needs from the persistence collaborator."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from specgraph.domain.entities import (
    ApiContractEntity,
    ApiDtoLinkEntity,
    ApiSequenceLinkEntity,
    CounterUsage,
    DtoSchemaEntity,
    ModuleEntity,
    ProjectEntity,
    ProjectGraph,
    SequenceDiagramEntity,
    UseCaseEntity,
)


class CounterStore(Protocol):
    """Atomic increment-or-create over SeqCounter rows."""

    def increment_or_create(
        self, project_id: str, scope_type: str, scope_ref1: str, scope_ref2: str
    ) -> int:
        """
        Allocate the next number for a scope key.

        Returns 1 and stores next_number=2 when the counter does not exist yet.
        Raises CounterConflict on a write conflict that is safe to retry.
        """
        ...

    def list_counters(self, project_id: str) -> List[CounterUsage]:
        ...


class StoragePort(Protocol):
    """Read/write access to project artifacts."""

    # Projects
    def create_project(self, name: str, code: str, description: str | None = None) -> ProjectEntity:
        ...

    def get_project(self, project_id: str) -> Optional[ProjectEntity]:
        ...

    # Modules and use cases
    def create_module(
        self,
        project_id: str,
        mod_code: str,
        title: str,
        parent_id: str | None = None,
        description: str | None = None,
        order: int = 0,
    ) -> ModuleEntity:
        ...

    def get_module(self, module_id: str) -> Optional[ModuleEntity]:
        ...

    def get_project_modules(self, project_id: str) -> List[ModuleEntity]:
        ...

    def set_module_parent(self, module_id: str, parent_id: str | None) -> Optional[ModuleEntity]:
        ...

    def count_module_children(self, module_id: str) -> int:
        ...

    def count_module_use_cases(self, module_id: str) -> int:
        ...

    def delete_module(self, module_id: str) -> bool:
        ...

    def create_use_case(
        self, project_id: str, module_id: str, uc_code: str, title: str, summary: str | None = None
    ) -> UseCaseEntity:
        ...

    def get_use_case(self, use_case_id: str) -> Optional[UseCaseEntity]:
        ...

    def delete_use_case(self, use_case_id: str) -> bool:
        ...

    # Sequence diagrams
    def create_sequence(
        self,
        project_id: str,
        use_case_id: str,
        sd_code: str,
        title: str,
        mermaid_src: str = "",
        parse_status: str = "pending",
        parse_error: str | None = None,
    ) -> SequenceDiagramEntity:
        ...

    def get_sequence(self, sequence_id: str) -> Optional[SequenceDiagramEntity]:
        ...

    def count_use_case_sequences(self, use_case_id: str) -> int:
        ...

    def update_sequence_source(
        self, sequence_id: str, mermaid_src: str, parse_status: str, parse_error: str | None
    ) -> Optional[SequenceDiagramEntity]:
        ...

    def delete_sequence(self, sequence_id: str) -> bool:
        ...

    # API contracts and DTOs
    def create_api(
        self,
        project_id: str,
        api_code: str,
        domain: str,
        method: str,
        endpoint: str,
        title: str,
        description: str | None = None,
        request_spec: Dict[str, Any] | None = None,
        response_spec: Dict[str, Any] | None = None,
        status_codes: Dict[str, Any] | None = None,
    ) -> ApiContractEntity:
        ...

    def get_api(self, api_id: str) -> Optional[ApiContractEntity]:
        ...

    def get_project_apis(self, project_id: str) -> List[ApiContractEntity]:
        ...

    def find_apis(self, project_id: str, method: str, endpoint: str) -> List[ApiContractEntity]:
        ...

    def delete_api(self, api_id: str) -> bool:
        ...

    def create_dto(
        self, project_id: str, dto_code: str, title: str, kind: str, schema: Dict[str, Any] | None = None
    ) -> DtoSchemaEntity:
        ...

    def get_dto(self, dto_id: str) -> Optional[DtoSchemaEntity]:
        ...

    def delete_dto(self, dto_id: str) -> bool:
        ...

    # Links
    def create_api_sequence_link(
        self,
        api_id: str,
        sequence_id: str,
        step_ref: str | None = None,
        line_number: int | None = None,
    ) -> ApiSequenceLinkEntity:
        """Raises ConflictError when (api, sequence, step_ref) already exists."""
        ...

    def create_api_dto_link(self, api_id: str, dto_id: str, role: str) -> ApiDtoLinkEntity:
        """Raises ConflictError when (api, dto, role) already exists."""
        ...

    def get_sequence_links(self, sequence_id: str) -> List[ApiSequenceLinkEntity]:
        ...

    def count_dto_links(self, dto_id: str) -> int:
        ...

    def load_project_graph(self, project_id: str) -> Optional[ProjectGraph]:
        """Everything the consistency rules read, or None for an unknown project."""
        ...
