"""
Artifact lifecycle service.

Every create path takes its code from the CodeAllocator before anything is
written, diagram source goes through the parser before it is stored, and
deleting a parent that still has children is refused rather than cascaded.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from specgraph import config
from specgraph.application.code_allocator import CodeAllocator, generate_project_code, normalize_domain
from specgraph.application.contract_validation_service import ContractValidationService
from specgraph.diagram.parser import analyze_diagram, format_diagram
from specgraph.domain.entities import (
    ApiContractEntity,
    ApiDtoLinkEntity,
    ApiSequenceLinkEntity,
    DtoSchemaEntity,
    ModuleEntity,
    ProjectEntity,
    SequenceDiagramEntity,
    UseCaseEntity,
)
from specgraph.domain.errors import ConflictError, NotFoundError, ValidationError
from specgraph.domain.events import (
    ArtifactCreated,
    ArtifactDeleted,
    SequenceDiagramParsed,
    event_publisher,
)
from specgraph.domain.ports import StoragePort
from specgraph.domain.type_declarations import render_interface, validate_json_schema

logger = logging.getLogger(__name__)


class ArtifactService:
    """Creates, updates and deletes project artifacts."""

    def __init__(
        self,
        storage: StoragePort,
        allocator: CodeAllocator,
        validation: ContractValidationService | None = None,
    ) -> None:
        self._storage = storage
        self._allocator = allocator
        self._validation = validation or ContractValidationService(storage)

    # Lookups

    def _require_project(self, project_id: str) -> ProjectEntity:
        project = self._storage.get_project(project_id)
        if not project:
            raise NotFoundError(f"Project not found: {project_id}")
        return project

    def _require_module(self, module_id: str) -> ModuleEntity:
        module = self._storage.get_module(module_id)
        if not module:
            raise NotFoundError(f"Module not found: {module_id}")
        return module

    def _require_use_case(self, use_case_id: str) -> UseCaseEntity:
        use_case = self._storage.get_use_case(use_case_id)
        if not use_case:
            raise NotFoundError(f"Use case not found: {use_case_id}")
        return use_case

    def _require_sequence(self, sequence_id: str) -> SequenceDiagramEntity:
        sequence = self._storage.get_sequence(sequence_id)
        if not sequence:
            raise NotFoundError(f"Sequence diagram not found: {sequence_id}")
        return sequence

    def _require_api(self, api_id: str) -> ApiContractEntity:
        api = self._storage.get_api(api_id)
        if not api:
            raise NotFoundError(f"API contract not found: {api_id}")
        return api

    def _require_dto(self, dto_id: str) -> DtoSchemaEntity:
        dto = self._storage.get_dto(dto_id)
        if not dto:
            raise NotFoundError(f"DTO schema not found: {dto_id}")
        return dto

    def _created(self, project_id: str, artifact_type: str, artifact_id: str, code: str) -> None:
        event_publisher.publish(ArtifactCreated(
            event_id="",
            timestamp=None,
            aggregate_id=artifact_id,
            project_id=project_id,
            artifact_type=artifact_type,
            code=code,
        ))

    def _deleted(self, project_id: str, artifact_type: str, artifact_id: str) -> None:
        event_publisher.publish(ArtifactDeleted(
            event_id="",
            timestamp=None,
            aggregate_id=artifact_id,
            project_id=project_id,
            artifact_type=artifact_type,
        ))

    # Projects

    def create_project(self, name: str, description: str | None = None) -> ProjectEntity:
        name = self._validation.validate_title(name, "Project")
        project = self._storage.create_project(name, generate_project_code(name), description)
        self._created(project["id"], "project", project["id"], project["code"])
        return project

    # Modules

    def create_module(
        self,
        project_id: str,
        title: str,
        parent_id: str | None = None,
        description: str | None = None,
        order: int = 0,
    ) -> ModuleEntity:
        """
        Create a module, optionally below a parent module.

        Raises:
            NotFoundError: If the project or parent does not exist
            ValidationError: If the parent belongs to another project
        """
        self._require_project(project_id)
        title = self._validation.validate_title(title, "Module")
        if parent_id:
            parent = self._require_module(parent_id)
            if parent["project_id"] != project_id:
                raise ValidationError("Parent module does not belong to specified project")

        mod_code = self._allocator.allocate_module_code(project_id)
        module = self._storage.create_module(project_id, mod_code, title, parent_id, description, order)
        self._created(project_id, "module", module["id"], mod_code)
        return module

    def move_module(self, module_id: str, new_parent_id: str | None) -> ModuleEntity:
        """
        Re-parent a module; None makes it a root.

        Raises:
            ValidationError: If the move would make the module its own ancestor
        """
        module = self._require_module(module_id)
        if new_parent_id == module_id:
            raise ValidationError("Module cannot be its own parent")

        if new_parent_id:
            parent = self._require_module(new_parent_id)
            if parent["project_id"] != module["project_id"]:
                raise ValidationError("Parent module does not belong to the same project")

            # Walk up from the new parent; meeting the module means a cycle
            seen = set()
            current: Optional[ModuleEntity] = parent
            while current is not None and current["id"] not in seen:
                if current["id"] == module_id:
                    raise ValidationError("This change would create a circular dependency")
                seen.add(current["id"])
                current = self._storage.get_module(current["parent_id"]) if current["parent_id"] else None

        return self._storage.set_module_parent(module_id, new_parent_id)

    def delete_module(self, module_id: str) -> None:
        """
        Raises:
            ConflictError: If the module still has child modules or use cases
        """
        module = self._require_module(module_id)
        children = self._storage.count_module_children(module_id)
        if children:
            raise ConflictError(f"Cannot delete module {module['mod_code']}: it has {children} child modules")
        use_cases = self._storage.count_module_use_cases(module_id)
        if use_cases:
            raise ConflictError(f"Cannot delete module {module['mod_code']}: it has {use_cases} use cases")

        self._storage.delete_module(module_id)
        self._deleted(module["project_id"], "module", module_id)

    # Use cases

    def create_use_case(self, module_id: str, title: str, summary: str | None = None) -> UseCaseEntity:
        module = self._require_module(module_id)
        title = self._validation.validate_title(title, "Use case")
        project_id = module["project_id"]

        uc_code = self._allocator.allocate_use_case_code(project_id, module_id)
        use_case = self._storage.create_use_case(project_id, module_id, uc_code, title, summary)
        self._created(project_id, "useCase", use_case["id"], uc_code)
        return use_case

    def delete_use_case(self, use_case_id: str) -> None:
        use_case = self._require_use_case(use_case_id)
        sequences = self._storage.count_use_case_sequences(use_case_id)
        if sequences:
            raise ConflictError(
                f"Cannot delete use case {use_case['uc_code']}: it has {sequences} sequence diagrams"
            )

        self._storage.delete_use_case(use_case_id)
        self._deleted(use_case["project_id"], "useCase", use_case_id)

    # Sequence diagrams

    def _parsed(self, sequence: SequenceDiagramEntity, call_count: int) -> None:
        event_publisher.publish(SequenceDiagramParsed(
            event_id="",
            timestamp=None,
            aggregate_id=sequence["id"],
            project_id=sequence["project_id"],
            parse_status=sequence["parse_status"],
            parse_error=sequence["parse_error"],
            call_count=call_count,
        ))

    def create_sequence(self, use_case_id: str, title: str, mermaid_src: str = "") -> SequenceDiagramEntity:
        """
        Create a sequence diagram; its source is validated, parsed and
        re-indented before it is stored.
        """
        use_case = self._require_use_case(use_case_id)
        title = self._validation.validate_title(title, "Sequence diagram")
        project_id = use_case["project_id"]
        analysis = analyze_diagram(mermaid_src)

        sd_code = self._allocator.allocate_sequence_code(project_id)
        sequence = self._storage.create_sequence(
            project_id,
            use_case_id,
            sd_code,
            title,
            format_diagram(mermaid_src),
            analysis.parse_status.value,
            analysis.parse_error,
        )
        self._created(project_id, "sequence", sequence["id"], sd_code)
        self._parsed(sequence, len(analysis.result.calls))
        return sequence

    def update_sequence_source(self, sequence_id: str, mermaid_src: str) -> SequenceDiagramEntity:
        self._require_sequence(sequence_id)
        analysis = analyze_diagram(mermaid_src)
        sequence = self._storage.update_sequence_source(
            sequence_id,
            format_diagram(mermaid_src),
            analysis.parse_status.value,
            analysis.parse_error,
        )
        self._parsed(sequence, len(analysis.result.calls))
        return sequence

    def reparse_sequence(self, sequence_id: str) -> SequenceDiagramEntity:
        """Re-derive the stored parse status from the stored source."""
        sequence = self._require_sequence(sequence_id)
        return self.update_sequence_source(sequence_id, sequence["mermaid_src"])

    def delete_sequence(self, sequence_id: str) -> None:
        sequence = self._require_sequence(sequence_id)
        self._storage.delete_sequence(sequence_id)
        self._deleted(sequence["project_id"], "sequence", sequence_id)

    # API contracts

    def create_api(
        self,
        project_id: str,
        method: str,
        endpoint: str,
        title: str,
        domain: str | None = None,
        description: str | None = None,
        request_spec: Dict[str, Any] | None = None,
        response_spec: Dict[str, Any] | None = None,
        status_codes: Dict[str, Any] | None = None,
    ) -> ApiContractEntity:
        """
        Create an API contract.

        Raises:
            ValidationError: If method, endpoint or title is invalid
            ConflictError: If (method, endpoint) already exists in the project
        """
        self._require_project(project_id)
        method = self._validation.validate_method(method)
        endpoint = self._validation.validate_endpoint(endpoint)
        title = self._validation.validate_title(title)
        self._validation.check_duplicate_endpoint(project_id, method, endpoint)

        normalized = normalize_domain(domain)
        api_code = self._allocator.allocate_api_code(project_id, normalized)
        api = self._storage.create_api(
            project_id, api_code, normalized, method, endpoint, title, description,
            request_spec, response_spec, status_codes,
        )
        self._created(project_id, "api", api["id"], api_code)
        return api

    def delete_api(self, api_id: str) -> None:
        api = self._require_api(api_id)
        # Links go with the contract
        self._storage.delete_api(api_id)
        self._deleted(api["project_id"], "api", api_id)

    # DTO schemas

    def create_dto(
        self, project_id: str, title: str, kind: str, schema: Dict[str, Any] | None = None
    ) -> DtoSchemaEntity:
        """
        Create a DTO schema.

        Raises:
            ValidationError: If the kind is unknown or the schema is malformed
        """
        self._require_project(project_id)
        title = self._validation.validate_title(title, "DTO")
        kind = self._validation.validate_dto_kind(kind)
        if schema:
            validate_json_schema(schema, config.settings.MAX_JSON_SCHEMA_DEPTH)

        dto_code = self._allocator.allocate_dto_code(project_id, title)
        dto = self._storage.create_dto(project_id, dto_code, title, kind, schema)
        self._created(project_id, "dto", dto["id"], dto_code)
        return dto

    def delete_dto(self, dto_id: str) -> None:
        dto = self._require_dto(dto_id)
        if self._storage.count_dto_links(dto_id):
            raise ConflictError("Cannot delete DTO Schema that is linked to APIs")

        self._storage.delete_dto(dto_id)
        self._deleted(dto["project_id"], "dto", dto_id)

    def render_dto_type_declaration(self, dto_id: str) -> str:
        """TypeScript interface for a DTO, named after its title."""
        dto = self._require_dto(dto_id)
        return render_interface(dto["title"], dto["schema"] or {})

    # Links

    def link_api_dto(self, api_id: str, dto_id: str, role: str) -> ApiDtoLinkEntity:
        """
        Raises:
            ValidationError: If the DTO's kind does not fit the role, or the
                artifacts belong to different projects
            ConflictError: If the link already exists
        """
        api = self._require_api(api_id)
        dto = self._require_dto(dto_id)
        if api["project_id"] != dto["project_id"]:
            raise ValidationError("API and DTO must belong to the same project")
        role = self._validation.validate_link_role(role, dto["kind"])
        return self._storage.create_api_dto_link(api_id, dto_id, role)

    def link_api_sequence(
        self,
        api_id: str,
        sequence_id: str,
        step_ref: str | None = None,
        line_number: int | None = None,
    ) -> ApiSequenceLinkEntity:
        api = self._require_api(api_id)
        sequence = self._require_sequence(sequence_id)
        if api["project_id"] != sequence["project_id"]:
            raise ValidationError("API and sequence diagram must belong to the same project")
        return self._storage.create_api_sequence_link(api_id, sequence_id, step_ref, line_number)
