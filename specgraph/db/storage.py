"""
SQLAlchemy storage - composed façade delegating to per-aggregate repositories.

Rows are handed out as the TypedDict entities of specgraph.domain.entities so
that application services never hold ORM instances.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from specgraph.db.models import (
    ApiContract,
    ApiDtoLink,
    ApiSequenceLink,
    DtoSchema,
    Module,
    Project,
    SequenceDiagram,
    UseCase,
)
from specgraph.db.repositories import (
    ApiContractRepository,
    CounterRepository,
    DtoSchemaRepository,
    LinkRepository,
    ModuleRepository,
    ProjectRepository,
    SequenceRepository,
)
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


def _project(row: Project) -> ProjectEntity:
    return ProjectEntity(id=row.id, name=row.name, code=row.code, description=row.description)


def _module(row: Module) -> ModuleEntity:
    return ModuleEntity(
        id=row.id,
        project_id=row.project_id,
        parent_id=row.parent_id,
        mod_code=row.mod_code,
        title=row.title,
        description=row.description,
        order=row.order or 0,
    )


def _use_case(row: UseCase) -> UseCaseEntity:
    return UseCaseEntity(
        id=row.id,
        project_id=row.project_id,
        module_id=row.module_id,
        uc_code=row.uc_code,
        title=row.title,
        summary=row.summary,
    )


def _sequence(row: SequenceDiagram) -> SequenceDiagramEntity:
    return SequenceDiagramEntity(
        id=row.id,
        project_id=row.project_id,
        use_case_id=row.use_case_id,
        sd_code=row.sd_code,
        title=row.title,
        mermaid_src=row.mermaid_src or "",
        parse_status=row.parse_status,
        parse_error=row.parse_error,
    )


def _api(row: ApiContract) -> ApiContractEntity:
    return ApiContractEntity(
        id=row.id,
        project_id=row.project_id,
        api_code=row.api_code,
        domain=row.domain,
        method=row.method,
        endpoint=row.endpoint,
        title=row.title,
        description=row.description,
        request_spec=row.request_spec,
        response_spec=row.response_spec,
    )


def _dto(row: DtoSchema) -> DtoSchemaEntity:
    return DtoSchemaEntity(
        id=row.id,
        project_id=row.project_id,
        dto_code=row.dto_code,
        title=row.title,
        kind=row.kind,
        schema=row.schema,
    )


def _sequence_link(row: ApiSequenceLink) -> ApiSequenceLinkEntity:
    return ApiSequenceLinkEntity(
        id=row.id,
        api_id=row.api_id,
        sequence_id=row.sequence_id,
        step_ref=row.step_ref,
        line_number=row.line_number,
    )


def _dto_link(row: ApiDtoLink) -> ApiDtoLinkEntity:
    return ApiDtoLinkEntity(id=row.id, api_id=row.api_id, dto_id=row.dto_id, role=row.role)


def _optional(row, convert):
    return convert(row) if row is not None else None


class SqlAlchemyStorage:
    """Relational storage for projects and their artifacts, composed of repositories."""

    def __init__(self, db: Session, isolation_level: str | None = None):
        self.db = db

        # Compose repositories
        self._projects = ProjectRepository(db)
        self._modules = ModuleRepository(db)
        self._sequences = SequenceRepository(db)
        self._apis = ApiContractRepository(db)
        self._dtos = DtoSchemaRepository(db)
        self._links = LinkRepository(db)
        self._counters = CounterRepository.for_session(db, isolation_level)

    # Counter operations
    def increment_or_create(self, project_id: str, scope_type: str,
                            scope_ref1: str = "", scope_ref2: str = "") -> int:
        return self._counters.increment_or_create(project_id, scope_type, scope_ref1, scope_ref2)

    def list_counters(self, project_id: str) -> List[CounterUsage]:
        return self._counters.list_counters(project_id)

    # Project operations
    def create_project(self, name: str, code: str, description: str = None) -> ProjectEntity:
        return _project(self._projects.create_project(name, code, description))

    def get_project(self, project_id: str) -> Optional[ProjectEntity]:
        return _optional(self._projects.get_project(project_id), _project)

    # Module operations
    def create_module(self, project_id: str, mod_code: str, title: str, parent_id: str = None,
                      description: str = None, order: int = 0) -> ModuleEntity:
        return _module(self._modules.create_module(
            project_id, mod_code, title, parent_id, description, order
        ))

    def get_module(self, module_id: str) -> Optional[ModuleEntity]:
        return _optional(self._modules.get_module(module_id), _module)

    def get_project_modules(self, project_id: str) -> List[ModuleEntity]:
        return [_module(row) for row in self._modules.get_project_modules(project_id)]

    def set_module_parent(self, module_id: str, parent_id: Optional[str]) -> Optional[ModuleEntity]:
        return _optional(self._modules.set_parent(module_id, parent_id), _module)

    def count_module_children(self, module_id: str) -> int:
        return self._modules.count_children(module_id)

    def count_module_use_cases(self, module_id: str) -> int:
        return self._modules.count_use_cases(module_id)

    def delete_module(self, module_id: str) -> bool:
        return self._modules.delete_module(module_id)

    # Use case operations
    def create_use_case(self, project_id: str, module_id: str, uc_code: str, title: str,
                        summary: str = None) -> UseCaseEntity:
        return _use_case(self._modules.create_use_case(project_id, module_id, uc_code, title, summary))

    def get_use_case(self, use_case_id: str) -> Optional[UseCaseEntity]:
        return _optional(self._modules.get_use_case(use_case_id), _use_case)

    def delete_use_case(self, use_case_id: str) -> bool:
        return self._modules.delete_use_case(use_case_id)

    # Sequence diagram operations
    def create_sequence(self, project_id: str, use_case_id: str, sd_code: str, title: str,
                        mermaid_src: str = "", parse_status: str = "pending",
                        parse_error: str = None) -> SequenceDiagramEntity:
        return _sequence(self._sequences.create_sequence(
            project_id, use_case_id, sd_code, title, mermaid_src, parse_status, parse_error
        ))

    def get_sequence(self, sequence_id: str) -> Optional[SequenceDiagramEntity]:
        return _optional(self._sequences.get_sequence(sequence_id), _sequence)

    def count_use_case_sequences(self, use_case_id: str) -> int:
        return self._sequences.count_for_use_case(use_case_id)

    def update_sequence_source(self, sequence_id: str, mermaid_src: str, parse_status: str,
                               parse_error: Optional[str]) -> Optional[SequenceDiagramEntity]:
        return _optional(
            self._sequences.update_source(sequence_id, mermaid_src, parse_status, parse_error),
            _sequence,
        )

    def delete_sequence(self, sequence_id: str) -> bool:
        return self._sequences.delete_sequence(sequence_id)

    # API contract operations
    def create_api(self, project_id: str, api_code: str, domain: str, method: str, endpoint: str,
                   title: str, description: str = None, request_spec: Dict[str, Any] = None,
                   response_spec: Dict[str, Any] = None,
                   status_codes: Dict[str, Any] = None) -> ApiContractEntity:
        return _api(self._apis.create_contract(
            project_id, api_code, domain, method, endpoint, title, description,
            request_spec, response_spec, status_codes,
        ))

    def get_api(self, api_id: str) -> Optional[ApiContractEntity]:
        return _optional(self._apis.get_contract(api_id), _api)

    def get_project_apis(self, project_id: str) -> List[ApiContractEntity]:
        return [_api(row) for row in self._apis.get_project_contracts(project_id)]

    def find_apis(self, project_id: str, method: str, endpoint: str) -> List[ApiContractEntity]:
        return [_api(row) for row in self._apis.find_by_method_endpoint(project_id, method, endpoint)]

    def delete_api(self, api_id: str) -> bool:
        return self._apis.delete_contract(api_id)

    # DTO operations
    def create_dto(self, project_id: str, dto_code: str, title: str, kind: str,
                   schema: Dict[str, Any] = None) -> DtoSchemaEntity:
        return _dto(self._dtos.create_dto(project_id, dto_code, title, kind, schema))

    def get_dto(self, dto_id: str) -> Optional[DtoSchemaEntity]:
        return _optional(self._dtos.get_dto(dto_id), _dto)

    def delete_dto(self, dto_id: str) -> bool:
        return self._dtos.delete_dto(dto_id)

    # Link operations
    def create_api_sequence_link(self, api_id: str, sequence_id: str, step_ref: str = None,
                                 line_number: int = None) -> ApiSequenceLinkEntity:
        return _sequence_link(self._links.create_sequence_link(api_id, sequence_id, step_ref, line_number))

    def create_api_dto_link(self, api_id: str, dto_id: str, role: str) -> ApiDtoLinkEntity:
        return _dto_link(self._links.create_dto_link(api_id, dto_id, role))

    def get_sequence_links(self, sequence_id: str) -> List[ApiSequenceLinkEntity]:
        return [_sequence_link(row) for row in self._links.get_sequence_links(sequence_id)]

    def count_dto_links(self, dto_id: str) -> int:
        return self._links.count_dto_links(dto_id)

    # Snapshot for consistency checks
    def load_project_graph(self, project_id: str) -> Optional[ProjectGraph]:
        project = self.get_project(project_id)
        if not project:
            return None

        return ProjectGraph(
            project=project,
            modules=self.get_project_modules(project_id),
            use_cases=[_use_case(row) for row in self._modules.get_project_use_cases(project_id)],
            sequences=[_sequence(row) for row in self._sequences.get_project_sequences(project_id)],
            apis=self.get_project_apis(project_id),
            dtos=[_dto(row) for row in self._dtos.get_project_dtos(project_id)],
            api_sequence_links=[
                _sequence_link(row) for row in self._links.get_project_sequence_links(project_id)
            ],
            api_dto_links=[_dto_link(row) for row in self._links.get_project_dto_links(project_id)],
        )
