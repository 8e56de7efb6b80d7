"""Internal domain entities as TypedDicts for type safety at boundaries."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, TypedDict


class ProjectEntity(TypedDict):
    id: str
    name: str
    code: str
    description: str | None


class ModuleEntity(TypedDict):
    id: str
    project_id: str
    parent_id: str | None
    mod_code: str
    title: str
    description: str | None
    order: int


class UseCaseEntity(TypedDict):
    id: str
    project_id: str
    module_id: str
    uc_code: str
    title: str
    summary: str | None


class SequenceDiagramEntity(TypedDict):
    id: str
    project_id: str
    use_case_id: str
    sd_code: str
    title: str
    mermaid_src: str
    parse_status: str
    parse_error: str | None


class ApiContractEntity(TypedDict):
    id: str
    project_id: str
    api_code: str
    domain: str
    method: str
    endpoint: str
    title: str
    description: str | None
    request_spec: Dict[str, Any]
    response_spec: Dict[str, Any]


class DtoSchemaEntity(TypedDict):
    id: str
    project_id: str
    dto_code: str
    title: str
    kind: str
    schema: Dict[str, Any]


class ApiSequenceLinkEntity(TypedDict):
    id: str
    api_id: str
    sequence_id: str
    step_ref: str | None
    line_number: int | None


class ApiDtoLinkEntity(TypedDict):
    id: str
    api_id: str
    dto_id: str
    role: str


class CounterUsage(TypedDict):
    scope_type: str
    scope_ref1: str
    scope_ref2: str
    next_number: int


class ProjectGraph(TypedDict):
    """Read-only snapshot of everything the consistency rules look at."""
    project: ProjectEntity
    modules: List[ModuleEntity]
    use_cases: List[UseCaseEntity]
    sequences: List[SequenceDiagramEntity]
    apis: List[ApiContractEntity]
    dtos: List[DtoSchemaEntity]
    api_sequence_links: List[ApiSequenceLinkEntity]
    api_dto_links: List[ApiDtoLinkEntity]


class ScopeType(str, Enum):
    """Artifact kinds that own a counter sequence."""
    MODULE = "MODULE"
    USE_CASE = "USE_CASE"
    SEQUENCE = "SEQUENCE"
    API = "API"
    DTO = "DTO"


class ParseStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


class DtoKind(str, Enum):
    REQUEST = "request"
    RESPONSE = "response"


class LinkRole(str, Enum):
    REQ = "req"
    RES = "res"


# Roles and the DTO kind each one requires
ROLE_KINDS = {
    LinkRole.REQ: DtoKind.REQUEST,
    LinkRole.RES: DtoKind.RESPONSE,
}

WRITE_METHODS = ("POST", "PUT", "PATCH")
