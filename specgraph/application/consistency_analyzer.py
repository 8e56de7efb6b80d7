"""
Consistency analyzer - runs the integrity rule battery over a project.

Every rule is a pure function of a ProjectGraph snapshot returning a list of
issues. Rules never short-circuit each other; the analyzer loads the
snapshot once, runs all of them and concatenates the results.
"""
from __future__ import annotations

import logging
import time
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from specgraph.diagram.parser import parse_diagram
from specgraph.domain.endpoint_matcher import compile_template, strip_path_params
from specgraph.domain.entities import (
    ApiContractEntity,
    LinkRole,
    ModuleEntity,
    ParseStatus,
    ProjectGraph,
)
from specgraph.domain.errors import AnalysisError, DomainError, NotFoundError
from specgraph.domain.events import ConsistencyChecked, event_publisher
from specgraph.domain.ports import StoragePort
from specgraph.domain.specifications import (
    ApiHasDescription,
    ApiHasDtoRole,
    ApiHasSpec,
    ApiWithWriteMethod,
    IdIn,
    SequenceWithStatus,
    filter_by_specification,
)
from specgraph.schemas.report import (
    ConsistencyIssue,
    ConsistencyReport,
    ReportStatistics,
    ResourceRef,
    RuleInfo,
)

logger = logging.getLogger(__name__)

Rule = Callable[[ProjectGraph], List[ConsistencyIssue]]

# Resource type -> entity field holding its allocated code
CODE_FIELDS = {
    "module": "mod_code",
    "useCase": "uc_code",
    "sequence": "sd_code",
    "api": "api_code",
    "dto": "dto_code",
}


def _resource(resource_type: str, artifact: Dict[str, Any]) -> ResourceRef:
    return ResourceRef(
        type=resource_type,
        id=artifact["id"],
        code=artifact.get(CODE_FIELDS[resource_type]),
        title=artifact.get("title"),
    )


def _issue(issue_type: str, severity: str, resource_type: str, artifact: Dict[str, Any],
           message: str, suggestion: str, details: Optional[Dict[str, Any]] = None) -> ConsistencyIssue:
    return ConsistencyIssue(
        type=issue_type,
        severity=severity,
        resource=_resource(resource_type, artifact),
        message=message,
        details=details,
        suggestion=suggestion,
    )


def check_orphaned_resources(graph: ProjectGraph) -> List[ConsistencyIssue]:
    """Modules without use cases, use cases without diagrams, unlinked APIs and DTOs."""
    issues = []

    modules_with_use_cases = IdIn(use_case["module_id"] for use_case in graph["use_cases"])
    for module in filter_by_specification(graph["modules"], modules_with_use_cases.not_()):
        issues.append(_issue(
            "orphaned-resource", "warning", "module", module,
            "Module has no use cases",
            "Consider adding use cases or removing the module",
        ))

    use_cases_with_sequences = IdIn(sequence["use_case_id"] for sequence in graph["sequences"])
    for use_case in filter_by_specification(graph["use_cases"], use_cases_with_sequences.not_()):
        issues.append(_issue(
            "orphaned-resource", "info", "useCase", use_case,
            "Use case has no sequence diagrams",
            "Add sequence diagrams to document the flow",
        ))

    linked_apis = IdIn(link["api_id"] for link in graph["api_sequence_links"])
    for api in filter_by_specification(graph["apis"], linked_apis.not_()):
        issues.append(_issue(
            "orphaned-resource", "warning", "api", api,
            "API is not referenced in any sequence diagram",
            "Link the API to relevant sequence diagrams or remove if unused",
        ))

    used_dtos = IdIn(link["dto_id"] for link in graph["api_dto_links"])
    for dto in filter_by_specification(graph["dtos"], used_dtos.not_()):
        issues.append(_issue(
            "orphaned-resource", "warning", "dto", dto,
            "DTO is not used by any API",
            "Link the DTO to relevant APIs or remove if unused",
        ))

    return issues


def check_sequence_parsing(graph: ProjectGraph) -> List[ConsistencyIssue]:
    failed = filter_by_specification(graph["sequences"], SequenceWithStatus(ParseStatus.ERROR.value))
    return [
        _issue(
            "sequence-parsing", "error", "sequence", sequence,
            "Sequence diagram has parsing errors",
            "Fix the Mermaid syntax in the sequence diagram",
            details={"parseError": sequence["parse_error"]},
        )
        for sequence in failed
    ]


def _covers(api: ApiContractEntity, method: str, path: str) -> bool:
    """
    True when a linked contract accounts for a call written in the diagram.

    Besides the substring match of the param-stripped call path inside the
    contract endpoint, a call is also covered when both stripped paths are
    equal or when the endpoint template matches the call path, so a concrete
    `GET /users/42` is covered by a linked `GET /users/{id}`.
    """
    if api["method"].upper() != method:
        return False
    stripped = strip_path_params(path)
    if stripped in api["endpoint"]:
        return True
    return stripped == strip_path_params(api["endpoint"]) or compile_template(api["endpoint"]).test(path)


def check_api_sequence_consistency(graph: ProjectGraph) -> List[ConsistencyIssue]:
    """Calls in diagram source that none of the diagram's linked contracts account for."""
    issues = []
    apis = {api["id"]: api for api in graph["apis"]}
    linked: Dict[str, List[ApiContractEntity]] = defaultdict(list)
    for link in graph["api_sequence_links"]:
        if link["api_id"] in apis:
            linked[link["sequence_id"]].append(apis[link["api_id"]])

    for sequence in graph["sequences"]:
        result = parse_diagram(sequence["mermaid_src"])
        for call in result.api_calls:
            if any(_covers(api, call.method, call.path) for api in linked[sequence["id"]]):
                continue
            issues.append(_issue(
                "api-sequence-consistency", "warning", "sequence", sequence,
                f'API call "{call.method} {call.path}" in sequence diagram has no corresponding API contract',
                "Create an API contract for this endpoint or update the sequence diagram",
                details={
                    "method": call.method,
                    "endpoint": call.path,
                    "lineNumber": call.line_number,
                },
            ))

    return issues


def check_dto_usage(graph: ProjectGraph) -> List[ConsistencyIssue]:
    issues = []
    has_request_dto = ApiHasDtoRole(graph["api_dto_links"], LinkRole.REQ.value)
    has_response_dto = ApiHasDtoRole(graph["api_dto_links"], LinkRole.RES.value)

    for api in filter_by_specification(graph["apis"], ApiWithWriteMethod().and_(has_request_dto.not_())):
        issues.append(_issue(
            "dto-usage", "info", "api", api,
            f"{api['method']} API has no request DTO defined",
            "Consider defining a request DTO for this API",
        ))

    for api in filter_by_specification(graph["apis"], has_response_dto.not_()):
        issues.append(_issue(
            "dto-usage", "info", "api", api,
            "API has no response DTO defined",
            "Consider defining a response DTO for this API",
        ))

    return issues


def _walk_for_cycle(start: str, children: Dict[str, List[str]], visited: set) -> Optional[List[str]]:
    """
    Depth-first walk below `start` with an explicit stack.

    Returns the module IDs forming the first cycle met, closing node first,
    or None. `visited` is shared across walks; the on-stack set is per walk.
    """
    on_stack = {start}
    visited.add(start)
    stack: List[Tuple[str, Iterator[str]]] = [(start, iter(children.get(start, ())))]
    while stack:
        node, pending = stack[-1]
        child = next(pending, None)
        if child is None:
            stack.pop()
            on_stack.discard(node)
            continue
        if child in on_stack:
            path = [entry for entry, _ in stack]
            return path[path.index(child):]
        if child not in visited:
            visited.add(child)
            on_stack.add(child)
            stack.append((child, iter(children.get(child, ()))))
    return None


def find_module_cycles(modules: List[ModuleEntity]) -> List[Tuple[ModuleEntity, List[ModuleEntity]]]:
    """
    Cycles in the parent/child relation as (reported module, cycle members).

    Walks start from every root first, then from modules no root reaches:
    with a single parent pointer per module a cycle can never hang below a
    root, so the second pass is what finds A -> B -> C -> A chains.
    """
    by_id = {module["id"]: module for module in modules}
    children: Dict[str, List[str]] = defaultdict(list)
    for module in modules:
        if module["parent_id"] in by_id:
            children[module["parent_id"]].append(module["id"])

    roots = [module for module in modules if module["parent_id"] not in by_id]
    root_ids = {module["id"] for module in roots}
    rest = [module for module in modules if module["id"] not in root_ids]

    visited: set = set()
    cycles = []
    for module in roots + rest:
        if module["id"] in visited:
            continue
        cycle = _walk_for_cycle(module["id"], children, visited)
        if cycle is None:
            continue
        reported = module if module["id"] in root_ids else by_id[cycle[0]]
        cycles.append((reported, [by_id[member] for member in cycle]))
    return cycles


def check_module_hierarchy(graph: ProjectGraph) -> List[ConsistencyIssue]:
    return [
        _issue(
            "module-hierarchy", "error", "module", module,
            "Module hierarchy contains circular dependency",
            "Review and fix the parent-child relationships",
            details={"cycle": [member["mod_code"] for member in members]},
        )
        for module, members in find_module_cycles(graph["modules"])
    ]


def check_duplicate_names(graph: ProjectGraph) -> List[ConsistencyIssue]:
    """Every contract sharing its (method, endpoint) with another is an error."""
    issues = []
    by_endpoint: Dict[str, List[ApiContractEntity]] = defaultdict(list)
    for api in graph["apis"]:
        by_endpoint[f"{api['method']} {api['endpoint']}"].append(api)

    for endpoint, apis in by_endpoint.items():
        if len(apis) < 2:
            continue
        duplicates = [{"id": api["id"], "code": api["api_code"]} for api in apis]
        for api in apis:
            issues.append(_issue(
                "duplicate-names", "error", "api", api,
                f"Duplicate API endpoint: {endpoint}",
                "Each API endpoint should be unique within the project",
                details={"duplicates": duplicates},
            ))

    return issues


def check_missing_links(graph: ProjectGraph) -> List[ConsistencyIssue]:
    spec = ApiHasSpec("request_spec").and_(
        ApiHasDtoRole(graph["api_dto_links"], LinkRole.REQ.value).not_()
    )
    return [
        _issue(
            "missing-links", "info", "api", api,
            "API has request specification but no linked request DTO",
            "Create and link a request DTO based on the specification",
        )
        for api in filter_by_specification(graph["apis"], spec)
    ]


def check_api_spec_completeness(graph: ProjectGraph) -> List[ConsistencyIssue]:
    issues = []
    has_description = ApiHasDescription()
    has_request_spec = ApiHasSpec("request_spec")
    has_response_spec = ApiHasSpec("response_spec")
    write_method = ApiWithWriteMethod()

    for api in graph["apis"]:
        if not has_description.is_satisfied_by(api):
            issues.append(_issue(
                "api-spec-completeness", "info", "api", api,
                "API has no description",
                "Add a description to document the API purpose",
            ))
        if write_method.is_satisfied_by(api) and not has_request_spec.is_satisfied_by(api):
            issues.append(_issue(
                "api-spec-completeness", "warning", "api", api,
                f"{api['method']} API has no request specification",
                "Define the request body structure",
            ))
        if not has_response_spec.is_satisfied_by(api):
            issues.append(_issue(
                "api-spec-completeness", "info", "api", api,
                "API has no response specification",
                "Define the response structure",
            ))

    return issues


RULES: List[Tuple[RuleInfo, Rule]] = [
    (RuleInfo(id="orphaned-resources", name="Orphaned Resources",
              description="Check for resources without proper relationships", severity="warning"),
     check_orphaned_resources),
    (RuleInfo(id="sequence-parsing", name="Sequence Diagram Parsing",
              description="Check for sequence diagrams with parsing errors", severity="error"),
     check_sequence_parsing),
    (RuleInfo(id="api-sequence-consistency", name="API-Sequence Consistency",
              description="Verify API calls in sequences have corresponding contracts", severity="warning"),
     check_api_sequence_consistency),
    (RuleInfo(id="dto-usage", name="DTO Usage",
              description="Check for proper DTO definitions and usage", severity="info"),
     check_dto_usage),
    (RuleInfo(id="module-hierarchy", name="Module Hierarchy",
              description="Check for circular dependencies in module structure", severity="error"),
     check_module_hierarchy),
    (RuleInfo(id="duplicate-names", name="Duplicate Names",
              description="Check for duplicate endpoints and names", severity="error"),
     check_duplicate_names),
    (RuleInfo(id="missing-links", name="Missing Links",
              description="Check for missing relationships between resources", severity="info"),
     check_missing_links),
    (RuleInfo(id="api-spec-completeness", name="API Specification Completeness",
              description="Check for complete API specifications", severity="info"),
     check_api_spec_completeness),
]


def run_rules(graph: ProjectGraph) -> List[ConsistencyIssue]:
    """Run every rule over a snapshot and concatenate their issues."""
    issues: List[ConsistencyIssue] = []
    for _, rule in RULES:
        issues.extend(rule(graph))
    return issues


def count_resources(graph: ProjectGraph) -> int:
    return sum(len(graph[kind]) for kind in ("modules", "use_cases", "sequences", "apis", "dtos"))


class ConsistencyAnalyzer:
    """Checks a project's artifact graph and reports integrity issues."""

    def __init__(self, storage: StoragePort) -> None:
        self._storage = storage

    def check_project(self, project_id: str) -> ConsistencyReport:
        """
        Run all rules over the current state of a project.

        Issues are data: a project full of problems still yields a report.

        Raises:
            NotFoundError: If the project does not exist
            AnalysisError: If the project graph could not be read or a rule failed
        """
        try:
            graph = self._storage.load_project_graph(project_id)
        except DomainError:
            raise
        except Exception as exc:
            logger.error(f"Consistency check failed for project {project_id}: {exc}")
            raise AnalysisError("Consistency check failed") from exc

        if graph is None:
            raise NotFoundError(f"Project with ID {project_id} not found")

        try:
            issues = run_rules(graph)
        except Exception as exc:
            logger.error(f"Consistency rules failed for project {project_id}: {exc}")
            raise AnalysisError("Consistency check failed") from exc

        statistics = ReportStatistics(
            total_issues=len(issues),
            errors=sum(1 for issue in issues if issue.severity == "error"),
            warnings=sum(1 for issue in issues if issue.severity == "warning"),
            info=sum(1 for issue in issues if issue.severity == "info"),
            checked_resources=count_resources(graph),
        )
        report = ConsistencyReport(
            id=f"report-{int(time.time() * 1000)}",
            project_id=project_id,
            project_name=graph["project"]["name"],
            check_time=datetime.now(timezone.utc),
            issues=issues,
            statistics=statistics,
            rules=[info.id for info, _ in RULES],
        )

        logger.info(f"Consistency check completed for project {project_id}: {len(issues)} issues found")
        event_publisher.publish(ConsistencyChecked(
            event_id="",
            timestamp=None,
            aggregate_id=project_id,
            project_id=project_id,
            total_issues=statistics.total_issues,
            errors=statistics.errors,
        ))
        return report

    @staticmethod
    def rules() -> List[RuleInfo]:
        """Describe the rules every check runs."""
        return [info for info, _ in RULES]

    run_rules = staticmethod(run_rules)
