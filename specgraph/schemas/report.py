"""
Consistency Report Schemas using Pydantic.

Structure of the integrity report handed back to callers of the analyzer.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime

Severity = Literal["error", "warning", "info"]

class ResourceRef(BaseModel):
    type: str = Field(..., description="Artifact kind (module, useCase, sequence, api, dto)")
    id: str = Field(..., description="ID of the artifact")
    code: Optional[str] = Field(None, description="Allocated artifact code")
    title: Optional[str] = Field(None, description="Artifact title")

class ConsistencyIssue(BaseModel):
    type: str = Field(..., description="Identifier of the rule that raised the issue")
    severity: Severity = Field(..., description="error, warning or info")
    resource: ResourceRef = Field(..., description="Artifact the issue is about")
    message: str = Field(..., description="Human-readable summary")
    details: Optional[Dict[str, Any]] = Field(None, description="Rule-specific context")
    suggestion: Optional[str] = Field(None, description="Suggested remedy")

    def key(self) -> tuple:
        """Identity of an issue for set-wise comparison between runs."""
        return (self.type, self.resource.id)

class ReportStatistics(BaseModel):
    total_issues: int = Field(0, description="Number of issues found")
    errors: int = Field(0, description="Issues with error severity")
    warnings: int = Field(0, description="Issues with warning severity")
    info: int = Field(0, description="Issues with info severity")
    checked_resources: int = Field(0, description="Modules, use cases, diagrams, APIs and DTOs inspected")

class ConsistencyReport(BaseModel):
    id: str = Field(..., description="Report identifier")
    project_id: str = Field(..., description="ID of the checked project")
    project_name: str = Field(..., description="Name of the checked project")
    check_time: datetime = Field(..., description="When the check ran")
    issues: List[ConsistencyIssue] = Field(default_factory=list)
    statistics: ReportStatistics = Field(default_factory=ReportStatistics)
    rules: List[str] = Field(default_factory=list, description="Rule identifiers that were run")

class RuleInfo(BaseModel):
    id: str = Field(..., description="Rule identifier")
    name: str = Field(..., description="Display name")
    description: str = Field(..., description="What the rule checks")
    severity: Severity = Field(..., description="Default severity of its issues")
