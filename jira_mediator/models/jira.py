from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Transition(BaseModel):
    """A workflow transition currently available on an issue."""
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str = Field(..., description="Transition ID used on the wire")
    name: str = Field(..., description="Transition display name")


class SearchPage(BaseModel):
    """One page of a JQL search. A non-empty `errors` means the page failed."""
    total: int = Field(default=0, description="Total number of issues matching")
    start: int = Field(default=0, description="Offset of the first issue in this page")
    max: int = Field(default=0, description="Page size the server applied")
    issues: List[Dict[str, Any]] = Field(default_factory=list, description="Raw issues list")
    errors: List[str] = Field(default_factory=list, description="Server-reported search errors")

    @classmethod
    def from_wire(cls, data: Dict[str, Any], start: int, max_results: int) -> "SearchPage":
        messages = data.get("errorMessages") or []
        errors = [str(m) for m in messages] if isinstance(messages, list) else [str(messages)]
        field_errors = data.get("errors") or {}
        if isinstance(field_errors, dict):
            errors.extend(f"{name}: {text}" for name, text in field_errors.items())
        elif isinstance(field_errors, list):
            errors.extend(str(e) for e in field_errors)
        else:
            errors.append(str(field_errors))
        return cls(
            total=data.get("total", 0),
            start=data.get("startAt", start),
            max=data.get("maxResults", max_results),
            issues=data.get("issues") or [],
            errors=errors,
        )


class CreateIssueRequest(BaseModel):
    """Free-form issue creation; `fields` is sent as-is under the fields envelope."""
    fields: Dict[str, Any] = Field(..., description="Issue fields, e.g. project, issuetype, summary")


class CreateSimpleIssueRequest(BaseModel):
    project_key: str = Field(..., description="Project key (e.g., PROJ)")
    issuetype_name: str = Field(..., description="Issue type name (e.g., Task, Bug)")
    summary: str = Field(..., description="Issue summary/title")
    description: str = Field(default="", description="Issue description")


class CreateSubtaskRequest(BaseModel):
    project_key: str = Field(..., description="Project key (e.g., PROJ)")
    summary: str = Field(..., description="Sub-task summary/title")
    description: str = Field(default="", description="Sub-task description")
    subtask_type: str = Field(default="Sub-task", description="Sub-task issue type name")


class CreateIssueResponse(BaseModel):
    id: str = Field(default="", description="Created issue ID")
    key: str = Field(default="", description="Created issue key")
    self: Optional[str] = Field(default=None, description="Self URL")


class UpdateIssueRequest(BaseModel):
    fields: Dict[str, Any] = Field(..., description="Only the fields to change")


class TransitionIssueRequest(BaseModel):
    name: str = Field(..., description="Transition display name, matched exactly")
    fields: Optional[Dict[str, Any]] = Field(default=None, description="Fields required by the transition screen")


class CloseIssueRequest(BaseModel):
    resolution: Optional[str] = Field(default=None, description="Resolution name, e.g. Fixed")
    comment: str = Field(default="Issue closed by script", description="Comment added after closing")


class AddCommentRequest(BaseModel):
    body: str = Field(..., description="Comment text body")


class JiraIssue(BaseModel):
    id: str = Field(..., description="Issue ID")
    key: str = Field(..., description="Issue key")
    fields: Dict[str, Any] = Field(default_factory=dict, description="Issue fields payload")


class BrowseUrlResponse(BaseModel):
    key: str = Field(..., description="Issue key")
    url: str = Field(..., description="Browser URL for the issue")
