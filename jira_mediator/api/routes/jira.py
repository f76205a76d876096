from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Path, Response, status

from ...clients.jira_client import JiraClient
from ...core.errors import ErrorResponse
from ...core.security import AuthenticatedClient, get_current_client
from ...models.common import AllResultsQuery, IssueListResponse, SearchQuery
from ...models.jira import (
    AddCommentRequest,
    BrowseUrlResponse,
    CloseIssueRequest,
    CreateIssueRequest,
    CreateIssueResponse,
    CreateSimpleIssueRequest,
    CreateSubtaskRequest,
    JiraIssue,
    SearchPage,
    Transition,
    TransitionIssueRequest,
    UpdateIssueRequest,
)
from ..dependencies import get_jira_client

router = APIRouter(prefix="/jira", tags=["JIRA"])


def _created(data) -> CreateIssueResponse:
    data = data if isinstance(data, dict) else {}
    return CreateIssueResponse(id=str(data.get("id", "")), key=data.get("key", ""), self=data.get("self"))


@router.get(
    "/issues/{issue_key}",
    summary="Get Issue",
    response_model=JiraIssue,
    responses={404: {"model": ErrorResponse, "description": "Issue not found"}},
)
async def get_issue(
    issue_key: str = Path(..., description="JIRA issue key"),
    auth: AuthenticatedClient = Depends(get_current_client),
    jira: JiraClient = Depends(get_jira_client),
):
    """Retrieve a JIRA issue by key."""
    data = await jira.get_issue(issue_key)
    data = data if isinstance(data, dict) else {}
    return JiraIssue(id=str(data.get("id", "")), key=data.get("key", issue_key), fields=data.get("fields", {}))


@router.post(
    "/issues",
    summary="Create Issue",
    response_model=CreateIssueResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_issue(
    payload: CreateIssueRequest,
    auth: AuthenticatedClient = Depends(get_current_client),
    jira: JiraClient = Depends(get_jira_client),
):
    """Create an issue from a free-form field map."""
    return _created(await jira.create(payload.fields))


@router.post(
    "/issues/simple",
    summary="Create Issue From Mandatory Fields",
    response_model=CreateIssueResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_simple_issue(
    payload: CreateSimpleIssueRequest,
    auth: AuthenticatedClient = Depends(get_current_client),
    jira: JiraClient = Depends(get_jira_client),
):
    """Create an issue with project, type, summary and description only."""
    data = await jira.create_issue(payload.project_key, payload.issuetype_name, payload.summary, payload.description)
    return _created(data)


@router.post(
    "/issues/{issue_key}/subtasks",
    summary="Create Sub-task",
    response_model=CreateIssueResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_subtask(
    payload: CreateSubtaskRequest,
    issue_key: str = Path(..., description="JIRA issue key"),
    auth: AuthenticatedClient = Depends(get_current_client),
    jira: JiraClient = Depends(get_jira_client),
):
    """Create a sub-task under the issue in the path."""
    data = await jira.create_subtask(
        payload.project_key, payload.summary, payload.description, issue_key, payload.subtask_type
    )
    return _created(data)


@router.put("/issues/{issue_key}", summary="Update Issue", status_code=status.HTTP_204_NO_CONTENT)
async def update_issue(
    payload: UpdateIssueRequest,
    issue_key: str = Path(..., description="JIRA issue key"),
    auth: AuthenticatedClient = Depends(get_current_client),
    jira: JiraClient = Depends(get_jira_client),
):
    """Change only the supplied fields."""
    await jira.update_issue(issue_key, payload.fields)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/issues/{issue_key}", summary="Delete Issue", status_code=status.HTTP_204_NO_CONTENT)
async def delete_issue(
    issue_key: str = Path(..., description="JIRA issue key"),
    auth: AuthenticatedClient = Depends(get_current_client),
    jira: JiraClient = Depends(get_jira_client),
):
    """Permanently delete an issue. Intended for test cleanup."""
    await jira.delete_issue(issue_key)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/issues/{issue_key}/transitions", summary="List Transitions", response_model=List[Transition])
async def list_transitions(
    issue_key: str = Path(..., description="JIRA issue key"),
    auth: AuthenticatedClient = Depends(get_current_client),
    jira: JiraClient = Depends(get_jira_client),
):
    """Transitions currently available on the issue."""
    return await jira.list_transitions(issue_key)


@router.post(
    "/issues/{issue_key}/transitions",
    summary="Transition Issue",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={409: {"model": ErrorResponse, "description": "Transition not available"}},
)
async def transition_issue(
    payload: TransitionIssueRequest,
    issue_key: str = Path(..., description="JIRA issue key"),
    auth: AuthenticatedClient = Depends(get_current_client),
    jira: JiraClient = Depends(get_jira_client),
):
    """Transition an issue by transition name."""
    await jira.transition_issue(issue_key, payload.name, payload.fields)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/issues/{issue_key}/close",
    summary="Close Issue",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={409: {"model": ErrorResponse, "description": "Issue cannot be closed"}},
)
async def close_issue(
    payload: CloseIssueRequest,
    issue_key: str = Path(..., description="JIRA issue key"),
    auth: AuthenticatedClient = Depends(get_current_client),
    jira: JiraClient = Depends(get_jira_client),
):
    """Close an issue with an optional resolution, then comment on it."""
    await jira.close_issue(issue_key, payload.resolution, payload.comment)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/issues/{issue_key}/comments", summary="Add Comment", status_code=status.HTTP_204_NO_CONTENT)
async def add_comment(
    payload: AddCommentRequest,
    issue_key: str = Path(..., description="JIRA issue key"),
    auth: AuthenticatedClient = Depends(get_current_client),
    jira: JiraClient = Depends(get_jira_client),
):
    """Add a comment to the specified issue."""
    await jira.create_comment(issue_key, payload.body)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/issues/{issue_key}/browse-url", summary="Browse URL", response_model=BrowseUrlResponse)
async def browse_url(
    issue_key: str = Path(..., description="JIRA issue key"),
    auth: AuthenticatedClient = Depends(get_current_client),
    jira: JiraClient = Depends(get_jira_client),
):
    """Browser URL for the issue; no upstream call is made."""
    return BrowseUrlResponse(key=issue_key, url=jira.make_browse_url(issue_key))


@router.post("/search", summary="Search Issues", response_model=SearchPage)
async def search_issues(
    query: SearchQuery,
    auth: AuthenticatedClient = Depends(get_current_client),
    jira: JiraClient = Depends(get_jira_client),
):
    """Fetch one page of JQL results."""
    return await jira.search_page(query.jql, query.start_at, query.max_results)


@router.post("/search/all", summary="Search All Issues", response_model=IssueListResponse)
async def search_all_issues(
    query: AllResultsQuery,
    auth: AuthenticatedClient = Depends(get_current_client),
    jira: JiraClient = Depends(get_jira_client),
):
    """Collect up to max_total issues across every result page."""
    issues = await jira.all_results(query.jql, query.max_total)
    return IssueListResponse(count=len(issues), issues=issues)
