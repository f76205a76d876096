from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Simple health check response."""
    status: str = Field(..., description="Service status")
    app: str = Field(..., description="Application name")
    environment: str = Field(..., description="Application environment")


class SearchQuery(BaseModel):
    """Single-page search payload."""
    jql: str = Field(..., description="JQL string for JIRA search")
    start_at: int = Field(default=0, ge=0, description="Offset for search results")
    max_results: int = Field(default=50, ge=1, description="Maximum results to return")


class AllResultsQuery(BaseModel):
    """Aggregated search payload."""
    jql: str = Field(..., description="JQL string for JIRA search")
    max_total: int = Field(..., ge=1, description="Upper bound on issues returned")


class IssueListResponse(BaseModel):
    """Issues collected across every page of a search."""
    count: int = Field(..., description="Number of issues returned")
    issues: List[Dict[str, Any]] = Field(default_factory=list, description="Raw issues list")
