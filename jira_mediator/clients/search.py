from __future__ import annotations

import logging
from typing import Any, Dict, List

from pydantic import ValidationError

from ..core.errors import MalformedInput, RemoteRejected
from ..models.jira import SearchPage
from .responses import normalize
from .transport import JiraTransport

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
async def search_page(transport: JiraTransport, jql: str, start: int, max_results: int) -> SearchPage:
    """
    Fetch one page of JQL results. Check `errors` before trusting `issues`:
    the server may report errors alongside a partial or empty issue list.
    """
    if start < 0:
        raise MalformedInput("start must be >= 0")
    if max_results <= 0:
        raise MalformedInput("max_results must be > 0")

    payload = {"jql": jql, "startAt": start, "maxResults": max_results}
    data = normalize(await transport.perform("POST", "search", json=payload))
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise RemoteRejected(200, ["Search response was not a JSON object"])
    try:
        return SearchPage.from_wire(data, start, max_results)
    except ValidationError as exc:
        raise RemoteRejected(200, [f"Unexpected search response shape: {exc}"]) from exc


# PUBLIC_INTERFACE
async def all_results(transport: JiraTransport, jql: str, max_total: int, page_size: int = 50) -> List[Dict[str, Any]]:
    """
    Collect up to `max_total` issues across pages.

    Each page starts where the previous one's issues ended. The scan stops on a
    page shorter than the page size or once `max_total` issues are held. A page
    that is exactly full is ambiguous, so it is followed by one more fetch; an
    empty page ends the scan. Any page reporting errors aborts the whole call.
    """
    if max_total <= 0:
        raise MalformedInput("max_total must be > 0")
    if page_size <= 0:
        raise MalformedInput("page_size must be > 0")

    requested = min(page_size, max_total)
    issues: List[Dict[str, Any]] = []
    start = 0
    while True:
        page = await search_page(transport, jql, start, requested)
        if page.errors:
            raise RemoteRejected(200, page.errors)
        issues.extend(page.issues)
        fetched = len(page.issues)
        logger.debug("search page start=%s fetched=%s total=%s", start, fetched, page.total)

        # The server may cap the page below what was asked for.
        effective = min(requested, page.max) if page.max > 0 else requested
        if fetched == 0 or fetched < effective or len(issues) >= max_total:
            break
        start += fetched

    return issues[:max_total]
