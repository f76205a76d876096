from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from ..core.config import Settings
from ..core.errors import InvalidTransition, MalformedInput, RemoteRejected
from ..models.jira import SearchPage, Transition
from . import search
from .fields import build_minimal_issue, build_subtask, wrap_fields, wrap_transition
from .responses import normalize
from .transport import JiraTransport, Multipart

logger = logging.getLogger(__name__)

CLOSE_TRANSITION = "Close Issue"
_KEY_FORBIDDEN = ("/", "?", "#")


def _check_key(key: Any) -> str:
    if not isinstance(key, str) or not key.strip():
        raise MalformedInput(f"Issue key must be a non-empty string, got {key!r}")
    if key in (".", "..") or any(ch in key for ch in _KEY_FORBIDDEN):
        raise MalformedInput(f"Issue key {key!r} is not a valid path segment")
    return key


def _issue_path(key: Any, *parts: str) -> str:
    """`issue/<key>[/parts]` with the key percent-encoded as a single path segment."""
    return "/".join(["issue", quote(_check_key(key), safe="")] + list(parts))


class JiraClient:
    """
    Async JIRA issue lifecycle client.

    Every network-backed method returns its documented value or raises
    RemoteRejected, NotFound or InvalidTransition; nothing is retried.
    """

    def __init__(self, transport: JiraTransport, search_page_size: int = 50):
        self.transport = transport
        self.search_page_size = search_page_size

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "JiraClient":
        return cls(JiraTransport.from_settings(settings, transport), search_page_size=settings.JIRA_SEARCH_PAGE_SIZE)

    async def open(self) -> None:
        await self.transport.open()

    async def close(self) -> None:
        await self.transport.close()

    async def __aenter__(self) -> "JiraClient":
        await self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # Issues

    # PUBLIC_INTERFACE
    async def create(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Create an issue from a free-form field map.

        The server may answer with only id, key and self, so callers should not
        expect every field to be populated.
        """
        payload = wrap_fields(fields)
        issue = normalize(await self.transport.perform("POST", "issue", json=payload))
        if isinstance(issue, dict):
            logger.info("Created issue %s", issue.get("key"))
        return issue

    # PUBLIC_INTERFACE
    async def create_issue(self, project: str, issue_type: str, summary: str, description: str) -> Dict[str, Any]:
        """Create an issue carrying only the mandatory fields."""
        return await self.create(build_minimal_issue(project, issue_type, summary, description))

    # PUBLIC_INTERFACE
    async def create_subtask(
        self,
        project: str,
        summary: str,
        description: str,
        parent_key: str,
        subtask_type: str = "Sub-task",
    ) -> Dict[str, Any]:
        """Create a sub-task under `parent_key`."""
        _check_key(parent_key)
        return await self.create(build_subtask(project, summary, description, parent_key, subtask_type))

    # PUBLIC_INTERFACE
    async def get_issue(self, key: str) -> Dict[str, Any]:
        """Fetch an issue; raises NotFound if the key does not exist."""
        issue = normalize(await self.transport.perform("GET", _issue_path(key)), issue_key=key)
        if not isinstance(issue, dict):
            raise RemoteRejected(200, ["Issue response was not a JSON object"])
        return issue

    # PUBLIC_INTERFACE
    async def update_issue(self, key: str, update_fields: Mapping[str, Any]) -> None:
        """Patch only the given fields."""
        payload = wrap_fields(update_fields)
        normalize(await self.transport.perform("PUT", _issue_path(key), json=payload), issue_key=key)
        logger.info("Updated issue %s fields=%s", key, sorted(payload["fields"]))

    # PUBLIC_INTERFACE
    async def delete_issue(self, key: str) -> None:
        """
        Delete an issue. Irreversible and unconfirmed; meant for cleaning up
        issues created by test runs.
        """
        normalize(await self.transport.perform("DELETE", _issue_path(key)), issue_key=key)
        logger.info("Deleted issue %s", key)

    # Transitions

    # PUBLIC_INTERFACE
    async def list_transitions(self, key: str) -> List[Transition]:
        """Transitions the issue can take from its current state."""
        data = normalize(await self.transport.perform("GET", _issue_path(key, "transitions")), issue_key=key)
        if data is None:
            data = {}
        transitions = data.get("transitions", []) if isinstance(data, dict) else None
        if not isinstance(transitions, list) or not all(isinstance(t, dict) for t in transitions):
            raise RemoteRejected(200, ["Transitions response was not a list of objects"])
        try:
            return [Transition.model_validate(t) for t in transitions]
        except ValidationError as exc:
            raise RemoteRejected(200, [f"Unexpected transition shape: {exc}"]) from exc

    # PUBLIC_INTERFACE
    async def apply_transition(self, key: str, transition_id: str, fields: Optional[Mapping[str, Any]] = None) -> None:
        """Apply a transition by its wire ID."""
        payload = wrap_transition(transition_id, fields)
        normalize(await self.transport.perform("POST", _issue_path(key, "transitions"), json=payload), issue_key=key)

    # PUBLIC_INTERFACE
    async def transition_issue(
        self,
        key: str,
        transition_name: str,
        update_fields: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """
        Move an issue through the transition whose display name is exactly
        `transition_name`.

        This is a lookup followed by an apply, and the pair is not atomic: the
        issue may change state in between, in which case the apply call raises
        whatever the server reports. A name matching zero or several transitions
        raises InvalidTransition without applying anything.
        """
        transitions = await self.list_transitions(key)
        matches = [t for t in transitions if t.name == transition_name]
        if len(matches) != 1:
            logger.warning("Transition %r not resolvable on %s (%d matches)", transition_name, key, len(matches))
            raise InvalidTransition(transition_name, [t.name for t in transitions])
        await self.apply_transition(key, matches[0].id, update_fields)
        logger.info("Transitioned %s via %r", key, transition_name)

    # PUBLIC_INTERFACE
    async def close_issue(
        self,
        key: str,
        resolution: Optional[str] = None,
        comment: str = "Issue closed by script",
    ) -> None:
        """Apply the "Close Issue" transition, then comment. No comment is posted if closing fails."""
        fields = {"resolution": {"name": resolution}} if resolution else {}
        await self.transition_issue(key, CLOSE_TRANSITION, fields)
        await self.create_comment(key, comment)

    # Comments and attachments

    # PUBLIC_INTERFACE
    async def create_comment(self, key: str, text: str) -> None:
        """Add a comment to an issue."""
        if not isinstance(text, str):
            raise MalformedInput("Comment body must be a string")
        normalize(await self.transport.perform("POST", _issue_path(key, "comment"), json={"body": text}), issue_key=key)

    # PUBLIC_INTERFACE
    async def attach_file(self, key: str, file_path: Union[str, Path]) -> None:
        """Upload a local file as an attachment."""
        target = _issue_path(key, "attachments")
        path = Path(file_path)
        try:
            content = path.read_bytes()
        except OSError as exc:
            raise MalformedInput(f"Cannot read attachment {path}: {exc}") from exc
        part = Multipart(field_name="file", file_name=path.name, content=content)
        normalize(await self.transport.perform("POST", target, multipart=part), issue_key=key)
        logger.info("Attached %s to %s", path.name, key)

    # PUBLIC_INTERFACE
    def make_browse_url(self, key: str) -> str:
        """Browser URL of an issue. No request is made."""
        return f"{self.transport.base_url}/browse/{quote(_check_key(key), safe='')}"

    # Search

    # PUBLIC_INTERFACE
    async def search_page(self, jql: str, start: int = 0, max_results: int = 50) -> SearchPage:
        """Fetch a single page of JQL results."""
        return await search.search_page(self.transport, jql, start, max_results)

    # PUBLIC_INTERFACE
    async def all_results(self, jql: str, max_total: int) -> List[Dict[str, Any]]:
        """Collect up to `max_total` issues across as many pages as needed."""
        return await search.all_results(self.transport, jql, max_total, page_size=self.search_page_size)
