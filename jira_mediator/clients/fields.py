"""
Translation between caller-facing field maps and JIRA wire documents.

Field maps are plain dicts whose values are scalars, nested dicts or lists of the
same. Their legal shape is defined by the server, so nothing here checks field
names or values against a schema; only JSON-representability is enforced.
"""
from __future__ import annotations

import math
from typing import Any, Dict, Mapping, Optional

from ..core.errors import MalformedInput

_SCALARS = (str, int, float, bool, type(None))


def _check_value(value: Any, path: str) -> None:
    if isinstance(value, float) and not math.isfinite(value):
        raise MalformedInput(f"Field '{path}' holds a non-finite number")
    if isinstance(value, _SCALARS):
        return
    if isinstance(value, Mapping):
        for key, item in value.items():
            if not isinstance(key, str):
                raise MalformedInput(f"Field '{path}' has a non-string key {key!r}")
            _check_value(item, f"{path}.{key}")
        return
    if isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _check_value(item, f"{path}[{index}]")
        return
    raise MalformedInput(f"Field '{path}' holds a {type(value).__name__}, which cannot be sent to JIRA")


# PUBLIC_INTERFACE
def check_fields(fields: Any) -> Dict[str, Any]:
    """Validate a field map and return it as a plain dict."""
    if not isinstance(fields, Mapping):
        raise MalformedInput(f"Issue fields must be a mapping, got {type(fields).__name__}")
    for name, value in fields.items():
        if not isinstance(name, str) or not name:
            raise MalformedInput(f"Field names must be non-empty strings, got {name!r}")
        _check_value(value, name)
    return dict(fields)


# PUBLIC_INTERFACE
def merge_fields(*layers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Merge field maps in order. Later layers replace colliding top-level keys
    outright; nested maps are never merged into each other.
    """
    merged: Dict[str, Any] = {}
    for layer in layers:
        if layer:
            merged.update(layer)
    return merged


# PUBLIC_INTERFACE
def wrap_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Nest a field map under the `fields` envelope used by create and update."""
    return {"fields": check_fields(fields)}


# PUBLIC_INTERFACE
def build_minimal_issue(project: str, issue_type: str, summary: str, description: str) -> Dict[str, Any]:
    """Mandatory-field skeleton for a new issue."""
    return {
        "project": {"key": project},
        "issuetype": {"name": issue_type},
        "summary": summary,
        "description": description,
    }


# PUBLIC_INTERFACE
def build_subtask(
    project: str,
    summary: str,
    description: str,
    parent_key: str,
    subtask_type: str = "Sub-task",
) -> Dict[str, Any]:
    """Minimal issue plus parent link; the subtask type overrides the issue type."""
    return merge_fields(
        build_minimal_issue(project, subtask_type, summary, description),
        {"parent": {"key": parent_key}, "issuetype": {"name": subtask_type}},
    )


# PUBLIC_INTERFACE
def wrap_transition(transition_id: str, fields: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    Build the transition envelope. An empty or missing field map leaves the
    `fields` key out entirely, since some installs reject an empty one.
    """
    doc: Dict[str, Any] = {"transition": {"id": transition_id}}
    if fields:
        doc["fields"] = check_fields(fields)
    return doc
