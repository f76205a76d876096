from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from ..core.errors import NotFound, RemoteRejected
from .transport import TransportResult

logger = logging.getLogger(__name__)


def _decode(content: bytes) -> Tuple[bool, Any]:
    try:
        return True, json.loads(content)
    except ValueError:
        return False, None


def _error_details(result: TransportResult) -> Tuple[List[str], Dict[str, Any]]:
    """Pull errorMessages/errors out of a JIRA error body, falling back to the raw text."""
    decoded, payload = _decode(result.content)
    if decoded and isinstance(payload, dict) and ("errorMessages" in payload or "errors" in payload):
        messages = [str(m) for m in payload.get("errorMessages") or []]
        errors = payload.get("errors") or {}
        if not isinstance(errors, dict):
            errors = {}
        return messages, errors
    text = result.text.strip()
    return [text or f"HTTP {result.status_code}"], {}


# PUBLIC_INTERFACE
def normalize(result: TransportResult, issue_key: Optional[str] = None) -> Any:
    """
    Classify a transport result.

    2xx with a body returns the decoded JSON (or the text, if the body is not JSON);
    2xx with an empty body returns None. Anything else raises RemoteRejected, or
    NotFound for a 404 when the call addressed `issue_key`.
    """
    if 200 <= result.status_code < 300:
        if not result.content.strip():
            return None
        decoded, payload = _decode(result.content)
        return payload if decoded else result.text

    messages, errors = _error_details(result)
    logger.debug("JIRA error %s: %s %s", result.status_code, messages, errors)
    if result.status_code == 404 and issue_key is not None:
        raise NotFound(issue_key, messages, errors)
    raise RemoteRejected(result.status_code, messages, errors)
