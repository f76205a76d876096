from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel

from .config import Settings, get_settings


class AuthenticatedClient(BaseModel):
    """Represents the authenticated client principal."""
    subject: str
    strategy: str
    api_key_last4: Optional[str] = None


# PUBLIC_INTERFACE
async def get_current_client(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> AuthenticatedClient:
    """
    Authenticate the calling script based on configured strategy.

    When AUTH_STRATEGY=api_key:
      - Expects header {API_KEY_HEADER_NAME}: <key>
      - Validates against settings.API_KEYS

    When AUTH_STRATEGY=none every caller is accepted, for use behind a trusted network boundary.
    """
    strategy = settings.AUTH_STRATEGY.lower().strip()

    if strategy == "none":
        return AuthenticatedClient(subject="anonymous", strategy="none")

    provided = request.headers.get(settings.API_KEY_HEADER_NAME)
    if not provided or provided not in set(settings.API_KEYS):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
        )
    return AuthenticatedClient(
        subject="api_key_client",
        strategy="api_key",
        api_key_last4=provided[-4:] if len(provided) >= 4 else provided,
    )
