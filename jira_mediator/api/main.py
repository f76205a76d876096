from __future__ import annotations

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..core.config import get_settings
from ..core.errors import install_exception_handlers
from ..core.logging import configure_logging, install_request_logging
from ..models.common import HealthResponse
from .routes.jira import router as jira_router

settings = get_settings()
configure_logging(settings)

app = FastAPI(
    title=settings.APP_NAME,
    description="HTTP front for scripted JIRA issue lifecycle operations",
    version="1.0.0",
    openapi_tags=[
        {"name": "JIRA", "description": "Issue lifecycle and search endpoints"},
        {"name": "Health", "description": "Health and diagnostics"},
    ],
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request logging
install_request_logging(app)
# Exceptions
install_exception_handlers(app)


# PUBLIC_INTERFACE
@app.get("/", tags=["Health"], summary="Health Check", response_model=HealthResponse)
def health_check():
    """Basic health check endpoint."""
    return HealthResponse(status="ok", app=settings.APP_NAME, environment=settings.APP_ENV)


api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(jira_router)
app.include_router(api_v1)
