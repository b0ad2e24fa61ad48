"""
Shared utilities for LeagueSight API.

Contains input validation, response models, and access to the application
context used across all route modules.
"""

import logging
import re

from fastapi import HTTPException, Request
from pydantic import BaseModel

from leaguesight import __version__
from leaguesight.core.config import get_config
from leaguesight.core.context import AppContext, build_context

logger = logging.getLogger(__name__)

CACHE_STATUS_HEADER = "X-Cache-Status"

# =============================================================================
# Input Validation Patterns
# =============================================================================

FACEIT_ID_PATTERN = re.compile(
    r"^[a-fA-F0-9]{8}-[a-fA-F0-9]{4}-[a-fA-F0-9]{4}-[a-fA-F0-9]{4}-[a-fA-F0-9]{12}$"
)
NICKNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]{1,32}$")


def validate_faceit_id(value: str, field_name: str = "id") -> str:
    """Validate a FACEIT UUID. Raises HTTPException if invalid."""
    if not value or not FACEIT_ID_PATTERN.match(value):
        raise HTTPException(status_code=400, detail=f"Invalid {field_name}: must be a FACEIT UUID")
    return value


def validate_nickname(nickname: str) -> str:
    """Validate a FACEIT nickname. Raises HTTPException if invalid."""
    if not nickname or not NICKNAME_PATTERN.match(nickname):
        raise HTTPException(
            status_code=400,
            detail="Invalid nickname: 1-32 letters, digits, '_', '-' or '.'",
        )
    return nickname


# =============================================================================
# Response Models
# =============================================================================


class ErrorResponse(BaseModel):
    """Terminal failure payload."""

    error: str
    details: str | None = None


class HealthResponse(BaseModel):
    status: str
    version: str


# =============================================================================
# Application Context
# =============================================================================


def get_context(request: Request) -> AppContext:
    """
    Return the application context, building it on first use.

    Raises MissingApiKeyError when no FACEIT API key is configured.
    """
    context = getattr(request.app.state, "context", None)
    if context is None:
        context = build_context(get_config())
        request.app.state.context = context
        logger.info("Application context initialized")
    return context


__all__ = [
    "CACHE_STATUS_HEADER",
    "ErrorResponse",
    "HealthResponse",
    "__version__",
    "get_context",
    "validate_faceit_id",
    "validate_nickname",
]
