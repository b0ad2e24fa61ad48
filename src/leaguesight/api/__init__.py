"""
LeagueSight Web API

FastAPI application serving championship leaderboards and per-player form.

This package exposes:
- app: The FastAPI application (used by uvicorn, server.py, wsgi.py)
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from leaguesight.api.shared import __version__
from leaguesight.integrations.faceit import FaceitApiError, MissingApiKeyError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    context = getattr(app.state, "context", None)
    if context is not None:
        await context.aclose()


# =============================================================================
# FastAPI App Creation
# =============================================================================

app = FastAPI(
    title="LeagueSight API",
    description=(
        "Championship statistics from FACEIT match data - player rating, "
        "KAST estimate, ADR and team standings"
    ),
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type"],
    expose_headers=["X-Cache-Status"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(MissingApiKeyError)
async def missing_api_key_handler(request: Request, exc: MissingApiKeyError) -> JSONResponse:
    logger.error(f"FATAL: FACEIT API key missing ({request.url.path})")
    return JSONResponse(
        status_code=500,
        content={"error": "Server configuration error: API Key missing", "details": str(exc)},
    )


@app.exception_handler(FaceitApiError)
async def faceit_error_handler(request: Request, exc: FaceitApiError) -> JSONResponse:
    logger.error(f"Upstream failure for {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Failed to load statistics from FACEIT", "details": str(exc)},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler to prevent information disclosure."""
    logger.exception(f"Unhandled exception for {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "details": "An unexpected error occurred. Please try again later.",
        },
    )


# =============================================================================
# Include Route Modules
# =============================================================================

from leaguesight.api.routes_league import router as league_router  # noqa: E402
from leaguesight.api.routes_misc import router as misc_router  # noqa: E402
from leaguesight.api.routes_players import router as players_router  # noqa: E402

app.include_router(league_router)
app.include_router(players_router)
app.include_router(misc_router)
