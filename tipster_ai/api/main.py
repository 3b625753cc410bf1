"""
Tipster AI - FastAPI Application

Main entry point for the backend API.
This module configures the FastAPI app, error mapping and routes.
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tipster_ai import __version__
from tipster_ai.api.routes import matches, predictions, settlements
from tipster_ai.application.dtos.dtos import ErrorResponseDTO, HealthResponseDTO
from tipster_ai.config import FOOTBALL_DATA_ORG_KEY, GEMINI_API_KEY, GEMINI_MODEL
from tipster_ai.domain.exceptions import ServiceException, ThrottledException
from tipster_ai.infrastructure.database.database_service import get_database_service
from tipster_ai.utils.logging_config import configure_logging
from tipster_ai.utils.time_utils import get_current_time

configure_logging()
logger = logging.getLogger(__name__)


# Application metadata
APP_TITLE = "Tipster AI"
APP_DESCRIPTION = """
🧠 **Football Picks API**

Picks for football matches written by a language model, stored in a
ledger and settled against real results.

* 🎯 **Picks** - one analysis per match, reused on later requests
* 👨‍⚖️ **Settlement** - pending picks judged as WON / LOST / VOID
* 💰 **Bankroll** - net result in stake units

---
⚠️ **Educational purposes only** - Not for actual betting
"""
APP_VERSION = __version__


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"Starting {APP_TITLE} v{APP_VERSION}")

    if GEMINI_API_KEY:
        logger.info(f"✓ Gemini configured (model {GEMINI_MODEL})")
    else:
        logger.warning("⚠ Gemini not configured: picks cannot be generated")

    if FOOTBALL_DATA_ORG_KEY:
        logger.info("✓ Football-Data.org configured")
    else:
        logger.warning("⚠ Football-Data.org not configured: fixtures and settlement unavailable")

    from tipster_ai.api.dependencies import get_prediction_repository
    get_prediction_repository().create_tables()

    yield

    logger.info("Shutting down...")
    get_database_service().dispose()


# Create FastAPI app
app = FastAPI(
    title=APP_TITLE,
    description=APP_DESCRIPTION,
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


cors_origins = [o for o in os.getenv("CORS_ORIGINS", "").split(",") if o]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins or ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(ThrottledException)
async def throttled_exception_handler(request: Request, exc: ThrottledException):
    """Quota exhausted: the client should try again later."""
    logger.warning(f"Throttled: {exc}")
    return JSONResponse(
        status_code=429,
        content=ErrorResponseDTO(
            error="throttled",
            message="⏳ Generation quota exhausted for now. Try again in a minute.",
        ).model_dump(),
    )


@app.exception_handler(ServiceException)
async def service_exception_handler(request: Request, exc: ServiceException):
    """Generation service failure other than throttling."""
    logger.error(f"Generation service error: {exc}")
    return JSONResponse(
        status_code=502,
        content=ErrorResponseDTO(
            error="generation_failed",
            message="❌ Analysis failed.",
            details={"reason": str(exc)},
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=ErrorResponseDTO(
            error="internal_server_error",
            message="An unexpected error occurred",
            details={"path": str(request.url)},
        ).model_dump(),
    )


# Health check endpoint
@app.get(
    "/health",
    response_model=HealthResponseDTO,
    tags=["Health"],
    summary="Health check",
    description="Check if the API is running and healthy.",
)
async def health_check() -> HealthResponseDTO:
    """Health check endpoint."""
    return HealthResponseDTO(
        status="healthy",
        version=APP_VERSION,
        timestamp=get_current_time(),
    )


# Root endpoint
@app.get(
    "/",
    tags=["Root"],
    summary="API Information",
    description="Get basic API information and links.",
)
async def root():
    """Root endpoint with API info."""
    return {
        "name": APP_TITLE,
        "version": APP_VERSION,
        "model": GEMINI_MODEL,
        "documentation": "/docs",
        "health": "/health",
        "endpoints": {
            "analyze": "/api/v1/predictions/analyze",
            "pending": "/api/v1/predictions/pending",
            "upcoming": "/api/v1/matches/{league_code}/upcoming",
            "settle": "/api/v1/settlements/run",
            "bankroll": "/api/v1/settlements/bankroll",
        },
    }


# Include routers
app.include_router(predictions.router, prefix="/api/v1")
app.include_router(matches.router, prefix="/api/v1")
app.include_router(settlements.router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "tipster_ai.api.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "10000")),
        reload=True,
    )
