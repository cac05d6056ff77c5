"""FastAPI application for the risk engine.

Exposes the report assembler and its building blocks over HTTP.  The engine
itself is stateless, so the app holds no resources beyond its logging setup.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
import uvicorn
from fastapi import FastAPI

from riskcore import __version__
from riskcore.api.routers import risk
from riskcore.config import get_settings
from riskcore.logging_setup import configure_logging

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging on startup."""
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, json_output=settings.LOG_JSON)
    logger.info("risk_api_started", version=__version__)

    yield

    logger.info("shutdown_complete")


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(title="Risk & Covariance Engine", version=__version__, lifespan=lifespan)

app.include_router(risk.router)


@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness / readiness probe."""
    return {"status": "ok"}


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    settings = get_settings()
    logger.info("risk_api_serving", host=settings.API_HOST, port=settings.API_PORT)
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT, log_level="info")


if __name__ == "__main__":
    run()
