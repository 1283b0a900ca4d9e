"""
FastAPI application entry point.

The flow runner (config, credentials, prompts, catalog) is built once in the
lifespan handler; a configuration error stops the server at startup.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import AsyncGenerator
import logging

from .routers import actions, health
from safetyflows import __version__
from safetyflows.runtime import create_runner

logger = logging.getLogger(__name__)

# Global application state
app_state = {}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("Starting safety flows API server...")
    runner = create_runner()
    app_state["flow_runner"] = runner
    logger.info("API server ready to accept requests")

    yield

    logger.info("Shutting down safety flows API server...")
    cleanup = getattr(runner.adapter, "cleanup", None)
    if cleanup is not None:
        await cleanup()
    app_state.clear()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Safety Flows API",
        description="AI-assisted KPI summaries, investigation analysis, JSA review and toolbox talks",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:9002"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(actions.router, prefix="/api/v1/actions", tags=["actions"])

    return app


app = create_app()


@app.get("/")
async def root():
    """Root endpoint with basic API information."""
    return {
        "name": "Safety Flows API",
        "version": __version__,
        "status": "operational",
        "endpoints": {
            "health": "/health",
            "actions": "/api/v1/actions",
            "docs": "/docs",
        }
    }
