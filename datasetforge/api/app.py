"""
datasetforge - Backend API

FastAPI server that exposes the generation wizard to a web UI.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..backend import HttpGenerationBackend
from ..config import settings
from ..orchestrator import GenerationOrchestrator
from .routes import router

logger = logging.getLogger(__name__)


def create_app(orchestrator: Optional[GenerationOrchestrator] = None, discover_on_startup: bool = True) -> FastAPI:
    """
    Build the API app.

    Args:
        orchestrator: Orchestrator to serve. A default one talking to the
            configured generation service is created if omitted.
        discover_on_startup: Run model discovery when the app starts.
    """
    orchestrator = orchestrator or GenerationOrchestrator(HttpGenerationBackend())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if discover_on_startup:
            orchestrator.start()
        yield
        orchestrator.shutdown()

    app = FastAPI(
        title="datasetforge",
        description="Synthetic fine-tuning dataset generation wizard",
        version=__version__,
        docs_url="/api/docs",
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.get("/api/health")
    def health():
        """Health check endpoint."""
        snapshot = orchestrator.snapshot()
        return {
            "status": "healthy",
            "step": snapshot["step"],
            "generating": snapshot["is_generating"],
        }

    return app
