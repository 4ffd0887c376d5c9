"""FastAPI application for the book-reader REST API."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import get_settings
from ..persistence import ProgressStore
from ..session import ReaderSession
from .routers import document, modes, position, voices

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown."""
    # Startup: one reader session per process
    if app.state.session is None:
        settings = get_settings()
        app.state.session = ReaderSession(
            settings=settings,
            progress_store=ProgressStore(Path(settings.progress_dir)),
        )
        logger.info(f"Reader session started (speech backend: {settings.speech_backend})")

    yield

    # Shutdown: stop the drivers
    logger.info("Shutting down...")
    app.state.session.shutdown()


def create_app(session: Optional[ReaderSession] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        session: Reader session to serve (one is built from settings at
                 startup if None)
    """
    settings = get_settings()

    app = FastAPI(
        title="book-reader API",
        description=(
            "Navigate a document by paragraph, sentence and word.\n\n"
            "## Features\n"
            "- Word, sentence and paragraph moves plus clamped jumps\n"
            "- Autoscroll at a fixed words-per-minute pace\n"
            "- Sentence-by-sentence speech with Kokoro TTS\n"
            "- Live position updates over Server-Sent Events\n\n"
            "## Quick Start\n"
            "1. Load text at `/api/v1/document`\n"
            "2. Move with `/api/v1/position/move`\n"
            "3. Subscribe to `/api/v1/position/events`\n"
            "4. Turn on `/api/v1/modes/autoscroll` or `/api/v1/modes/speech`"
        ),
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.session = session

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    # Include routers
    app.include_router(document.router, prefix="/api/v1")
    app.include_router(position.router, prefix="/api/v1")
    app.include_router(modes.router, prefix="/api/v1")
    app.include_router(voices.router, prefix="/api/v1")

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for monitoring and load balancers."""
        return {"status": "healthy"}

    # Root endpoint
    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "book-reader API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    return app


# Create the application instance
app = create_app()
