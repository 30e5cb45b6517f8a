"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from feedboard.api import auth, feed
from feedboard.api.error_handlers import register_error_handlers
from feedboard.config import get_settings
from feedboard.logging_config import setup_logging

logger = logging.getLogger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    setup_logging(settings.log_level)
    logger.info(f"Feedboard API started ({settings.environment})")
    yield
    logger.info("Feedboard API shutting down")


app = FastAPI(
    title="Feedboard API",
    description="Authored posts with images behind token authentication",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for development
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

register_error_handlers(app)

# Register routers
app.include_router(auth.router)
app.include_router(feed.router)

# Uploaded images
Path(settings.images_dir).mkdir(parents=True, exist_ok=True)
app.mount("/images", StaticFiles(directory=settings.images_dir), name="images")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
