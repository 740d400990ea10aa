"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

from fastapi import FastAPI

from moodlens.api.routes import router
from moodlens.config import get_settings
from moodlens.ml.classifier import MoodClassifier
from moodlens.ml.inference import InferencePool

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: load assets on startup, clean up on shutdown.

    A ResourceLoadError here aborts startup; the app never serves requests
    without a model and label set.
    """
    settings = get_settings()
    app.state.settings = settings

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    logger.info(
        "Starting MoodLens (device=%s, max_concurrent=%s, model=%s, display_rank=%s)",
        settings.device,
        settings.max_concurrent,
        settings.model_path,
        settings.display_rank,
    )

    app.state.classifier = MoodClassifier.from_settings(settings)
    inference_pool = InferencePool(settings)
    app.state.inference_pool = inference_pool

    logger.info("MoodLens ready")
    yield

    logger.info("Shutting down MoodLens")
    inference_pool.shutdown()
    logger.info("MoodLens shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="MoodLens",
        description="Photo mood classification API",
        version="0.1.0",
        lifespan=lifespan,
    )
    application.include_router(router)
    return application


app = create_app()
