"""API route definitions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request, UploadFile, status

from moodlens.api.schemas import (
    ClassifyImageResponse,
    ErrorResponse,
    HealthResponse,
    LabelsResponse,
    MoodTag,
)
from moodlens.ml.errors import ClassificationError, ImageDecodeError
from moodlens.presenter import format_result

if TYPE_CHECKING:
    from moodlens.config import Settings
    from moodlens.ml.classifier import MoodClassifier
    from moodlens.ml.inference import InferencePool

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1")


def _get_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def _get_inference_pool(request: Request) -> InferencePool:
    pool: InferencePool = request.app.state.inference_pool
    return pool


def _get_classifier(request: Request) -> MoodClassifier:
    classifier: MoodClassifier = request.app.state.classifier
    return classifier


@router.post(
    "/classify-image",
    response_model=ClassifyImageResponse,
    responses={
        status.HTTP_413_CONTENT_TOO_LARGE: {"model": ErrorResponse},
        status.HTTP_422_UNPROCESSABLE_CONTENT: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
    },
    summary="Classify the mood of an image",
)
async def classify_image(request: Request, file: UploadFile) -> ClassifyImageResponse:
    """Classify an uploaded image and return ranked labels plus a mood sentence."""
    settings = _get_settings(request)
    pool = _get_inference_pool(request)
    classifier = _get_classifier(request)

    image_bytes = await file.read(settings.max_file_size + 1)
    if len(image_bytes) > settings.max_file_size:
        raise HTTPException(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail=f"File exceeds {settings.max_file_size} bytes",
        )

    try:
        ranked = await pool.run(classifier.classify_bytes, image_bytes)
    except TimeoutError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Inference queue is full, retry later",
        ) from None
    except ImageDecodeError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_CONTENT, detail=str(exc)) from exc
    except ClassificationError as exc:
        logger.exception("Classification failed for %s", file.filename)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc

    mood = format_result(ranked, settings.display_rank) if settings.display_rank < len(ranked) else None
    return ClassifyImageResponse(
        tags=[MoodTag(label=r.label, confidence=r.confidence) for r in ranked],
        mood=mood,
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health(request: Request) -> HealthResponse:
    """Return service health status."""
    settings = _get_settings(request)
    pool = _get_inference_pool(request)
    classifier = _get_classifier(request)
    return HealthResponse(
        status="ok",
        gpu=settings.device == "cuda",
        model=classifier.model_name,
        label_count=len(classifier.labels),
        concurrent_requests=pool.active_count,
        queue_depth=pool.queue_depth,
    )


@router.get(
    "/labels",
    response_model=LabelsResponse,
    summary="List the labels the model can output",
)
async def list_labels(request: Request) -> LabelsResponse:
    """Return the label set in model output order."""
    return LabelsResponse(labels=list(_get_classifier(request).labels))
