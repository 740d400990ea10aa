"""Pydantic request/response schemas for the MoodLens API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class MoodTag(BaseModel):
    """A single ranked label with confidence score."""

    label: str
    confidence: float = Field(ge=0.0, le=1.0)


class ClassifyImageResponse(BaseModel):
    """Response for the image classification endpoint."""

    tags: list[MoodTag] = Field(description="Top labels, highest confidence first")
    mood: str | None = Field(description="Mood sentence for the configured display rank, if ranked")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    gpu: bool
    model: str
    label_count: int
    concurrent_requests: int
    queue_depth: int


class LabelsResponse(BaseModel):
    """Label set in model output order."""

    labels: list[str]


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
