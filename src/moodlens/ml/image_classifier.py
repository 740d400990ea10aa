"""Image classification result type."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ClassificationResult:
    """A single classification prediction.

    ``confidence`` is the model's byte score scaled into [0, 1].
    """

    label: str
    confidence: float
