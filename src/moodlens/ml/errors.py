"""Exception hierarchy for the classification pipeline.

Every failure that aborts a classification request derives from
ClassificationError so callers can catch a single type.
"""

from __future__ import annotations


class ClassificationError(Exception):
    """Base class for errors that abort a classification request."""


class ResourceLoadError(ClassificationError):
    """The label file or model artifact is missing, unreadable, or empty."""


class ShapeMismatchError(ClassificationError, ValueError):
    """Label count and score count disagree."""

    def __init__(self, labels: int, scores: int) -> None:
        super().__init__(f"Got {scores} scores for {labels} labels")
        self.labels = labels
        self.scores = scores


class BufferOverflowError(ClassificationError):
    """A write would exceed the pixel buffer's fixed capacity."""


class ImageDecodeError(ClassificationError, ValueError):
    """The source image cannot be fetched or decoded."""


class InferenceError(ClassificationError):
    """The inference engine failed or returned an unusable tensor."""
