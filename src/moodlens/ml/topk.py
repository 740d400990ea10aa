"""Top-K label selection over per-label byte scores."""

from __future__ import annotations

import heapq
from typing import TYPE_CHECKING

from moodlens.ml.errors import ShapeMismatchError
from moodlens.ml.image_classifier import ClassificationResult

if TYPE_CHECKING:
    from collections.abc import Sequence

SCORE_SCALE: float = 255.0


def byte_confidence(raw: int) -> float:
    """Convert an unsigned byte score to a confidence in [0, 1]."""
    if not 0 <= raw <= 0xFF:
        raise ValueError(f"Score {raw} is not an unsigned byte")
    return raw / SCORE_SCALE


def select_top_k(labels: Sequence[str], scores: Sequence[int], k: int) -> list[ClassificationResult]:
    """Return the k highest-scoring labels, sorted by confidence (descending).

    A min-heap bounded at k entries is fed every (label, score) pair in index
    order, evicting its minimum whenever it grows past k. Draining it yields
    ascending order, which is reversed before returning.

    Entries with equal scores are ordered by label index, but callers should
    not depend on tie order.

    Args:
        labels: Label strings, index-aligned with ``scores``.
        scores: Unsigned byte scores (bytes, bytearray, uint8 array, ints).
        k: Maximum number of results.

    Raises:
        ShapeMismatchError: If ``labels`` and ``scores`` differ in length.
        ValueError: If ``k`` is negative or a score is not a byte.
    """
    if k < 0:
        raise ValueError(f"k must be non-negative, got {k}")
    if len(labels) != len(scores):
        raise ShapeMismatchError(labels=len(labels), scores=len(scores))

    # (confidence, -index, label): among equal confidences the higher index is
    # the heap minimum, so it is evicted first and lower indices rank first.
    heap: list[tuple[float, int, str]] = []
    for index, (label, raw) in enumerate(zip(labels, scores)):
        heapq.heappush(heap, (byte_confidence(int(raw)), -index, label))
        if len(heap) > k:
            heapq.heappop(heap)

    ascending = [heapq.heappop(heap) for _ in range(len(heap))]
    return [ClassificationResult(label=label, confidence=confidence) for confidence, _, label in reversed(ascending)]
