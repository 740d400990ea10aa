"""Render ranked results as a mood sentence."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from moodlens.ml.image_classifier import ClassificationResult

MOOD_TEMPLATE = "You seem {label} with probability of {percent}%"


def format_percent(confidence: float) -> str:
    """Format a [0, 1] confidence as a whole percentage, rounding half up."""
    percent = Decimal(repr(confidence * 100)).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return str(percent)


def format_result(ranked: Sequence[ClassificationResult], rank: int) -> str:
    """Render the entry at position ``rank`` of ``ranked``.

    Raises:
        IndexError: If ``ranked`` has no entry at ``rank``.
    """
    if not 0 <= rank < len(ranked):
        raise IndexError(f"No result at rank {rank} (have {len(ranked)})")
    result = ranked[rank]
    return MOOD_TEMPLATE.format(label=result.label, percent=format_percent(result.confidence))
