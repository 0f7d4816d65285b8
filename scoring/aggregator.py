"""Weighted aggregation of dimension scores into a 0-100 total."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping

from scoring.models import DimensionResult
from scoring.rubric import Rubric

TOTAL_SCALE = 100


def clamp_score(score: int, max_score: int) -> int:
    """Clamp a raw dimension score into [0, max_score]."""
    return max(0, min(int(score), max_score))


def round_half_away_from_zero(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_total_score(results: Mapping[str, DimensionResult], rubric: Rubric) -> int:
    """
    Compute the overall quality score.

    Each dimension score is clamped to its rubric range, the clamped scores are
    summed and scaled onto 0-100 against the rubric's total maximum, then
    rounded half away from zero. Comments never influence the total.

    Args:
        results: One DimensionResult per rubric dimension, keyed by dimension key
        rubric: Rubric providing the dimensions and their maximum scores

    Returns:
        Integer total in [0, 100]
    """
    missing = [dimension.key for dimension in rubric.dimensions if dimension.key not in results]
    if missing:
        raise ValueError(f"Missing dimension results for: {', '.join(missing)}")

    clamped_sum = sum(
        clamp_score(results[dimension.key].score, dimension.max_score)
        for dimension in rubric.dimensions
    )
    scaled = Decimal(clamped_sum * TOTAL_SCALE) / Decimal(rubric.total_max_score)
    return round_half_away_from_zero(scaled)
