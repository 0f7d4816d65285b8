"""Composition of the final analysis report, including fallback values."""

from __future__ import annotations

from typing import Dict

from scoring.aggregator import compute_total_score
from scoring.models import AnalysisReport, DimensionResult, PartialExtraction
from scoring.rubric import Rubric, RubricDimension

NO_RECOMMENDATIONS = "No specific recommendations provided"


def fallback_comment(dimension: RubricDimension) -> str:
    return f"No specific feedback for {dimension.label}"


def assemble_report(extraction: PartialExtraction, rubric: Rubric) -> AnalysisReport:
    """
    Turn a partial extraction into a complete report.

    Found dimensions are used verbatim, including out-of-range scores. Missing
    dimensions become a zero score with a fallback comment, and missing
    recommendations become a fixed placeholder. The total is computed last,
    from the completed set of results.
    """
    dimension_results: Dict[str, DimensionResult] = {}
    for dimension in rubric.dimensions:
        result = extraction.dimensions.get(dimension.key)
        if result is None:
            result = DimensionResult(
                key=dimension.key,
                score=0,
                comments=fallback_comment(dimension),
            )
        dimension_results[dimension.key] = result

    return AnalysisReport(
        total_score=compute_total_score(dimension_results, rubric),
        dimension_results=dimension_results,
        recommendations=extraction.recommendations or NO_RECOMMENDATIONS,
    )
