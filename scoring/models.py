"""Result models produced by one analysis run."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from scoring.rubric import Rubric


class DimensionResult(BaseModel):
    """Extracted or defaulted score and commentary for one dimension.

    ``score`` is kept exactly as the model stated it. Range sanitization
    only happens when the total is aggregated.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    score: int
    comments: str


class PartialExtraction(BaseModel):
    """What a response parser could pull out of a raw model reply.

    A ``None`` entry means the dimension (or the recommendations block)
    was not found.
    """

    model_config = ConfigDict(frozen=True)

    dimensions: Dict[str, Optional[DimensionResult]] = Field(default_factory=dict)
    recommendations: Optional[str] = None

    def found_keys(self) -> List[str]:
        return [key for key, result in self.dimensions.items() if result is not None]


class AnalysisReport(BaseModel):
    """Complete score report for one call."""

    model_config = ConfigDict(frozen=True)

    total_score: int = Field(ge=0, le=100)
    dimension_results: Dict[str, DimensionResult]
    recommendations: str

    def to_payload(self, rubric: Rubric) -> Dict[str, Any]:
        """Flatten into the JSON shape served to clients."""
        payload: Dict[str, Any] = {"totalScore": self.total_score}
        for dimension in rubric.dimensions:
            result = self.dimension_results[dimension.key]
            payload[dimension.payload_key] = {
                "score": result.score,
                "comments": result.comments,
            }
        payload["recommendations"] = self.recommendations
        return payload
