"""Fixed evaluation rubric for sales-call analysis."""

from __future__ import annotations

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, model_validator


class RubricDimension(BaseModel):
    """One scoring dimension with its maximum sub-score."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    max_score: int = 20
    payload_key: str


class Rubric(BaseModel):
    """Ordered, read-only set of scoring dimensions."""

    model_config = ConfigDict(frozen=True)

    dimensions: Tuple[RubricDimension, ...]

    @model_validator(mode="after")
    def _check_dimensions(self) -> "Rubric":
        keys = [dimension.key for dimension in self.dimensions]
        labels = [dimension.label for dimension in self.dimensions]
        if len(set(keys)) != len(keys):
            raise ValueError(f"Rubric dimension keys must be unique: {keys}")
        if len(set(labels)) != len(labels):
            raise ValueError(f"Rubric dimension labels must be unique: {labels}")
        if any(dimension.max_score <= 0 for dimension in self.dimensions):
            raise ValueError("Rubric dimension max_score must be positive")
        return self

    @property
    def total_max_score(self) -> int:
        return sum(dimension.max_score for dimension in self.dimensions)

    def get(self, key: str) -> Optional[RubricDimension]:
        for dimension in self.dimensions:
            if dimension.key == key:
                return dimension
        return None


SALES_CALL_RUBRIC = Rubric(
    dimensions=(
        RubricDimension(key="engagement", label="Engagement", payload_key="engagement"),
        RubricDimension(key="clarity", label="Clarity", payload_key="clarity"),
        RubricDimension(key="product_knowledge", label="Product Knowledge", payload_key="productKnowledge"),
        RubricDimension(key="listening_skills", label="Listening Skills", payload_key="listeningSkills"),
        RubricDimension(key="handling_objections", label="Handling Objections", payload_key="handlingObjections"),
        RubricDimension(key="closing_techniques", label="Closing Techniques", payload_key="closingTechniques"),
    )
)
