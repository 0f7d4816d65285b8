"""Extraction of per-dimension scores and recommendations from raw model text."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Optional, Protocol, Tuple

from scoring.models import DimensionResult, PartialExtraction
from scoring.rubric import Rubric, RubricDimension

# Case-insensitive, first occurrence, runs to the end of the reply. Markdown
# directly trailing the heading ("Recommendations:**") is not part of the capture.
RECOMMENDATIONS_PATTERN = re.compile(r"recommendations?:?[*_#: \t]*(.*)\Z", re.IGNORECASE | re.DOTALL)

# Leftovers on the score line that are not commentary, e.g. "/20", "**", " - ".
_SCORE_LINE_NOISE = re.compile(r"^\s*(?:/\s*\d+)?[\s*_\-:.,)\]]*")

_SCORE_AND_COMMENT = r":[^\d\n]*?(?P<score>-?\d+)(?P<rest>[^\n]*)(?:\n(?P<next_line>[^\n]*))?"


class ResponseParser(Protocol):
    """Strategy contract for turning a raw reply into a partial extraction."""

    def parse(self, raw_text: str, rubric: Rubric) -> PartialExtraction:
        """Extract what can be found. Never raises on malformed text."""


class RegexResponseParser:
    """Pattern-matching parser for the line-oriented format requested by the prompt.

    For each dimension the first line holding ``<Label>...: <integer>`` wins.
    The label is matched case-sensitively, any text up to the first colon on
    that line is allowed (``Engagement score (out of 20): 18``), and any
    non-digit text may sit between the colon and the number (``**``,
    ``Score:``). When no such line exists, a label on a heading line followed
    by the score on the next line (``### Engagement`` / ``Score: 18/20``) is
    accepted. The comment is the rest of the score line plus the following
    line, either of which may be empty.
    """

    def parse(self, raw_text: str, rubric: Rubric) -> PartialExtraction:
        text = (raw_text or "").replace("\r\n", "\n")
        dimensions = {
            dimension.key: self.extract_dimension(text, dimension)
            for dimension in rubric.dimensions
        }
        return PartialExtraction(
            dimensions=dimensions,
            recommendations=self.extract_recommendations(text),
        )

    def extract_dimension(self, text: str, dimension: RubricDimension) -> Optional[DimensionResult]:
        same_line, heading = _dimension_patterns(dimension.label)
        match = same_line.search(text) or heading.search(text)
        if not match:
            return None

        remainder = _SCORE_LINE_NOISE.sub("", match.group("rest")).strip()
        next_line = (match.group("next_line") or "").strip()
        comments = "\n".join(part for part in (remainder, next_line) if part)

        return DimensionResult(key=dimension.key, score=int(match.group("score")), comments=comments)

    def extract_recommendations(self, text: str) -> Optional[str]:
        match = RECOMMENDATIONS_PATTERN.search(text)
        if not match:
            return None
        return match.group(1).strip() or None


@lru_cache(maxsize=None)
def _dimension_patterns(label: str) -> Tuple[re.Pattern, re.Pattern]:
    label_pattern = re.escape(label)
    return (
        re.compile(label_pattern + r"[^:\n]*" + _SCORE_AND_COMMENT),
        re.compile(label_pattern + r"[^:\n]*\n[^:\n]*" + _SCORE_AND_COMMENT),
    )
