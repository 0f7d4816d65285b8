"""Renders a transcript and the rubric into the model prompt."""

from __future__ import annotations

from scoring.rubric import Rubric

PROMPT_HEADER = "Analyze this sales call transcript and provide detailed scores and feedback."

RESPONSE_FORMAT_INSTRUCTIONS = """Format the response exactly as follows so it can be parsed programmatically.
For each category write one line starting with the category name, a colon and the integer score,
then put your comments for that category on the very next line:

{example_lines}

Finish with a section that starts with "Recommendations:" followed by specific recommendations for improvement."""


def build_prompt(transcript: str, rubric: Rubric) -> str:
    """
    Build the analysis prompt for a transcript.

    The transcript is embedded verbatim and every rubric dimension is listed
    in rubric order with its maximum score. Callers reject empty transcripts
    before calling this.
    """
    criteria = [
        f"{index}. {dimension.label} score (out of {dimension.max_score}) with specific examples from the call"
        for index, dimension in enumerate(rubric.dimensions, start=1)
    ]
    criteria.append(f"{len(criteria) + 1}. Specific recommendations for improvement")

    example_lines = "\n".join(
        f"{dimension.label}: <score 0-{dimension.max_score}>\n<comments on {dimension.label.lower()}>"
        for dimension in rubric.dimensions
    )

    sections = [
        PROMPT_HEADER,
        f"Transcript:\n{transcript}",
        "Please analyze and provide:\n" + "\n".join(criteria),
        RESPONSE_FORMAT_INSTRUCTIONS.format(example_lines=example_lines),
    ]
    return "\n\n".join(sections) + "\n"
