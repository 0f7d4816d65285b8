#!/usr/bin/env python3
"""Tests for extracting dimension scores and recommendations from raw model replies."""

import unittest

from scoring.assembler import assemble_report
from scoring.response_parser import RegexResponseParser
from scoring.rubric import SALES_CALL_RUBRIC

WELL_FORMED_REPLY = """Here is my analysis of the call.

Engagement: 18
Built rapport quickly by using the customer's name.
Clarity: 15
Explained the fee structure clearly.
Product Knowledge: 12
Missed questions about certification.
Listening Skills: 17
Paraphrased the customer's needs before answering.
Handling Objections: 14
Addressed the price concern with an installment plan.
Closing Techniques: 16
Asked for the enrollment commitment at the end.

Recommendations:
Share a syllabus before the call.
Follow up within 24 hours.
"""

REVERSED_REPLY = """Closing Techniques: 16
Asked for the enrollment commitment at the end.
Handling Objections: 14
Addressed the price concern with an installment plan.
Listening Skills: 17
Paraphrased the customer's needs before answering.
Product Knowledge: 12
Missed questions about certification.
Clarity: 15
Explained the fee structure clearly.
Engagement: 18
Built rapport quickly by using the customer's name.
"""


class TestDimensionExtraction(unittest.TestCase):
    """Per-dimension score and comment extraction."""

    def setUp(self):
        self.parser = RegexResponseParser()

    def test_well_formed_reply_extracts_all_dimensions(self):
        extraction = self.parser.parse(WELL_FORMED_REPLY, SALES_CALL_RUBRIC)
        scores = {key: result.score for key, result in extraction.dimensions.items()}
        self.assertEqual(scores, {
            "engagement": 18,
            "clarity": 15,
            "product_knowledge": 12,
            "listening_skills": 17,
            "handling_objections": 14,
            "closing_techniques": 16,
        })
        self.assertEqual(
            extraction.dimensions["engagement"].comments,
            "Built rapport quickly by using the customer's name.",
        )

        report = assemble_report(extraction, SALES_CALL_RUBRIC)
        self.assertEqual(report.total_score, 77)
        for result in report.dimension_results.values():
            self.assertFalse(result.comments.startswith("No specific feedback"))

    def test_reverse_order_matches_by_label(self):
        forward = self.parser.parse(WELL_FORMED_REPLY, SALES_CALL_RUBRIC)
        backward = self.parser.parse(REVERSED_REPLY, SALES_CALL_RUBRIC)
        self.assertEqual(forward.dimensions, backward.dimensions)

    def test_missing_section_is_not_found(self):
        reply = WELL_FORMED_REPLY.replace(
            "Clarity: 15\nExplained the fee structure clearly.\n", ""
        )
        extraction = self.parser.parse(reply, SALES_CALL_RUBRIC)
        self.assertIsNone(extraction.dimensions["clarity"])
        self.assertEqual(len(extraction.found_keys()), 5)

        report = assemble_report(extraction, SALES_CALL_RUBRIC)
        self.assertEqual(report.dimension_results["clarity"].score, 0)
        self.assertEqual(report.dimension_results["clarity"].comments, "No specific feedback for Clarity")
        self.assertEqual(report.total_score, 64)  # 77 * 100 / 120 = 64.17

    def test_out_of_range_score_passed_through(self):
        reply = WELL_FORMED_REPLY.replace("Engagement: 18", "Engagement: 25")
        extraction = self.parser.parse(reply, SALES_CALL_RUBRIC)
        self.assertEqual(extraction.dimensions["engagement"].score, 25)

        report = assemble_report(extraction, SALES_CALL_RUBRIC)
        self.assertEqual(report.dimension_results["engagement"].score, 25)
        self.assertEqual(report.total_score, 78)  # 25 counts as 20: 94 * 100 / 120 = 78.33

    def test_tolerates_text_and_markdown_before_score(self):
        reply = (
            "1. Engagement score (out of 20): 18/20\n"
            "Warm opening.\n"
            "**Clarity:** 15\n"
            "Clear pricing.\n"
            "Product Knowledge: Score: 12\n"
            "Knew the modules.\n"
        )
        extraction = self.parser.parse(reply, SALES_CALL_RUBRIC)
        self.assertEqual(extraction.dimensions["engagement"].score, 18)
        self.assertEqual(extraction.dimensions["engagement"].comments, "Warm opening.")
        self.assertEqual(extraction.dimensions["clarity"].score, 15)
        self.assertEqual(extraction.dimensions["product_knowledge"].score, 12)
        self.assertEqual(extraction.dimensions["product_knowledge"].comments, "Knew the modules.")

    def test_label_match_is_case_sensitive(self):
        extraction = self.parser.parse("engagement: 18\nToo casual.\n", SALES_CALL_RUBRIC)
        self.assertIsNone(extraction.dimensions["engagement"])

    def test_mention_without_score_is_skipped(self):
        reply = (
            "Engagement was the strongest part of the call.\n"
            "Engagement: 17\n"
            "Kept the customer talking.\n"
        )
        extraction = self.parser.parse(reply, SALES_CALL_RUBRIC)
        self.assertEqual(extraction.dimensions["engagement"].score, 17)
        self.assertEqual(extraction.dimensions["engagement"].comments, "Kept the customer talking.")

    def test_first_occurrence_wins(self):
        reply = "Clarity: 11\nFirst pass.\nClarity: 19\nSecond pass.\n"
        extraction = self.parser.parse(reply, SALES_CALL_RUBRIC)
        self.assertEqual(extraction.dimensions["clarity"].score, 11)
        self.assertEqual(extraction.dimensions["clarity"].comments, "First pass.")

    def test_comment_falls_back_to_rest_of_score_line(self):
        reply = "Listening Skills: 13/20 - interrupted the customer twice\n\nClosing Techniques: 9 - no clear ask"
        extraction = self.parser.parse(reply, SALES_CALL_RUBRIC)
        self.assertEqual(
            extraction.dimensions["listening_skills"].comments,
            "interrupted the customer twice",
        )
        self.assertEqual(extraction.dimensions["closing_techniques"].score, 9)
        self.assertEqual(extraction.dimensions["closing_techniques"].comments, "no clear ask")

    def test_label_on_heading_line_score_on_next(self):
        reply = (
            "**Engagement**\n"
            "Score: 18/20\n"
            "Great rapport with the customer.\n"
        )
        extraction = self.parser.parse(reply, SALES_CALL_RUBRIC)
        self.assertEqual(extraction.dimensions["engagement"].score, 18)
        self.assertEqual(extraction.dimensions["engagement"].comments, "Great rapport with the customer.")
        self.assertIsNone(extraction.dimensions["product_knowledge"])

    def test_markdown_sections(self):
        reply = (
            "### Engagement\n"
            "Score: 17\n"
            "Opened with a question about the customer's goals.\n"
            "\n"
            "### Closing Techniques\n"
            "**Score:** 9\n"
            "No commitment was requested.\n"
        )
        extraction = self.parser.parse(reply, SALES_CALL_RUBRIC)
        self.assertEqual(extraction.dimensions["engagement"].score, 17)
        self.assertEqual(
            extraction.dimensions["engagement"].comments,
            "Opened with a question about the customer's goals.",
        )
        self.assertEqual(extraction.dimensions["closing_techniques"].score, 9)
        self.assertEqual(extraction.dimensions["closing_techniques"].comments, "No commitment was requested.")

    def test_same_line_score_preferred_over_heading(self):
        reply = (
            "Engagement overview\n"
            "Clarity: 12\n"
            "Fees were vague.\n"
            "Engagement: 16\n"
            "Kept the customer talking.\n"
        )
        extraction = self.parser.parse(reply, SALES_CALL_RUBRIC)
        self.assertEqual(extraction.dimensions["engagement"].score, 16)
        self.assertEqual(extraction.dimensions["clarity"].score, 12)

    def test_comment_keeps_rest_of_score_line_and_next_line(self):
        reply = "Engagement: 18/20 - strong opener\nUsed the customer's name throughout.\n"
        extraction = self.parser.parse(reply, SALES_CALL_RUBRIC)
        self.assertEqual(
            extraction.dimensions["engagement"].comments,
            "strong opener\nUsed the customer's name throughout.",
        )

    def test_windows_line_endings(self):
        reply = WELL_FORMED_REPLY.replace("\n", "\r\n")
        extraction = self.parser.parse(reply, SALES_CALL_RUBRIC)
        self.assertEqual(extraction.dimensions["clarity"].comments, "Explained the fee structure clearly.")

    def test_unstructured_reply_finds_nothing(self):
        extraction = self.parser.parse(
            "I'm sorry, I can't evaluate this call without more context.",
            SALES_CALL_RUBRIC,
        )
        self.assertEqual(extraction.found_keys(), [])
        self.assertIsNone(extraction.recommendations)

        report = assemble_report(extraction, SALES_CALL_RUBRIC)
        self.assertEqual(report.total_score, 0)
        self.assertEqual(report.recommendations, "No specific recommendations provided")
        self.assertEqual(len(report.dimension_results), 6)

    def test_empty_reply_does_not_raise(self):
        extraction = self.parser.parse("", SALES_CALL_RUBRIC)
        self.assertEqual(extraction.found_keys(), [])


class TestRecommendationExtraction(unittest.TestCase):
    """Trailing recommendations block."""

    def setUp(self):
        self.parser = RegexResponseParser()

    def test_captures_to_end_of_text(self):
        extraction = self.parser.parse(WELL_FORMED_REPLY, SALES_CALL_RUBRIC)
        self.assertEqual(
            extraction.recommendations,
            "Share a syllabus before the call.\nFollow up within 24 hours.",
        )

    def test_case_insensitive_and_colon_optional(self):
        self.assertEqual(
            self.parser.extract_recommendations("RECOMMENDATION\nAsk more questions."),
            "Ask more questions.",
        )

    def test_markdown_heading(self):
        self.assertEqual(
            self.parser.extract_recommendations("## Recommendations:**\n- Slow down."),
            "- Slow down.",
        )

    def test_bulleted_list_keeps_first_marker(self):
        recommendations = self.parser.extract_recommendations(
            "Recommendations:\n* Ask open questions\n* Confirm next step"
        )
        self.assertEqual(recommendations, "* Ask open questions\n* Confirm next step")

    def test_bold_heading_with_bullets(self):
        recommendations = self.parser.extract_recommendations(
            "**Recommendations:**\n- Slow down when quoting fees.\n- Summarize before closing."
        )
        self.assertEqual(recommendations, "- Slow down when quoting fees.\n- Summarize before closing.")

    def test_blank_recommendations_not_found(self):
        self.assertIsNone(self.parser.extract_recommendations("Scores above.\nRecommendations:\n   "))

    def test_absent(self):
        self.assertIsNone(self.parser.extract_recommendations("Engagement: 12\nFine."))


if __name__ == "__main__":
    unittest.main()
