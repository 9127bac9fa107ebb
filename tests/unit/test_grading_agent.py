"""
Unit tests for the grading contract and the LLM grading agent.

Tests result parsing, batch grading and failure handling.
"""

import unittest
from unittest.mock import MagicMock, patch
import json

from tutorai.agents.grading_agent import (
    GradingRequestItem,
    GradingResponse,
    GradingResult,
    LLMGradingAgent,
    extract_improvements,
    extract_weak_areas,
    grade_from_score,
    parse_json_payload,
)
from tutorai.errors import GradingUnavailable
from tutorai.config import config


class TestGradingResult(unittest.TestCase):
    """Test GradingResult dataclass."""

    def test_grading_result_creation(self):
        """Test creating a GradingResult."""
        result = GradingResult(grade="partial", score=0.5, feedback="Almost", weak_areas=["loops"])
        self.assertEqual(result.grade, "partial")
        self.assertEqual(result.score, 0.5)
        self.assertEqual(result.improvements, [])

    def test_invalid_grade_rejected(self):
        with self.assertRaises(ValueError):
            GradingResult(grade="excellent", score=1.0)

    def test_score_out_of_range_rejected(self):
        with self.assertRaises(ValueError):
            GradingResult(grade="correct", score=1.5)

    def test_from_dict_wire_format(self):
        result = GradingResult.from_dict({
            "question": "Explain loops",
            "answer": "repeat",
            "grade": "incorrect",
            "score": 0,
            "feedback": "Too short",
            "weakAreas": ["iteration", 3],
            "improvements": ["Give an example"],
        })
        self.assertEqual(result.weak_areas, ["iteration"])
        self.assertEqual(result.score, 0.0)
        self.assertEqual(result.question, "Explain loops")

    def test_from_dict_clamps_score_and_derives_grade(self):
        self.assertEqual(GradingResult.from_dict({"score": 1.7}).grade, "correct")
        self.assertEqual(GradingResult.from_dict({"score": 1.7}).score, 1.0)
        self.assertEqual(GradingResult.from_dict({"score": 0.4}).grade, "partial")
        self.assertEqual(GradingResult.from_dict({"score": -2}).grade, "incorrect")

    def test_from_dict_requires_numeric_score(self):
        for payload in ({}, {"score": "high"}, {"score": True}, "not an object"):
            with self.assertRaises(ValueError):
                GradingResult.from_dict(payload)

    def test_to_dict_uses_wire_keys(self):
        data = GradingResult(grade="correct", score=1.0, weak_areas=["x"]).to_dict()
        self.assertEqual(data["weakAreas"], ["x"])
        self.assertEqual(data["grade"], "correct")


class TestGradingHelpers(unittest.TestCase):
    """Test helper functions."""

    def test_grade_from_score(self):
        self.assertEqual(grade_from_score(1.0), "correct")
        self.assertEqual(grade_from_score(0.0), "incorrect")
        self.assertEqual(grade_from_score(0.25), "partial")

    def test_request_item_omits_empty_context(self):
        self.assertEqual(GradingRequestItem("Q", "A").to_dict(), {"question": "Q", "answer": "A"})
        self.assertEqual(GradingRequestItem("Q", "A", "Expected answer: B").to_dict()["context"], "Expected answer: B")

    def test_response_metadata(self):
        response = GradingResponse.from_results([
            GradingResult(grade="correct", score=1.0),
            GradingResult(grade="partial", score=0.5),
        ])
        self.assertEqual(response.metadata["total_questions"], 2)
        self.assertEqual(response.metadata["average_score"], 0.75)
        self.assertIn("graded_at", response.metadata)

    def test_extract_weak_areas(self):
        results = [
            GradingResult(grade="correct", score=1.0, weak_areas=["ignored"]),
            GradingResult(grade="partial", score=0.5, weak_areas=["loops", "scope"]),
            GradingResult(grade="incorrect", score=0.0, weak_areas=["loops"]),
        ]
        self.assertEqual(extract_weak_areas(results), ["loops", "scope"])

    def test_extract_improvements(self):
        results = [
            GradingResult(grade="correct", score=1.0, improvements=["a"]),
            GradingResult(grade="partial", score=0.5, improvements=["a", "b"]),
        ]
        self.assertEqual(extract_improvements(results), ["a", "b"])

    def test_parse_json_payload_unwraps_fence(self):
        text = 'Here you go:\n```json\n{"graded": []}\n```'
        self.assertEqual(parse_json_payload(text), {"graded": []})
        self.assertEqual(parse_json_payload('```\n[1]\n```'), [1])
        self.assertEqual(parse_json_payload('{"a": 1}'), {"a": 1})


class TestLLMGradingAgent(unittest.TestCase):
    """Test LLMGradingAgent with a mocked LLM."""

    def setUp(self):
        """Set up test fixtures."""
        patcher = patch("tutorai.agents.grading_agent.ChatOpenAI")
        self.mock_chat = patcher.start()
        self.addCleanup(patcher.stop)

        self.agent = LLMGradingAgent(model_name="gpt-3.5-turbo", temperature=0.3)
        self.items = [
            GradingRequestItem("Explain loops", "they repeat", "Expected answer: repetition"),
            GradingRequestItem("Explain recursion", "no idea"),
        ]

    def reply(self, payload):
        response = MagicMock()
        response.content = payload if isinstance(payload, str) else json.dumps(payload)
        self.agent.llm.invoke.return_value = response

    def test_initialization(self):
        """Test agent initialization."""
        self.assertEqual(self.agent.model_name, "gpt-3.5-turbo")
        kwargs = self.mock_chat.call_args.kwargs
        self.assertEqual(kwargs["temperature"], 0.3)
        self.assertEqual(kwargs["max_retries"], 0)
        self.assertEqual(kwargs["max_tokens"], config.model.max_tokens)

    def test_grade_batch_single_call(self):
        self.reply({"graded": [
            {"grade": "correct", "score": 1, "feedback": "Good"},
            {"grade": "incorrect", "score": 0, "weakAreas": ["recursion"]},
        ]})

        response = self.agent.grade_batch(self.items)

        self.agent.llm.invoke.assert_called_once()
        prompt = self.agent.llm.invoke.call_args[0][0]
        self.assertIn("Explain recursion", prompt)
        self.assertIn("Expected answer: repetition", prompt)
        self.assertEqual([r.grade for r in response.graded], ["correct", "incorrect"])
        self.assertEqual(response.graded[1].question, "Explain recursion")
        self.assertEqual(response.graded[1].answer, "no idea")

    def test_grade_batch_fenced_array(self):
        self.reply('```json\n[{"score": 1}, {"score": 0.5}]\n```')
        response = self.agent.grade_batch(self.items)
        self.assertEqual(response.graded[1].grade, "partial")

    def test_length_mismatch_is_unavailable(self):
        self.reply({"graded": [{"grade": "correct", "score": 1}]})
        with self.assertRaises(GradingUnavailable):
            self.agent.grade_batch(self.items)

    def test_unparseable_reply_is_unavailable(self):
        self.reply("I cannot grade this")
        with self.assertRaises(GradingUnavailable):
            self.agent.grade_batch(self.items)

    def test_llm_error_is_unavailable(self):
        self.agent.llm.invoke.side_effect = Exception("API Error")
        with self.assertRaises(GradingUnavailable):
            self.agent.grade_batch(self.items)

    def test_empty_batch_rejected(self):
        with self.assertRaises(ValueError):
            self.agent.grade_batch([])


if __name__ == "__main__":
    unittest.main()
