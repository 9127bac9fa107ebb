"""
Grading Agent - batch evaluation of open-ended quiz answers.

Defines the grading contract shared by every grader backend and the
LLM-backed grader, which grades a whole batch of free-text answers with a
single prompt.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List

from langchain_core.prompts import PromptTemplate
from langchain_openai import ChatOpenAI

from ..config import config
from ..errors import GradingUnavailable

logger = logging.getLogger(__name__)


GRADES = ("correct", "partial", "incorrect")


def grade_from_score(score: float) -> str:
    """Derive a grade when the grader only returned a numeric score."""
    if score >= 1.0:
        return "correct"
    if score <= 0.0:
        return "incorrect"
    return "partial"


@dataclass
class GradingRequestItem:
    """
    One open-ended answer submitted for grading.

    Attributes:
        question: Question text
        answer: Learner's free-text answer
        context: Grading hint, e.g. "Expected answer: ..."
    """
    question: str
    answer: str
    context: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire format of the grading function."""
        data = {"question": self.question, "answer": self.answer}
        if self.context:
            data["context"] = self.context
        return data


@dataclass
class GradingResult:
    """
    Result of grading one open-ended response.

    Attributes:
        grade: "correct", "partial" or "incorrect"
        score: Credit from 0 to 1
        feedback: Feedback for the learner
        weak_areas: Concept tags the learner struggled with
        improvements: Suggestions for improvement
        question: Question text echoed back by the grader
        answer: Answer text echoed back by the grader
    """
    grade: str
    score: float
    feedback: str = ""
    weak_areas: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    question: str = ""
    answer: str = ""

    def __post_init__(self):
        if self.grade not in GRADES:
            raise ValueError(f"grade must be one of {GRADES}, got {self.grade!r}")
        if not (0.0 <= self.score <= 1.0):
            raise ValueError(f"score must be in [0, 1], got {self.score}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> GradingResult:
        """
        Build a result from a grader payload.

        Scores outside [0, 1] are clamped; a missing grade is derived from the
        score. Non-string tags are dropped.

        Raises:
            ValueError: If the payload has no numeric score or an unknown grade
        """
        if not isinstance(data, dict):
            raise ValueError(f"Grading result must be an object, got {type(data).__name__}")

        raw_score = data.get("score")
        if isinstance(raw_score, bool) or not isinstance(raw_score, (int, float)):
            raise ValueError(f"Grading result has no numeric score: {raw_score!r}")
        score = max(0.0, min(1.0, float(raw_score)))

        grade = data.get("grade") or grade_from_score(score)

        return cls(
            grade=grade,
            score=score,
            feedback=data.get("feedback") or "",
            weak_areas=[a for a in data.get("weakAreas", data.get("weak_areas")) or [] if isinstance(a, str)],
            improvements=[i for i in data.get("improvements") or [] if isinstance(i, str)],
            question=data.get("question") or "",
            answer=data.get("answer") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "question": self.question,
            "answer": self.answer,
            "grade": self.grade,
            "score": self.score,
            "feedback": self.feedback,
            "weakAreas": list(self.weak_areas),
            "improvements": list(self.improvements),
        }


@dataclass
class GradingResponse:
    """Ordered grading results plus batch metadata."""
    graded: List[GradingResult]
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_results(cls, graded: List[GradingResult]) -> GradingResponse:
        average = sum(r.score for r in graded) / len(graded) if graded else 0.0
        return cls(
            graded=graded,
            metadata={
                "graded_at": datetime.now(timezone.utc).isoformat(),
                "total_questions": len(graded),
                "average_score": round(average, 4),
            },
        )


class OpenEndedGrader(ABC):
    """
    Batch grader for free-text answers.

    Implementations return one result per item, in submission order, or
    raise. Every exception is treated as the batch being unavailable.
    """

    @abstractmethod
    def grade_batch(self, items: List[GradingRequestItem]) -> GradingResponse:
        """Grade all items in one call."""


def extract_weak_areas(grading_results: List[GradingResult]) -> List[str]:
    """Concept tags from incorrect or partial answers, deduplicated in order."""
    weak_areas: List[str] = []
    for result in grading_results:
        if result.grade in ("incorrect", "partial"):
            weak_areas.extend(result.weak_areas)
    return list(dict.fromkeys(weak_areas))


def extract_improvements(grading_results: List[GradingResult]) -> List[str]:
    """Improvement suggestions from all results, deduplicated in order."""
    improvements: List[str] = []
    for result in grading_results:
        improvements.extend(result.improvements)
    return list(dict.fromkeys(improvements))


def parse_json_payload(text: str) -> Any:
    """Parse JSON from an LLM reply, unwrapping a markdown code fence if present."""
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0].strip()
    elif "```" in text:
        text = text.split("```")[1].split("```")[0].strip()
    return json.loads(text)


class LLMGradingAgent(OpenEndedGrader):
    """
    AI-powered grader for open-ended questions.

    Sends the whole batch to the LLM in one prompt so a quiz costs a single
    round-trip no matter how many free-text questions it has.
    """

    def __init__(
        self,
        model_name: Optional[str] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize grading agent.

        Args:
            model_name: LLM model name
            temperature: LLM temperature (lower = more consistent)
            timeout: Request timeout in seconds
        """
        self.model_name = model_name or config.model.model_name
        self.timeout = timeout or config.grading.timeout

        self.llm = ChatOpenAI(
            model=self.model_name,
            temperature=config.model.grading_temperature if temperature is None else temperature,
            api_key=config.model.api_key,
            base_url=config.model.base_url,
            max_tokens=config.model.max_tokens,
            timeout=self.timeout,
            max_retries=0,
        )

        self.batch_prompt = PromptTemplate(
            input_variables=["items", "count"],
            template="""You are an expert educational grader. Grade each of the {count} learner answers below.

{items}

**Instructions:**
1. Grade every answer independently against its question and context
2. Use "correct" for a complete answer, "partial" for a partly correct one, "incorrect" otherwise
3. Give a score from 0 to 1 (fractions allowed for partial answers)
4. List the concepts the learner struggled with as short tags
5. Suggest concrete improvements and give constructive feedback

**Format your response as JSON, one entry per answer, in the same order:**
{{
  "graded": [
    {{
      "question": "<question text>",
      "answer": "<learner answer>",
      "grade": "correct" | "partial" | "incorrect",
      "score": <number 0-1>,
      "feedback": "1-2 sentences of feedback",
      "weakAreas": ["concept 1", ...],
      "improvements": ["improvement 1", ...]
    }}
  ]
}}

**Evaluation:**"""
        )

    def _format_items(self, items: List[GradingRequestItem]) -> str:
        blocks = []
        for number, item in enumerate(items, start=1):
            block = f"**Answer {number}**\nQuestion: {item.question}\nLearner's answer: {item.answer}"
            if item.context:
                block += f"\nContext: {item.context}"
            blocks.append(block)
        return "\n\n".join(blocks)

    def grade_batch(self, items: List[GradingRequestItem]) -> GradingResponse:
        """
        Grade a batch of open-ended answers with one LLM call.

        Raises:
            ValueError: If items is empty
            GradingUnavailable: If the LLM call fails or its reply can't be used
        """
        if not items:
            raise ValueError("Input must be a non-empty list of questions")

        prompt = self.batch_prompt.format(
            items=self._format_items(items),
            count=len(items),
        )

        try:
            reply = self.llm.invoke(prompt).content
        except Exception as e:
            raise GradingUnavailable(f"LLM grading call failed: {e}") from e

        try:
            payload = parse_json_payload(reply)
            entries = payload["graded"] if isinstance(payload, dict) else payload
            if not isinstance(entries, list):
                raise ValueError("missing graded array")
            graded = [GradingResult.from_dict(entry) for entry in entries]
        except (json.JSONDecodeError, KeyError, IndexError, ValueError) as e:
            raise GradingUnavailable(f"Unable to parse grading response: {e}") from e

        if len(graded) != len(items):
            raise GradingUnavailable(
                f"Grader returned {len(graded)} results for {len(items)} answers"
            )

        for item, result in zip(items, graded):
            result.question = result.question or item.question
            result.answer = result.answer or item.answer

        logger.debug("LLM graded %d open-ended answers", len(graded))
        return GradingResponse.from_results(graded)
