"""
Quiz scoring - combines local answer checks with batch AI grading.

Closed-form questions earn one whole point each when correct. Open-ended
questions are graded together in a single grader call and earn their
fractional score. If the grader is unavailable every open-ended question
earns the fallback credit instead, so a result is always produced.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

from ..agents.grading_agent import GradingRequestItem, GradingResult, OpenEndedGrader
from ..config import config
from ..errors import GradingUnavailable
from .evaluator import evaluate
from .question import OpenEndedSlot, Question, open_ended_slots

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for non-negative input."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class AttemptScore:
    """
    Score of one quiz attempt. Never mutated after creation.

    Attributes:
        score: Integer percentage 0-100
        grading_results: Open-ended grading results, in ordinal order
            (empty when grading failed or there were no open-ended questions)
        correct: Points earned (whole points plus partial credit)
        total_questions: Number of questions in the attempt
        grading_failed: Whether fallback credit was applied
    """
    score: int
    grading_results: Tuple[GradingResult, ...] = ()
    correct: float = 0.0
    total_questions: int = 0
    grading_failed: bool = False
    open_ended: Tuple[OpenEndedSlot, ...] = field(default=(), repr=False)

    def result_for(self, absolute_index: int) -> Optional[GradingResult]:
        """Grading result of the open-ended question at `absolute_index`, if any."""
        for slot in self.open_ended:
            if slot.absolute_index == absolute_index:
                if slot.ordinal_index < len(self.grading_results):
                    return self.grading_results[slot.ordinal_index]
                return None
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "score": self.score,
            "gradingResults": [r.to_dict() for r in self.grading_results],
        }


class ScoringEngine:
    """
    Scores completed quiz attempts.

    Usage:
        engine = ScoringEngine(grader=HttpGradingClient())
        attempt = engine.score(questions, answers)
    """

    def __init__(
        self,
        grader: Optional[OpenEndedGrader] = None,
        fallback_credit: Optional[float] = None,
    ):
        """
        Initialize scoring engine.

        Args:
            grader: Batch grader for open-ended answers. Without one, every
                open-ended question gets the fallback credit.
            fallback_credit: Credit per open-ended question when grading fails
        """
        self.grader = grader
        self.fallback_credit = (
            config.grading.fallback_credit if fallback_credit is None else fallback_credit
        )

    def score(self, questions: Sequence[Question], answers: Sequence[Any]) -> AttemptScore:
        """
        Score an attempt.

        Args:
            questions: Quiz questions
            answers: Learner answers, aligned by index with questions

        Returns:
            AttemptScore

        Raises:
            ValueError: If questions and answers are not aligned
        """
        if len(questions) != len(answers):
            raise ValueError(
                f"Number of answers ({len(answers)}) must match number of questions ({len(questions)})"
            )

        total_questions = len(questions)
        slots = open_ended_slots(list(questions))

        correct = 0.0
        for question, answer in zip(questions, answers):
            if question.is_open_ended:
                continue
            if evaluate(question, answer).is_correct:
                correct += 1

        grading_results: List[GradingResult] = []
        grading_failed = False

        if slots:
            items = [self._request_item(questions[s.absolute_index], answers[s.absolute_index]) for s in slots]
            try:
                grading_results = self._grade(items)
                correct += sum(result.score for result in grading_results)
            except GradingUnavailable as e:
                logger.warning(
                    "Open-ended grading unavailable, awarding %.2f credit to %d question(s): %s",
                    self.fallback_credit,
                    len(slots),
                    e,
                )
                grading_results = []
                grading_failed = True
                correct += len(slots) * self.fallback_credit

        score = round_half_up(correct / total_questions * 100) if total_questions else 0

        logger.info(
            "Scored attempt: %.2f/%d correct -> %d%% (%d open-ended)",
            correct,
            total_questions,
            score,
            len(slots),
        )

        return AttemptScore(
            score=score,
            grading_results=tuple(grading_results),
            correct=correct,
            total_questions=total_questions,
            grading_failed=grading_failed,
            open_ended=tuple(slots),
        )

    @staticmethod
    def _request_item(question: Question, answer: Any) -> GradingRequestItem:
        return GradingRequestItem(
            question=question.prompt,
            answer=answer if isinstance(answer, str) else "",
            context=f"Expected answer: {question.expected_answer_text}",
        )

    def _grade(self, items: List[GradingRequestItem]) -> List[GradingResult]:
        """
        One batch call to the grader. Any failure fails the whole batch.

        Raises:
            GradingUnavailable: If there is no grader, it raises, or it returns
                the wrong number of results
        """
        if self.grader is None:
            raise GradingUnavailable("No open-ended grader configured")

        try:
            response = self.grader.grade_batch(items)
        except GradingUnavailable:
            raise
        except Exception as e:
            raise GradingUnavailable(f"{type(e).__name__}: {e}") from e

        graded = self._graded_results(response)
        if len(graded) != len(items):
            raise GradingUnavailable(
                f"Grader returned {len(graded)} results for {len(items)} answers"
            )
        return graded

    @staticmethod
    def _graded_results(response: Any) -> List[GradingResult]:
        """
        Ordered results from a grader response.

        Accepts a GradingResponse or a `{"graded": [...]}` mapping; raw dict
        entries are parsed with GradingResult.from_dict.

        Raises:
            GradingUnavailable: If the response or any entry has the wrong shape
        """
        if isinstance(response, dict):
            entries = response.get("graded")
        else:
            entries = getattr(response, "graded", None)

        if not isinstance(entries, list):
            raise GradingUnavailable(
                f"Invalid grading response: expected a graded list, got {type(entries).__name__}"
            )

        graded = []
        for entry in entries:
            if isinstance(entry, GradingResult):
                graded.append(entry)
            elif isinstance(entry, dict):
                try:
                    graded.append(GradingResult.from_dict(entry))
                except ValueError as e:
                    raise GradingUnavailable(f"Invalid grading result: {e}") from e
            else:
                raise GradingUnavailable(
                    f"Invalid grading result: expected an object, got {type(entry).__name__}"
                )
        return graded
