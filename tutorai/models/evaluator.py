"""
Answer evaluation for closed-form quiz questions.

Pure functions, no I/O. Every answer shape is accepted: answers that don't
fit their question's type evaluate to incorrect instead of raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..agents.grading_agent import GradingResult
from ..errors import MalformedAnswer
from .question import MULTIPLE, OPEN_ENDED, TRUE_FALSE, Question, is_index

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Evaluation:
    """Outcome of evaluating one answer."""
    is_correct: bool
    malformed: bool = False


def _selected_indices(answer: Any) -> List[int]:
    if not isinstance(answer, (list, tuple)):
        raise MalformedAnswer(f"expected a list of option indices, got {type(answer).__name__}")
    if not all(is_index(v) for v in answer):
        raise MalformedAnswer(f"option indices must be integers, got {answer!r}")
    return list(answer)


def _check_single(question: Question, answer: Any) -> bool:
    selected = _selected_indices(answer)
    if len(selected) != 1:
        return False
    return selected[0] in question.correct_indices


def _check_multiple(question: Question, answer: Any) -> bool:
    selected = _selected_indices(answer)
    if not question.correct_indices:
        return False
    return tuple(sorted(selected)) == question.correct_indices


def _check_true_false(question: Question, answer: Any) -> bool:
    if not isinstance(answer, bool):
        raise MalformedAnswer(f"expected a boolean, got {type(answer).__name__}")
    return isinstance(question.correct_answer, bool) and answer == question.correct_answer


def evaluate(
    question: Question,
    answer: Any,
    grading_result: Optional[GradingResult] = None,
) -> Evaluation:
    """
    Decide whether an answer is correct.

    Open-ended questions are decided by `grading_result`, the grader's
    verdict for the question at the same ordinal position; without one the
    answer counts as incorrect. Unknown question types use the single-choice
    rule.
    """
    if question.question_type == OPEN_ENDED:
        return Evaluation(is_correct=grading_result is not None and grading_result.grade == "correct")

    if question.question_type == MULTIPLE:
        check = _check_multiple
    elif question.question_type == TRUE_FALSE:
        check = _check_true_false
    else:
        check = _check_single

    try:
        return Evaluation(is_correct=check(question, answer))
    except MalformedAnswer as e:
        logger.debug("Question %s: malformed answer (%s)", question.question_id, e)
        return Evaluation(is_correct=False, malformed=True)


def is_question_correct(
    question: Question,
    answer: Any,
    grading_results: Optional[List[GradingResult]] = None,
) -> bool:
    """
    Read-only correctness check used by result display.

    Always False for open-ended questions: their grade has to be looked up
    by ordinal position in `grading_results`, which this function does not
    do. Callers must special-case open-ended questions.
    """
    if question.question_type == OPEN_ENDED:
        return False
    return evaluate(question, answer).is_correct


def render_answer(question: Question, answer: Any) -> str:
    """Render an answer as text (option indices become option labels)."""
    if question.question_type == OPEN_ENDED:
        return answer if isinstance(answer, str) else ""
    if isinstance(answer, (list, tuple)):
        return ", ".join(
            question.options[v] if is_index(v) and 0 <= v < len(question.options) else str(v)
            for v in answer
        )
    if isinstance(answer, bool):
        return "True" if answer else "False"
    if is_index(answer) and 0 <= answer < len(question.options):
        return question.options[answer]
    if answer is None:
        return ""
    return str(answer)


def answer_feedback(
    question: Question,
    answer: Any,
    grading_result: Optional[GradingResult] = None,
) -> Dict[str, Any]:
    """
    Per-question feedback for the results screen.

    For open-ended questions pass the grading result found by ordinal
    position; its verdict, feedback and tags are folded in.
    """
    feedback = {
        "is_correct": evaluate(question, answer, grading_result).is_correct,
        "user_answer": answer,
        "correct_answer": question.correct_answer,
        "explanation": question.explanation,
        "improvements": [],
        "weak_areas": [],
        "score": None,
    }

    if question.question_type == OPEN_ENDED and grading_result is not None:
        feedback["explanation"] = grading_result.feedback or question.explanation
        feedback["improvements"] = list(grading_result.improvements)
        feedback["weak_areas"] = list(grading_result.weak_areas)
        feedback["score"] = grading_result.score

    return feedback
