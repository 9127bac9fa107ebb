"""
Progress reconciliation - merges one attempt's findings into a topic profile.

A session produces weak-area and strength entries. Merging them into the
stored profile is a union, except that an entry is retired when the latest
attempt contradicts it: a stored weak area disappears once the same question
shows up as a strength, and a stored strength disappears once the same
question shows up as a weak area. "Same question" means equal question keys,
the text before the first colon of an entry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterable, List, Optional, Sequence

from ..agents.grading_agent import GradingResult
from .evaluator import evaluate, render_answer
from .learning_profile import LearningProfile, clean_entries, utc_now
from .question import Question, open_ended_slots

logger = logging.getLogger(__name__)


def question_key(entry: str) -> str:
    """
    Key used to detect contradictions between entries.

    The text before the first colon, taken verbatim: "What is 2+2?: 5" ->
    "What is 2+2?". Entries without a colon are their own key.
    """
    colon = entry.find(":")
    return entry[:colon] if colon >= 0 else entry


@dataclass
class SessionFindings:
    """Weak areas and strengths derived from one attempt."""
    weak_areas: List[str] = field(default_factory=list)
    strengths: List[str] = field(default_factory=list)


def derive_session(
    questions: Sequence[Question],
    answers: Sequence[Any],
    grading_results: Optional[Sequence[GradingResult]] = None,
) -> SessionFindings:
    """
    Classify every answered question of an attempt.

    Each question becomes a "<question>: <answer>" entry (open-ended ones with
    ": <AI feedback>" appended when the grader gave feedback). Correct answers
    and partially correct open-ended answers are strengths, everything else is
    a weak area. Weak open-ended answers also contribute the grader's concept
    tags as standalone weak areas.

    Args:
        questions: Quiz questions
        answers: Learner answers, aligned by index
        grading_results: Open-ended grading results in ordinal order

    Returns:
        Deduplicated SessionFindings without blank entries
    """
    if len(questions) != len(answers):
        raise ValueError("Number of answers must match number of questions")

    grading_results = list(grading_results or [])
    ordinal_of = {s.absolute_index: s.ordinal_index for s in open_ended_slots(list(questions))}

    weak_areas: List[str] = []
    strengths: List[str] = []

    for index, (question, answer) in enumerate(zip(questions, answers)):
        result = None
        ordinal = ordinal_of.get(index)
        if ordinal is not None and ordinal < len(grading_results):
            result = grading_results[ordinal]

        entry = f"{question.prompt}: {render_answer(question, answer)}"
        if question.is_open_ended and result is not None and result.feedback:
            entry += f": {result.feedback}"

        is_correct = evaluate(question, answer, result).is_correct
        if is_correct or (result is not None and result.grade == "partial"):
            strengths.append(entry)
        else:
            weak_areas.append(entry)
            if result is not None:
                weak_areas.extend(result.weak_areas)

    return SessionFindings(
        weak_areas=clean_entries(weak_areas),
        strengths=clean_entries(strengths),
    )


class ProgressReconciler:
    """
    Produces the updated learning profile for a topic after an attempt.

    Usage:
        reconciler = ProgressReconciler()
        profile = reconciler.reconcile(stored, findings.weak_areas, findings.strengths, 70)
    """

    def __init__(self, clock: Callable[[], str] = utc_now):
        """
        Args:
            clock: Returns the current time as an ISO string
        """
        self.clock = clock

    def reconcile(
        self,
        existing: Optional[LearningProfile],
        session_weak_areas: Iterable[Any],
        session_strengths: Iterable[Any],
        new_score: int,
        user_id: Optional[str] = None,
        topic: Optional[str] = None,
    ) -> LearningProfile:
        """
        Merge a session into the stored profile.

        The stored profile is not modified; a new one is returned. The
        latest score always replaces the previous one.

        Args:
            existing: Stored profile, or None on the first attempt
            session_weak_areas: Weak areas found in this session
            session_strengths: Strengths found in this session
            new_score: Score of this attempt (0-100)
            user_id: Owner, used when creating a profile
            topic: Topic, used when creating a profile

        Raises:
            ValueError: If new_score is outside 0-100
        """
        if isinstance(new_score, bool) or not isinstance(new_score, int) or not (0 <= new_score <= 100):
            raise ValueError(f"Score must be an integer between 0 and 100, got {new_score!r}")

        weak_areas = clean_entries(session_weak_areas)
        strengths = clean_entries(session_strengths)
        now = self.clock()

        if existing is None:
            return LearningProfile(
                user_id=user_id,
                topic=topic,
                weak_areas=weak_areas,
                strengths=strengths,
                progress_score=new_score,
                last_updated=now,
                created_at=now,
            )

        mastered = {question_key(entry) for entry in strengths}
        regressed = {question_key(entry) for entry in weak_areas}

        stored_weak_areas = clean_entries(existing.weak_areas)
        stored_strengths = clean_entries(existing.strengths)
        kept_weak_areas = [e for e in stored_weak_areas if question_key(e) not in mastered]
        kept_strengths = [e for e in stored_strengths if question_key(e) not in regressed]

        retired = (len(stored_weak_areas) - len(kept_weak_areas)) + (
            len(stored_strengths) - len(kept_strengths)
        )
        if retired:
            logger.debug("Retired %d contradicted entries for topic %r", retired, existing.topic)

        return replace(
            existing,
            user_id=existing.user_id or user_id,
            topic=existing.topic or topic,
            weak_areas=clean_entries(kept_weak_areas + weak_areas),
            strengths=clean_entries(kept_strengths + strengths),
            progress_score=new_score,
            last_updated=now,
        )
