"""
Quiz submission orchestrator.

Runs one scoring-and-reconciliation cycle per submitted quiz:
1. Score the attempt (one batch grader call for open-ended answers)
2. Derive the session's weak areas and strengths
3. Reconcile them with the stored profile for the quiz topic
4. Persist the updated profile

The result is always computed before storage is touched, so a storage
failure never hides the learner's score: PersistenceFailure carries the
finished SubmissionResult.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .agents.grading_agent import OpenEndedGrader
from .errors import GuestLimitExceeded, MalformedQuestion, PersistenceFailure
from .models.evaluator import answer_feedback
from .models.learning_profile import LearningProfile
from .models.question import Quiz
from .models.reconciler import ProgressReconciler, SessionFindings, derive_session
from .models.scoring import AttemptScore, ScoringEngine
from .utils.guest_limits import QUIZ_ATTEMPT, GuestLimitService
from .utils.persistence import ProfileStore, get_profile_store
from .utils.validation import QuizValidator

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    """
    Outcome of one quiz submission.

    Attributes:
        attempt: Score and open-ended grading results
        findings: Weak areas and strengths derived from this attempt
        profile: Reconciled learning profile for the quiz topic
        persisted: Whether the profile was stored
    """
    attempt: AttemptScore
    findings: SessionFindings
    profile: LearningProfile
    persisted: bool = False

    @property
    def score(self) -> int:
        return self.attempt.score

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "score": self.attempt.score,
            "gradingResults": [r.to_dict() for r in self.attempt.grading_results],
            "gradingFailed": self.attempt.grading_failed,
            "weakAreas": list(self.findings.weak_areas),
            "strengths": list(self.findings.strengths),
            "profile": self.profile.to_dict(),
            "persisted": self.persisted,
        }


def load_quiz(data: Dict[str, Any], validate: bool = True) -> Quiz:
    """
    Build a Quiz from a stored quiz row.

    Raises:
        MalformedQuestion: If validation is enabled and the payload is invalid
    """
    if validate:
        result = QuizValidator().validate(data)
        if not result.valid:
            raise MalformedQuestion("Invalid quiz: " + "; ".join(result.errors))
    return Quiz.from_dict(data)


class QuizSubmissionService:
    """
    Scores quiz submissions and keeps learning profiles up to date.

    Usage:
        service = QuizSubmissionService(grader=HttpGradingClient())
        result = service.submit(quiz, answers, user_id="user-123")
        print(result.score, result.profile.weak_areas)
    """

    def __init__(
        self,
        grader: Optional[OpenEndedGrader] = None,
        store: Optional[ProfileStore] = None,
        guest_limits: Optional[GuestLimitService] = None,
        scoring_engine: Optional[ScoringEngine] = None,
        reconciler: Optional[ProgressReconciler] = None,
    ):
        """
        Initialize submission service.

        Args:
            grader: Open-ended grader (ignored when scoring_engine is given)
            store: Profile store (default: global file-backed store)
            guest_limits: Guest usage counters (default: in-memory)
            scoring_engine: Preconfigured scoring engine
            reconciler: Preconfigured reconciler
        """
        self.scoring_engine = scoring_engine or ScoringEngine(grader=grader)
        self.reconciler = reconciler or ProgressReconciler()
        self.store = store if store is not None else get_profile_store()
        self.guest_limits = guest_limits or GuestLimitService()

    def submit(
        self,
        quiz: Quiz,
        answers: Sequence[Any],
        user_id: Optional[str] = None,
    ) -> SubmissionResult:
        """
        Score a submitted quiz and update the learner's profile.

        Guests (user_id None) are counted against the quiz-attempt limit and
        their profile is never stored.

        Args:
            quiz: The quiz that was taken
            answers: Answers aligned by index with quiz.questions
            user_id: Signed-in learner, or None for a guest

        Returns:
            SubmissionResult

        Raises:
            ValueError: If answers are not aligned with questions
            GuestLimitExceeded: If a guest has no quiz attempts left
            PersistenceFailure: If the profile couldn't be read or written;
                `error.result` holds the computed SubmissionResult
        """
        if len(answers) != len(quiz.questions):
            raise ValueError(
                f"Number of answers ({len(answers)}) must match number of questions ({len(quiz.questions)})"
            )

        if user_id is None:
            if not self.guest_limits.can_perform(QUIZ_ATTEMPT):
                raise GuestLimitExceeded(QUIZ_ATTEMPT, self.guest_limits.limit_for(QUIZ_ATTEMPT))
            self.guest_limits.increment(QUIZ_ATTEMPT)

        attempt = self.scoring_engine.score(quiz.questions, answers)
        findings = derive_session(quiz.questions, answers, attempt.grading_results)

        if user_id is None:
            profile = self._reconcile(None, findings, attempt, user_id, quiz.topic)
            return SubmissionResult(attempt=attempt, findings=findings, profile=profile)

        read_error = None
        try:
            existing = self.store.get_profile(user_id, quiz.topic)
        except Exception as e:
            read_error = e
            existing = None

        profile = self._reconcile(existing, findings, attempt, user_id, quiz.topic)
        result = SubmissionResult(attempt=attempt, findings=findings, profile=profile)

        if read_error is not None:
            logger.error("Failed to load learning progress for topic %r: %s", quiz.topic, read_error)
            raise PersistenceFailure(
                f"Failed to load learning progress: {read_error}", result=result
            ) from read_error

        try:
            self.store.put_profile(user_id, quiz.topic, profile)
        except Exception as e:
            logger.error("Error updating learning progress for topic %r: %s", quiz.topic, e)
            raise PersistenceFailure(
                f"Failed to save learning progress: {e}", result=result
            ) from e

        result.persisted = True
        logger.info(
            "Updated learning progress for topic %r: score=%d weak=%d strengths=%d",
            quiz.topic,
            profile.progress_score,
            len(profile.weak_areas),
            len(profile.strengths),
        )
        return result

    def _reconcile(
        self,
        existing: Optional[LearningProfile],
        findings: SessionFindings,
        attempt: AttemptScore,
        user_id: Optional[str],
        topic: str,
    ) -> LearningProfile:
        return self.reconciler.reconcile(
            existing,
            findings.weak_areas,
            findings.strengths,
            attempt.score,
            user_id=user_id,
            topic=topic,
        )

    @staticmethod
    def review(quiz: Quiz, answers: Sequence[Any], attempt: AttemptScore) -> List[Dict[str, Any]]:
        """
        Per-question feedback for the results screen.

        Open-ended questions are matched to their grading result by ordinal
        position.
        """
        return [
            answer_feedback(question, answer, attempt.result_for(index))
            for index, (question, answer) in enumerate(zip(quiz.questions, answers))
        ]
