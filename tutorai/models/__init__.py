"""
Data models and pure scoring logic.

- Question / Quiz: quiz content with normalized answer keys
- evaluator: per-question correctness checks
- ScoringEngine: attempt scores with batch open-ended grading
- LearningProfile / ProgressReconciler: per-topic progress tracking
"""

from .question import Question, Quiz, OpenEndedSlot, open_ended_slots
from .evaluator import Evaluation, evaluate, is_question_correct, render_answer, answer_feedback
from .scoring import AttemptScore, ScoringEngine, round_half_up
from .learning_profile import LearningProfile
from .reconciler import ProgressReconciler, SessionFindings, derive_session, question_key

__all__ = [
    "Question",
    "Quiz",
    "OpenEndedSlot",
    "open_ended_slots",
    "Evaluation",
    "evaluate",
    "is_question_correct",
    "render_answer",
    "answer_feedback",
    "AttemptScore",
    "ScoringEngine",
    "round_half_up",
    "LearningProfile",
    "ProgressReconciler",
    "SessionFindings",
    "derive_session",
    "question_key",
]
