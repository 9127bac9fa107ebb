"""
Error taxonomy for quiz scoring and progress reconciliation.

- GradingUnavailable: open-ended grader failed or timed out (recovered locally)
- MalformedAnswer: answer shape does not match its question type (recovered locally)
- MalformedQuestion: question payload cannot be normalized
- PersistenceFailure: profile read/write failed (propagated)
- GuestLimitExceeded: guest session ran out of allowed actions
"""

from __future__ import annotations

from typing import Any, Optional


class TutorAIError(Exception):
    """Base class for all engine errors."""


class GradingUnavailable(TutorAIError):
    """The open-ended grading service errored, timed out or returned garbage."""


class MalformedAnswer(TutorAIError, ValueError):
    """An answer's shape doesn't match its question's type."""


class MalformedQuestion(TutorAIError, ValueError):
    """A question payload is missing required fields or has an unknown shape."""


class PersistenceFailure(TutorAIError):
    """
    A learning-profile read or write failed.

    Attributes:
        result: The computed submission result, when the failure happened
            after scoring and reconciliation finished
    """

    def __init__(self, message: str, result: Optional[Any] = None):
        super().__init__(message)
        self.result = result


class GuestLimitExceeded(TutorAIError):
    """A guest tried to perform an action beyond its configured limit."""

    def __init__(self, action: str, limit: int):
        super().__init__(f"Guest limit reached for '{action}' (max {limit})")
        self.action = action
        self.limit = limit
