"""
Quiz questions and their canonical answer keys.

A question's `correct_answer` arrives in several encodings (an option index,
a list of indices, the literal option text, a boolean or free text). It is
normalized once, when the question is built, into `correct_indices` so the
evaluator only ever compares index tuples.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..errors import MalformedQuestion


# Question types
SINGLE = "single"
MULTIPLE = "multiple"
TRUE_FALSE = "true_false"
OPEN_ENDED = "open_ended"

QUESTION_TYPES = (SINGLE, MULTIPLE, TRUE_FALSE, OPEN_ENDED)
CLOSED_FORM_TYPES = (SINGLE, MULTIPLE, TRUE_FALSE)


def is_index(value: Any) -> bool:
    """True for plain ints (bool is an int subclass but never an index)."""
    return isinstance(value, int) and not isinstance(value, bool)


def _resolve_option(value: Any, options: List[str]) -> Optional[int]:
    """Map an index or an option's text to an option index."""
    if is_index(value):
        return value
    if isinstance(value, str) and value in options:
        return options.index(value)
    return None


def normalize_correct_answer(
    question_type: str,
    correct_answer: Any,
    options: List[str],
) -> Tuple[int, ...]:
    """
    Convert any supported `correct_answer` encoding to canonical indices.

    single: the set of acceptable indices (sorted, unique)
    multiple: the sorted sequence of correct indices
    true_false / open_ended: empty, they are not index based

    Unknown types are treated as single. Encodings that cannot be resolved
    (option text not among the options, wrong types) yield an empty tuple,
    which no answer can match.
    """
    if question_type in (TRUE_FALSE, OPEN_ENDED):
        return ()

    if question_type == MULTIPLE:
        if not isinstance(correct_answer, (list, tuple)):
            return ()
        resolved = [_resolve_option(v, options) for v in correct_answer]
        if any(r is None for r in resolved):
            return ()
        return tuple(sorted(resolved))

    # single (and the fallback for unknown types)
    if isinstance(correct_answer, (list, tuple)):
        resolved = (_resolve_option(v, options) for v in correct_answer)
        return tuple(sorted({r for r in resolved if r is not None}))

    resolved = _resolve_option(correct_answer, options)
    return (resolved,) if resolved is not None else ()


@dataclass(frozen=True)
class Question:
    """
    A single quiz question. Immutable once the quiz is generated.

    Attributes:
        question_id: Identifier (defaults to the position index)
        prompt: The question text
        question_type: single / multiple / true_false / open_ended
        options: Answer options for single and multiple choice
        correct_answer: The answer key as stored with the quiz
        explanation: Explanation of the correct answer
        correct_indices: Canonical index form of correct_answer
    """
    question_id: str
    prompt: str
    question_type: str = SINGLE
    options: Tuple[str, ...] = ()
    correct_answer: Any = None
    explanation: str = ""
    correct_indices: Tuple[int, ...] = field(init=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "options", tuple(self.options or ()))
        object.__setattr__(
            self,
            "correct_indices",
            normalize_correct_answer(
                self.question_type, self.correct_answer, list(self.options)
            ),
        )

    @property
    def is_open_ended(self) -> bool:
        return self.question_type == OPEN_ENDED

    @property
    def expected_answer_text(self) -> str:
        """Human-readable answer key, used as grading context."""
        if self.question_type == TRUE_FALSE:
            return str(self.correct_answer)
        if self.question_type == OPEN_ENDED or not self.correct_indices:
            return "" if self.correct_answer is None else str(self.correct_answer)
        return ", ".join(
            self.options[i] if 0 <= i < len(self.options) else str(i)
            for i in self.correct_indices
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any], position: int = 0) -> Question:
        """
        Build a question from a stored quiz row.

        Accepts both the stored shape (`question`, `type`) and the
        attribute names used here (`prompt`, `question_type`).

        Raises:
            MalformedQuestion: If the question text is missing
        """
        prompt = data.get("prompt", data.get("question"))
        if not isinstance(prompt, str) or not prompt.strip():
            raise MalformedQuestion(f"Question {position} has no question text")

        options = data.get("options") or []
        if not isinstance(options, (list, tuple)):
            raise MalformedQuestion(f"Question {position} options must be a list")

        return cls(
            question_id=str(data.get("id", data.get("question_id", position))),
            prompt=prompt,
            question_type=data.get("type", data.get("question_type", SINGLE)),
            options=tuple(str(o) for o in options),
            correct_answer=data.get("correct_answer"),
            explanation=data.get("explanation") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the stored quiz row shape."""
        return {
            "id": self.question_id,
            "question": self.prompt,
            "type": self.question_type,
            "options": list(self.options),
            "correct_answer": self.correct_answer,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class OpenEndedSlot:
    """
    Position of an open-ended question in both numbering schemes.

    Grading results come back in ordinal order (n-th open-ended question),
    answers are aligned by absolute index (position in the whole quiz).
    """
    absolute_index: int
    ordinal_index: int


def open_ended_slots(questions: List[Question]) -> List[OpenEndedSlot]:
    """Build the absolute/ordinal mapping once for a question list."""
    slots = []
    for absolute_index, question in enumerate(questions):
        if question.is_open_ended:
            slots.append(OpenEndedSlot(absolute_index, len(slots)))
    return slots


@dataclass
class Quiz:
    """
    A generated quiz.

    Attributes:
        quiz_id: Quiz identifier
        title: Display title
        topic: Topic the learning profile is keyed by
        difficulty: easy / medium / hard
        questions: Ordered questions
    """
    quiz_id: str
    title: str
    topic: str
    questions: List[Question]
    difficulty: str = "medium"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Quiz:
        """
        Build a quiz from a stored row, normalizing every question.

        Raises:
            MalformedQuestion: If the quiz has no topic or a question is invalid
        """
        topic = data.get("topic")
        if not isinstance(topic, str) or not topic.strip():
            raise MalformedQuestion("Quiz topic cannot be empty")

        questions = [
            q if isinstance(q, Question) else Question.from_dict(q, position=i)
            for i, q in enumerate(data.get("questions") or [])
        ]

        return cls(
            quiz_id=str(data.get("id", data.get("quiz_id", ""))),
            title=data.get("title") or topic,
            topic=topic,
            questions=questions,
            difficulty=data.get("difficulty", "medium"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for persistence."""
        return {
            "id": self.quiz_id,
            "title": self.title,
            "topic": self.topic,
            "difficulty": self.difficulty,
            "questions": [q.to_dict() for q in self.questions],
        }
