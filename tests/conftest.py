"""
Shared pytest fixtures and configuration for TutorAI tests.

This file is automatically discovered by pytest and provides
fixtures available to all tests.
"""

import pytest
import sys
from pathlib import Path
from unittest.mock import Mock

# Make the package importable without installing it
sys.path.insert(0, str(Path(__file__).parent.parent))

from tutorai.agents.grading_agent import GradingResponse, GradingResult, OpenEndedGrader
from tutorai.models.question import Question, Quiz
from tutorai.utils.guest_limits import GuestLimitService
from tutorai.utils.persistence import InMemoryProfileStore

FIXED_NOW = "2026-01-15T10:00:00+00:00"


@pytest.fixture
def mixed_questions():
    """
    Fixture providing a five-question quiz covering every question type.

    Returns:
        list[Question]: two single choice, one multiple choice, one
        true/false and one open-ended question
    """
    return [
        Question(
            question_id="0",
            prompt="What is 2+2?",
            question_type="single",
            options=("3", "4", "5"),
            correct_answer=1,
        ),
        Question(
            question_id="1",
            prompt="Capital of France?",
            question_type="single",
            options=("London", "Paris", "Rome"),
            correct_answer="Paris",
        ),
        Question(
            question_id="2",
            prompt="Which are prime?",
            question_type="multiple",
            options=("2", "3", "4", "6"),
            correct_answer=[0, 1],
        ),
        Question(
            question_id="3",
            prompt="The Earth is flat",
            question_type="true_false",
            correct_answer=False,
        ),
        Question(
            question_id="4",
            prompt="Explain photosynthesis",
            question_type="open_ended",
            correct_answer="Plants convert light into chemical energy",
        ),
    ]


@pytest.fixture
def mixed_answers():
    """Answers to mixed_questions: three closed-form correct, true/false wrong."""
    return [[1], [1], [1, 0], True, "Plants use sunlight to make food"]


@pytest.fixture
def mixed_quiz(mixed_questions):
    """Fixture providing mixed_questions wrapped in a Quiz."""
    return Quiz(quiz_id="quiz-1", title="General Knowledge", topic="Science", questions=mixed_questions)


@pytest.fixture
def partial_result():
    """A partial grade for the open-ended answer in mixed_answers."""
    return GradingResult(
        grade="partial",
        score=0.5,
        feedback="Mentions sunlight but not chemical energy",
        weak_areas=["energy conversion"],
        improvements=["Explain what the food is made of"],
    )


@pytest.fixture
def make_grader():
    """
    Fixture providing a factory for mock graders.

    Usage:
        grader = make_grader([result])          # returns the results
        grader = make_grader(error=TimeoutError())  # raises
    """

    def factory(results=None, error=None):
        grader = Mock(spec=OpenEndedGrader)
        if error is not None:
            grader.grade_batch.side_effect = error
        else:
            grader.grade_batch.return_value = GradingResponse.from_results(list(results or []))
        return grader

    return factory


@pytest.fixture
def fixed_clock():
    """Clock returning a constant ISO timestamp."""
    return lambda: FIXED_NOW


@pytest.fixture
def memory_store():
    """Fresh in-memory profile store."""
    return InMemoryProfileStore()


@pytest.fixture
def guest_limits():
    """Fresh in-memory guest usage counters with the default limits."""
    return GuestLimitService()


@pytest.fixture
def valid_progress_row():
    """
    Fixture providing a valid stored learning progress row.

    Returns:
        dict: A row that passes learning progress validation
    """
    return {
        "id": "lp-123",
        "user_id": "user-1",
        "topic": "Science",
        "weak_areas": ["What is 2+2?: 5"],
        "strengths": ["Capital of France?: Paris"],
        "progress_score": 60,
        "last_updated": FIXED_NOW,
        "created_at": FIXED_NOW,
    }


# Pytest hooks for better test output


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark tests in unit/ directory as unit tests
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)

        # Mark tests in integration/ directory as integration tests
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
