"""
Unit tests for questions and quizzes loaded from stored rows.
"""

import pytest

from tutorai.errors import MalformedQuestion
from tutorai.models.question import Question, Quiz, open_ended_slots


class TestQuestion:
    """Test suite for Question."""

    def test_from_stored_row(self):
        question = Question.from_dict(
            {"question": "Capital of France?", "type": "single", "options": ["London", "Paris"],
             "correct_answer": "Paris", "explanation": "Paris is the capital"},
            position=3,
        )
        assert question.question_id == "3"
        assert question.prompt == "Capital of France?"
        assert question.correct_indices == (1,)
        assert question.expected_answer_text == "Paris"

    def test_attribute_names_accepted(self):
        question = Question.from_dict({"prompt": "Sky is blue", "question_type": "true_false", "correct_answer": True})
        assert question.question_type == "true_false"
        assert question.expected_answer_text == "True"

    def test_type_defaults_to_single(self):
        question = Question.from_dict({"question": "Pick", "options": ["a", "b"], "correct_answer": 0})
        assert question.question_type == "single"

    def test_missing_text_raises(self):
        with pytest.raises(MalformedQuestion):
            Question.from_dict({"question": "  ", "correct_answer": 0})

    def test_options_must_be_list(self):
        with pytest.raises(MalformedQuestion):
            Question.from_dict({"question": "Pick", "options": "a,b", "correct_answer": 0})

    def test_is_immutable(self):
        question = Question(question_id="q", prompt="p")
        with pytest.raises(AttributeError):
            question.prompt = "changed"

    def test_expected_answer_for_multiple(self):
        question = Question(
            question_id="q", prompt="Primes", question_type="multiple",
            options=("2", "3", "4"), correct_answer=[1, 0],
        )
        assert question.expected_answer_text == "2, 3"

    def test_to_dict(self):
        question = Question(question_id="q", prompt="p", options=("a",), correct_answer=0)
        assert question.to_dict()["question"] == "p"
        assert question.to_dict()["options"] == ["a"]


class TestOpenEndedSlots:
    """Absolute/ordinal index mapping."""

    def test_slots(self, mixed_questions):
        questions = mixed_questions + [Question(question_id="5", prompt="Why?", question_type="open_ended")]
        slots = open_ended_slots(questions)
        assert [(s.absolute_index, s.ordinal_index) for s in slots] == [(4, 0), (5, 1)]

    def test_no_open_ended(self):
        assert open_ended_slots([Question(question_id="q", prompt="p")]) == []


class TestQuiz:
    """Test suite for Quiz."""

    def test_from_dict(self):
        quiz = Quiz.from_dict({
            "id": "quiz-1",
            "topic": "Geography",
            "difficulty": "easy",
            "questions": [
                {"question": "Capital of France?", "options": ["London", "Paris"], "correct_answer": 1},
                {"question": "Explain tides", "type": "open_ended", "correct_answer": "The moon"},
            ],
        })
        assert quiz.title == "Geography"
        assert [q.question_id for q in quiz.questions] == ["0", "1"]
        assert quiz.questions[1].is_open_ended
        assert quiz.to_dict()["questions"][0]["correct_answer"] == 1

    def test_empty_topic_raises(self):
        with pytest.raises(MalformedQuestion):
            Quiz.from_dict({"topic": "", "questions": []})
