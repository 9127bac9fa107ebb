"""
Unit tests for schema validation.

Tests:
- JSON Schema validation of learning progress rows
- Auto-repair functionality
- Duplicate entry detection
- Quiz payload validation
"""

import pytest
from jsonschema import ValidationError

from tutorai.models.learning_profile import LearningProfile
from tutorai.utils.validation import (
    LearningProgressValidator,
    QuizValidator,
    SchemaValidator,
    ValidationResult,
    validate_learning_progress,
    validate_quiz,
)


class TestValidationResult:
    """Test suite for ValidationResult class."""

    def test_valid_result_is_truthy(self):
        """Test that valid results are truthy."""
        result = ValidationResult(valid=True, errors=[])
        assert bool(result) is True

    def test_invalid_result_is_falsy(self):
        """Test that invalid results are falsy."""
        result = ValidationResult(valid=False, errors=["error"])
        assert bool(result) is False

    def test_str_lists_errors(self):
        result = ValidationResult(valid=False, errors=["first", "second"])
        assert "2 error(s)" in str(result)
        assert "first" in str(result)


class TestSchemaValidator:
    """Test suite for the generic schema validator."""

    def test_validates_against_schema_file(self, tmp_path):
        schema_file = tmp_path / "test.schema.json"
        schema_file.write_text(
            '{"type": "object", "properties": {"name": {"type": "string"}}, "required": ["name"]}'
        )
        validator = SchemaValidator(schema_file)

        assert validator.validate({"name": "x"}).valid is True

        result = validator.validate({})
        assert result.valid is False
        assert "validator=required" in result.errors[0]


class TestLearningProgressValidator:
    """Test suite for learning progress rows."""

    def test_valid_row(self, valid_progress_row):
        result = validate_learning_progress(valid_progress_row)
        assert result.valid, result.errors

    def test_missing_required_field(self, valid_progress_row):
        del valid_progress_row["topic"]
        result = validate_learning_progress(valid_progress_row)
        assert not result.valid
        assert any("topic" in e for e in result.errors)

    def test_score_out_of_range(self, valid_progress_row):
        valid_progress_row["progress_score"] = 150
        assert not validate_learning_progress(valid_progress_row).valid

    def test_duplicates_are_errors(self, valid_progress_row):
        valid_progress_row["weak_areas"] = ["Q1: a", "Q1: a"]
        result = validate_learning_progress(valid_progress_row)
        assert not result.valid
        assert "weak_areas contains duplicate entries" in result.errors

    def test_auto_repair_cleans_row(self, valid_progress_row):
        valid_progress_row["weak_areas"] = ["Q1: a", "", None, "Q1: a"]
        valid_progress_row["progress_score"] = "85"
        valid_progress_row["legacy_field"] = True

        result = LearningProgressValidator().validate(valid_progress_row, auto_repair=True)

        assert result.valid, result.errors
        assert result.data["weak_areas"] == ["Q1: a"]
        assert result.data["progress_score"] == 85
        assert "legacy_field" not in result.data
        assert len(result.repairs) >= 3

    def test_auto_repair_does_not_mutate_input(self, valid_progress_row):
        valid_progress_row["weak_areas"] = ["Q1: a", ""]
        LearningProgressValidator().validate(valid_progress_row, auto_repair=True)
        assert valid_progress_row["weak_areas"] == ["Q1: a", ""]


class TestLearningProfileFromDict:
    """Loading profiles from stored rows."""

    def test_round_trips_row(self, valid_progress_row):
        profile = LearningProfile.from_dict(valid_progress_row)
        assert profile.to_dict() == valid_progress_row

    def test_repairable_row_loads(self, valid_progress_row):
        valid_progress_row["strengths"] = ["Capital of France?: Paris", " "]
        profile = LearningProfile.from_dict(valid_progress_row)
        assert profile.strengths == ["Capital of France?: Paris"]

    def test_invalid_row_raises(self, valid_progress_row):
        valid_progress_row["progress_score"] = "not a number"
        with pytest.raises(ValidationError):
            LearningProfile.from_dict(valid_progress_row)

    def test_without_validation(self):
        profile = LearningProfile.from_dict({"topic": "Math", "weak_areas": ["x", "x", ""]}, validate=False)
        assert profile.weak_areas == ["x"]
        assert profile.progress_score == 0


class TestQuizValidator:
    """Test suite for quiz payload validation."""

    def make_quiz(self, **question):
        base = {"question": "Capital of France?", "type": "single", "options": ["London", "Paris"], "correct_answer": 1}
        base.update(question)
        return {"topic": "Geography", "difficulty": "easy", "questions": [base]}

    def test_valid_quiz(self):
        result = validate_quiz(self.make_quiz())
        assert result.valid, result.errors

    def test_requires_questions(self):
        assert not QuizValidator().validate({"topic": "Geography", "questions": []}).valid

    def test_single_without_options(self):
        result = validate_quiz(self.make_quiz(options=[]))
        assert not result.valid
        assert "has no options" in result.errors[0]

    def test_true_false_requires_bool(self):
        result = validate_quiz(self.make_quiz(type="true_false", options=[], correct_answer="true"))
        assert not result.valid

    def test_multiple_requires_list(self):
        result = validate_quiz(self.make_quiz(type="multiple", correct_answer=1))
        assert not result.valid

    def test_open_ended_text_answer(self):
        result = validate_quiz(self.make_quiz(type="open_ended", options=[], correct_answer="Paris is the capital"))
        assert result.valid, result.errors
