"""
Schema validation utilities for learning progress rows and quizzes.

Provides JSON Schema validation with clear error messages and automatic
repair of common problems in stored rows:
- Removal of unknown keys
- Removal of non-string / blank weak-area and strength entries
- Type coercion (numeric strings to integers)
- Transparent repair tracking
"""

import json
from copy import deepcopy
from pathlib import Path
from typing import Any, Optional

from jsonschema import Draft7Validator, FormatChecker, ValidationError

from ..config import config


class ValidationResult:
    """
    Result of a validation attempt.

    Attributes:
        valid: Whether data passed validation
        errors: List of error messages
        data: The validated data (may be modified if repair was attempted)
        repairs: List of repairs applied (for transparency)
    """

    def __init__(
        self,
        valid: bool,
        errors: list[str],
        data: Any = None,
        repairs: Optional[list[str]] = None,
    ):
        self.valid = valid
        self.errors = errors
        self.data = data
        self.repairs = repairs or []

    def __bool__(self) -> bool:
        """Allow using result in boolean context."""
        return self.valid

    def __str__(self) -> str:
        """Human-readable representation."""
        if self.valid:
            msg = "✓ Validation passed"
            if self.repairs:
                msg += f" (with {len(self.repairs)} repair(s))"
            return msg
        return f"✗ Validation failed with {len(self.errors)} error(s):\n" + "\n".join(
            f"  - {error}" for error in self.errors
        )


class SchemaValidator:
    """
    JSON Schema validator with auto-repair capabilities.

    Usage:
        validator = SchemaValidator("path/to/schema.json")
        result = validator.validate(data)
        if result:
            print("Valid!")
        else:
            print(result.errors)
    """

    # Array properties whose items must be non-blank strings
    STRING_LIST_FIELDS: tuple = ()

    # Properties that may arrive as numeric strings
    INTEGER_FIELDS: tuple = ()

    def __init__(self, schema_path: Path | str):
        """
        Initialize validator with a schema file.

        Args:
            schema_path: Path to JSON Schema file
        """
        self.schema_path = Path(schema_path)
        with open(self.schema_path, "r", encoding="utf-8") as f:
            self.schema = json.load(f)
        self.validator = Draft7Validator(self.schema, format_checker=FormatChecker())

    def validate(self, data: dict, auto_repair: bool = False) -> ValidationResult:
        """
        Validate data against schema.

        Args:
            data: Data to validate
            auto_repair: If True, attempt to fix common validation errors

        Returns:
            ValidationResult with validation status and any errors
        """
        errors = [self._format_error(error) for error in self.validator.iter_errors(data)]

        if errors:
            if auto_repair and isinstance(data, dict):
                repaired_data, repairs = self._attempt_repair(data)
                result = SchemaValidator.validate(self, repaired_data, auto_repair=False)
                result.repairs = repairs
                return result
            return ValidationResult(valid=False, errors=errors, data=data)

        return ValidationResult(valid=True, errors=[], data=data)

    def _format_error(self, error: ValidationError) -> str:
        """
        Convert ValidationError to human-readable message with details.

        Args:
            error: jsonschema ValidationError

        Returns:
            Formatted error message with validator and schema path
        """
        path = " -> ".join(str(p) for p in error.path) if error.path else "root"
        validator_name = getattr(error, "validator", "unknown")
        schema_path = "/".join(str(p) for p in error.schema_path)
        return (
            f"At '{path}': {error.message} "
            f"[validator={validator_name}, schema_path=/{schema_path}]"
        )

    def _attempt_repair(self, data: dict) -> tuple[dict, list[str]]:
        """
        Attempt to automatically fix common validation errors.

        Returns:
            Tuple of (repaired data, list of repairs applied)
        """
        # Deep copy to prevent mutation of original
        repaired = deepcopy(data)
        repairs: list[str] = []

        if self.schema.get("additionalProperties") is False:
            allowed = set(self.schema.get("properties", {}))
            for key in [k for k in repaired if k not in allowed]:
                repaired.pop(key)
                repairs.append(f"Removed unknown key '{key}'")

        for name in self.STRING_LIST_FIELDS:
            values = repaired.get(name)
            if values is None:
                continue
            if not isinstance(values, list):
                repaired[name] = []
                repairs.append(f"Replaced non-list {name} with []")
                continue
            kept = [v for v in values if isinstance(v, str) and v.strip()]
            if len(kept) != len(values):
                repaired[name] = kept
                repairs.append(f"Dropped {len(values) - len(kept)} invalid {name} entries")

        for name in self.INTEGER_FIELDS:
            value = repaired.get(name)
            if isinstance(value, (str, float)) and not isinstance(value, bool):
                try:
                    coerced = int(round(float(value)))
                except (ValueError, TypeError):
                    continue
                repaired[name] = coerced
                repairs.append(f"Coerced {name}: {value!r} → {coerced}")

        return repaired, repairs


class LearningProgressValidator(SchemaValidator):
    """
    Validator for stored learning progress rows.

    Adds a duplicate check on weak_areas and strengths beyond the schema.
    """

    STRING_LIST_FIELDS = ("weak_areas", "strengths")
    INTEGER_FIELDS = ("progress_score",)

    def __init__(self, schema_path: Optional[Path] = None):
        """Initialize validator with the learning progress schema."""
        super().__init__(schema_path or config.paths.schemas_dir / "learning_progress.schema.json")

    def validate(self, data: dict, auto_repair: bool = False) -> ValidationResult:
        """
        Validate a learning progress row.

        Args:
            data: Row to validate
            auto_repair: Whether to attempt automatic repairs

        Returns:
            ValidationResult
        """
        result = super().validate(data, auto_repair=auto_repair)
        row = result.data if isinstance(result.data, dict) else {}

        duplicate_errors = []
        for name in self.STRING_LIST_FIELDS:
            values = row.get(name)
            if isinstance(values, list):
                hashable = [v for v in values if isinstance(v, str)]
                if len(set(hashable)) != len(hashable):
                    duplicate_errors.append(f"{name} contains duplicate entries")

        if duplicate_errors and auto_repair:
            row = deepcopy(row)
            for name in self.STRING_LIST_FIELDS:
                if isinstance(row.get(name), list):
                    row[name] = list(dict.fromkeys(row[name]))
            result.repairs.append("Removed duplicate entries")
            duplicate_errors = []

        all_errors = result.errors + duplicate_errors
        return ValidationResult(
            valid=len(all_errors) == 0,
            errors=all_errors,
            data=row if row else result.data,
            repairs=result.repairs,
        )


class QuizValidator(SchemaValidator):
    """
    Validator for generated quizzes.

    Adds per-type answer key checks beyond the schema:
    - single / multiple questions need options
    - true_false answer keys must be booleans
    - multiple-choice answer keys must be lists
    """

    def __init__(self, schema_path: Optional[Path] = None):
        """Initialize validator with the quiz schema."""
        super().__init__(schema_path or config.paths.schemas_dir / "quiz.schema.json")

    def validate(self, data: dict, auto_repair: bool = False) -> ValidationResult:
        result = super().validate(data, auto_repair=False)
        if not result.valid:
            return result

        errors = []
        for i, question in enumerate(data.get("questions", [])):
            qtype = question.get("type", "single")
            answer = question.get("correct_answer")
            if qtype in ("single", "multiple") and not question.get("options"):
                errors.append(f"Question {i}: {qtype} question has no options")
            if qtype == "true_false" and not isinstance(answer, bool):
                errors.append(f"Question {i}: true_false correct_answer must be a boolean")
            if qtype == "multiple" and not isinstance(answer, list):
                errors.append(f"Question {i}: multiple correct_answer must be a list")

        return ValidationResult(valid=not errors, errors=errors, data=data)


def validate_learning_progress(data: dict, auto_repair: bool = False) -> ValidationResult:
    """
    Quick validation of a learning progress row.

    Example:
        result = validate_learning_progress(row)
        if not result:
            print("Errors:", result.errors)
    """
    return LearningProgressValidator().validate(data, auto_repair=auto_repair)


def validate_quiz(data: dict) -> ValidationResult:
    """Quick validation of a quiz payload."""
    return QuizValidator().validate(data)
