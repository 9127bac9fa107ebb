"""
Learning Profile: per-(user, topic) record of weak areas and strengths.

Entries are free text. Most are composites of the form
"<question text>: <answer>[: <AI feedback>]", the rest are bare concept tags
reported by the grader. Both kinds live in the same lists.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from jsonschema import ValidationError


def utc_now() -> str:
    """Get current UTC timestamp in ISO 8601 format."""
    return datetime.now(timezone.utc).isoformat()


def clean_entries(entries: Optional[Iterable[Any]]) -> List[str]:
    """Drop non-string and blank entries, then deduplicate keeping first-seen order."""
    if not entries:
        return []
    return list(dict.fromkeys(e for e in entries if isinstance(e, str) and e.strip()))


@dataclass
class LearningProfile:
    """
    Learning progress for one topic.

    Attributes:
        user_id: Owner of the profile
        topic: Quiz topic the profile tracks
        weak_areas: Entries the learner struggled with (no duplicates)
        strengths: Entries the learner mastered (no duplicates)
        progress_score: Score of the latest attempt (0-100)
        last_updated: ISO timestamp of the latest reconciliation
        created_at: ISO timestamp of the first attempt
        profile_id: Storage identifier
    """
    user_id: Optional[str] = None
    topic: Optional[str] = None
    weak_areas: List[str] = field(default_factory=list)
    strengths: List[str] = field(default_factory=list)
    progress_score: int = 0
    last_updated: str = field(default_factory=utc_now)
    created_at: str = field(default_factory=utc_now)
    profile_id: str = field(default_factory=lambda: f"lp-{uuid.uuid4()}")

    def to_dict(self) -> Dict[str, Any]:
        """Export profile in the stored row shape."""
        return {
            "id": self.profile_id,
            "user_id": self.user_id,
            "topic": self.topic,
            "weak_areas": list(self.weak_areas),
            "strengths": list(self.strengths),
            "progress_score": self.progress_score,
            "last_updated": self.last_updated,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], validate: bool = True) -> LearningProfile:
        """
        Load a profile from a stored row.

        Non-string and blank entries in weak_areas / strengths are dropped.

        Args:
            data: Stored row
            validate: Validate (with auto-repair) against the learning
                progress schema first

        Raises:
            ValidationError: If validation is enabled and the row is invalid
        """
        if validate:
            from ..utils.validation import LearningProgressValidator

            result = LearningProgressValidator().validate(data, auto_repair=True)
            if not result.valid:
                raise ValidationError("\n".join(result.errors))
            data = result.data

        now = utc_now()
        return cls(
            user_id=data.get("user_id"),
            topic=data.get("topic"),
            weak_areas=clean_entries(data.get("weak_areas")),
            strengths=clean_entries(data.get("strengths")),
            progress_score=int(data.get("progress_score") or 0),
            last_updated=data.get("last_updated") or now,
            created_at=data.get("created_at") or data.get("last_updated") or now,
            profile_id=data.get("id") or f"lp-{uuid.uuid4()}",
        )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"LearningProfile(user={self.user_id}, "
            f"topic='{self.topic}', "
            f"weak={len(self.weak_areas)}, "
            f"strengths={len(self.strengths)}, "
            f"score={self.progress_score})"
        )
