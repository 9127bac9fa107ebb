"""
Utility modules for TutorAI.

- validation: JSON Schema validation with auto-repair
- persistence: learning profile stores
- progress: dashboard analytics helpers
- guest_limits: usage counters for guest sessions
"""

from .validation import (
    LearningProgressValidator,
    QuizValidator,
    validate_learning_progress,
    validate_quiz,
)
from .persistence import (
    ProfileStore,
    InMemoryProfileStore,
    JsonFileProfileStore,
    get_profile_store,
)
from .progress import (
    progress_summary,
    progress_by_level,
    learning_stats,
)
from .guest_limits import GuestLimitService

__all__ = [
    # Validation
    "LearningProgressValidator",
    "QuizValidator",
    "validate_learning_progress",
    "validate_quiz",
    # Persistence
    "ProfileStore",
    "InMemoryProfileStore",
    "JsonFileProfileStore",
    "get_profile_store",
    # Progress analytics
    "progress_summary",
    "progress_by_level",
    "learning_stats",
    # Guest limits
    "GuestLimitService",
]
