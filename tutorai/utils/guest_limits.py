"""
Guest usage limits - bounded counters for anonymous sessions.

Counts chats, generated quizzes and quiz attempts, and refuses an action
once its counter reaches the configured maximum.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional

from ..config import GuestLimitConfig, config

logger = logging.getLogger(__name__)


CHAT = "chat"
QUIZ = "quiz"
QUIZ_ATTEMPT = "quiz_attempt"

# action -> (usage counter, GuestLimitConfig attribute)
ACTIONS = {
    CHAT: ("chats_used", "max_chats"),
    QUIZ: ("quizzes_generated", "max_quizzes"),
    QUIZ_ATTEMPT: ("quiz_attempts", "max_quiz_attempts"),
}


def _empty_usage() -> Dict[str, int]:
    return {counter: 0 for counter, _ in ACTIONS.values()}


class GuestLimitService:
    """
    Bounded usage counters for a guest.

    Usage is kept in memory, or in a JSON file when `usage_file` is given.
    A corrupt or unreadable usage file counts as no usage.
    """

    def __init__(
        self,
        limits: Optional[GuestLimitConfig] = None,
        usage_file: Optional[Path | str] = None,
    ):
        """
        Args:
            limits: Maximum counts per action (default: config.guest_limits)
            usage_file: JSON file to keep usage in across processes
        """
        self.limits = limits or config.guest_limits
        self.usage_file = Path(usage_file) if usage_file else None
        self._usage = _empty_usage()

    @staticmethod
    def _resolve(action: str) -> tuple:
        try:
            return ACTIONS[action]
        except KeyError:
            raise ValueError(f"Unknown guest action {action!r}, expected one of {sorted(ACTIONS)}")

    def get_usage(self) -> Dict[str, int]:
        """Current usage counters."""
        if self.usage_file is None:
            return dict(self._usage)

        usage = _empty_usage()
        if not self.usage_file.exists():
            return usage
        try:
            with open(self.usage_file, "r", encoding="utf-8") as f:
                stored = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Error reading guest usage from %s: %s", self.usage_file, e)
            return usage

        for counter in usage:
            value = stored.get(counter) if isinstance(stored, dict) else None
            if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
                usage[counter] = value
        return usage

    def _save_usage(self, usage: Dict[str, int]) -> None:
        if self.usage_file is None:
            self._usage = dict(usage)
            return
        try:
            self.usage_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.usage_file, "w", encoding="utf-8") as f:
                json.dump(usage, f)
        except OSError as e:
            logger.error("Error saving guest usage to %s: %s", self.usage_file, e)

    def limit_for(self, action: str) -> int:
        _, limit_name = self._resolve(action)
        return getattr(self.limits, limit_name)

    def can_perform(self, action: str) -> bool:
        """Whether the guest still has budget for `action`."""
        counter, _ = self._resolve(action)
        return self.get_usage()[counter] < self.limit_for(action)

    def increment(self, action: str) -> None:
        """Count one use of `action`."""
        counter, _ = self._resolve(action)
        usage = self.get_usage()
        usage[counter] += 1
        self._save_usage(usage)

    def remaining(self, action: str) -> int:
        """Uses of `action` left, never negative."""
        counter, _ = self._resolve(action)
        return max(0, self.limit_for(action) - self.get_usage()[counter])

    def usage_summary(self) -> Dict[str, Dict[str, int]]:
        """Used / remaining / total per action, for display."""
        usage = self.get_usage()
        summary = {}
        for action, (counter, _) in ACTIONS.items():
            total = self.limit_for(action)
            summary[action] = {
                "used": usage[counter],
                "remaining": max(0, total - usage[counter]),
                "total": total,
            }
        return summary

    def reset(self) -> None:
        """Clear all counters."""
        if self.usage_file is not None:
            self.usage_file.unlink(missing_ok=True)
        self._usage = _empty_usage()
