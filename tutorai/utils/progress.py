"""
Progress analytics helpers for the learning dashboard.

Provides:
- Summary statistics of per-topic progress scores
- Topic grouping by level
- Dashboard stats (overall progress, current level, active days)
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from ..models.learning_profile import LearningProfile

DEFAULT_LEVELS: Dict[str, Tuple[float, float]] = {
    "Beginner": (0.0, 25.0),
    "Intermediate": (25.0, 50.0),
    "Advanced": (50.0, 75.0),
    "Expert": (75.0, 100.0),
}


def _scores(profiles: Sequence[LearningProfile]) -> Dict[str, float]:
    return {p.topic or "": float(p.progress_score) for p in profiles}


def progress_summary(profiles: Sequence[LearningProfile]) -> Dict[str, float]:
    """
    Calculate summary statistics for progress scores across topics.

    Returns:
        Dict with mean, median, min, max, std_dev, count

    Example:
        >>> summary = progress_summary(profiles)  # scores 85, 72, 45
        >>> summary["mean"]
        67.33
    """
    if not profiles:
        return {
            "mean": 0.0,
            "median": 0.0,
            "min": 0.0,
            "max": 0.0,
            "std_dev": 0.0,
            "count": 0,
        }

    values = sorted(_scores(profiles).values())
    n = len(values)

    mean_val = sum(values) / n

    if n % 2 == 1:
        median_val = values[n // 2]
    else:
        median_val = (values[n // 2 - 1] + values[n // 2]) / 2.0

    variance = sum((v - mean_val) ** 2 for v in values) / n
    std_dev = math.sqrt(variance)

    return {
        "mean": round(mean_val, 2),
        "median": round(median_val, 2),
        "min": round(values[0], 2),
        "max": round(values[-1], 2),
        "std_dev": round(std_dev, 2),
        "count": n,
    }


def determine_level(progress: float, thresholds: Optional[Dict[str, Tuple[float, float]]] = None) -> str:
    """Level name for a progress value (0-100)."""
    thresholds = thresholds or DEFAULT_LEVELS
    top = list(thresholds)[-1]
    for level, (low, high) in thresholds.items():
        if low <= progress < high or (level == top and progress >= high):
            return level
    return list(thresholds)[0]


def progress_by_level(
    profiles: Sequence[LearningProfile],
    thresholds: Optional[Dict[str, Tuple[float, float]]] = None,
) -> Dict[str, List[str]]:
    """
    Group topics by level of their latest score.

    Example:
        >>> progress_by_level(profiles)["Expert"]
        ['Python']
    """
    thresholds = thresholds or DEFAULT_LEVELS
    categories: Dict[str, List[str]] = {level: [] for level in thresholds}

    for topic, score in _scores(profiles).items():
        categories[determine_level(score, thresholds)].append(topic)

    return categories


def weakest_topics(profiles: Sequence[LearningProfile], k: int = 3) -> List[str]:
    """Topics with the lowest latest score, most weak areas breaking ties."""
    ranked = sorted(profiles, key=lambda p: (p.progress_score, -len(p.weak_areas)))
    return [p.topic for p in ranked[:k]]


def active_days(
    profiles: Sequence[LearningProfile],
    window_days: int = 7,
    now: Optional[datetime] = None,
) -> int:
    """Number of distinct days within the window on which a topic was updated."""
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=window_days)

    days = set()
    for profile in profiles:
        updated = datetime.fromisoformat(profile.last_updated.replace("Z", "+00:00"))
        if updated.tzinfo is None:
            updated = updated.replace(tzinfo=timezone.utc)
        if updated >= cutoff:
            days.add(updated.date())
    return len(days)


def learning_stats(
    profiles: Sequence[LearningProfile],
    now: Optional[datetime] = None,
) -> Dict[str, object]:
    """
    Dashboard statistics over all of a user's topics.

    Overall progress is the mean latest score, rounded half up. A user
    without any topic is a Beginner.
    """
    if profiles:
        mean = sum(p.progress_score for p in profiles) / len(profiles)
        overall_progress = int(math.floor(mean + 0.5))
        current_level = determine_level(overall_progress)
    else:
        overall_progress = 0
        current_level = "Beginner"

    return {
        "total_topics": len(profiles),
        "total_weak_areas": sum(len(p.weak_areas) for p in profiles),
        "total_strengths": sum(len(p.strengths) for p in profiles),
        "overall_progress": overall_progress,
        "current_level": current_level,
        "day_streak": active_days(profiles, now=now),
    }
