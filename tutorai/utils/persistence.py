"""
Learning progress persistence with validation.

Profile stores are keyed by (user_id, topic) and upsert on write. Any
storage error surfaces as PersistenceFailure.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from copy import deepcopy
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from jsonschema import ValidationError

from ..config import config
from ..errors import PersistenceFailure
from ..models.learning_profile import LearningProfile
from .validation import LearningProgressValidator

logger = logging.getLogger(__name__)


class ProfileStore(ABC):
    """Storage contract for learning profiles."""

    @abstractmethod
    def get_profile(self, user_id: str, topic: str) -> Optional[LearningProfile]:
        """Stored profile for (user_id, topic), or None."""

    @abstractmethod
    def put_profile(self, user_id: str, topic: str, profile: LearningProfile) -> None:
        """Create the profile if absent, else overwrite it."""

    @abstractmethod
    def list_profiles(self, user_id: str) -> List[LearningProfile]:
        """All profiles of a user, most recently updated first."""

    @abstractmethod
    def delete_profile(self, user_id: str, topic: str) -> bool:
        """Delete a profile. Returns whether one existed."""


class InMemoryProfileStore(ProfileStore):
    """Dictionary-backed store, for tests and single-process use."""

    def __init__(self):
        self._lock = threading.Lock()
        self._rows: Dict[Tuple[str, str], dict] = {}

    def get_profile(self, user_id: str, topic: str) -> Optional[LearningProfile]:
        with self._lock:
            row = self._rows.get((user_id, topic))
        return LearningProfile.from_dict(row, validate=False) if row else None

    def put_profile(self, user_id: str, topic: str, profile: LearningProfile) -> None:
        row = profile.to_dict()
        row["user_id"] = user_id
        row["topic"] = topic
        with self._lock:
            self._rows[(user_id, topic)] = deepcopy(row)

    def list_profiles(self, user_id: str) -> List[LearningProfile]:
        with self._lock:
            rows = [deepcopy(r) for (uid, _), r in self._rows.items() if uid == user_id]
        profiles = [LearningProfile.from_dict(r, validate=False) for r in rows]
        profiles.sort(key=lambda p: p.last_updated, reverse=True)
        return profiles

    def delete_profile(self, user_id: str, topic: str) -> bool:
        with self._lock:
            return self._rows.pop((user_id, topic), None) is not None


class JsonFileProfileStore(ProfileStore):
    """
    Stores each profile as a validated JSON document.

    Features:
    - One file per (user, topic) under profiles_dir
    - Validation against learning_progress.schema.json on read and write
    - Atomic replace on write (single-row atomicity)
    """

    def __init__(self, profiles_dir: Path | str = None):
        """
        Initialize profile store.

        Args:
            profiles_dir: Directory to store profiles (default: config.paths.profiles_dir)
        """
        self.profiles_dir = Path(profiles_dir) if profiles_dir else config.paths.profiles_dir
        self.profiles_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _path(self, user_id: str, topic: str) -> Path:
        digest = hashlib.sha256(f"{user_id}\0{topic}".encode("utf-8")).hexdigest()[:24]
        return self.profiles_dir / f"lp-{digest}.json"

    def _read(self, filepath: Path) -> LearningProfile:
        with open(filepath, "r", encoding="utf-8") as f:
            return LearningProfile.from_dict(json.load(f))

    def get_profile(self, user_id: str, topic: str) -> Optional[LearningProfile]:
        """
        Load the profile for (user_id, topic).

        Raises:
            PersistenceFailure: If the file can't be read or is invalid
        """
        filepath = self._path(user_id, topic)
        if not filepath.exists():
            return None

        try:
            return self._read(filepath)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise PersistenceFailure(f"Failed to load profile {filepath.name}: {e}") from e

    def put_profile(self, user_id: str, topic: str, profile: LearningProfile) -> None:
        """
        Upsert the profile for (user_id, topic).

        Raises:
            PersistenceFailure: If the profile is invalid or can't be written
        """
        row = profile.to_dict()
        row["user_id"] = user_id
        row["topic"] = topic

        result = LearningProgressValidator().validate(row)
        if not result.valid:
            raise PersistenceFailure("Invalid learning profile: " + "; ".join(result.errors))

        filepath = self._path(user_id, topic)
        tmp_path = filepath.with_suffix(".json.tmp")

        try:
            with self._lock:
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(row, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, filepath)
        except OSError as e:
            raise PersistenceFailure(f"Failed to save profile {filepath.name}: {e}") from e

        logger.debug("Saved learning profile for topic %r to %s", topic, filepath.name)

    def list_profiles(self, user_id: str) -> List[LearningProfile]:
        """
        Load all profiles of a user, most recently updated first.

        Unreadable files are skipped with a warning.
        """
        profiles = []

        for filepath in self.profiles_dir.glob("lp-*.json"):
            try:
                profile = self._read(filepath)
            except (OSError, json.JSONDecodeError, ValidationError) as e:
                logger.warning("Skipping unreadable profile %s: %s", filepath.name, e)
                continue
            if profile.user_id == user_id:
                profiles.append(profile)

        profiles.sort(key=lambda p: p.last_updated, reverse=True)
        return profiles

    def delete_profile(self, user_id: str, topic: str) -> bool:
        """
        Raises:
            PersistenceFailure: If the file exists but can't be removed
        """
        filepath = self._path(user_id, topic)
        try:
            filepath.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PersistenceFailure(f"Failed to delete profile {filepath.name}: {e}") from e
        return True


# Global profile store instance
_profile_store: Optional[ProfileStore] = None


def get_profile_store() -> ProfileStore:
    """Get or create the global file-backed profile store."""
    global _profile_store
    if _profile_store is None:
        _profile_store = JsonFileProfileStore()
    return _profile_store
