import json
import logging
import os
from dataclasses import asdict, dataclass
from typing import Any, List, Optional, Protocol, Sequence

from snake_settings import LEADERBOARD_KEY, LEADERBOARD_SIZE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreEntry:
    name: str
    score: int
    timestamp: int

    @classmethod
    def from_dict(cls, data: Any) -> "ScoreEntry":
        """Build an entry from decoded JSON, ValueError if it has the wrong shape"""
        if not isinstance(data, dict):
            raise ValueError(f"score entry must be an object, got {type(data).__name__}")
        name, score, timestamp = data.get("name"), data.get("score"), data.get("timestamp")
        if not isinstance(name, str):
            raise ValueError(f"score entry name must be a string, got {name!r}")
        # bool is an int subclass, but never a valid score
        for field, value in (("score", score), ("timestamp", timestamp)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"score entry {field} must be an integer, got {value!r}")
        return cls(name, score, timestamp)


class LeaderboardStore(Protocol):
    def load(self) -> List[ScoreEntry]: ...

    def save(self, entries: Sequence[ScoreEntry]) -> None: ...


class MemoryLeaderboardStore:
    """Keeps the leaderboard in memory (tests, or when no file is wanted)"""

    def __init__(self, entries: Optional[Sequence[ScoreEntry]] = None):
        self.entries: List[ScoreEntry] = list(entries or [])
        self.save_count: int = 0

    def load(self) -> List[ScoreEntry]:
        return list(self.entries)

    def save(self, entries: Sequence[ScoreEntry]) -> None:
        self.entries = list(entries)
        self.save_count += 1


class JsonLeaderboardStore:
    """Leaderboard persisted as a JSON document on disk.

    The file holds ``{"neon_snake_leaderboard": [{"name", "score",
    "timestamp"}, ...]}``. Anything that can't be read back as that shape
    is logged and treated as an empty leaderboard, so a corrupt file never
    stops the game from starting.
    """

    def __init__(self, path: str, key: str = LEADERBOARD_KEY):
        self.path: str = path
        self.key: str = key

    def load(self) -> List[ScoreEntry]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Failed to read leaderboard %s: %s", self.path, e)
            return []

        try:
            if not isinstance(data, dict):
                raise ValueError(f"expected an object, got {type(data).__name__}")
            raw_entries = data.get(self.key, [])
            if not isinstance(raw_entries, list):
                raise ValueError(f"{self.key} must be a list")
            return [ScoreEntry.from_dict(item) for item in raw_entries]
        except ValueError as e:
            logger.warning("Failed to parse leaderboard %s: %s", self.path, e)
            return []

    def save(self, entries: Sequence[ScoreEntry]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = self.path + ".tmp"
        try:
            os.makedirs(directory, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump({self.key: [asdict(entry) for entry in entries]}, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error("Failed to save leaderboard %s: %s", self.path, e)


class Leaderboard:
    """Top-N scores, best first"""

    def __init__(self, store: LeaderboardStore, size: int = LEADERBOARD_SIZE):
        if size < 1:
            raise ValueError(f"leaderboard size must be >= 1, got {size}")
        self.store: LeaderboardStore = store
        self.size: int = size
        self.entries: List[ScoreEntry] = self.rank(store.load())

    def rank(self, entries: Sequence[ScoreEntry]) -> List[ScoreEntry]:
        """Sort descending by score and keep the top entries (ties keep their order)"""
        return sorted(entries, key=lambda entry: entry.score, reverse=True)[:self.size]

    def record(self, entry: ScoreEntry) -> List[ScoreEntry]:
        """Add a finished run, persist the new list and return it"""
        self.entries = self.rank(self.entries + [entry])
        self.store.save(self.entries)
        return list(self.entries)

    def qualifies(self, score: int) -> bool:
        """Whether a score would make it onto the board"""
        return len(self.entries) < self.size or score > self.entries[-1].score

    @property
    def high_score(self) -> int:
        return self.entries[0].score if self.entries else 0
