"""
Field constants and per-level difficulty configuration.

The difficulty file is a JSON document of the form::

    {"levels": [{"spawnEvery": 0.8, "gameLen": 60, "goal": 15}, ...]}

Anything missing or malformed falls back to the built-in defaults for the
affected level, so the game is always playable without the file.
"""

from __future__ import annotations

import json
import logging
import math
import os
from dataclasses import dataclass, field
from typing import Any, List, Optional

logger = logging.getLogger(__name__)

# Field geometry
WIDTH = 900
HEIGHT = 540
TILE = 30

# Frame clock
MAX_FRAME_STEP = 0.033  # seconds; longer frames are simulated as this step
RESUME_DELAY = 1.2  # seconds between a level clear and play resuming

# Built-in difficulty
DEFAULT_SPAWN_EVERY = 0.8
DEFAULT_GAME_LEN = 60.0
DEFAULT_GOAL = 15
MAX_LEVEL = 3


@dataclass(frozen=True)
class LevelConfig:
    """Pacing for one level.

    Attributes:
        spawn_every: Seconds between collectible spawns.
        game_len: Countdown length in seconds.
        goal: Score needed to clear the level.
    """

    spawn_every: float = DEFAULT_SPAWN_EVERY
    game_len: float = DEFAULT_GAME_LEN
    goal: int = DEFAULT_GOAL

    def __post_init__(self) -> None:
        for name in ("spawn_every", "game_len", "goal"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be finite")
        if self.spawn_every <= 0:
            raise ValueError("spawn_every must be positive")
        if self.game_len <= 0:
            raise ValueError("game_len must be positive")
        if self.goal < 0:
            raise ValueError("goal must be non-negative")

    @classmethod
    def from_record(cls, record: Any) -> "LevelConfig":
        """Build from a ``{spawnEvery, gameLen, goal}`` record.

        Raises:
            ValueError: If the record is not a mapping or holds bad values.
        """
        if not isinstance(record, dict):
            raise ValueError(f"level record must be an object, got {type(record).__name__}")
        try:
            spawn_every = float(record["spawnEvery"])
            game_len = float(record["gameLen"])
            goal = float(record["goal"])
            if not goal.is_integer():
                raise ValueError(f"goal must be a whole number, got {record['goal']!r}")
            goal = int(goal)
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            raise ValueError(f"bad level record {record!r}: {e}") from e
        return cls(spawn_every=spawn_every, game_len=game_len, goal=goal)


@dataclass
class Difficulty:
    """Ordered per-level configuration with default fallback."""

    levels: List[LevelConfig] = field(default_factory=list)
    max_level: int = MAX_LEVEL
    default: LevelConfig = field(default_factory=LevelConfig)

    def __post_init__(self) -> None:
        if self.max_level < 1:
            raise ValueError("max_level must be at least 1")

    def for_level(self, level: int) -> LevelConfig:
        """Return the config for a 1-based level, or the default if unconfigured."""
        if 1 <= level <= len(self.levels):
            return self.levels[level - 1]
        return self.default


def parse_difficulty(data: Any, max_level: int = MAX_LEVEL) -> Difficulty:
    """Turn decoded JSON into a Difficulty, replacing bad records with defaults."""
    if not isinstance(data, dict) or not isinstance(data.get("levels"), list):
        logger.warning("Difficulty data has no 'levels' list; using defaults")
        return Difficulty(max_level=max_level)

    levels: List[LevelConfig] = []
    for i, record in enumerate(data["levels"], start=1):
        try:
            levels.append(LevelConfig.from_record(record))
        except ValueError as e:
            logger.warning("Level %d: %s; using defaults", i, e)
            levels.append(LevelConfig())
    return Difficulty(levels=levels, max_level=max_level)


def load_difficulty(path: Optional[str], max_level: int = MAX_LEVEL) -> Difficulty:
    """Load a difficulty JSON file.

    A missing or unreadable file is not an error: the defaults are used.
    """
    if path is None:
        return Difficulty(max_level=max_level)
    if not os.path.exists(path):
        logger.warning("Could not load %s: file not found; using defaults", path)
        return Difficulty(max_level=max_level)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not load %s: %s; using defaults", path, e)
        return Difficulty(max_level=max_level)
    return parse_difficulty(data, max_level=max_level)
