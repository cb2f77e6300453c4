"""Shared fixtures for the harvest tests.

This module provides:
- A controllable clock for the level-advance resume
- A recording render surface
- Difficulty presets that keep spawning out of the way
- A session factory wired to scripted input
"""

import random
from typing import Any, List, Tuple

import pytest

from game.harvest.config import Difficulty, LevelConfig
from game.harvest.entities import Collectible, Kind, keyboard_steering
from game.harvest.input import ScriptedInput
from game.harvest.session import SessionController


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSurface:
    """Render surface that records every draw call."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []

    def fill_rect(self, *args: Any) -> None:
        self.calls.append(("fill_rect", args))

    def fill_ellipse(self, *args: Any) -> None:
        self.calls.append(("fill_ellipse", args))

    def stroke_line(self, *args: Any) -> None:
        self.calls.append(("stroke_line", args))

    def stroke_circle(self, *args: Any) -> None:
        self.calls.append(("stroke_circle", args))

    def names(self) -> List[str]:
        return [name for name, _ in self.calls]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()


@pytest.fixture
def quiet_difficulty() -> Difficulty:
    """Three distinct levels whose spawn interval never elapses in a test."""
    return Difficulty(
        levels=[
            LevelConfig(spawn_every=1000.0, game_len=60.0, goal=15),
            LevelConfig(spawn_every=1000.0, game_len=50.0, goal=20),
            LevelConfig(spawn_every=1000.0, game_len=45.0, goal=25),
        ]
    )


@pytest.fixture
def scripted_input() -> ScriptedInput:
    return ScriptedInput()


@pytest.fixture
def make_session(clock: FakeClock, quiet_difficulty: Difficulty, scripted_input: ScriptedInput):
    """Factory for sessions steered by ``scripted_input`` on the fake clock."""

    def _make(difficulty: Difficulty = None, **kwargs: Any) -> SessionController:
        kwargs.setdefault("steering", keyboard_steering(scripted_input))
        kwargs.setdefault("rng", random.Random(1234))
        kwargs.setdefault("clock", clock)
        return SessionController(
            difficulty=difficulty if difficulty is not None else quiet_difficulty,
            **kwargs,
        )

    return _make


@pytest.fixture
def place_on_actor():
    """Drop a collectible exactly on the actor so the next tick collects it."""

    def _place(session: SessionController, kind: Kind) -> Collectible:
        c = Collectible(x=session.actor.x, y=session.actor.y, kind=kind, sway=0.0)
        session.collectibles.append(c)
        return c

    return _place
