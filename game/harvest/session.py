"""
Session controller: the authoritative game state machine.

    MENU --start--> PLAYING <--toggle_pause--> PAUSED
    PLAYING --time up, score < goal--> GAME_OVER
    PLAYING --goal reached, last level--> WON
    PLAYING --goal reached, more levels--> MENU (next level) --resume delay--> PLAYING
    any --reset--> MENU

The front end calls ``tick(dt)`` once per frame. Everything except a due
level-advance resume is ignored unless the state is PLAYING, so frames that
arrive while paused, in the menu, or during the resume delay change nothing.

The resume after a level clear is not a timer callback. It is stored as a
``PendingResume`` with a due time on the injected clock and checked on every
tick; ``start()`` and ``reset()`` drop it so a stale resume can never undo a
later manual reset.
"""

from __future__ import annotations

import logging
import math
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from .config import HEIGHT, RESUME_DELAY, TILE, WIDTH, Difficulty, LevelConfig
from .entities import (
    Actor,
    Collectible,
    Obstacle,
    Steering,
    choose_kind,
    idle_steering,
    obstacles_for_level,
)
from .utils import Box, aabb_overlap, clamp

logger = logging.getLogger(__name__)


class State(Enum):
    MENU = "MENU"
    PLAYING = "PLAYING"
    PAUSED = "PAUSED"
    GAME_OVER = "GAME_OVER"
    WON = "WON"


STATUS_TEXT = {
    State.MENU: "Menu",
    State.PLAYING: "Playing...",
    State.PAUSED: "Paused",
    State.GAME_OVER: "Game Over",
    State.WON: "You Win! All levels complete.",
}


@dataclass(frozen=True)
class HudSnapshot:
    """What the score display shows"""
    score: int
    time_left: int  # whole seconds, rounded up
    goal: int
    level: int
    status: str
    state: State


@dataclass(frozen=True)
class PendingResume:
    due: float  # clock time at which play resumes


HudListener = Callable[[HudSnapshot], None]


class SessionController:
    """Owns the actor, collectibles, obstacles, timers, score and level.

    Args:
        difficulty: Per-level configuration; defaults for every level if None.
        steering: Velocity strategy for the actor (keyboard or AI).
        rng: Random source for spawns. A fresh ``random.Random`` if None.
        clock: Monotonic time source used for the level-advance resume.
        hud: Receives a ``HudSnapshot`` on every transition and playing tick.
        resume_delay: Seconds between a level clear and play resuming.
    """

    def __init__(
        self,
        difficulty: Optional[Difficulty] = None,
        steering: Optional[Steering] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], float]] = None,
        hud: Optional[HudListener] = None,
        resume_delay: float = RESUME_DELAY,
        field_size: Tuple[float, float] = (WIDTH, HEIGHT),
        tile: float = TILE,
    ):
        self.difficulty = difficulty if difficulty is not None else Difficulty()
        self.steering = steering if steering is not None else idle_steering
        self.rng = rng if rng is not None else random.Random()
        self.clock = clock if clock is not None else time.monotonic
        self.hud = hud
        if hud is None:
            logger.debug("No HUD listener; HUD updates disabled")
        self.resume_delay = resume_delay
        self.field_w, self.field_h = field_size
        self.tile = tile

        self.state = State.MENU
        self.status = STATUS_TEXT[State.MENU]
        self.level = 1
        self.score = 0
        self.time_left = 0.0
        self.spawn_every = 0.0
        self.goal = 0
        self.actor: Actor = None  # type: ignore
        self.collectibles: List[Collectible] = []
        self.obstacles: List[Obstacle] = []
        self.pending: Optional[PendingResume] = None
        self._accum_spawn = 0.0
        self.last_collected = 0  # points banked by the most recent playing tick
        self._free_cells: List[Tuple[float, float]] = []

        self.reset()

    # ----------------------------
    # Properties
    # ----------------------------

    @property
    def max_level(self) -> int:
        return self.difficulty.max_level

    @property
    def level_config(self) -> LevelConfig:
        return self.difficulty.for_level(self.level)

    @property
    def spawn_accumulator(self) -> float:
        return self._accum_spawn

    def start_position(self) -> Tuple[float, float]:
        return self.field_w / 2 - 17, self.field_h - 80

    # ----------------------------
    # Commands
    # ----------------------------

    def start(self):
        """Begin play from MENU/GAME_OVER/WON (with a reset) or resume from PAUSED"""
        if self.state in (State.MENU, State.GAME_OVER, State.WON):
            self.reset()
            self._set_state(State.PLAYING)
        elif self.state is State.PAUSED:
            self.pending = None
            self._set_state(State.PLAYING)

    def reset(self, level: Optional[int] = None):
        """Rebuild the current level (or ``level``, if given) and return to MENU"""
        if level is not None:
            if not 1 <= level <= self.max_level:
                raise ValueError(f"level must be in 1..{self.max_level}, got {level}")
            self.level = level

        self.pending = None
        cfg = self.level_config
        self.time_left = float(cfg.game_len)
        self.spawn_every = cfg.spawn_every
        self.goal = cfg.goal
        self.score = 0
        self._accum_spawn = 0.0

        x, y = self.start_position()
        self.actor = Actor(x=x, y=y, steer=self.steering)
        self.collectibles.clear()
        self.obstacles.clear()
        self.obstacles.extend(obstacles_for_level(self.level))
        self._free_cells = self._obstacle_free_cells()

        self._set_state(State.MENU)

    def toggle_pause(self):
        if self.state is State.PLAYING:
            self._set_state(State.PAUSED)
        elif self.state is State.PAUSED:
            self._set_state(State.PLAYING)

    def poll(self) -> bool:
        """Fire the level-advance resume if it is due. Returns True if it fired."""
        if self.pending is None or self.clock() < self.pending.due:
            return False
        self.pending = None
        if self.state is not State.MENU:
            return False
        self._set_state(State.PLAYING)
        return True

    def tick(self, dt: float):
        """Advance the simulation by ``dt`` seconds"""
        self.poll()
        if self.state is not State.PLAYING:
            return
        dt = max(0.0, dt)
        self.last_collected = 0

        self.time_left = clamp(self.time_left - dt, 0.0, self.level_config.game_len)
        if self.time_left <= 0.0:
            # Timer expiry wins over a goal reached in this same frame
            self._finish_level()
            return

        self.actor.derive_velocity(self.collectibles)
        self.actor.move(dt, self.obstacles, self.field_w, self.field_h)

        self._accum_spawn += dt
        while self._accum_spawn >= self.spawn_every:
            self._accum_spawn -= self.spawn_every
            self.spawn_collectible()

        self._collect()
        if self.score >= self.goal:
            self._finish_level()
            return

        self.collectibles = [c for c in self.collectibles if not c.dead]
        for c in self.collectibles:
            c.update(dt)
        self._notify()

    # ----------------------------
    # Spawning / collisions
    # ----------------------------

    def spawn_collectible(self) -> Collectible:
        """Place one collectible on a random open grid cell"""
        taken = {(c.x, c.y) for c in self.collectibles if not c.dead}
        cells = [cell for cell in self._free_cells if cell not in taken]
        if not cells:
            cells = self._free_cells or self._grid_cells()
        x, y = cells[self.rng.randrange(len(cells))]
        kind = choose_kind(self.rng.random())
        c = Collectible(x=x, y=y, kind=kind, sway=self.rng.random() * math.pi * 2)
        self.collectibles.append(c)
        return c

    def _grid_cells(self) -> List[Tuple[float, float]]:
        # One tile of margin from every edge
        cols = int((self.field_w - 2 * self.tile) // self.tile)
        rows = int((self.field_h - 2 * self.tile) // self.tile)
        return [
            (i * self.tile + self.tile, j * self.tile + self.tile)
            for j in range(rows)
            for i in range(cols)
        ]

    def _obstacle_free_cells(self) -> List[Tuple[float, float]]:
        probe = Collectible(0.0, 0.0, sway=0.0)
        free = []
        for x, y in self._grid_cells():
            box = Box(x, y, probe.w, probe.h)
            if not any(aabb_overlap(box, o.bounds) for o in self.obstacles):
                free.append((x, y))
        return free

    def _collect(self) -> int:
        """Mark every collectible touching the actor dead and bank its points"""
        actor_box = self.actor.bounds
        gained = 0
        for c in self.collectibles:
            if not c.dead and aabb_overlap(actor_box, c.bounds):
                c.dead = True
                gained += c.points
        self.score += gained
        self.last_collected = gained
        return gained

    # ----------------------------
    # Level outcome
    # ----------------------------

    def _finish_level(self):
        if self.score >= self.goal:
            if self.level < self.max_level:
                self._advance_level()
            else:
                logger.info("All %d levels cleared with score %d", self.max_level, self.score)
                self._set_state(State.WON)
        else:
            logger.info("Level %d lost: %d/%d", self.level, self.score, self.goal)
            self._set_state(State.GAME_OVER)

    def _advance_level(self):
        logger.info("Level %d cleared with score %d", self.level, self.score)
        self.level += 1
        self.reset()
        self.status = f"Level {self.level} - Get Ready!"
        self.pending = PendingResume(due=self.clock() + self.resume_delay)
        self._notify()

    # ----------------------------
    # HUD
    # ----------------------------

    def hud_snapshot(self) -> HudSnapshot:
        return HudSnapshot(
            score=self.score,
            time_left=int(math.ceil(self.time_left)),
            goal=self.goal,
            level=self.level,
            status=self.status,
            state=self.state,
        )

    def _set_state(self, state: State):
        self.state = state
        self.status = STATUS_TEXT[state]
        self._notify()

    def _notify(self):
        if self.hud is None:
            return
        try:
            self.hud(self.hud_snapshot())
        except Exception:
            logger.exception("HUD listener failed; HUD updates disabled")
            self.hud = None
