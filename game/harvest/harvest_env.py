"""
HarvestEnv - Gymnasium wrapper around the harvest session
---------------------------------------------------------
- The same SessionController the arcade front end plays
- Discrete action space: move(5) = stay, up, down, left, right
- Vector observation: actor state + timer/score/level + M nearest collectibles
- Reward: points collected, bonus per cleared level, small time penalty
- Simulated clock, so level-advance resumes follow simulated time

Quick test:
    python -m rl.evaluate --policy autopilot --episodes 3
"""

from __future__ import annotations

import logging
import random
from typing import Any, Dict, Optional

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from .config import HEIGHT, MAX_FRAME_STEP, RESUME_DELAY, WIDTH, Difficulty
from .entities import KIND_TABLE, Kind, keyboard_steering, nearest_collectible_steering
from .input import DOWN, LEFT, RIGHT, UP, ScriptedInput
from .session import SessionController, State
from .utils import clamp

logger = logging.getLogger(__name__)

# 0 stay, 1 up, 2 down, 3 left, 4 right
ACTION_DIRECTIONS = [(), (UP,), (DOWN,), (LEFT,), (RIGHT,)]

MAX_POINTS = max(points for points, _ in KIND_TABLE.values())


class HarvestEnv(gym.Env):
    """Collect items against the clock, one session per episode"""

    metadata = {"render_modes": ["human"], "render_fps": 30}

    def __init__(
        self,
        render_mode: Optional[str] = None,
        difficulty: Optional[Difficulty] = None,
        dt: float = MAX_FRAME_STEP,
        max_steps: int = 6000,
        m_collectibles: int = 5,
        autopilot: bool = False,
        level_bonus: float = 5.0,
        time_penalty: float = 0.001,
        resume_delay: float = RESUME_DELAY,
    ):
        super().__init__()

        self.render_mode = render_mode
        self.difficulty = difficulty if difficulty is not None else Difficulty()
        self.dt = dt
        self.max_steps = max_steps
        self.m_collectibles = m_collectibles
        self.autopilot = autopilot
        self.level_bonus = level_bonus
        self.time_penalty = time_penalty
        self.resume_delay = resume_delay

        self.action_space = spaces.Discrete(len(ACTION_DIRECTIONS))

        # Actor: pos(2) vel(2); time(1) score(1) level(1)
        # Each collectible: rel pos(2) value(1)
        obs_dim = 2 + 2 + 3 + self.m_collectibles * 3
        self.observation_space = spaces.Box(
            low=-1.0, high=1.0, shape=(obs_dim,), dtype=np.float32
        )

        self._input = ScriptedInput()
        self._sim_time = 0.0
        self._step_count = 0
        self._window = None
        self.session: SessionController = None  # type: ignore

    def _clock(self) -> float:
        return self._sim_time

    # ----------------------------
    # Gym API
    # ----------------------------

    def reset(self, seed: Optional[int] = None, options: Optional[dict] = None):
        super().reset(seed=seed)

        self._sim_time = 0.0
        self._step_count = 0
        self._input.held.clear()

        steering = nearest_collectible_steering if self.autopilot else keyboard_steering(self._input)
        self.session = SessionController(
            difficulty=self.difficulty,
            steering=steering,
            rng=random.Random(int(self.np_random.integers(0, 2**31 - 1))),
            clock=self._clock,
            resume_delay=self.resume_delay,
        )
        self.session.start()

        if self._window is not None:
            self._window.session = self.session
            self.session.hud = self._window.show_hud

        return self._get_obs(), self._get_info()

    def step(self, action):
        self._input.held = set(ACTION_DIRECTIONS[int(action)])
        level_before = self.session.level

        self._sim_time += self.dt
        self.session.tick(self.dt)

        levels_cleared = self.session.level - level_before
        if self.session.pending is not None:
            # Nothing can happen during the resume delay; skip straight past it
            self._sim_time = self.session.pending.due
            self.session.poll()

        reward = float(self.session.last_collected)
        reward += self.level_bonus * levels_cleared
        if self.session.state is State.WON:
            reward += self.level_bonus
        reward -= self.time_penalty

        terminated = self.session.state in (State.GAME_OVER, State.WON)
        self._step_count += 1
        truncated = self._step_count >= self.max_steps

        if self.render_mode == "human":
            self.render()

        return self._get_obs(), reward, terminated, truncated, self._get_info()

    # ----------------------------
    # Observation / info
    # ----------------------------

    def _get_obs(self) -> np.ndarray:
        s = self.session
        a = s.actor
        cfg = s.level_config

        obs_parts = [
            (a.x / max(1.0, s.field_w - a.w)) * 2 - 1,
            (a.y / max(1.0, s.field_h - a.h)) * 2 - 1,
            clamp(a.vx / max(1e-6, a.speed), -1, 1),
            clamp(a.vy / max(1e-6, a.speed), -1, 1),
            clamp(s.time_left / cfg.game_len, 0, 1) * 2 - 1,
            clamp(s.score / max(1, s.goal), 0, 1) * 2 - 1,
            (s.level - 1) / max(1, s.max_level - 1) * 2 - 1 if s.max_level > 1 else 0.0,
        ]

        ax, ay = a.bounds.center
        live = [c for c in s.collectibles if not c.dead]
        live.sort(key=lambda c: (c.bounds.center[0] - ax) ** 2 + (c.bounds.center[1] - ay) ** 2)
        for i in range(self.m_collectibles):
            if i < len(live):
                cx, cy = live[i].bounds.center
                obs_parts += [
                    clamp((cx - ax) / WIDTH, -1, 1),
                    clamp((cy - ay) / HEIGHT, -1, 1),
                    live[i].points / MAX_POINTS,
                ]
            else:
                obs_parts += [0.0, 0.0, 0.0]

        return np.array(obs_parts, dtype=np.float32)

    def _get_info(self) -> Dict[str, Any]:
        s = self.session
        return {
            "score": s.score,
            "goal": s.goal,
            "level": s.level,
            "time_left": s.time_left,
            "state": s.state.value,
            "num_collectibles": len(s.collectibles),
            "num_high": sum(1 for c in s.collectibles if c.kind is Kind.HIGH),
            "step": self._step_count,
        }

    # ----------------------------
    # Rendering with Arcade
    # ----------------------------

    def render(self):
        if self.render_mode != "human":
            return None

        if self._window is None:
            try:
                from .app import HarvestWindow
                self._window = HarvestWindow(self.session)
            except Exception as e:
                logger.warning("Could not open a window (%s); rendering disabled", e)
                self.render_mode = None
                return None

        self._window.dispatch_events()
        self._window.on_draw()
        self._window.flip()
        return None

    def close(self):
        if self._window is not None:
            self._window.close()
            self._window = None
