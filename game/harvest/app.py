"""
Harvest Field - arcade front end
--------------------------------
- Arcade window drives the frame clock and draws the field
- Arrow keys / WASD move, P pauses, Enter starts, R resets, N restarts from level 1
- ``--autopilot`` lets the nearest-collectible AI steer instead

Run:
    python -m game.harvest.app --difficulty difficulty.json
"""

from __future__ import annotations

import argparse
import logging
import random
from typing import Optional

import arcade

from .config import HEIGHT, MAX_FRAME_STEP, TILE, WIDTH, load_difficulty
from .entities import draw_grid, keyboard_steering, nearest_collectible_steering
from .input import DOWN, LEFT, RIGHT, UP, KeyboardInput
from .session import HudSnapshot, SessionController, State
from .utils import clamp_frame_dt, seed_everything


KEYMAP = {
    arcade.key.LEFT: LEFT,
    arcade.key.RIGHT: RIGHT,
    arcade.key.UP: UP,
    arcade.key.DOWN: DOWN,
    arcade.key.A: LEFT,
    arcade.key.D: RIGHT,
    arcade.key.W: UP,
    arcade.key.S: DOWN,
}
PAUSE_KEYS = (arcade.key.P,)

OVERLAY_TEXT = {
    State.MENU: "Press Enter to play",
    State.PAUSED: "Paused (press P to resume)",
    State.GAME_OVER: "Time up! Press R to return to Menu",
    State.WON: "Harvest complete! Press R for another round",
}


class ArcadeSurface:
    """Draws in field coordinates (y down) on arcade's y-up screen"""

    def __init__(self, height: float):
        self.height = height

    def fill_rect(self, x, y, w, h, color):
        arcade.draw_lrbt_rectangle_filled(x, x + w, self.height - (y + h), self.height - y, color)

    def fill_ellipse(self, cx, cy, rx, ry, color):
        arcade.draw_ellipse_filled(cx, self.height - cy, rx * 2, ry * 2, color)

    def stroke_line(self, x1, y1, x2, y2, color, width=1.0):
        arcade.draw_line(x1, self.height - y1, x2, self.height - y2, color, width)

    def stroke_circle(self, cx, cy, r, color, width=1.0):
        arcade.draw_circle_outline(cx, self.height - cy, r, color, width)


class HarvestWindow(arcade.Window):
    """Arcade window that ticks and renders a session"""

    def __init__(self, session: SessionController, keyboard: Optional[KeyboardInput] = None,
                 width: int = WIDTH, height: int = HEIGHT):
        super().__init__(width, height, "Harvest Field")
        self.session = session
        self.keyboard = keyboard
        self.surface = ArcadeSurface(height)

        # Colors
        self.BG = (223, 240, 213)
        self.GRID_C = (199, 224, 189)
        self.TEXT_C = (51, 51, 51)

        self._hud: HudSnapshot = session.hud_snapshot()
        session.hud = self.show_hud
        if keyboard is not None:
            keyboard.attach(self)

    def show_hud(self, hud: HudSnapshot):
        self._hud = hud

    def on_update(self, delta_time: float):
        self.session.tick(clamp_frame_dt(delta_time, MAX_FRAME_STEP))

    def on_key_press(self, symbol: int, modifiers: int):
        if symbol == arcade.key.ENTER:
            self.session.start()
        elif symbol == arcade.key.R:
            self.session.reset()
        elif symbol == arcade.key.N:
            self.session.reset(level=1)
        elif symbol == arcade.key.ESCAPE:
            self.close()

    def on_draw(self):
        self.clear()
        arcade.draw_lrbt_rectangle_filled(0, self.width, 0, self.height, self.BG)
        draw_grid(self.surface, self.width, self.height, TILE, self.GRID_C)

        s = self.session
        for c in s.collectibles:
            c.draw(self.surface)
        for o in s.obstacles:
            o.draw(self.surface)
        s.actor.draw(self.surface)

        hud = self._hud
        txt = (f"Level {hud.level}  Score: {hud.score}/{hud.goal}  "
               f"Time: {hud.time_left}  {hud.status}")
        arcade.draw_text(txt, 12, self.height - 24, self.TEXT_C, 14)
        overlay = OVERLAY_TEXT.get(s.state)
        if overlay and s.pending is None:
            arcade.draw_text(overlay, 12, self.height - 48, self.TEXT_C, 16)

    def on_close(self):
        if self.keyboard is not None:
            self.keyboard.detach()
        super().on_close()


def build_session(difficulty_path: Optional[str], autopilot: bool, seed: Optional[int]):
    """Wire a session to keyboard input (or the AI) and return both"""
    seed_everything(seed)
    keyboard = KeyboardInput(KEYMAP, pause_keys=PAUSE_KEYS)
    steering = nearest_collectible_steering if autopilot else keyboard_steering(keyboard)
    session = SessionController(
        difficulty=load_difficulty(difficulty_path),
        steering=steering,
        rng=random.Random(seed),
    )
    keyboard.on_pause = session.toggle_pause
    return session, keyboard


def main(argv=None):
    parser = argparse.ArgumentParser(description="Play Harvest Field")
    parser.add_argument("--difficulty", type=str, default="difficulty.json",
                        help="Per-level difficulty JSON (defaults are used if missing)")
    parser.add_argument("--autopilot", action="store_true",
                        help="Let the nearest-collectible AI steer")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--log-level", type=str, default="INFO")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    session, keyboard = build_session(args.difficulty, args.autopilot, args.seed)
    with keyboard:
        HarvestWindow(session, keyboard)
        print("Press Enter to start. Arrows move, P pauses, R resets, Esc quits.")
        arcade.run()


if __name__ == "__main__":
    main()
