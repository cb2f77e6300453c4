"""
Input collaborators.

The session never sees key events; it asks an ``InputSource`` for a snapshot
of the held directions once per tick. ``KeyboardInput`` builds that snapshot
from window key events and owns its handler registration: ``attach`` pushes
it onto a window's event stack, ``detach`` removes it, and using it as a
context manager guarantees the removal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Iterable, Optional, Protocol

logger = logging.getLogger(__name__)

LEFT = "left"
RIGHT = "right"
UP = "up"
DOWN = "down"
DIRECTIONS = (LEFT, RIGHT, UP, DOWN)


@dataclass(frozen=True)
class InputSnapshot:
    held: FrozenSet[str] = frozenset()


class InputSource(Protocol):
    def snapshot(self) -> InputSnapshot: ...


class ScriptedInput:
    """Input whose held directions are set directly (agents, tests, replays)"""

    def __init__(self, held: Iterable[str] = ()):
        self.held = set(held)

    def snapshot(self) -> InputSnapshot:
        return InputSnapshot(frozenset(self.held))


class KeyboardInput:
    """Tracks held direction keys from window key events.

    Args:
        keymap: Key symbol -> direction name.
        pause_keys: Key symbols whose press fires ``on_pause``.
        on_pause: Called once per pause key press (the edge, not the hold).
    """

    def __init__(
        self,
        keymap: Dict[int, str],
        pause_keys: Iterable[int] = (),
        on_pause: Optional[Callable[[], None]] = None,
    ):
        self.keymap = dict(keymap)
        self.pause_keys = frozenset(pause_keys)
        self.on_pause = on_pause
        self._held: Dict[str, int] = {}  # direction -> number of keys holding it
        self._window = None

    # pyglet-style handlers; names must match the window events
    def on_key_press(self, symbol: int, modifiers: int):
        if symbol in self.pause_keys and self.on_pause is not None:
            self.on_pause()
        direction = self.keymap.get(symbol)
        if direction is not None:
            self._held[direction] = self._held.get(direction, 0) + 1

    def on_key_release(self, symbol: int, modifiers: int):
        direction = self.keymap.get(symbol)
        if direction is None:
            return
        count = self._held.get(direction, 0) - 1
        if count > 0:
            self._held[direction] = count
        else:
            self._held.pop(direction, None)

    def snapshot(self) -> InputSnapshot:
        return InputSnapshot(frozenset(self._held))

    def clear(self):
        self._held.clear()

    @property
    def attached(self) -> bool:
        return self._window is not None

    def attach(self, window):
        if self._window is window:
            return
        self.detach()
        if window is None:
            logger.warning("No window to attach keyboard input to; input disabled")
            return
        window.push_handlers(self)
        self._window = window

    def detach(self):
        if self._window is None:
            return
        self._window.remove_handlers(self)
        self._window = None
        self.clear()

    def __enter__(self) -> "KeyboardInput":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.detach()
