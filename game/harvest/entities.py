"""
Game entity dataclasses

Every entity exposes the same small interface (``bounds``, ``update``,
``draw``); the actor's movement intent comes from an injected steering
function instead of a subclass.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Protocol, Sequence, Tuple

from .config import HEIGHT, WIDTH
from .input import DOWN, LEFT, RIGHT, UP, InputSource
from .utils import Box, aabb_overlap, clamp, distance, normalize

Color = Tuple[int, int, int]


class Surface(Protocol):
    """Render target in field coordinates (origin top-left, y down)."""

    def fill_rect(self, x: float, y: float, w: float, h: float, color: Color) -> None: ...

    def fill_ellipse(self, cx: float, cy: float, rx: float, ry: float, color: Color) -> None: ...

    def stroke_line(self, x1: float, y1: float, x2: float, y2: float,
                    color: Color, width: float = 1.0) -> None: ...

    def stroke_circle(self, cx: float, cy: float, r: float,
                      color: Color, width: float = 1.0) -> None: ...


class Entity(Protocol):
    dead: bool

    @property
    def bounds(self) -> Box: ...

    def update(self, dt: float) -> None: ...

    def draw(self, surface: Surface) -> None: ...


def _check_size(w: float, h: float):
    if w < 0 or h < 0:
        raise ValueError(f"entity size must be non-negative, got {w}x{h}")


def draw_grid(surface: Surface, width: float, height: float, tile: float, color: Color):
    """Draw tile lines across a field of the given size"""
    y = tile
    while y < height:
        surface.stroke_line(0, y, width, y, color)
        y += tile
    x = tile
    while x < width:
        surface.stroke_line(x, 0, x, height, color)
        x += tile


# ----------------------------
# Collectibles
# ----------------------------

class Kind(Enum):
    LOW = "low"
    MID = "mid"
    HIGH = "high"


# kind -> (points, color)
KIND_TABLE = {
    Kind.LOW: (1, (217, 164, 65)),
    Kind.MID: (3, (255, 127, 42)),
    Kind.HIGH: (5, (255, 215, 0)),
}

STALK_C = (47, 125, 50)
HIGH_RING_C = (191, 166, 0)


def choose_kind(r: float) -> Kind:
    """Map a uniform draw in [0, 1) to a kind: 10% high, 30% mid, 60% low"""
    if r > 0.9:
        return Kind.HIGH
    if r > 0.6:
        return Kind.MID
    return Kind.LOW


@dataclass
class Collectible:
    """Item worth a kind-dependent number of points"""
    x: float
    y: float
    kind: Kind = Kind.LOW
    w: float = 20.0
    h: float = 26.0
    sway: float = field(default_factory=lambda: random.random() * math.pi * 2)
    dead: bool = False

    def __post_init__(self):
        _check_size(self.w, self.h)

    @property
    def points(self) -> int:
        return KIND_TABLE[self.kind][0]

    @property
    def color(self) -> Color:
        return KIND_TABLE[self.kind][1]

    @property
    def bounds(self) -> Box:
        return Box(self.x, self.y, self.w, self.h)

    def update(self, dt: float):
        # Cosmetic only
        self.sway += dt * 2

    def draw(self, surface: Surface):
        cx = self.x + self.w / 2
        bend = cx + math.sin(self.sway) * 3
        surface.stroke_line(cx, self.y + self.h, bend, self.y + self.h / 2, STALK_C, 3)
        surface.stroke_line(bend, self.y + self.h / 2, cx, self.y, STALK_C, 3)
        surface.fill_ellipse(cx, self.y, 8, 6, self.color)
        if self.kind is Kind.HIGH:
            surface.stroke_circle(cx, self.y, 7, HIGH_RING_C, 2)


# ----------------------------
# Obstacles
# ----------------------------

OBSTACLE_POLE_C = (155, 118, 83)
OBSTACLE_HEAD_C = (194, 142, 14)
OBSTACLE_ARM_C = (107, 79, 42)

# (x, y, first level it appears on)
OBSTACLE_LAYOUT = [
    (200, 220, 1),
    (650, 160, 1),
    (400, 320, 2),
    (800, 100, 3),
]


@dataclass(frozen=True)
class Obstacle:
    """Static solid body"""
    x: float
    y: float
    w: float = 26.0
    h: float = 46.0

    def __post_init__(self):
        _check_size(self.w, self.h)

    @property
    def dead(self) -> bool:
        return False

    @property
    def bounds(self) -> Box:
        return Box(self.x, self.y, self.w, self.h)

    def update(self, dt: float):
        pass

    def draw(self, surface: Surface):
        cx = self.x + self.w / 2
        surface.fill_rect(cx - 3, self.y, 6, self.h, OBSTACLE_POLE_C)
        surface.fill_ellipse(cx, self.y + 10, 10, 10, OBSTACLE_HEAD_C)
        surface.stroke_line(self.x, self.y + 18, self.x + self.w, self.y + 18, OBSTACLE_ARM_C, 4)


def obstacles_for_level(level: int) -> list:
    """Layout grows monotonically with the level"""
    return [Obstacle(x, y) for x, y, first in OBSTACLE_LAYOUT if level >= first]


# ----------------------------
# Actor
# ----------------------------

Steering = Callable[["Actor", Sequence[Collectible]], Tuple[float, float]]


def idle_steering(actor: "Actor", collectibles: Sequence[Collectible]) -> Tuple[float, float]:
    return 0.0, 0.0


def keyboard_steering(source: InputSource) -> Steering:
    """Four-way digital steering from the held-direction set"""
    def steer(actor: "Actor", collectibles: Sequence[Collectible]) -> Tuple[float, float]:
        held = source.snapshot().held
        dx = (RIGHT in held) - (LEFT in held)
        dy = (DOWN in held) - (UP in held)
        return dx * actor.speed, dy * actor.speed
    return steer


def nearest_collectible_steering(actor: "Actor", collectibles: Sequence[Collectible]) -> Tuple[float, float]:
    """Head straight for the closest live collectible"""
    here = actor.bounds.center
    target: Optional[Collectible] = None
    best = math.inf
    for c in collectibles:
        if c.dead:
            continue
        d = distance(here, c.bounds.center)
        # strict '<' keeps the first one on ties
        if d < best:
            best = d
            target = c
    if target is None:
        return 0.0, 0.0
    tx, ty = target.bounds.center
    nx, ny = normalize(tx - here[0], ty - here[1])
    return nx * actor.speed, ny * actor.speed


ACTOR_C = (139, 90, 43)
HAT_C = (194, 142, 14)


@dataclass
class Actor:
    """Movable character; its velocity comes from ``steer``"""
    x: float
    y: float
    steer: Steering = field(default=idle_steering, repr=False)
    w: float = 34.0
    h: float = 34.0
    vx: float = 0.0
    vy: float = 0.0
    speed: float = 260.0  # px/s
    dead: bool = False

    def __post_init__(self):
        _check_size(self.w, self.h)

    @property
    def bounds(self) -> Box:
        return Box(self.x, self.y, self.w, self.h)

    def derive_velocity(self, collectibles: Sequence[Collectible]):
        self.vx, self.vy = self.steer(self, collectibles)

    def move(self, dt: float, obstacles: Sequence[Obstacle],
             field_w: float = WIDTH, field_h: float = HEIGHT):
        """Advance by velocity, clamp to the field, and undo the whole step on obstacle contact"""
        old_x, old_y = self.x, self.y
        self.x = clamp(self.x + self.vx * dt, 0.0, field_w - self.w)
        self.y = clamp(self.y + self.vy * dt, 0.0, field_h - self.h)

        box = self.bounds
        if any(aabb_overlap(box, o.bounds) for o in obstacles):
            self.x, self.y = old_x, old_y

    def update(self, dt: float):
        pass

    def draw(self, surface: Surface):
        surface.fill_rect(self.x, self.y, self.w, self.h, ACTOR_C)
        # hat
        surface.fill_rect(self.x + 4, self.y - 6, self.w - 8, 8, HAT_C)
        surface.fill_rect(self.x + 10, self.y - 18, self.w - 20, 12, HAT_C)
