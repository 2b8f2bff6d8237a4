"""
data_models.py: Data structures for the game state.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from .constants import (
    ACTOR_SIZE, BONUS_BOB_AMPLITUDE, BONUS_SIZE, DEFAULT_DIFFICULTY,
    DIFFICULTIES, DifficultyConfig, WORLD_HEIGHT, WORLD_WIDTH
)


class Phase(str, Enum):
    IDLE = "idle"
    PRE_START = "pre_start"
    ACTIVE = "active"
    OVER = "over"


@dataclass
class Actor:
    """The bird. x is the left edge, y the top edge."""
    x: float = WORLD_WIDTH / 2 - ACTOR_SIZE / 2
    y: float = WORLD_HEIGHT / 2
    width: float = ACTOR_SIZE
    height: float = ACTOR_SIZE
    velocity: float = 0.0
    tilt: float = 0.0
    wing_phase: float = 0.0

    @property
    def left(self) -> float:
        return self.x

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def center_in(self, world_width: float, world_height: Optional[float] = None):
        """Centers the actor horizontally, and vertically when a height is given."""
        self.x = world_width / 2 - self.width / 2
        if world_height is not None:
            self.y = world_height / 2

    def to_render_state(self) -> "ActorView":
        return ActorView(
            x=round(self.x, 2),
            y=round(self.y, 2),
            width=self.width,
            height=self.height,
            velocity=round(self.velocity, 4),
            tilt=round(self.tilt, 2),
            wing_phase=self.wing_phase,
        )


@dataclass
class Obstacle:
    """A pipe pair. top_height + gap + bottom_height + ground == world height."""
    x: float
    top_height: float
    bottom_height: float
    gap: float
    width: float
    serial: int = 1
    scored: bool = False

    @property
    def gap_top(self) -> float:
        return self.top_height

    @property
    def gap_bottom(self) -> float:
        return self.top_height + self.gap

    @property
    def right(self) -> float:
        return self.x + self.width

    def to_render_state(self) -> "ObstacleView":
        return ObstacleView(
            x=round(self.x, 2),
            top_height=self.top_height,
            bottom_height=self.bottom_height,
            gap=self.gap,
            width=self.width,
            scored=self.scored,
        )


@dataclass
class BonusItem:
    """A collectible placed in a pipe gap. y is the collision (base) top edge."""
    x: float
    y: float
    value: int
    size: float = BONUS_SIZE
    collected: bool = False
    bob_phase: float = 0.0

    @property
    def display_y(self) -> float:
        return self.y + BONUS_BOB_AMPLITUDE * math.sin(self.bob_phase)

    def to_render_state(self) -> "BonusView":
        return BonusView(
            x=round(self.x, 2),
            y=round(self.display_y, 2),
            size=self.size,
            value=self.value,
        )


@dataclass
class RoundState:
    """Bookkeeping for one play session."""
    difficulty: DifficultyConfig = field(
        default_factory=lambda: DIFFICULTIES[DEFAULT_DIFFICULTY])
    score: int = 0
    bonus_total: int = 0
    running: bool = False
    started: bool = False       # Set by the first flap
    elapsed_ms: float = 0.0

    @property
    def grand_total(self) -> int:
        return self.score + self.bonus_total


# -------- Read-only views handed to the presentation layer --------

@dataclass(frozen=True)
class ActorView:
    x: float
    y: float
    width: float
    height: float
    velocity: float
    tilt: float
    wing_phase: float


@dataclass(frozen=True)
class ObstacleView:
    x: float
    top_height: float
    bottom_height: float
    gap: float
    width: float
    scored: bool


@dataclass(frozen=True)
class BonusView:
    x: float
    y: float
    size: float
    value: int


@dataclass(frozen=True)
class FrameSnapshot:
    """Everything a renderer needs for one frame."""
    phase: Phase
    difficulty: str
    actor: ActorView
    obstacles: Tuple[ObstacleView, ...]
    bonuses: Tuple[BonusView, ...]
    score: int
    bonus_total: int
    best_score: int
    world_width: float
    world_height: float


@dataclass(frozen=True)
class RoundSummary:
    """Final values surfaced when a round ends."""
    difficulty: str
    score: int
    bonus_total: int
    grand_total: int
    best_score: int
    new_best: bool
    elapsed_ms: float
