"""
physics_world.py: Procedural pipe and bonus generation for the scrolling world.
"""

import random
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from .constants import (
    BONUS_MARGIN, BONUS_SIZE, BONUS_TIERS, BONUS_X_OFFSET, GROUND_HEIGHT,
    MIN_SEGMENT_HEIGHT, PIPE_GAP, PIPE_SPACING, PIPE_WIDTH, DifficultyConfig
)
from .data_models import BonusItem, Obstacle


def weighted_draw(rng: random.Random,
                  tiers: Sequence[Tuple[int, float]] = BONUS_TIERS) -> Callable[[], int]:
    """Returns a zero-argument function drawing a value from (value, weight) tiers."""
    values = [value for value, _ in tiers]
    weights = [weight for _, weight in tiers]

    def draw() -> int:
        return rng.choices(values, weights=weights, k=1)[0]

    return draw


class ObstacleGenerator:
    """
    Spawns pipes at a fixed horizontal spacing with a randomized gap height.
    """

    def __init__(self, rng: Optional[random.Random] = None, pipe_width: float = PIPE_WIDTH,
                 gap: float = PIPE_GAP, spacing: float = PIPE_SPACING,
                 min_segment: float = MIN_SEGMENT_HEIGHT, ground_height: float = GROUND_HEIGHT):
        self.rng = rng or random.Random()
        self.pipe_width = pipe_width
        self.gap = gap
        self.spacing = spacing
        self.min_segment = min_segment
        self.ground_height = ground_height
        self.spawned = 0

    def top_height_bounds(self, world_height: float) -> Tuple[float, float]:
        """Range of top segment heights that leaves min_segment on both sides."""
        low = self.min_segment
        high = world_height - self.gap - self.ground_height - self.min_segment
        return low, max(low, high)

    def create(self, world_width: float, world_height: float) -> Obstacle:
        """Generates a new pipe at the right edge of the world."""
        low, high = self.top_height_bounds(world_height)
        top_height = self.rng.uniform(low, high)
        top_height = min(max(top_height, low), high)
        self.spawned += 1
        return Obstacle(
            x=float(world_width),
            top_height=top_height,
            bottom_height=world_height - top_height - self.gap - self.ground_height,
            gap=self.gap,
            width=self.pipe_width,
            serial=self.spawned,
        )

    def should_spawn(self, obstacles: Sequence[Obstacle], world_width: float) -> bool:
        """True once the rightmost pipe has scrolled `spacing` away from the right edge."""
        last_x = max((o.x for o in obstacles), default=-self.spacing)
        return last_x <= world_width - self.spacing

    def cull(self, obstacles: List[Obstacle]) -> List[Obstacle]:
        return [o for o in obstacles if o.x > -self.pipe_width]

    def stream(self, world_width: float, world_height: float) -> Iterator[Obstacle]:
        """Endless sequence of pipes; the caller decides when to stop pulling."""
        while True:
            yield self.create(world_width, world_height)


class BonusGenerator:
    """
    Places collectibles in pipe gaps according to the difficulty's bonus policy.
    """

    def __init__(self, difficulty: DifficultyConfig, rng: Optional[random.Random] = None,
                 draw_value: Optional[Callable[[], int]] = None,
                 size: float = BONUS_SIZE, margin: float = BONUS_MARGIN,
                 x_offset: float = BONUS_X_OFFSET):
        self.difficulty = difficulty
        self.rng = rng or random.Random()
        self.draw_value = draw_value or weighted_draw(self.rng)
        self.size = size
        self.margin = margin
        self.x_offset = x_offset

    def _item_y(self, obstacle: Obstacle) -> float:
        if not self.difficulty.bonus_randomized:
            return obstacle.gap_top + (obstacle.gap - self.size) / 2
        low = obstacle.gap_top + self.margin
        high = obstacle.gap_bottom - self.size - self.margin
        return self.rng.uniform(low, max(low, high))

    def spawn_for(self, obstacle: Obstacle) -> List[BonusItem]:
        """Items for a freshly created pipe (possibly none)."""
        if obstacle.serial % self.difficulty.bonus_every != 0:
            return []

        x = obstacle.right + self.x_offset
        return [
            BonusItem(x=x, y=self._item_y(obstacle), value=self.draw_value(), size=self.size)
            for _ in range(self.difficulty.bonus_count)
        ]

    def cull(self, bonuses: List[BonusItem]) -> List[BonusItem]:
        return [b for b in bonuses if not b.collected and b.x + b.size > 0]
