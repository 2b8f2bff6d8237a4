"""
physics_core.py: The frame-rate independent kinematics, collision and scoring logic.
"""

import math
from typing import Iterable, List

from .constants import (
    DEFAULT_DIFFICULTY, DIFFICULTIES, FLAP_IMPULSE, GROUND_HEIGHT,
    MAX_TILT_DEG, TILT_GAIN, WING_SPEED, DifficultyConfig
)
from .data_models import Actor, BonusItem, Obstacle


def tilt_for(velocity: float) -> float:
    """Degrees of nose tilt for a vertical velocity, clamped to +/-MAX_TILT_DEG."""
    return min(max(velocity * TILT_GAIN, -MAX_TILT_DEG), MAX_TILT_DEG)


def boxes_overlap(ax: float, ay: float, aw: float, ah: float,
                  bx: float, by: float, bw: float, bh: float) -> bool:
    """Strict AABB test: touching edges do not count as overlap."""
    return ax < bx + bw and ax + aw > bx and ay < by + bh and ay + ah > by


class PhysicsCore:
    """
    Physics for one round. Every per-frame quantity is multiplied by the
    normalized step (1.0 == one 60Hz frame) so results do not depend on frame rate.
    """

    def __init__(self, difficulty: DifficultyConfig = DIFFICULTIES[DEFAULT_DIFFICULTY],
                 ground_height: float = GROUND_HEIGHT, flap_impulse: float = FLAP_IMPULSE):
        self.difficulty = difficulty
        self.ground_height = ground_height
        self.flap_impulse = flap_impulse

    def apply_gravity_and_movement(self, actor: Actor, step: float):
        """Advances the actor by one (possibly fractional) frame."""
        actor.velocity += self.difficulty.gravity * step
        actor.y += actor.velocity * step
        actor.tilt = tilt_for(actor.velocity)

    def hold(self, actor: Actor):
        """Pre-start pose: the actor hangs in place until the first flap."""
        actor.velocity = 0.0
        actor.tilt = 0.0

    def animate(self, actor: Actor, step: float):
        """Cosmetic wing cycle; runs whether or not the round is active."""
        actor.wing_phase = (actor.wing_phase + WING_SPEED * step) % (2 * math.pi)

    def flap(self, actor: Actor):
        """A flap replaces the current velocity, it does not add to it."""
        actor.velocity = self.flap_impulse
        actor.tilt = tilt_for(actor.velocity)

    def scroll_distance(self, step: float) -> float:
        return self.difficulty.scroll_speed * step

    def check_collision(self, actor: Actor, obstacles: Iterable[Obstacle],
                        world_height: float) -> bool:
        """Checks for collisions with the ceiling, the ground, or pipes."""

        # 1. Ceiling / ground
        if actor.top < 0:
            return True
        if actor.bottom > world_height - self.ground_height:
            return True

        # 2. Pipes the actor is horizontally inside of
        for obstacle in obstacles:
            if actor.right > obstacle.x and actor.left < obstacle.right:
                if actor.top < obstacle.gap_top:
                    return True
                if actor.bottom > obstacle.gap_bottom:
                    return True

        return False

    def update_score(self, actor: Actor, obstacles: Iterable[Obstacle]) -> int:
        """Latches every pipe the actor has fully passed. Returns points gained."""
        gained = 0
        for obstacle in obstacles:
            if not obstacle.scored and obstacle.right < actor.left:
                obstacle.scored = True
                gained += 1
        return gained

    def collect_bonuses(self, actor: Actor, bonuses: List[BonusItem]) -> int:
        """Collects every uncollected item the actor overlaps. Returns value gained."""
        gained = 0
        for bonus in bonuses:
            if bonus.collected:
                continue
            if boxes_overlap(actor.x, actor.y, actor.width, actor.height,
                             bonus.x, bonus.y, bonus.size, bonus.size):
                bonus.collected = True
                gained += bonus.value
        return gained
