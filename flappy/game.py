"""
game.py: The game state machine.

FlappyGame owns the round, the actor, the pipes and the bonus items. Everything
outside of it (renderer, input, storage) talks to it through start_round(), flap(),
resize(), return_to_menu() and snapshot().
"""

import logging
import random
import time
from typing import Callable, List, Optional

from .constants import (
    BONUS_BOB_SPEED, DEFAULT_DIFFICULTY, DIFFICULTIES, FRAME_MS,
    WORLD_HEIGHT, WORLD_WIDTH, DifficultyConfig
)
from .data_models import (
    Actor, BonusItem, FrameSnapshot, Obstacle, Phase, RoundState, RoundSummary
)
from .frame_loop import FrameScheduler, RepeatingTask, SimulationClock
from .physics_core import PhysicsCore
from .physics_world import BonusGenerator, ObstacleGenerator

logger = logging.getLogger(__name__)


def _now_ms() -> float:
    return time.perf_counter() * 1000.0


def resolve_difficulty(name: Optional[str]) -> DifficultyConfig:
    """Maps a difficulty name to its config; anything unknown gets the default."""
    key = name.strip().lower() if isinstance(name, str) else None
    if key in DIFFICULTIES:
        return DIFFICULTIES[key]
    if name is not None:
        logger.warning("Unknown difficulty %r, falling back to %s", name, DEFAULT_DIFFICULTY)
    return DIFFICULTIES[DEFAULT_DIFFICULTY]


class FlappyGame:
    """
    Phases: IDLE -> PRE_START -> ACTIVE -> OVER -> (IDLE | PRE_START).

    The store only needs load_best_score() and save_best_score(int).
    """

    def __init__(self, scheduler: Optional[FrameScheduler] = None, store=None,
                 rng: Optional[random.Random] = None,
                 draw_value: Optional[Callable[[], int]] = None,
                 world_width: float = WORLD_WIDTH, world_height: float = WORLD_HEIGHT,
                 time_source: Callable[[], float] = _now_ms,
                 on_frame: Optional[Callable[[FrameSnapshot], None]] = None,
                 on_round_over: Optional[Callable[[RoundSummary], None]] = None):
        self.scheduler = scheduler or FrameScheduler()
        self.store = store
        self.rng = rng or random.Random()
        self.draw_value = draw_value
        self.world_width = world_width
        self.world_height = world_height
        self.time_source = time_source
        self.on_frame = on_frame
        self.on_round_over = on_round_over

        # --- Round State ---
        self.phase = Phase.IDLE
        self.round = RoundState()
        self.actor = Actor()
        self.actor.center_in(world_width, world_height)
        self.obstacles: List[Obstacle] = []
        self.bonuses: List[BonusItem] = []
        self.last_summary: Optional[RoundSummary] = None

        # --- Engines ---
        self.core = PhysicsCore(self.round.difficulty)
        self.obstacle_gen = ObstacleGenerator(self.rng)
        self.bonus_gen = BonusGenerator(self.round.difficulty, self.rng, self.draw_value)

        # --- Time Management ---
        self.clock = SimulationClock()
        self.loop = RepeatingTask(self.scheduler, self.frame)

        self.best_score = self._load_best()

    @property
    def in_round(self) -> bool:
        return self.phase in (Phase.PRE_START, Phase.ACTIVE)

    # ----------------- Input -----------------

    def start_round(self, difficulty_name: Optional[str] = None,
                    now: Optional[float] = None) -> bool:
        """Resets everything and waits for the first flap. Returns False if the start failed."""
        try:
            self.loop.cancel()
            difficulty = resolve_difficulty(difficulty_name)

            self.round = RoundState(difficulty=difficulty, running=True)
            self.actor = Actor()
            self.actor.center_in(self.world_width, self.world_height)
            self.obstacles = []
            self.bonuses = []

            self.core = PhysicsCore(difficulty)
            self.obstacle_gen = ObstacleGenerator(self.rng)
            self.bonus_gen = BonusGenerator(difficulty, self.rng, self.draw_value)

            self.clock.reset(self.time_source() if now is None else now)
            self.phase = Phase.PRE_START
            self.loop.start()
        except Exception:
            logger.exception("Error starting round")
            self._abort()
            return False

        logger.info("Round ready (%s), waiting for first flap", difficulty.name)
        return True

    def flap(self) -> bool:
        """Applies a flap. The first flap of a round also brings the world to life."""
        if self.phase is Phase.ACTIVE:
            self.core.flap(self.actor)
            return True
        if self.phase is not Phase.PRE_START:
            return False

        try:
            self.round.started = True
            self._add_obstacle(self.obstacle_gen.create(self.world_width, self.world_height))
            self.phase = Phase.ACTIVE
            self.core.flap(self.actor)
        except Exception:
            logger.exception("Error starting round on first flap")
            self._abort()
            return False

        logger.info("First flap, round is live")
        return True

    def return_to_menu(self):
        self.stop()
        self.obstacles = []
        self.bonuses = []
        self.actor = Actor()
        self.actor.center_in(self.world_width, self.world_height)
        self.phase = Phase.IDLE

    def stop(self):
        """Stops the frame loop. A round in progress is dropped without a summary."""
        self.loop.cancel()
        self.round.running = False
        if self.in_round:
            self.phase = Phase.IDLE

    def resize(self, world_width: float, world_height: float):
        """Viewport change. Keeps any round in progress, only re-centres the actor."""
        self.world_width = world_width
        self.world_height = world_height
        self.actor.center_in(world_width, None if self.in_round else world_height)

    # ----------------- Simulation -----------------

    def frame(self, now: float):
        """One display refresh: one simulation step, then one presentation pass."""
        step = self.clock.tick(now)
        self.update(step)
        if self.on_frame is not None:
            self.on_frame(self.snapshot())

    def update(self, step: float):
        """Advances the round by a normalized step (1.0 == one 60Hz frame)."""
        if not self.round.running:
            return

        self.core.animate(self.actor, step)

        if self.phase is Phase.PRE_START:
            self.core.hold(self.actor)
            return

        self.round.elapsed_ms += step * FRAME_MS

        # 1. Actor
        self.core.apply_gravity_and_movement(self.actor, step)

        # 2. Scroll the world
        dx = self.core.scroll_distance(step)
        for obstacle in self.obstacles:
            obstacle.x -= dx
        for bonus in self.bonuses:
            bonus.x -= dx
            bonus.bob_phase += BONUS_BOB_SPEED * step

        # 3. Spawn
        if self.obstacle_gen.should_spawn(self.obstacles, self.world_width):
            self._add_obstacle(self.obstacle_gen.create(self.world_width, self.world_height))

        # 4. Score and bonuses
        self.round.score += self.core.update_score(self.actor, self.obstacles)
        self.round.bonus_total += self.core.collect_bonuses(self.actor, self.bonuses)

        # 5. Cull
        self.obstacles = self.obstacle_gen.cull(self.obstacles)
        self.bonuses = self.bonus_gen.cull(self.bonuses)

        # 6. Collisions
        if self.core.check_collision(self.actor, self.obstacles, self.world_height):
            self._game_over()

    def snapshot(self) -> FrameSnapshot:
        return FrameSnapshot(
            phase=self.phase,
            difficulty=self.round.difficulty.name,
            actor=self.actor.to_render_state(),
            obstacles=tuple(o.to_render_state() for o in self.obstacles),
            bonuses=tuple(b.to_render_state() for b in self.bonuses if not b.collected),
            score=self.round.score,
            bonus_total=self.round.bonus_total,
            best_score=self.best_score,
            world_width=self.world_width,
            world_height=self.world_height,
        )

    # ----------------- Internals -----------------

    def _add_obstacle(self, obstacle: Obstacle):
        self.obstacles.append(obstacle)
        self.bonuses.extend(self.bonus_gen.spawn_for(obstacle))

    def _abort(self):
        self.loop.cancel()
        self.round.running = False
        self.round.started = False
        self.phase = Phase.IDLE

    def _game_over(self):
        self.loop.cancel()
        self.round.running = False
        self.phase = Phase.OVER

        total = self.round.grand_total
        new_best = total > self.best_score
        if new_best:
            self.best_score = total
            self._save_best(total)

        summary = RoundSummary(
            difficulty=self.round.difficulty.name,
            score=self.round.score,
            bonus_total=self.round.bonus_total,
            grand_total=total,
            best_score=self.best_score,
            new_best=new_best,
            elapsed_ms=self.round.elapsed_ms,
        )
        self.last_summary = summary
        logger.info("Round over: score=%d bonus=%d total=%d best=%d",
                    summary.score, summary.bonus_total, summary.grand_total, summary.best_score)

        if self.on_round_over is not None:
            self.on_round_over(summary)

    def _load_best(self) -> int:
        if self.store is None:
            return 0
        try:
            return int(self.store.load_best_score())
        except Exception as e:
            logger.warning("Could not load best score: %s", e)
            return 0

    def _save_best(self, score: int):
        if self.store is None:
            return
        try:
            self.store.save_best_score(score)
        except Exception as e:
            logger.warning("Could not save best score: %s", e)
