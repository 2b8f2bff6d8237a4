"""
constants.py: Centralized configuration for the world, physics and difficulty settings.
"""

from dataclasses import dataclass
from typing import Dict, Tuple

# -------- Timing Config --------
FRAME_MS = 1000.0 / 60.0        # One nominal 60Hz frame; all per-frame values are scaled by this
MAX_FRAME_DELTA_MS = 100.0      # Cap for slow frames / suspended windows
RENDER_FPS = 60

# -------- Game World Config --------
WORLD_WIDTH = 400
WORLD_HEIGHT = 600
GROUND_HEIGHT = 20

# -------- Actor Config --------
ACTOR_SIZE = 30
FLAP_IMPULSE = -7.5             # Velocity after a flap (pixels/frame), replaces current velocity
TILT_GAIN = 3.0                 # Degrees of tilt per unit of velocity
MAX_TILT_DEG = 30.0
WING_SPEED = 0.25               # Cosmetic wing cycle advance per frame (radians)

# -------- Pipe Config --------
PIPE_WIDTH = 60
PIPE_GAP = 180
PIPE_SPACING = 250              # Horizontal distance between consecutive pipes
MIN_SEGMENT_HEIGHT = 50         # Smallest top/bottom pipe segment

# -------- Bonus Config --------
BONUS_SIZE = 20
BONUS_MARGIN = 10               # Keeps randomized items away from the pipe lips
BONUS_X_OFFSET = 10             # Items spawn just past the pipe's right edge
BONUS_BOB_AMPLITUDE = 4.0
BONUS_BOB_SPEED = 0.1
# (value, weight): lower tiers are far more common
BONUS_TIERS: Tuple[Tuple[int, float], ...] = (
    (1, 0.6),
    (3, 0.25),
    (5, 0.1),
    (10, 0.05),
)

# -------- Persistence Config --------
BEST_SCORE_DB = "flappy_scores.db"
BEST_SCORE_KEY = "best"


@dataclass(frozen=True)
class DifficultyConfig:
    """Tuning for one difficulty mode. Values are per nominal frame."""
    name: str
    gravity: float
    scroll_speed: float
    bonus_count: int = 1            # Items placed in a qualifying gap
    bonus_every: int = 1            # Only every Nth pipe gets items
    bonus_randomized: bool = True   # False = centred in the gap


DIFFICULTIES: Dict[str, DifficultyConfig] = {
    "easy": DifficultyConfig("easy", gravity=0.22, scroll_speed=1.6,
                             bonus_count=1, bonus_every=2, bonus_randomized=False),
    "regular": DifficultyConfig("regular", gravity=0.3, scroll_speed=2.0),
    "insane": DifficultyConfig("insane", gravity=0.4, scroll_speed=3.0, bonus_count=2),
}
DEFAULT_DIFFICULTY = "regular"
