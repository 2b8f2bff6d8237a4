"""
Flappy Bird: a gravity/flap arcade game with a frame-rate independent simulation core.
"""

from .constants import DIFFICULTIES, DifficultyConfig
from .data_models import FrameSnapshot, Phase, RoundSummary
from .frame_loop import FrameScheduler, RepeatingTask, SimulationClock
from .game import FlappyGame
from .score_db import BestScoreStore

__all__ = [
    "BestScoreStore", "DIFFICULTIES", "DifficultyConfig", "FlappyGame", "FrameScheduler",
    "FrameSnapshot", "Phase", "RepeatingTask", "RoundSummary", "SimulationClock",
]
