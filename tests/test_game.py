import dataclasses
import random

import pytest

from flappy.constants import FLAP_IMPULSE, FRAME_MS
from flappy.data_models import Phase
from flappy.frame_loop import FrameScheduler
from flappy.game import FlappyGame, resolve_difficulty


class MemoryStore:
    def __init__(self, best=0):
        self.best = best
        self.saved = []

    def load_best_score(self):
        return self.best

    def save_best_score(self, score):
        self.saved.append(score)
        self.best = max(self.best, score)


class BrokenStore:
    def load_best_score(self):
        raise OSError("storage unavailable")

    def save_best_score(self, score):
        raise OSError("storage unavailable")


class FlakyScheduler(FrameScheduler):
    """Fails the first request, as if the display went away mid-start."""

    def __init__(self):
        super().__init__()
        self.fail_next = True

    def request_frame(self, callback):
        if self.fail_next:
            self.fail_next = False
            raise RuntimeError("display gone")
        return super().request_frame(callback)


def make_game(**kwargs):
    kwargs.setdefault("scheduler", FrameScheduler())
    kwargs.setdefault("rng", random.Random(7))
    kwargs.setdefault("time_source", lambda: 0.0)
    return FlappyGame(**kwargs)


def crash_with(game, score, bonus_total=0):
    """Plays a round that ends with the given score and bonus total."""
    game.start_round("regular", now=0.0)
    game.flap()
    game.round.score = score
    game.round.bonus_total = bonus_total
    game.actor.y = 700.0
    game.update(1.0)
    assert game.phase is Phase.OVER
    return game.last_summary


def test_new_game_is_idle():
    game = make_game()
    assert game.phase is Phase.IDLE
    assert game.best_score == 0
    assert game.scheduler.pending_count == 0
    assert game.actor.x == 400 / 2 - 15


def test_start_round_resets_and_arms_loop():
    game = make_game()
    assert game.start_round("easy", now=0.0)
    assert game.phase is Phase.PRE_START
    assert game.round.difficulty.name == "easy"
    assert game.round.score == 0 and game.round.bonus_total == 0
    assert game.obstacles == [] and game.bonuses == []
    assert game.actor.y == 300
    assert game.scheduler.pending_count == 1


def test_unknown_difficulty_falls_back_to_regular(caplog):
    game = make_game()
    assert game.start_round("bogus", now=0.0)
    assert game.phase is Phase.PRE_START
    assert game.round.difficulty.name == "regular"
    assert "bogus" in caplog.text

    assert resolve_difficulty(None).name == "regular"
    assert resolve_difficulty(" Insane ").name == "insane"
    assert resolve_difficulty(3).name == "regular"


def test_pre_start_is_frozen_regardless_of_elapsed_time():
    game = make_game()
    game.start_round(now=0.0)
    for i in range(1, 51):
        game.scheduler.pump(i * 1000.0)

    assert game.phase is Phase.PRE_START
    assert game.obstacles == []
    assert game.actor.velocity == 0.0
    assert game.actor.tilt == 0.0
    assert game.actor.y == 300
    assert game.actor.wing_phase != 0.0


def test_two_rapid_flaps_create_one_first_obstacle():
    game = make_game()
    game.start_round(now=0.0)
    assert game.flap()
    assert game.flap()
    assert game.phase is Phase.ACTIVE
    assert len(game.obstacles) == 1
    assert game.actor.velocity == FLAP_IMPULSE

    game.scheduler.pump(FRAME_MS)
    assert len(game.obstacles) == 1


def test_flap_is_ignored_outside_a_round():
    game = make_game()
    assert not game.flap()
    assert game.obstacles == []
    assert game.actor.velocity == 0.0


def test_active_step_applies_physics_and_scroll():
    game = make_game()
    game.start_round(now=0.0)
    game.flap()
    game.update(1.0)

    assert game.actor.velocity == pytest.approx(-7.2)
    assert game.actor.y == pytest.approx(292.8)
    assert game.obstacles[0].x == pytest.approx(398.0)
    assert game.round.elapsed_ms == pytest.approx(FRAME_MS)


def test_collision_ends_round_and_stops_loop():
    game = make_game()
    game.start_round(now=0.0)
    game.flap()
    game.actor.y = 700.0
    game.scheduler.pump(FRAME_MS)

    assert game.phase is Phase.OVER
    assert not game.round.running
    assert game.scheduler.pending_count == 0
    frozen_y = game.actor.y
    game.update(1.0)
    assert game.actor.y == frozen_y
    assert not game.flap()


def test_round_over_summary_and_best_score():
    store = MemoryStore(best=5)
    summaries = []
    game = make_game(store=store, on_round_over=summaries.append)
    assert game.best_score == 5

    summary = crash_with(game, score=3, bonus_total=4)
    assert summary == summaries[-1]
    assert (summary.score, summary.bonus_total, summary.grand_total) == (3, 4, 7)
    assert summary.best_score == 7 and summary.new_best
    assert store.saved == [7]


def test_best_score_is_the_running_maximum():
    store = MemoryStore()
    game = make_game(store=store)
    bests = []
    for total in (3, 7, 2, 7, 9, 1):
        bests.append(crash_with(game, score=total).best_score)

    assert bests == [3, 7, 7, 7, 9, 9]
    assert store.saved == [3, 7, 9]
    assert game.best_score == 9


def test_broken_store_does_not_break_play():
    game = make_game(store=BrokenStore())
    assert game.best_score == 0
    summary = crash_with(game, score=2)
    assert summary.best_score == 2
    assert game.start_round(now=0.0)


def test_fault_while_starting_forces_idle(caplog):
    game = make_game(scheduler=FlakyScheduler())
    assert not game.start_round("regular", now=0.0)
    assert game.phase is Phase.IDLE
    assert not game.round.running
    assert not game.loop.armed
    assert "Error starting round" in caplog.text

    assert game.start_round("regular", now=0.0)
    assert game.phase is Phase.PRE_START
    assert game.scheduler.pending_count == 1


def test_fault_on_first_flap_forces_idle(monkeypatch):
    game = make_game()
    game.start_round(now=0.0)

    def explode(*args):
        raise ValueError("bad world")

    monkeypatch.setattr(game.obstacle_gen, "create", explode)
    assert not game.flap()
    assert game.phase is Phase.IDLE
    assert game.scheduler.pending_count == 0

    assert game.start_round(now=0.0)
    assert game.flap()


def test_restart_never_leaves_two_loops():
    game = make_game()
    game.start_round(now=0.0)
    game.start_round(now=0.0)
    game.flap()
    game.start_round("insane", now=0.0)
    assert game.scheduler.pending_count == 1
    assert game.phase is Phase.PRE_START
    assert game.obstacles == []


def test_return_to_menu():
    game = make_game()
    crash_with(game, score=1)
    game.return_to_menu()
    assert game.phase is Phase.IDLE
    assert game.obstacles == []
    assert game.scheduler.pending_count == 0
    assert game.last_summary is not None


def test_stop_drops_round_in_progress():
    game = make_game()
    game.start_round(now=0.0)
    game.flap()
    game.stop()
    assert game.phase is Phase.IDLE
    assert game.scheduler.pending_count == 0


def test_resize_keeps_round_progress():
    game = make_game()
    game.start_round(now=0.0)
    game.flap()
    for _ in range(10):
        game.update(1.0)
    game.round.score = 4
    y_before = game.actor.y
    pipes_before = list(game.obstacles)

    game.resize(800, 700)
    assert game.actor.x == 800 / 2 - 15
    assert game.actor.y == y_before
    assert game.round.score == 4
    assert game.obstacles == pipes_before
    assert game.phase is Phase.ACTIVE


def test_resize_while_idle_recentres_fully():
    game = make_game()
    game.resize(500, 700)
    assert game.actor.x == 500 / 2 - 15
    assert game.actor.y == 350


def test_on_frame_gets_one_snapshot_per_refresh():
    frames = []
    game = make_game(on_frame=frames.append)
    game.start_round(now=0.0)
    game.scheduler.pump(FRAME_MS)
    game.scheduler.pump(2 * FRAME_MS)

    assert len(frames) == 2
    snap = frames[-1]
    assert snap.phase is Phase.PRE_START
    assert snap.difficulty == "regular"
    with pytest.raises(dataclasses.FrozenInstanceError):
        snap.score = 10


def fly_through(game, step, frames):
    """Keeps the actor in the gap of the next unpassed pipe while the world scrolls."""
    for _ in range(frames):
        target = next((o for o in game.obstacles if o.right >= game.actor.left), None)
        if target is not None:
            game.actor.y = target.gap_top + (target.gap - game.actor.height) / 2
        game.actor.velocity = 0.0
        game.update(step)


@pytest.mark.parametrize("step", [0.5, 1.0, 2.7, 6.0])
def test_score_counts_each_passed_pipe_once(step):
    game = make_game()
    game.start_round(now=0.0)
    game.flap()
    fly_through(game, step, int(3000 / step))

    assert game.phase is Phase.ACTIVE
    unpassed = [o for o in game.obstacles if o.right >= game.actor.left]
    assert all(not o.scored for o in unpassed)
    assert game.round.score == game.obstacle_gen.spawned - len(unpassed)
    assert game.round.score >= 20


def test_bonus_items_follow_difficulty():
    game = make_game()
    game.start_round("insane", now=0.0)
    game.flap()
    assert len(game.bonuses) == 2

    easy = make_game()
    easy.start_round("easy", now=0.0)
    easy.flap()
    assert easy.bonuses == []


def test_collected_bonus_counts_once():
    game = make_game(draw_value=lambda: 5)
    game.start_round("regular", now=0.0)
    game.flap()
    coin = game.bonuses[0]
    game.actor.velocity = 0.0
    game.actor.x = coin.x
    game.actor.y = coin.y
    game.update(0.0)
    assert game.round.bonus_total == 5
    assert coin not in game.bonuses

    game.core.collect_bonuses(game.actor, [coin])
    assert game.round.bonus_total == 5
