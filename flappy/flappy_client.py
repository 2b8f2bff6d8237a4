#!/usr/bin/env python3
"""
flappy_client.py

pygame front-end: window, input and drawing. Reads snapshots from FlappyGame,
never touches its state directly.
"""

import argparse
import logging
import math
import random
from typing import Optional

import pygame

from .constants import (
    BEST_SCORE_DB, DEFAULT_DIFFICULTY, DIFFICULTIES, GROUND_HEIGHT,
    RENDER_FPS, WORLD_HEIGHT, WORLD_WIDTH
)
from .data_models import FrameSnapshot, Phase
from .frame_loop import FrameScheduler
from .game import FlappyGame, resolve_difficulty
from .score_db import BestScoreStore

logger = logging.getLogger(__name__)

DIFFICULTY_KEYS = {
    pygame.K_1: "easy",
    pygame.K_2: "regular",
    pygame.K_3: "insane",
}

# Colours
SKY = (135, 206, 235)
PIPE = (34, 139, 34)
GROUND = (139, 69, 19)
GRASS = (107, 142, 35)
BIRD = (255, 215, 0)
WING = (255, 165, 0)
BEAK = (255, 99, 71)
COIN = (255, 200, 40)
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)


def event_action(event: pygame.event.Event) -> Optional[str]:
    """Maps a pygame event to 'flap', 'menu', 'quit', a difficulty name, or None."""
    if event.type == pygame.QUIT:
        return "quit"
    if event.type == pygame.KEYDOWN:
        if event.key == pygame.K_ESCAPE:
            return "menu"
        if event.key == pygame.K_SPACE:
            return "flap"
        return DIFFICULTY_KEYS.get(event.key)
    if event.type in (pygame.MOUSEBUTTONDOWN, pygame.FINGERDOWN):
        return "flap"
    return None


class FlappyClient:
    def __init__(self, difficulty: str = DEFAULT_DIFFICULTY, db_file: str = BEST_SCORE_DB,
                 seed: Optional[int] = None):
        pygame.init()
        self.screen = pygame.display.set_mode((WORLD_WIDTH, WORLD_HEIGHT), pygame.RESIZABLE)
        pygame.display.set_caption("Flappy Bird")

        self.difficulty = difficulty
        self.store = BestScoreStore(db_file)
        self.scheduler = FrameScheduler()
        self.game = FlappyGame(
            scheduler=self.scheduler,
            store=self.store,
            rng=random.Random(seed),
            time_source=pygame.time.get_ticks,
        )

        self.clock = pygame.time.Clock()
        self.large_font = pygame.font.Font(None, 40)
        self.font = pygame.font.Font(None, 24)
        logger.info("Client ready: %dx%d, difficulty %s, best %d",
                    WORLD_WIDTH, WORLD_HEIGHT, difficulty, self.game.best_score)

    def run(self):
        """The main client execution loop."""
        running = True
        while running:
            self.clock.tick(RENDER_FPS)

            for event in pygame.event.get():
                if event.type == pygame.VIDEORESIZE:
                    self.screen = pygame.display.set_mode((event.w, event.h), pygame.RESIZABLE)
                    self.game.resize(event.w, event.h)
                    continue
                running = self._handle_action(event_action(event))
                if not running:
                    break

            # One simulation step per refresh, driven through the scheduler
            self.scheduler.pump(pygame.time.get_ticks())
            self._draw_game(self.game.snapshot())

        self.game.stop()
        self.store.close()
        pygame.quit()

    def _handle_action(self, action: Optional[str]) -> bool:
        """Applies one input action. Returns False when the client should exit."""
        if action is None:
            return True
        if action == "quit":
            return False

        phase = self.game.phase
        if action == "menu":
            if phase is Phase.IDLE:
                return False
            self.game.return_to_menu()
        elif action == "flap":
            if phase in (Phase.IDLE, Phase.OVER):
                self.game.start_round(self.difficulty)
            else:
                self.game.flap()
        elif action in DIFFICULTIES and phase in (Phase.IDLE, Phase.OVER):
            self.difficulty = action
        return True

    def _draw_game(self, snap: FrameSnapshot):
        """Renders one snapshot."""
        screen = self.screen
        width, height = int(snap.world_width), int(snap.world_height)
        screen.fill(SKY)

        # Pipes
        for pipe in snap.obstacles:
            pygame.draw.rect(screen, PIPE, (pipe.x, 0, pipe.width, pipe.top_height))
            pygame.draw.rect(screen, PIPE, (pipe.x - 5, pipe.top_height - 20, pipe.width + 10, 20))
            bottom_y = height - pipe.bottom_height - GROUND_HEIGHT
            pygame.draw.rect(screen, PIPE, (pipe.x, bottom_y, pipe.width, pipe.bottom_height))
            pygame.draw.rect(screen, PIPE, (pipe.x - 5, bottom_y, pipe.width + 10, 20))

        # Bonus items
        for bonus in snap.bonuses:
            radius = int(bonus.size // 2)
            center = (int(bonus.x + radius), int(bonus.y + radius))
            pygame.draw.circle(screen, COIN, center, radius)
            label = self.font.render(str(bonus.value), True, BLACK)
            screen.blit(label, (center[0] - label.get_width() // 2, center[1] - label.get_height() // 2))

        # Ground
        pygame.draw.rect(screen, GROUND, (0, height - GROUND_HEIGHT, width, GROUND_HEIGHT))
        pygame.draw.line(screen, GRASS, (0, height - GROUND_HEIGHT), (width, height - GROUND_HEIGHT), 2)

        self._draw_bird(snap)

        # HUD
        score_text = self.large_font.render(str(snap.score), True, WHITE)
        screen.blit(score_text, (width // 2 - score_text.get_width() // 2, 20))
        if snap.bonus_total:
            bonus_text = self.font.render(f"Coins: {snap.bonus_total}", True, COIN)
            screen.blit(bonus_text, (10, 10))
        if snap.best_score > 0:
            best_text = self.font.render(f"Best: {snap.best_score}", True, BIRD)
            screen.blit(best_text, (width // 2 - best_text.get_width() // 2, 60))

        if snap.phase is Phase.IDLE:
            self._draw_lines([
                "Flappy Bird",
                f"Difficulty: {self.difficulty}  (1/2/3)",
                "Space / Click = Start",
                "Esc = Quit",
            ], width, height)
        elif snap.phase is Phase.PRE_START:
            self._draw_lines(["Flap to begin"], width, height)
        elif snap.phase is Phase.OVER:
            summary = self.game.last_summary
            lines = ["Game Over"]
            if summary is not None:
                lines += [
                    f"Pipes: {summary.score}  Coins: {summary.bonus_total}",
                    f"Total: {summary.grand_total}  Best: {summary.best_score}",
                ]
                if summary.new_best:
                    lines.append("New best!")
            lines.append("Space = Restart | Esc = Menu")
            self._draw_lines(lines, width, height)

        pygame.display.flip()

    def _draw_bird(self, snap: FrameSnapshot):
        actor = snap.actor
        size = (int(actor.width), int(actor.height))
        bird = pygame.Surface(size, pygame.SRCALPHA)
        pygame.draw.ellipse(bird, BIRD, (0, 0) + size)
        wing_offset = int(3 * math.sin(actor.wing_phase))
        pygame.draw.ellipse(bird, WING, (size[0] // 2 - 13, size[1] // 2 - 6 + wing_offset, 16, 12))
        pygame.draw.circle(bird, BLACK, (size[0] // 2 + 5, size[1] // 2 - 5), 3)
        pygame.draw.polygon(bird, BEAK, [
            (size[0] - 4, size[1] // 2 - 3), (size[0], size[1] // 2), (size[0] - 4, size[1] // 2 + 3)
        ])
        # pygame rotates counter-clockwise, tilt is clockwise (nose down when falling)
        rotated = pygame.transform.rotate(bird, -actor.tilt)
        center = (actor.x + actor.width / 2, actor.y + actor.height / 2)
        self.screen.blit(rotated, rotated.get_rect(center=center))

    def _draw_lines(self, lines, width: int, height: int):
        y = height // 2 - len(lines) * 20
        for i, line in enumerate(lines):
            font = self.large_font if i == 0 else self.font
            surf = font.render(line, True, WHITE)
            self.screen.blit(surf, (width // 2 - surf.get_width() // 2, y))
            y += surf.get_height() + 10


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Flappy Bird")
    p.add_argument("--difficulty", default=DEFAULT_DIFFICULTY,
                   help="easy, regular or insane (unknown names fall back to regular)")
    p.add_argument("--db", default=BEST_SCORE_DB, help="SQLite file holding the best score")
    p.add_argument("--seed", type=int, default=None, help="Seed for pipe and bonus generation")
    p.add_argument("--log-level", default="INFO")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.INFO),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    difficulty = resolve_difficulty(args.difficulty).name
    client = FlappyClient(difficulty=difficulty, db_file=args.db, seed=args.seed)
    client.run()


if __name__ == "__main__":
    main()
