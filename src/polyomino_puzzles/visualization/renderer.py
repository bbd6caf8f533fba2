from __future__ import annotations

from typing import Dict, Sequence, Tuple

import numpy as np
import pygame

from polyomino_puzzles.game.puzzle import EMPTY, FILLED, RESERVED, SOLID, Puzzle


Color = Tuple[int, int, int]

PALETTE: Dict[int, Color] = {
    SOLID: (20, 20, 26),
    EMPTY: (60, 60, 72),
    FILLED: (70, 200, 120),
    RESERVED: (200, 180, 60),
}
BACKGROUND: Color = (10, 10, 14)


def _color_for_state(v: int) -> Color:
    return PALETTE.get(int(v), (200, 200, 200))


def board_rgb(states: np.ndarray, cell: int = 12) -> np.ndarray:
    """RGB image of one cell-state matrix, without pygame."""
    h, w = states.shape
    img = np.zeros((h * cell, w * cell, 3), dtype=np.uint8)
    for y in range(h):
        for x in range(w):
            img[y * cell : (y + 1) * cell, x * cell : (x + 1) * cell, :] = _color_for_state(states[y, x])
    return img


def rows_rgb(rows: Sequence[Sequence[Puzzle]], cell: int = 12, gap: int = 1) -> np.ndarray:
    """Tile puzzle boards: one row of boards per tier, padded to a common size."""
    max_h = max((p.height for row in rows for p in row), default=1)
    max_w = max((p.width for row in rows for p in row), default=1)
    slot_h, slot_w = (max_h + gap) * cell, (max_w + gap) * cell
    cols = max((len(row) for row in rows), default=1)
    img = np.zeros((slot_h * len(rows), slot_w * cols, 3), dtype=np.uint8)
    img[:, :] = BACKGROUND
    for i, row in enumerate(rows):
        for j, puzzle in enumerate(row):
            board = board_rgb(puzzle.cell_states(), cell)
            y0, x0 = i * slot_h, j * slot_w
            img[y0 : y0 + board.shape[0], x0 : x0 + board.shape[1]] = board
    return img


class Renderer:
    """Draws puzzles onto a pygame surface. Holds no game state."""

    def __init__(self, cell_size: int = 30, margin: int = 20) -> None:
        self.cell_size = cell_size
        self.margin = margin

    def puzzle_surface(self, puzzle: Puzzle) -> pygame.Surface:
        states = puzzle.cell_states()
        h, w = states.shape
        surf = pygame.Surface((w * self.cell_size, h * self.cell_size))
        surf.fill(BACKGROUND)
        for y in range(h):
            for x in range(w):
                rect = pygame.Rect(
                    x * self.cell_size,
                    y * self.cell_size,
                    self.cell_size - 1,
                    self.cell_size - 1,
                )
                pygame.draw.rect(surf, _color_for_state(states[y, x]), rect)
        return surf

    def draw(self, screen: pygame.Surface, rows: Sequence[Sequence[Puzzle]]) -> None:
        screen.fill(BACKGROUND)
        y = self.margin
        for row in rows:
            x = self.margin
            tallest = 0
            for puzzle in row:
                surf = self.puzzle_surface(puzzle)
                screen.blit(surf, (x, y))
                x += surf.get_width() + self.margin
                tallest = max(tallest, surf.get_height())
            y += tallest + self.margin
