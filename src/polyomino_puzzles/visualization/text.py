from __future__ import annotations

from typing import Dict

import numpy as np

from polyomino_puzzles.game.puzzle import EMPTY, FILLED, RESERVED, SOLID, Puzzle


_STATE_GLYPHS: Dict[int, str] = {SOLID: " ", EMPTY: "·", FILLED: "█", RESERVED: "▒"}


def format_shape(shape: np.ndarray) -> str:
    return "\n".join("".join("█" if cell else "·" for cell in row) for row in shape)


def format_puzzle(puzzle: Puzzle) -> str:
    states = puzzle.cell_states()
    body = "\n".join("".join(_STATE_GLYPHS[int(v)] for v in row) for row in states)
    reward = f" reward={puzzle.reward_piece_type}" if puzzle.reward_piece_type else ""
    header = f"{puzzle.id} {puzzle.points}pts {puzzle.turns_left}/{puzzle.max_turns} turns{reward}"
    return f"{header}\n{body}"


def print_shape(shape: np.ndarray) -> None:
    print(format_shape(shape))
