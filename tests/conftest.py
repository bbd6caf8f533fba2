"""Shared pytest fixtures for the puzzle engine tests."""

from typing import Callable, Iterable, Optional

import numpy as np
import pytest

from polyomino_puzzles.game import GameConfig, GameSession, PlacedPiece, Puzzle
from polyomino_puzzles.game.economy import Hand, HandPiece


@pytest.fixture
def make_puzzle() -> Callable[..., Puzzle]:
    """Factory for hand-built puzzles."""

    def _make(grid, placed: Iterable[PlacedPiece] = (), tier: int = 2, points: int = 3,
              turns_left: int = 10, max_turns: int = 10, reward: Optional[str] = None,
              required: Optional[PlacedPiece] = None, puzzle_id: str = "TEST") -> Puzzle:
        return Puzzle(
            id=puzzle_id,
            grid=np.array(grid, dtype=np.int8),
            tier=tier,
            points=points,
            turns_left=turns_left,
            max_turns=max_turns,
            reward_piece_type=reward,
            placed_pieces=list(placed),
            required_piece=required,
        )

    return _make


@pytest.fixture
def session() -> GameSession:
    return GameSession(GameConfig(random_seed=1234))


@pytest.fixture
def advanced_session() -> GameSession:
    return GameSession(GameConfig.advanced_ruleset(random_seed=1234))


def set_hand(session: GameSession, *types: str) -> None:
    session.hand = Hand(session.config, [HandPiece(t) for t in types])


def domino_at(row: int, col: int, rotation: int = 0) -> PlacedPiece:
    return PlacedPiece("domino", rotation, False, row, col)
