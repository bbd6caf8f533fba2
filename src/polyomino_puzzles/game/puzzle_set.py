from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional

from .generator import PuzzleGenerator
from .puzzle import Puzzle
from .rules import GameConfig, par_points

logger = logging.getLogger(__name__)


@dataclass
class Completion:
    puzzle: Puzzle
    points: int
    returned_pieces: List[str] = field(default_factory=list)
    reward: Optional[str] = None
    # Returned or reward pieces the hand limit turned away
    discarded: List[str] = field(default_factory=list)


def history_entry(puzzle: Puzzle, status: str) -> Dict:
    return {
        "id": puzzle.id,
        "grid": puzzle.grid.tolist(),
        "tier": puzzle.tier,
        "cellCount": puzzle.cell_count,
        "timestamp": int(time.time() * 1000),
        "status": status,
    }


class PuzzleSet:
    """Active puzzles of one tier.

    A puzzle leaves the set only by being solved or expiring, and is replaced
    immediately so the set always holds ``active_count`` puzzles.
    """

    def __init__(self, tier: int, config: GameConfig, generator: PuzzleGenerator,
                 history: Optional[Deque[Dict]] = None) -> None:
        self.tier = tier
        self.config = config
        self.tier_config = config.tier(tier)
        self.generator = generator
        self.history: Deque[Dict] = history if history is not None else deque(maxlen=config.history_cap)
        self.puzzles: List[Puzzle] = []
        self.solved = 0
        self.expired = 0

    def __len__(self) -> int:
        return len(self.puzzles)

    def __getitem__(self, index: int) -> Puzzle:
        return self.puzzles[index]

    def __iter__(self):
        return iter(self.puzzles)

    def _new_puzzle(self) -> Puzzle:
        puzzle = self.generator.generate(self.tier)
        self.history.append(history_entry(puzzle, "active"))
        return puzzle

    def fill(self) -> None:
        while len(self.puzzles) < self.tier_config.active_count:
            self.puzzles.append(self._new_puzzle())

    def replace(self, index: int, status: str) -> Puzzle:
        old = self.puzzles[index]
        self.history.append(history_entry(old, status))
        self.puzzles[index] = self._new_puzzle()
        return old

    def find(self, puzzle_id: str) -> Optional[int]:
        for idx, puzzle in enumerate(self.puzzles):
            if puzzle.id == puzzle_id:
                return idx
        return None

    @staticmethod
    def is_complete(puzzle: Puzzle) -> bool:
        if puzzle.filled_count != puzzle.cell_count:
            return False
        if puzzle.required_piece is not None and puzzle.required_piece not in puzzle.placed_pieces:
            return False
        return True

    def score(self, puzzle: Puzzle) -> int:
        if self.config.advanced and puzzle.tier != 1:
            return par_points(puzzle.points, puzzle.turns_left, puzzle.max_turns)
        return puzzle.points

    def complete(self, index: int) -> Optional[Completion]:
        """Score and replace the puzzle at `index` if it is complete."""
        puzzle = self.puzzles[index]
        if not self.is_complete(puzzle):
            return None
        completion = Completion(
            puzzle=puzzle,
            points=self.score(puzzle),
            returned_pieces=[p.piece_type for p in puzzle.placed_pieces],
            reward=puzzle.reward_piece_type,
        )
        self.solved += 1
        self.replace(index, "solved")
        logger.info("Solved %s for %d points", puzzle.id, completion.points)
        return completion

    def tick(self) -> List[Puzzle]:
        """Advance this tier's share of the clock; return the expired puzzles."""
        expired: List[Puzzle] = []
        for idx in range(len(self.puzzles)):
            puzzle = self.puzzles[idx]
            puzzle.turns_left -= 1
            if puzzle.turns_left <= 0:
                self.expired += 1
                expired.append(self.replace(idx, "expired"))
                logger.info("Puzzle %s expired with %d pieces placed", puzzle.id, len(puzzle.placed_pieces))
        return expired

    def rewind(self) -> None:
        for puzzle in self.puzzles:
            puzzle.turns_left = min(puzzle.turns_left + 1, puzzle.max_turns)
