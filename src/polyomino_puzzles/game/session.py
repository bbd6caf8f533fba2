from __future__ import annotations

import logging
import random
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Sequence, Tuple

from .economy import Hand, HandPiece
from .generator import PuzzleGenerator
from .placement import can_place, find_first_fit, find_nearest_fit
from .puzzle import Orientation, PlacedPiece, Puzzle
from .puzzle_set import Completion, PuzzleSet
from .rules import TIERS, GameConfig
from .shapes import pieces_at_level

logger = logging.getLogger(__name__)


@dataclass
class PlacementOutcome:
    success: bool
    placed: Optional[PlacedPiece] = None
    completion: Optional[Completion] = None
    expired: List[Puzzle] = field(default_factory=list)
    turn_consumed: bool = False
    # Piece types that could not be added because the hand was full
    discarded: List[str] = field(default_factory=list)

    @property
    def points_gained(self) -> int:
        return self.completion.points if self.completion is not None else 0


@dataclass
class UndoRecord:
    hand_piece: HandPiece
    tier: int
    puzzle_id: str
    placed: PlacedPiece


class GameSession:
    """All mutable game state, and the only place it is mutated.

    Every player action (place, move, sacrifice, undo) runs to completion
    through one of the public methods below; the turn clock is shared by both
    tiers and advanced by `advance_turn`.
    """

    def __init__(self, config: Optional[GameConfig] = None, fill: bool = True) -> None:
        self.config = config or GameConfig()
        self.rng = random.Random(self.config.random_seed)
        self.generator = PuzzleGenerator(self.config, self.rng)
        self.history: Deque[Dict] = deque(maxlen=self.config.history_cap)
        self.tiers: Dict[int, PuzzleSet] = {
            tier: PuzzleSet(tier, self.config, self.generator, self.history) for tier in TIERS
        }
        self.hand = Hand(self.config)
        self.points = 0
        self.total_turns = 0
        self.undo_record: Optional[UndoRecord] = None
        if fill:
            for piece_type in self.config.starting_hand:
                self.hand.add(piece_type)
            for puzzle_set in self.tiers.values():
                puzzle_set.fill()

    # ---------- Lookup ----------
    def puzzle_set(self, tier: int) -> PuzzleSet:
        try:
            return self.tiers[tier]
        except KeyError:
            raise ValueError(f"Unknown tier: {tier}") from None

    def _puzzle(self, tier: int, puzzle_index: int) -> Optional[Puzzle]:
        puzzle_set = self.puzzle_set(tier)
        if 0 <= puzzle_index < len(puzzle_set):
            return puzzle_set[puzzle_index]
        return None

    @staticmethod
    def _anchor(puzzle: Puzzle, orientation: Orientation, row: Optional[int], col: Optional[int],
                snap: bool, ignore_index: Optional[int] = None) -> Optional[Tuple[int, int]]:
        shape = orientation.shape()
        if row is None or col is None:
            fit = find_first_fit(puzzle, shape, ignore_index, orientation)
        elif snap:
            fit = find_nearest_fit(puzzle, shape, row, col, ignore_index, orientation)
        else:
            if can_place(puzzle, shape, row, col, ignore_index, orientation.at(row, col)):
                return int(row), int(col)
            return None
        return (fit.row, fit.col) if fit is not None else None

    # ---------- Turn clock ----------
    def _give(self, piece_types: Sequence[str]) -> Tuple[List[str], List[str]]:
        """Add pieces to the hand; returns (added, discarded)."""
        added: List[str] = []
        discarded: List[str] = []
        for piece_type in piece_types:
            (added if self.hand.add(piece_type) else discarded).append(piece_type)
        return added, discarded

    def advance_turn(self) -> Tuple[List[Puzzle], List[str]]:
        """One tick of the shared clock across both tiers and the hand.

        Returns the expired puzzles and any refunded piece types the hand
        limit turned away.
        """
        self.total_turns += 1
        expired: List[Puzzle] = []
        for puzzle_set in self.tiers.values():
            expired.extend(puzzle_set.tick())
        discarded: List[str] = []
        if not self.config.advanced:
            refunds = [placed.piece_type for puzzle in expired for placed in puzzle.placed_pieces]
            _, discarded = self._give(refunds)
        dropped = self.hand.tick()
        if dropped:
            logger.info("%d hand piece(s) expired", dropped)
        return expired, discarded

    def _settle(self, tier: int, puzzle_index: int) -> Optional[Completion]:
        completion = self.puzzle_set(tier).complete(puzzle_index)
        if completion is None:
            return None
        self.points += completion.points
        completion.returned_pieces, completion.discarded = self._give(completion.returned_pieces)
        if completion.reward is not None and not self.hand.add(completion.reward):
            completion.discarded.append(completion.reward)
            completion.reward = None
        return completion

    @staticmethod
    def _discarded(completion: Optional[Completion], refunds: List[str]) -> List[str]:
        lost = list(completion.discarded) if completion is not None else []
        return lost + refunds

    # ---------- Actions ----------
    def place_from_hand(self, hand_index: int, tier: int, puzzle_index: int,
                        rotation: int = 0, mirror: bool = False,
                        row: Optional[int] = None, col: Optional[int] = None,
                        snap: bool = True) -> PlacementOutcome:
        """Place a hand piece on a puzzle.

        Without a target cell the first fit in row-major order is used. With a
        target and ``snap`` the nearest legal anchor to that cell is used,
        otherwise (row, col) is taken as the exact anchor.
        """
        puzzle = self._puzzle(tier, puzzle_index)
        if puzzle is None or not 0 <= hand_index < len(self.hand):
            return PlacementOutcome(success=False)
        orientation = Orientation(self.hand[hand_index].piece_type, rotation, mirror)
        anchor = self._anchor(puzzle, orientation, row, col, snap)
        if anchor is None:
            logger.debug("Rejected %s on %s at %s,%s", orientation, puzzle.id, row, col)
            return PlacementOutcome(success=False)

        hand_piece = self.hand.remove(hand_index)
        placed = orientation.at(*anchor)
        puzzle.placed_pieces.append(placed)
        completion = self._settle(tier, puzzle_index)
        self.undo_record = None
        expired, refunds_lost = self.advance_turn()
        if completion is None:
            self.undo_record = UndoRecord(hand_piece, tier, puzzle.id, placed)
        return PlacementOutcome(True, placed, completion, expired, turn_consumed=True,
                                discarded=self._discarded(completion, refunds_lost))

    def move_piece(self, tier: int, puzzle_index: int, placed_index: int,
                   dest_tier: Optional[int] = None, dest_puzzle_index: Optional[int] = None,
                   row: Optional[int] = None, col: Optional[int] = None,
                   rotation: Optional[int] = None, mirror: Optional[bool] = None,
                   snap: bool = True) -> PlacementOutcome:
        """Reposition a placed piece, within its puzzle or onto another one.

        Repositioning within the same puzzle is free; moving onto a different
        puzzle is a committed placement and consumes a turn.
        """
        dest_tier = tier if dest_tier is None else dest_tier
        dest_puzzle_index = puzzle_index if dest_puzzle_index is None else dest_puzzle_index
        source = self._puzzle(tier, puzzle_index)
        dest = self._puzzle(dest_tier, dest_puzzle_index)
        if source is None or dest is None or not 0 <= placed_index < len(source.placed_pieces):
            return PlacementOutcome(success=False)

        current = source.placed_pieces[placed_index]
        orientation = Orientation(
            current.piece_type,
            current.rotation if rotation is None else rotation,
            current.mirror if mirror is None else mirror,
        )
        same_puzzle = dest is source
        anchor = self._anchor(dest, orientation, row, col, snap,
                              ignore_index=placed_index if same_puzzle else None)
        if anchor is None:
            return PlacementOutcome(success=False)

        placed = orientation.at(*anchor)
        self.undo_record = None
        if same_puzzle:
            source.placed_pieces[placed_index] = placed
            completion = self._settle(tier, puzzle_index)
            return PlacementOutcome(True, placed, completion, discarded=self._discarded(completion, []))

        source.placed_pieces.pop(placed_index)
        dest.placed_pieces.append(placed)
        completion = self._settle(dest_tier, dest_puzzle_index)
        expired, refunds_lost = self.advance_turn()
        return PlacementOutcome(True, placed, completion, expired, turn_consumed=True,
                                discarded=self._discarded(completion, refunds_lost))

    def sacrifice(self, hand_indices: Sequence[int]) -> Optional[str]:
        """Trade three same-level hand pieces for a random piece one level up.

        An invalid selection is a no-op and returns None.
        """
        indices = [int(i) for i in hand_indices]
        if not self.hand.can_sacrifice(indices):
            logger.debug("Ignored sacrifice selection %s", indices)
            return None
        level = self.hand[indices[0]].level
        self.hand.take(indices)
        granted = self.rng.choice(pieces_at_level(level + 1))
        self.hand.add(granted)
        logger.info("Sacrificed three level-%d pieces for %s", level, granted)
        self.undo_record = None
        self.advance_turn()
        return granted

    def undo(self) -> bool:
        record = self.undo_record
        if record is None:
            return False
        self.undo_record = None
        puzzle_set = self.puzzle_set(record.tier)
        index = puzzle_set.find(record.puzzle_id)
        if index is None:
            return False
        puzzle = puzzle_set[index]
        if record.placed not in puzzle.placed_pieces:
            return False
        puzzle.placed_pieces.remove(record.placed)
        if not self.config.advanced:
            for ps in self.tiers.values():
                ps.rewind()
            self.hand.rewind()
        # The restored piece was out of the hand when the clock ticked
        self.hand.restore(record.hand_piece)
        return True

    # ---------- Reporting ----------
    @property
    def stats(self) -> Dict[str, int]:
        return {
            "tier1Solved": self.tiers[1].solved,
            "tier1Expired": self.tiers[1].expired,
            "tier2Solved": self.tiers[2].solved,
            "tier2Expired": self.tiers[2].expired,
        }

    def snapshot(self) -> Dict:
        return {
            "points": self.points,
            "total_turns": self.total_turns,
            "stats": self.stats,
            "hand": [p.piece_type for p in self.hand.sorted()],
            "can_undo": self.undo_record is not None,
        }
