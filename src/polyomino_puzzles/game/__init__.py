"""Game module for Polyomino Puzzles.

Exports the puzzle/piece engine:
- shapes: piece catalogue and rotate/mirror transforms
- canonical: symmetry-invariant shape keys
- PuzzleGenerator: procedural puzzle boards
- placement: placement validation and nearest-fit search
- PuzzleSet: per-tier active puzzles and their lifecycle
- Hand: the player's pieces
- GameSession: turn processing, scoring and undo
"""

from .canonical import canonical_key, normalize
from .economy import Hand, HandPiece
from .generator import PuzzleGenerator, is_interesting
from .placement import Fit, can_place, find_first_fit, find_nearest_fit
from .puzzle import Orientation, PlacedPiece, Puzzle
from .puzzle_set import Completion, PuzzleSet
from .rules import GameConfig, TierConfig
from .session import GameSession, PlacementOutcome
from .shapes import PIECES, PieceType, mirror, resolve, rotate_cw

__all__ = [
    "canonical_key",
    "normalize",
    "Hand",
    "HandPiece",
    "PuzzleGenerator",
    "is_interesting",
    "Fit",
    "can_place",
    "find_first_fit",
    "find_nearest_fit",
    "Orientation",
    "PlacedPiece",
    "Puzzle",
    "Completion",
    "PuzzleSet",
    "GameConfig",
    "TierConfig",
    "GameSession",
    "PlacementOutcome",
    "PIECES",
    "PieceType",
    "mirror",
    "resolve",
    "rotate_cw",
]
