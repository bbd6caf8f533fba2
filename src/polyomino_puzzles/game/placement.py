"""Placement validation and snap-to-nearest search.

Anchors are (row, col) of the transformed shape's top-left bounding box
corner in puzzle-grid coordinates. Search functions build the occupancy and
reserved masks once and reuse them for every candidate anchor.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

import numpy as np

from .puzzle import Orientation, PlacedPiece, Puzzle
from .shapes import Shape, cells


@dataclass(frozen=True)
class Fit:
    row: int
    col: int
    distance: int = 0


class _Board:
    """Precomputed masks for repeated anchor checks on one puzzle."""

    def __init__(self, puzzle: Puzzle, ignore_index: Optional[int] = None) -> None:
        self.puzzle = puzzle
        self.fillable = puzzle.grid != 0
        self.occupied = puzzle.occupancy(ignore_index)
        self.reserved = puzzle.reserved_mask()
        self.height = puzzle.height
        self.width = puzzle.width

    def fits(self, offsets: List[Tuple[int, int]], row: int, col: int,
             identity: Optional[PlacedPiece] = None) -> bool:
        required = self.puzzle.required_piece
        guard_reserved = required is not None and identity != required
        for dr, dc in offsets:
            r, c = row + dr, col + dc
            if r < 0 or r >= self.height or c < 0 or c >= self.width:
                return False
            if not self.fillable[r, c]:
                return False
            if self.occupied[r, c]:
                return False
            if guard_reserved and self.reserved[r, c]:
                return False
        return True


def _identity(orientation: Optional[Orientation], row: int, col: int) -> Optional[PlacedPiece]:
    return orientation.at(row, col) if orientation is not None else None


def can_place(puzzle: Puzzle, shape: Shape, row: int, col: int,
              ignore_index: Optional[int] = None,
              identity: Optional[PlacedPiece] = None) -> bool:
    """Whether `shape` anchored at (row, col) fits the puzzle.

    Every filled shape cell must land on an in-bounds fillable cell that no
    other placed piece covers (the piece at `ignore_index` is skipped, for
    repositioning). Cells reserved by the puzzle's required piece are only
    available to a placement equal to it (`identity`).
    """
    board = _Board(puzzle, ignore_index)
    return board.fits(cells(shape), int(row), int(col), identity)


def valid_anchors(puzzle: Puzzle, shape: Shape,
                  ignore_index: Optional[int] = None,
                  orientation: Optional[Orientation] = None,
                  overhang: bool = False) -> Iterator[Tuple[int, int]]:
    """Yield valid anchors in row-major order.

    With `overhang`, the scan starts far enough up and left for the shape's
    bounding box to hang over the grid edge (its filled cells still must not).
    """
    board = _Board(puzzle, ignore_index)
    offsets = cells(shape)
    h, w = shape.shape
    row_start = -h + 1 if overhang else 0
    col_start = -w + 1 if overhang else 0
    for r in range(row_start, puzzle.height):
        for c in range(col_start, puzzle.width):
            if board.fits(offsets, r, c, _identity(orientation, r, c)):
                yield r, c


def find_first_fit(puzzle: Puzzle, shape: Shape,
                   ignore_index: Optional[int] = None,
                   orientation: Optional[Orientation] = None) -> Optional[Fit]:
    for r, c in valid_anchors(puzzle, shape, ignore_index, orientation):
        return Fit(r, c)
    return None


def find_nearest_fit(puzzle: Puzzle, shape: Shape, target_row: int, target_col: int,
                     ignore_index: Optional[int] = None,
                     orientation: Optional[Orientation] = None) -> Optional[Fit]:
    """Valid anchor whose nearest filled cell is closest (Manhattan) to the target.

    Ties keep row-major anchor order (``sorted`` is stable).
    """
    offsets = np.array(cells(shape), dtype=np.int64).reshape(-1, 2)
    if offsets.size == 0:
        return None
    candidates: List[Fit] = []
    for r, c in valid_anchors(puzzle, shape, ignore_index, orientation, overhang=True):
        dist = np.abs(offsets[:, 0] + r - target_row) + np.abs(offsets[:, 1] + c - target_col)
        candidates.append(Fit(r, c, int(dist.min())))
    if not candidates:
        return None
    return sorted(candidates, key=lambda fit: fit.distance)[0]
