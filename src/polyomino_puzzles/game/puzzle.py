from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from .shapes import Cell, Shape, as_shape, cell_count, cells, resolve


# Per-cell states reported to renderers
SOLID = 0
EMPTY = 1
FILLED = 2
RESERVED = 3


@dataclass(frozen=True)
class Orientation:
    piece_type: str
    rotation: int = 0
    mirror: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "rotation", int(self.rotation) % 4)
        object.__setattr__(self, "mirror", bool(self.mirror))

    def shape(self) -> Shape:
        return resolve(self.piece_type, self.rotation, self.mirror)

    def at(self, row: int, col: int) -> "PlacedPiece":
        return PlacedPiece(self.piece_type, self.rotation, self.mirror, int(row), int(col))


@dataclass(frozen=True)
class PlacedPiece:
    piece_type: str
    rotation: int
    mirror: bool
    row: int
    col: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "rotation", int(self.rotation) % 4)
        object.__setattr__(self, "mirror", bool(self.mirror))

    @property
    def orientation(self) -> Orientation:
        return Orientation(self.piece_type, self.rotation, self.mirror)

    def shape(self) -> Shape:
        return resolve(self.piece_type, self.rotation, self.mirror)

    def cells(self) -> List[Cell]:
        return [(self.row + dr, self.col + dc) for dr, dc in cells(self.shape())]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.piece_type,
            "rotation": self.rotation,
            "mirror": self.mirror,
            "row": self.row,
            "col": self.col,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlacedPiece":
        return cls(
            piece_type=str(data["type"]),
            rotation=int(data.get("rotation", 0)),
            mirror=bool(data.get("mirror", False)),
            row=int(data["row"]),
            col=int(data["col"]),
        )


@dataclass(eq=False)
class Puzzle:
    """A board to fill: ``grid`` is 1 where a cell is fillable, 0 where solid."""

    id: str
    grid: np.ndarray
    tier: int
    points: int
    turns_left: int
    max_turns: int
    reward_piece_type: Optional[str] = None
    placed_pieces: List[PlacedPiece] = field(default_factory=list)
    required_piece: Optional[PlacedPiece] = None

    def __post_init__(self) -> None:
        self.grid = as_shape(self.grid)

    @property
    def height(self) -> int:
        return int(self.grid.shape[0])

    @property
    def width(self) -> int:
        return int(self.grid.shape[1])

    @property
    def cell_count(self) -> int:
        return cell_count(self.grid)

    @property
    def filled_count(self) -> int:
        return sum(cell_count(p.shape()) for p in self.placed_pieces)

    def occupancy(self, ignore_index: Optional[int] = None) -> np.ndarray:
        occ = np.zeros(self.grid.shape, dtype=bool)
        for idx, placed in enumerate(self.placed_pieces):
            if idx == ignore_index:
                continue
            for r, c in placed.cells():
                if 0 <= r < self.height and 0 <= c < self.width:
                    occ[r, c] = True
        return occ

    def reserved_mask(self) -> np.ndarray:
        mask = np.zeros(self.grid.shape, dtype=bool)
        if self.required_piece is not None:
            for r, c in self.required_piece.cells():
                if 0 <= r < self.height and 0 <= c < self.width:
                    mask[r, c] = True
        return mask

    def cell_states(self) -> np.ndarray:
        """SOLID/EMPTY/FILLED/RESERVED per cell, for renderers and observations."""
        states = np.where(self.grid != 0, EMPTY, SOLID).astype(np.int8)
        states[self.reserved_mask() & (self.grid != 0)] = RESERVED
        states[self.occupancy()] = FILLED
        return states

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "grid": self.grid.tolist(),
            "tier": self.tier,
            "points": self.points,
            "rewardPieceType": self.reward_piece_type,
            "turnsLeft": self.turns_left,
            "maxTurns": self.max_turns,
            "placedPieces": [p.to_dict() for p in self.placed_pieces],
            "requiredPiece": self.required_piece.to_dict() if self.required_piece else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Puzzle":
        required = data.get("requiredPiece")
        return cls(
            id=str(data["id"]),
            grid=np.array(data["grid"], dtype=np.int8),
            tier=int(data["tier"]),
            points=int(data.get("points", 0)),
            turns_left=int(data["turnsLeft"]),
            max_turns=int(data["maxTurns"]),
            reward_piece_type=data.get("rewardPieceType"),
            placed_pieces=[PlacedPiece.from_dict(p) for p in data.get("placedPieces", [])],
            required_piece=PlacedPiece.from_dict(required) if required else None,
        )
