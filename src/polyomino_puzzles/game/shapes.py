from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np


Shape = np.ndarray
Cell = Tuple[int, int]


def as_shape(rows) -> Shape:
    """Coerce nested lists (or any array-like of truthy values) to a 0/1 int8 matrix."""
    arr = np.asarray(rows)
    if arr.size == 0:
        return np.zeros((0, 0), dtype=np.int8)
    if arr.ndim != 2:
        raise ValueError(f"Expected a 2D grid, got shape {arr.shape}")
    return (arr != 0).astype(np.int8)


def rotate_cw(shape: Shape) -> Shape:
    # rotated[c][r'] = shape[rows-1-r'][c]
    return np.ascontiguousarray(np.rot90(shape, 1, axes=(1, 0)))


def mirror(shape: Shape) -> Shape:
    return np.ascontiguousarray(np.fliplr(shape))


def transform(shape: Shape, rotation: int = 0, mirrored: bool = False) -> Shape:
    """Rotate clockwise `rotation` quarter turns, then mirror left-to-right.

    Rotate-then-mirror is the only composition order used anywhere in the
    package (display, placement validation, required-piece generation).
    """
    out = shape
    for _ in range(rotation % 4):
        out = rotate_cw(out)
    if mirrored:
        out = mirror(out)
    return out


def cells(shape: Shape) -> List[Cell]:
    """Filled (row, col) offsets in row-major order."""
    return [(int(r), int(c)) for r, c in np.argwhere(shape != 0)]


def cell_count(shape: Shape) -> int:
    return int(np.count_nonzero(shape))


@dataclass(frozen=True)
class PieceType:
    name: str
    rows: Tuple[Tuple[int, ...], ...]
    level: int

    @property
    def shape(self) -> Shape:
        return np.array(self.rows, dtype=np.int8)

    @property
    def size(self) -> int:
        return sum(sum(row) for row in self.rows)


def _piece(name: str, rows, level: int) -> PieceType:
    return PieceType(name=name, rows=tuple(tuple(int(v) for v in row) for row in rows), level=level)


PIECES: Dict[str, PieceType] = {
    p.name: p
    for p in (
        _piece("dot", [[1]], 1),
        _piece("domino", [[1, 1]], 2),
        _piece("tromino_i", [[1, 1, 1]], 3),
        _piece("tromino_l", [[1, 0], [1, 1]], 3),
        _piece("tetro_i", [[1, 1, 1, 1]], 4),
        _piece("tetro_l", [[1, 0], [1, 0], [1, 1]], 4),
        _piece("tetro_t", [[1, 1, 1], [0, 1, 0]], 4),
        _piece("tetro_s", [[0, 1, 1], [1, 1, 0]], 4),
        _piece("tetro_o", [[1, 1], [1, 1]], 4),
        _piece("pento_l", [[1, 0], [1, 0], [1, 0], [1, 1]], 5),
        _piece("pento_p", [[1, 1], [1, 1], [1, 0]], 5),
        _piece("pento_t", [[1, 1, 1], [0, 1, 0], [0, 1, 0]], 5),
        _piece("pento_u", [[1, 0, 1], [1, 1, 1]], 5),
        _piece("pento_v", [[1, 0, 0], [1, 0, 0], [1, 1, 1]], 5),
    )
}

PIECE_NAMES: Tuple[str, ...] = tuple(PIECES)
MAX_LEVEL = max(p.level for p in PIECES.values())


def get_piece(name: str) -> PieceType:
    try:
        return PIECES[name]
    except KeyError:
        raise KeyError(f"Unknown piece type: {name!r}") from None


def resolve(piece_type: str, rotation: int = 0, mirrored: bool = False) -> Shape:
    """Shape actually used for placement and display of a piece orientation."""
    return transform(get_piece(piece_type).shape, rotation, mirrored)


def pieces_at_level(level: int) -> List[str]:
    return [name for name, p in PIECES.items() if p.level == level]


def piece_sort_key(name: str) -> Tuple[int, str]:
    return get_piece(name).level, name
