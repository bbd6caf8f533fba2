"""Symmetry-invariant identity for polyomino grids.

Both the live generator and the offline library tools import this module;
keys must stay bit-exact between them, so the serialization below is part of
the save format (``seenCanonicalKeys``) and must not change.
"""

from __future__ import annotations

import hashlib
import json
from typing import Set

import numpy as np

from .shapes import Shape, as_shape, mirror, rotate_cw


EMPTY_KEY = "[]"


def crop(grid: Shape) -> Shape:
    """Crop to the tight bounding box of filled cells (may return a 0x0 array)."""
    grid = as_shape(grid)
    rows = np.flatnonzero(np.any(grid, axis=1))
    cols = np.flatnonzero(np.any(grid, axis=0))
    if rows.size == 0:
        return np.zeros((0, 0), dtype=np.int8)
    return grid[rows[0] : rows[-1] + 1, cols[0] : cols[-1] + 1]


def serialize(grid: Shape) -> str:
    return json.dumps(as_shape(grid).tolist(), separators=(",", ":"))


def normalize(grid) -> str:
    cropped = crop(grid)
    if cropped.size == 0:
        return EMPTY_KEY
    return serialize(cropped)


def variant_keys(grid) -> Set[str]:
    """Normalized forms of all 8 rotation/mirror variants."""
    g = as_shape(grid)
    if g.size == 0:
        return {EMPTY_KEY}
    keys: Set[str] = set()
    for _ in range(4):
        keys.add(normalize(g))
        keys.add(normalize(mirror(g)))
        g = rotate_cw(g)
    return keys


def canonical_key(grid) -> str:
    return min(variant_keys(grid))


def short_hash(key: str, length: int = 6) -> str:
    return hashlib.sha1(key.encode("utf-8")).hexdigest()[:length]
