from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np

from .canonical import canonical_key, crop, short_hash
from .placement import valid_anchors
from .puzzle import Orientation, PlacedPiece, Puzzle
from .rules import (
    REQUIRED_PIECE_LEVEL_WEIGHTS,
    GameConfig,
    TierConfig,
    base_points,
    reward_pool,
)
from .shapes import PIECES, Shape, cell_count

logger = logging.getLogger(__name__)

_NEIGHBOURS = ((0, 1), (0, -1), (1, 0), (-1, 0))


def count_holes(grid: Shape) -> int:
    """Empty cells with at least 3 filled orthogonal neighbours."""
    h, w = grid.shape
    holes = 0
    for r in range(h):
        for c in range(w):
            if grid[r, c]:
                continue
            filled = 0
            for dr, dc in _NEIGHBOURS:
                nr, nc = r + dr, c + dc
                if 0 <= nr < h and 0 <= nc < w and grid[nr, nc]:
                    filled += 1
            if filled >= 3:
                holes += 1
    return holes


def is_interesting(grid: Shape) -> bool:
    """Reject rectangles, near-rectangles and dense featureless blobs."""
    h, w = grid.shape
    filled = cell_count(grid)
    area = h * w
    fill_ratio = filled / area if area else 0.0

    if h > 1 and w > 1 and filled == area:
        return False
    if h >= 2 and w >= 2 and filled > 4 and area - filled <= 2:
        return False
    if min(h, w) > 2 and fill_ratio > 0.75:
        return False
    if fill_ratio > 0.65 and filled >= 8 and count_holes(grid) == 0:
        return False
    return True


@dataclass
class LibraryEntry:
    id: str
    grid: Shape
    cells: int
    points: int
    reward: Optional[str]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "grid": self.grid.tolist(),
            "cells": self.cells,
            "points": self.points,
            "reward": self.reward,
        }


class PuzzleGenerator:
    """Procedural polyomino boards, deduplicated by canonical key.

    ``seen`` is shared by both tiers; insertion order is kept so the most
    recent keys can be persisted.
    """

    def __init__(self, config: GameConfig, rng: Optional[random.Random] = None,
                 seen: Optional[Dict[str, None]] = None,
                 counters: Optional[Dict[int, int]] = None) -> None:
        self.config = config
        self.rng = rng or random.Random(config.random_seed)
        self.seen: Dict[str, None] = seen if seen is not None else {}
        self.counters: Dict[int, int] = counters if counters is not None else {1: 0, 2: 0}

    # ---------- Shape growth ----------
    def grow(self, target_cells: int, max_dim_cap: int) -> Optional[Shape]:
        """Random connected polyomino of up to `target_cells` cells, cropped."""
        max_dim_cap = max(2, max_dim_cap)
        width = self.rng.randint(2, max_dim_cap)
        height = self.rng.randint(2, max_dim_cap)
        grid = np.zeros((height, width), dtype=np.int8)
        seed = (self.rng.randrange(height), self.rng.randrange(width))
        grid[seed] = 1
        filled_cells = [seed]

        while len(filled_cells) < target_cells:
            # Frontier with multiplicity: cells touching several filled cells are likelier
            frontier = []
            for r, c in filled_cells:
                for dr, dc in _NEIGHBOURS:
                    nr, nc = r + dr, c + dc
                    if 0 <= nr < height and 0 <= nc < width and not grid[nr, nc]:
                        frontier.append((nr, nc))
            if not frontier:
                break
            nxt = self.rng.choice(frontier)
            grid[nxt] = 1
            filled_cells.append(nxt)

        cropped = crop(grid)
        if cropped.size == 0:
            return None
        return cropped

    def _candidate(self, tier: TierConfig, check_seen: bool = True,
                   check_interesting: bool = True) -> Optional[Shape]:
        target = self.rng.randint(tier.min_cells, tier.max_cells)
        grid = self.grow(target, min(tier.dimension_limit, target))
        if grid is None:
            return None
        cells = cell_count(grid)
        if cells < tier.min_cells or cells > tier.max_cells:
            return None
        if check_interesting and not is_interesting(grid):
            return None
        if check_seen and canonical_key(grid) in self.seen:
            return None
        return grid

    def generate_shape(self, tier_number: int) -> Shape:
        """Next unseen interesting shape for a tier; registers its key as seen.

        Each round makes up to ``max_generation_attempts`` attempts; an
        exhausted round clears the whole seen set and tries again, so shapes
        seen before may reappear. A last round without filters guarantees a
        result.
        """
        tier = self.config.tier(tier_number)
        for round_idx in range(self.config.max_generation_resets + 1):
            for _ in range(self.config.max_generation_attempts):
                grid = self._candidate(tier)
                if grid is not None:
                    self.seen[canonical_key(grid)] = None
                    return grid
            logger.warning(
                "Tier %d generation exhausted after %d attempts (round %d); clearing %d seen shapes",
                tier_number, self.config.max_generation_attempts, round_idx + 1, len(self.seen),
            )
            self.seen.clear()
        while True:
            grid = self._candidate(tier, check_seen=False, check_interesting=False)
            if grid is not None:
                self.seen[canonical_key(grid)] = None
                return grid

    # ---------- Puzzle assembly ----------
    def next_id(self, tier_number: int, key: str) -> str:
        self.counters[tier_number] = self.counters.get(tier_number, 0) + 1
        return f"T{tier_number}-{self.counters[tier_number]:03d}-{short_hash(key)}"

    def pick_reward(self, cells: int) -> str:
        pool = reward_pool(cells)
        names = [name for name, _ in pool]
        weights = [weight for _, weight in pool]
        return self.rng.choices(names, weights=weights, k=1)[0]

    def pick_required_piece(self, grid: Shape) -> Optional[PlacedPiece]:
        names = list(PIECES)
        weights = [REQUIRED_PIECE_LEVEL_WEIGHTS.get(PIECES[n].level, 0) for n in names]
        if not any(weights):
            return None
        piece_type = self.rng.choices(names, weights=weights, k=1)[0]
        orientation = Orientation(piece_type, self.rng.randrange(4), self.rng.random() < 0.5)
        probe = Puzzle(id="probe", grid=grid, tier=2, points=0, turns_left=1, max_turns=1)
        anchors = list(valid_anchors(probe, orientation.shape()))
        if not anchors:
            return None
        row, col = self.rng.choice(anchors)
        return orientation.at(row, col)

    def generate(self, tier_number: int) -> Puzzle:
        tier = self.config.tier(tier_number)
        grid = self.generate_shape(tier_number)
        key = canonical_key(grid)
        cells = cell_count(grid)
        puzzle = Puzzle(
            id=self.next_id(tier_number, key),
            grid=grid,
            tier=tier_number,
            points=base_points(tier_number, cells),
            turns_left=tier.max_turns,
            max_turns=tier.max_turns,
        )
        if tier_number == 1:
            puzzle.reward_piece_type = self.pick_reward(cells)
        elif self.config.advanced and self.rng.random() < self.config.required_piece_probability:
            puzzle.required_piece = self.pick_required_piece(grid)
        logger.debug("Generated puzzle %s (%d cells)", puzzle.id, cells)
        return puzzle

    def generate_library(self, tier_number: int, count: int) -> List[LibraryEntry]:
        """Static library of up to `count` unique shapes, sorted by cell count."""
        tier = self.config.tier(tier_number)
        grids: List[Shape] = []
        attempts = 0
        while len(grids) < count and attempts < count * 200:
            attempts += 1
            grid = self._candidate(tier)
            if grid is None:
                continue
            self.seen[canonical_key(grid)] = None
            grids.append(grid)
        grids.sort(key=cell_count)

        entries: List[LibraryEntry] = []
        for grid in grids:
            cells = cell_count(grid)
            entries.append(
                LibraryEntry(
                    id=self.next_id(tier_number, canonical_key(grid)),
                    grid=grid,
                    cells=cells,
                    points=base_points(tier_number, cells),
                    reward=self.pick_reward(cells) if tier_number == 1 else None,
                )
            )
        return entries
