from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Tuple


@dataclass
class TierConfig:
    min_cells: int
    max_cells: int
    max_turns: int
    active_count: int = 4
    dimension_limit: int = 6


def _tier1() -> TierConfig:
    return TierConfig(min_cells=2, max_cells=5, max_turns=12)


def _tier2() -> TierConfig:
    return TierConfig(min_cells=6, max_cells=14, max_turns=20)


@dataclass
class GameConfig:
    """Session configuration.

    The baseline ruleset refunds pieces from expired puzzles, scores tier-2
    puzzles with a fixed value and lets undo roll the shared clock back. The
    advanced ruleset (``advanced=True``) forfeits those pieces, scores par
    bands, may attach a required piece to tier-2 puzzles, caps the hand and
    makes hand pieces expire. ``hand_limit`` and ``piece_expiry_turns`` apply
    under either ruleset whenever they are set.
    """

    advanced: bool = False
    random_seed: Optional[int] = None
    tier1: TierConfig = field(default_factory=_tier1)
    tier2: TierConfig = field(default_factory=_tier2)
    starting_hand: Tuple[str, ...] = ("dot", "domino")
    max_generation_attempts: int = 500
    max_generation_resets: int = 3
    hand_limit: Optional[int] = None
    piece_expiry_turns: Optional[int] = None
    required_piece_probability: float = 0.0
    seen_keys_cap: int = 500
    history_cap: int = 200

    @classmethod
    def advanced_ruleset(cls, **overrides) -> "GameConfig":
        base = cls(
            advanced=True,
            hand_limit=12,
            piece_expiry_turns=15,
            required_piece_probability=0.3,
        )
        return replace(base, **overrides)

    def tier(self, tier: int) -> TierConfig:
        if tier == 1:
            return self.tier1
        if tier == 2:
            return self.tier2
        raise ValueError(f"Unknown tier: {tier}")


TIERS: Tuple[int, int] = (1, 2)

# Tier-1 reward pools keyed by puzzle cell count: (piece type, weight)
REWARD_POOLS: Dict[int, Tuple[Tuple[str, int], ...]] = {
    2: (("domino", 1),),
    3: (("tromino_i", 1), ("tromino_l", 1)),
    4: (("tetro_i", 1), ("tetro_o", 1), ("tetro_t", 1), ("tetro_s", 1), ("tetro_l", 1)),
}

# Relative weight of drawing a piece of each level as a required piece
REQUIRED_PIECE_LEVEL_WEIGHTS: Dict[int, int] = {1: 0, 2: 1, 3: 3, 4: 4, 5: 2}


def reward_pool(cells: int) -> Tuple[Tuple[str, int], ...]:
    if cells <= 2:
        return REWARD_POOLS[2]
    if cells == 3:
        return REWARD_POOLS[3]
    return REWARD_POOLS[4]


def base_points(tier: int, cells: int) -> int:
    if tier == 1:
        return 0
    return int(cells * 0.8)


def par_points(par: int, turns_left: int, max_turns: int) -> int:
    """Par banded by the fraction of the timer remaining at completion."""
    ratio = turns_left / max_turns if max_turns > 0 else 0.0
    if ratio > 0.6:
        return par
    if ratio >= 0.3:
        return par * 2 // 3
    return par // 3
