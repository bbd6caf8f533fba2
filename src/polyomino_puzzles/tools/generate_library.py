from __future__ import annotations

import argparse
import json
import logging
import random
from pathlib import Path
from typing import Dict, List, Optional

from polyomino_puzzles.game.generator import LibraryEntry, PuzzleGenerator
from polyomino_puzzles.game.rules import GameConfig
from polyomino_puzzles.visualization.text import print_shape


def build_library(tier1_count: int, tier2_count: int, seed: Optional[int] = None,
                  config: Optional[GameConfig] = None) -> Dict[str, List[LibraryEntry]]:
    """Unique shapes for both tiers; the seen set is shared so no shape repeats across tiers."""
    config = config or GameConfig(random_seed=seed)
    generator = PuzzleGenerator(config, random.Random(seed))
    return {
        "tier1": generator.generate_library(1, tier1_count),
        "tier2": generator.generate_library(2, tier2_count),
    }


def write_library(library: Dict[str, List[LibraryEntry]], path: Path) -> None:
    payload = {tier: [entry.to_dict() for entry in entries] for tier, entries in library.items()}
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Generate a deduplicated static puzzle library")
    p.add_argument("--tier1", type=int, default=15, help="Number of tier-1 puzzles")
    p.add_argument("--tier2", type=int, default=25, help="Number of tier-2 puzzles")
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--output", type=Path, default=Path("library.json"))
    p.add_argument("--quiet", action="store_true", help="Do not print the generated grids")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    library = build_library(args.tier1, args.tier2, args.seed)
    write_library(library, args.output)

    if not args.quiet:
        for tier, entries in library.items():
            print(f"=== {tier} ===")
            for entry in entries:
                extra = f" reward={entry.reward}" if entry.reward else f" {entry.points} pts"
                print(f"{entry.id} ({entry.cells} cells){extra}")
                print_shape(entry.grid)
    print(f"Generated {len(library['tier1'])} tier-1 and {len(library['tier2'])} tier-2 puzzles")
    print(f"Written to {args.output}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
