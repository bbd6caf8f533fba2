from __future__ import annotations

import argparse
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from polyomino_puzzles.game.canonical import canonical_key


@dataclass
class Duplicate:
    index: int
    duplicate_of: int
    key: str


def find_duplicates(entries: Sequence[dict]) -> List[Duplicate]:
    """Entries whose canonical key matches an earlier entry (0-based indices)."""
    first_seen: Dict[str, int] = {}
    duplicates: List[Duplicate] = []
    for idx, entry in enumerate(entries):
        key = canonical_key(entry["grid"])
        if key in first_seen:
            duplicates.append(Duplicate(idx, first_seen[key], key))
        else:
            first_seen[key] = idx
    return duplicates


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Check a puzzle library for shapes equal up to rotation/mirror")
    p.add_argument("library", type=Path)
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    library = json.loads(args.library.read_text(encoding="utf-8"))

    total = 0
    for tier in ("tier1", "tier2"):
        entries = library.get(tier, [])
        duplicates = find_duplicates(entries)
        total += len(duplicates)
        print(f"=== Checking {tier} puzzles ===")
        if not duplicates:
            print("No duplicates found")
        for dup in duplicates:
            print(f"Puzzle {dup.index + 1} is duplicate of puzzle {dup.duplicate_of + 1}")
        print(f"{tier}: {len(entries) - len(duplicates)} unique puzzles")
    return 1 if total else 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
