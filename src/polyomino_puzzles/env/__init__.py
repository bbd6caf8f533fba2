"""Gymnasium environments for Polyomino Puzzles."""

from __future__ import annotations

from gymnasium.envs.registration import register

# Register default environment (MultiDiscrete exact placements)
register(
    id="PolyominoPuzzles-v0",
    entry_point="polyomino_puzzles.env.puzzle_env:PolyominoPuzzleEnv",
)

__all__ = ["PolyominoPuzzles-v0"]
