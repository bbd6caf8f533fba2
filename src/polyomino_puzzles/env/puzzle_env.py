from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np
import gymnasium as gym
import pygame
from gymnasium import spaces

from polyomino_puzzles.game import GameConfig, GameSession
from polyomino_puzzles.game.placement import valid_anchors
from polyomino_puzzles.game.puzzle import Orientation, SOLID
from polyomino_puzzles.game.rules import TIERS
from polyomino_puzzles.game.shapes import PIECE_NAMES
from polyomino_puzzles.visualization.renderer import Renderer, rows_rgb
from polyomino_puzzles.visualization.text import format_puzzle


Action = Tuple[int, int, int, int, int, int, int]


def list_valid_actions(session: GameSession, hand_slots: int, board_size: int) -> List[Action]:
    """All (hand_idx, tier_idx, puzzle_idx, row, col, rotation, mirror) exact placements."""
    actions: List[Action] = []
    for tier_idx, tier in enumerate(TIERS):
        for puzzle_idx, puzzle in enumerate(session.tiers[tier]):
            by_type: Dict[str, List[Tuple[int, int, int, int]]] = {}
            for hand_idx, piece in enumerate(session.hand.pieces[:hand_slots]):
                if piece.piece_type not in by_type:
                    found: List[Tuple[int, int, int, int]] = []
                    for rotation in range(4):
                        for mirror in (0, 1):
                            orientation = Orientation(piece.piece_type, rotation, bool(mirror))
                            for r, c in valid_anchors(puzzle, orientation.shape(), orientation=orientation):
                                if r < board_size and c < board_size:
                                    found.append((r, c, rotation, mirror))
                    by_type[piece.piece_type] = found
                for r, c, rotation, mirror in by_type[piece.piece_type]:
                    actions.append((hand_idx, tier_idx, puzzle_idx, r, c, rotation, mirror))
    return actions


class PolyominoPuzzleEnv(gym.Env):
    """Gymnasium view of a `GameSession`: each step is one exact hand placement."""

    metadata = {"render_modes": ["human", "rgb_array", "ansi"], "render_fps": 30}

    def __init__(self, config: Optional[GameConfig] = None, render_mode: Optional[str] = None,
                 hand_slots: int = 16,
                 max_episode_steps: int = 1000,
                 invalid_action_penalty: float = -0.1,
                 solve_bonus: float = 1.0) -> None:
        super().__init__()
        self.config = config or GameConfig()
        self.session = GameSession(self.config)
        self.render_mode = render_mode
        self.hand_slots = int(hand_slots)
        self.max_episode_steps = int(max_episode_steps)
        self.invalid_action_penalty = float(invalid_action_penalty)
        self.solve_bonus = float(solve_bonus)

        self.active = max(self.config.tier(t).active_count for t in TIERS)
        self.board_size = max(self.config.tier(t).dimension_limit for t in TIERS)
        max_turns = max(self.config.tier(t).max_turns for t in TIERS)
        n_boards = len(TIERS) * self.active
        size = self.board_size

        # Observation: cell-state planes per puzzle, hand piece indices (-1 empty), turns left
        self.observation_space = spaces.Dict(
            {
                "boards": spaces.Box(low=0, high=3, shape=(n_boards, size, size), dtype=np.int8),
                "hand": spaces.Box(low=-1, high=len(PIECE_NAMES) - 1, shape=(self.hand_slots,), dtype=np.int8),
                "turns_left": spaces.Box(low=0, high=max_turns, shape=(n_boards,), dtype=np.int16),
            }
        )

        # Action: (hand_idx, tier_idx, puzzle_idx, row, col, rotation, mirror)
        self.action_space = spaces.MultiDiscrete((self.hand_slots, len(TIERS), self.active, size, size, 4, 2))

        self._last_obs: Optional[Dict[str, Any]] = None
        self._steps = 0

        # Rendering state (lazy)
        self._renderer: Optional[Renderer] = None
        self._screen = None

    def _get_obs(self) -> Dict[str, Any]:
        size = self.board_size
        n_boards = len(TIERS) * self.active
        boards = np.full((n_boards, size, size), SOLID, dtype=np.int8)
        turns = np.zeros((n_boards,), dtype=np.int16)
        for tier_idx, tier in enumerate(TIERS):
            for puzzle_idx, puzzle in enumerate(self.session.tiers[tier]):
                slot = tier_idx * self.active + puzzle_idx
                states = puzzle.cell_states()[:size, :size]
                boards[slot, : states.shape[0], : states.shape[1]] = states
                turns[slot] = max(0, puzzle.turns_left)
        hand = np.full((self.hand_slots,), -1, dtype=np.int8)
        for i, piece in enumerate(self.session.hand.pieces[: self.hand_slots]):
            hand[i] = PIECE_NAMES.index(piece.piece_type)
        return {"boards": boards, "hand": hand, "turns_left": turns}

    def _get_info(self, valid_actions: List[Action]) -> Dict[str, Any]:
        info: Dict[str, Any] = {"valid_actions": valid_actions}
        info.update(self.session.snapshot())
        return info

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        config = self.config
        if seed is not None:
            config = replace(self.config, random_seed=seed)
        self.session = GameSession(config)
        self._steps = 0
        obs = self._get_obs()
        info = self._get_info(list_valid_actions(self.session, self.hand_slots, self.board_size))
        self._last_obs = obs
        return obs, info

    def step(self, action):
        hand_idx, tier_idx, puzzle_idx, row, col, rotation, mirror = map(int, action)

        reward_components: Dict[str, float] = {}
        outcome = self.session.place_from_hand(
            hand_idx, TIERS[tier_idx], puzzle_idx,
            rotation=rotation, mirror=bool(mirror), row=row, col=col, snap=False,
        )
        if outcome.success:
            reward_components["points"] = float(outcome.points_gained)
            if outcome.completion is not None:
                reward_components["solved"] = self.solve_bonus
        else:
            reward_components["invalid"] = self.invalid_action_penalty

        self._steps += 1
        valid_actions = list_valid_actions(self.session, self.hand_slots, self.board_size)
        # Nothing placeable means no action can ever advance the clock again
        terminated = len(valid_actions) == 0
        truncated = self._steps >= self.max_episode_steps

        reward = float(sum(reward_components.values()))
        obs = self._get_obs()
        info = self._get_info(valid_actions)
        info["reward_components"] = reward_components
        self._last_obs = obs
        return obs, reward, terminated, truncated, info

    def render(self) -> Union[np.ndarray, str, None]:
        rows = [list(self.session.tiers[t]) for t in TIERS]
        if self.render_mode == "rgb_array":
            return rows_rgb(rows)
        if self.render_mode == "ansi":
            hand = " ".join(p.piece_type for p in self.session.hand.sorted())
            boards = "\n\n".join(format_puzzle(p) for row in rows for p in row)
            return f"points={self.session.points} turn={self.session.total_turns} hand: {hand}\n\n{boards}"
        if self.render_mode == "human":
            if self._screen is None:
                pygame.init()
                self._renderer = Renderer()
                self._screen = pygame.display.set_mode((1000, 500))
                pygame.display.set_caption("Polyomino Puzzles")
            self._renderer.draw(self._screen, rows)
            pygame.display.flip()
        return None

    def close(self) -> None:
        if self._screen is not None:
            pygame.quit()
            self._screen = None
