from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from grido.game import GameConfig, GameSession, Piece, PlacementError, Rules, TileKind


PIECE_SPAN = 5
MAX_COUNTER = np.iinfo(np.int32).max

# RGB per tile kind, index 0 is an empty cell
PALETTE = np.array(
    [
        (30, 30, 36),     # empty
        (70, 200, 120),   # plain
        (200, 200, 200),  # picker
        (230, 60, 60),    # killer
        (90, 140, 240),   # shield
        (90, 90, 100),    # permanent
        (240, 200, 60),   # centerpiece
        (120, 240, 120),  # plus
        (240, 120, 120),  # minus
        (250, 140, 30),   # whopper
        (180, 120, 240),  # glue flask
        (160, 240, 60),   # acid flask
    ],
    dtype=np.uint8,
)


def encode_piece(piece: Optional[Piece], span: int = PIECE_SPAN) -> np.ndarray:
    """Kinds of `piece` on a span x span grid centred on offset (0, 0)."""
    grid = np.zeros((span, span), dtype=np.int8)
    if piece is None:
        return grid
    half = span // 2
    for (dx, dy), tile in piece.cells:
        if abs(dx) > half or abs(dy) > half:
            raise ValueError(f"offset {(dx, dy)} does not fit a {span}x{span} piece grid")
        grid[dy + half, dx + half] = int(tile.kind)
    return grid


def _compute_action_mask(session: GameSession) -> np.ndarray:
    board = session.board
    mask = np.zeros((board.width, board.height, 4), dtype=np.bool_)
    for x, y, r in session.get_valid_actions():
        mask[x, y, r] = True
    return mask


class GridoEnv(gym.Env):
    metadata = {"render_modes": ["rgb_array"], "render_fps": 30}

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        rules: Optional[Rules] = None,
        render_mode: Optional[str] = None,
        invalid_action_penalty: float = -1.0,
        score_weight: float = 1.0,
        clear_weight: float = 0.0,
        terminal_penalty: float = 0.0,
        max_episode_steps: int = 10000,
    ) -> None:
        super().__init__()
        self.session = GameSession(config, rules)
        self.render_mode = render_mode
        self.invalid_action_penalty = float(invalid_action_penalty)
        self.score_weight = float(score_weight)
        self.clear_weight = float(clear_weight)
        self.terminal_penalty = float(terminal_penalty)
        self.max_episode_steps = int(max_episode_steps)

        width = self.session.board.width
        height = self.session.board.height
        max_kind = int(max(TileKind))
        self.observation_space = spaces.Dict(
            {
                "board": spaces.Box(low=0, high=max_kind, shape=(height, width), dtype=np.int8),
                "charges": spaces.Box(low=0, high=np.iinfo(np.int16).max, shape=(height, width), dtype=np.int16),
                "glued": spaces.MultiBinary((height, width)),
                "piece": spaces.Box(low=0, high=max_kind, shape=(PIECE_SPAN, PIECE_SPAN), dtype=np.int8),
                "next_piece": spaces.Box(low=0, high=max_kind, shape=(PIECE_SPAN, PIECE_SPAN), dtype=np.int8),
                "level": spaces.Box(low=1, high=MAX_COUNTER, shape=(1,), dtype=np.int32),
                "multiplier": spaces.Box(low=1, high=MAX_COUNTER, shape=(1,), dtype=np.int32),
            }
        )
        # Action: (x, y, rotation)
        self.action_space = spaces.MultiDiscrete((width, height, 4))
        self._steps = 0

    def _get_obs(self) -> Dict[str, Any]:
        snap = self.session.snapshot()
        return {
            "board": snap.board.astype(np.int8),
            "charges": snap.charges.astype(np.int16),
            "glued": snap.glued.astype(np.int8),
            "piece": encode_piece(snap.current_piece),
            "next_piece": encode_piece(snap.next_pieces[0] if snap.next_pieces else None),
            "level": np.array([min(snap.level, MAX_COUNTER)], dtype=np.int32),
            "multiplier": np.array([min(snap.multiplier, MAX_COUNTER)], dtype=np.int32),
        }

    def _get_info(self) -> Dict[str, Any]:
        return {
            "action_mask": _compute_action_mask(self.session),
            "score": self.session.state.score,
            "level": self.session.state.level,
            "steps": self._steps,
        }

    def get_action_mask(self) -> np.ndarray:
        return _compute_action_mask(self.session)

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        if seed is None:
            seed = int(self.np_random.integers(2**31))
        self.session.reset(seed)
        self._steps = 0
        return self._get_obs(), self._get_info()

    def step(self, action):
        if self.session.game_over:
            return self._get_obs(), 0.0, True, False, self._get_info()
        x, y, r = map(int, action)
        self._steps += 1
        reward_components: Dict[str, float] = {}
        gained = 0
        try:
            resolution = self.session.place_piece((x, y), r)
        except PlacementError:
            reward_components["invalid"] = self.invalid_action_penalty
        else:
            gained = resolution.score
            reward_components["score"] = self.score_weight * float(resolution.score)
            reward_components["cleared"] = self.clear_weight * float(resolution.cells_cleared)

        terminated = self.session.game_over
        truncated = not terminated and self._steps >= self.max_episode_steps
        if terminated:
            reward_components["terminal"] = self.terminal_penalty

        info = self._get_info()
        info["reward_components"] = reward_components
        info["engine_score_delta"] = float(gained)
        return self._get_obs(), float(sum(reward_components.values())), terminated, truncated, info

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode != "rgb_array":
            return None
        cell = 12
        image = PALETTE[self.session.board.kinds.astype(np.intp)]
        return np.repeat(np.repeat(image, cell, axis=0), cell, axis=1)

    def close(self) -> None:
        pass
