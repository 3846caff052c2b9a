import random
from typing import Optional

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from .game import Game2048, GameConfig, GameStatus
from .shift import WIN_VALUE, Direction

ACTIONS = [Direction.UP, Direction.DOWN, Direction.LEFT, Direction.RIGHT]


class Merge2048Env(gym.Env):
    """Single-agent environment driving Game2048 one settled turn per step."""

    metadata = {"render_modes": ["human"]}

    def __init__(self, config: Optional[GameConfig] = None, render_mode: Optional[str] = None):
        super().__init__()
        self.config = config or GameConfig()
        self.render_mode = render_mode
        n_cells = self.config.width * self.config.height
        self.action_space = spaces.Discrete(len(ACTIONS))
        self.observation_space = spaces.Box(low=0, high=1, shape=(n_cells,), dtype=np.float32)
        self.game = Game2048(self.config)

        self.reward_weights = {
            'win': 1.0,
            'lose': -1.0,
            'merge': 0.0,
            'step': 0.0,
        }

    def set_reward_weights(self, **kwargs):
        unknown = set(kwargs) - set(self.reward_weights)
        if unknown:
            raise ValueError(f"Unknown reward weights: {sorted(unknown)}")
        self.reward_weights.update(kwargs)

    def reset(self, seed=None, options=None):
        super().reset(seed=seed)
        rng = random.Random(int(self.np_random.integers(0, 2**31 - 1)))
        self.game = Game2048(self.config, rng=rng)
        return self._get_obs(), self._get_info()

    def step(self, action):
        if self.game.is_game_over():
            raise RuntimeError("step() called on a finished episode; call reset()")

        rw = self.reward_weights
        result = self.game.step(ACTIONS[int(action)])
        status = self.game.status

        reward = rw['step'] + rw['merge'] * len(result.merges)
        if status is GameStatus.WON:
            reward += rw['win']
        elif status is GameStatus.LOST:
            reward += rw['lose']

        info = self._get_info()
        info["events"] = result.events
        info["invalid_move"] = not result.moved
        return self._get_obs(), reward, status.is_terminal, False, info

    def _get_obs(self):
        board = self.game.get_state()
        # Value 1 must stay distinguishable from an empty cell
        levels = np.log2(np.maximum(board, 1)) + 1
        obs = np.where(board > 0, levels / (np.log2(WIN_VALUE) + 1), 0)
        return obs.flatten().astype(np.float32)

    def _get_info(self):
        return {
            "status": self.game.status,
            "move_count": self.game.move_count,
            "max_tile": self.game.grid.max_value(),
            "action_mask": self.get_action_mask(),
        }

    def get_action_mask(self):
        # Float mask in {0.0, 1.0}, ordered like ACTIONS
        return self.game.get_valid_action_mask().astype(np.float32)

    def render(self):
        print(self.game.grid)

    def close(self):
        pass
