import logging
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Union

import numpy as np
from statemachine import State, StateMachine

from .grid import Grid, Position
from .shift import WIN_VALUE, Direction, MoveResult, shift
from .spawn import SpawnPolicy, SpawnResult
from .tile import Tile, TileTypeTable

logger = logging.getLogger(__name__)


class GameStatus(Enum):
    INITIALIZING = 'initializing'
    SPAWNING_BLOCKS = 'spawning_blocks'
    WAITING_INPUT = 'waiting_input'
    APPLYING_MOVE = 'applying_move'
    WON = 'won'
    LOST = 'lost'

    @property
    def is_terminal(self) -> bool:
        return self in (GameStatus.WON, GameStatus.LOST)


def _is_power_of_two(value: int) -> bool:
    return value > 0 and value & (value - 1) == 0


@dataclass(frozen=True)
class GameConfig:
    """Settings fixed at game start."""
    width: int = 4
    height: int = 4
    initial_spawn_count: int = 2
    spawn_count: int = 1
    spawn_rate_first_value: float = 0.7
    spawn_first_value: int = 2
    spawn_second_value: int = 1
    move_duration: float = 0.1  # seconds, for presentation only

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise ValueError(f"Grid dimensions must be positive, got {self.width}x{self.height}")
        if not 0.0 <= self.spawn_rate_first_value <= 1.0:
            raise ValueError(f"spawn_rate_first_value must be in [0, 1], got {self.spawn_rate_first_value}")
        for value in (self.spawn_first_value, self.spawn_second_value):
            if not _is_power_of_two(value):
                raise ValueError(f"Spawn values must be positive powers of two, got {value}")

    def with_overrides(self, **kwargs) -> "GameConfig":
        return replace(self, **kwargs)

    def spawn_policy(self) -> SpawnPolicy:
        return SpawnPolicy(self.spawn_rate_first_value, self.spawn_first_value, self.spawn_second_value)


class TurnMachine(StateMachine):
    """Legal status transitions; Game2048 decides which one to take."""

    initializing = State('Initializing', value=GameStatus.INITIALIZING.value, initial=True)
    spawning_blocks = State('SpawningBlocks', value=GameStatus.SPAWNING_BLOCKS.value)
    waiting_input = State('WaitingInput', value=GameStatus.WAITING_INPUT.value)
    applying_move = State('ApplyingMove', value=GameStatus.APPLYING_MOVE.value)
    won = State('Won', value=GameStatus.WON.value, final=True)
    lost = State('Lost', value=GameStatus.LOST.value, final=True)

    begin = initializing.to(spawning_blocks)
    spawned = spawning_blocks.to(waiting_input)
    win = spawning_blocks.to(won)
    lose = spawning_blocks.to(lost)
    move = waiting_input.to(applying_move)
    settle = applying_move.to(spawning_blocks)


class Game2048:
    """
    Turn-based 2048 game state.

    A turn is `apply_move(direction)`, which computes the whole shift at
    once and leaves the game in APPLYING_MOVE, followed by `settle()` once
    the host has finished presenting the events. Settling spawns new tiles
    and decides between WON, LOST and WAITING_INPUT.
    """

    def __init__(self,
                 config: Optional[GameConfig] = None,
                 rng: Optional[random.Random] = None,
                 tile_types: Optional[TileTypeTable] = None,
                 auto_start: bool = True):
        self.config = config or GameConfig()
        self.rng = rng or random.Random()
        self.tile_types = tile_types or TileTypeTable.default()
        self.spawn_policy = self.config.spawn_policy()
        self._init_state()
        if auto_start:
            self.start()

    def _init_state(self):
        self.machine = TurnMachine()
        self.grid: Optional[Grid] = None
        self.move_count = 0
        self._next_id = 1

    def _fresh_id(self) -> int:
        nid = self._next_id
        self._next_id += 1
        return nid

    # ---------- Status ----------

    @property
    def status(self) -> GameStatus:
        return GameStatus(self.machine.current_state.value)

    def get_status(self) -> GameStatus:
        return self.status

    def get_move_count(self) -> int:
        return self.move_count

    def is_game_over(self) -> bool:
        return self.status.is_terminal

    # ---------- Turn flow ----------

    def start(self) -> GameStatus:
        """Build the grid and spawn the opening tiles."""
        if self.status is not GameStatus.INITIALIZING:
            raise RuntimeError(f"Game already started (status {self.status.value})")
        self.grid = Grid(self.config.width, self.config.height)
        self.machine.send('begin')
        self._spawn_blocks()
        return self.status

    def _spawn_blocks(self):
        count = self.config.initial_spawn_count if self.move_count == 0 else self.config.spawn_count
        result = self.spawn(count)

        if any(tile.value >= WIN_VALUE for tile in self.grid.tiles()):
            self.machine.send('win')
            logger.info("Game won after %d moves", self.move_count)
        elif result.free_before <= 1:
            self.machine.send('lose')
            logger.info("Game lost after %d moves", self.move_count)
        else:
            self.machine.send('spawned')

    def apply_move(self, direction: Union[Direction, str]) -> Optional[MoveResult]:
        """
        Shift the board toward `direction`.

        Returns None without touching the game when it is not waiting for
        input. A move that changes nothing still counts and still spawns.
        """
        direction = Direction.parse(direction)
        if self.status is not GameStatus.WAITING_INPUT:
            logger.debug("Ignoring %s while %s", direction.value, self.status.value)
            return None

        self.move_count += 1
        result = shift(self.grid, direction)
        for event in result.merges:
            self.tile_types.lookup(event.value)
        self.machine.send('move')
        logger.debug("Move %d: %s, %d events", self.move_count, direction.value, len(result.events))
        return result

    def settle(self) -> GameStatus:
        """Finish the current move and advance to the next turn."""
        if self.status is GameStatus.APPLYING_MOVE:
            self.machine.send('settle')
            self._spawn_blocks()
        return self.status

    def step(self, direction: Union[Direction, str]) -> Optional[MoveResult]:
        """apply_move followed by settle, for hosts without a presentation delay."""
        result = self.apply_move(direction)
        if result is not None:
            self.settle()
        return result

    # ---------- Spawning ----------

    def spawn(self, count: int) -> SpawnResult:
        result = self.spawn_policy.choose(self.grid, count, self.rng)
        for position, value in result.placements:
            self.spawn_at(position, value)
        return result

    def spawn_at(self, position, value: int) -> Tile:
        """Place a new tile of `value` on a free cell."""
        position = Position(*position)
        self.tile_types.lookup(value)
        if self.grid.occupant(position) is not None:
            raise ValueError(f"Cell {tuple(position)} is already occupied")
        tile = Tile(self._fresh_id(), value)
        self.grid.place(position, tile)
        return tile

    # ---------- Queries ----------

    def get_state(self) -> np.ndarray:
        return self.grid.snapshot()

    def get_valid_moves(self) -> List[Direction]:
        """Directions that would move or merge at least one tile."""
        return [direction for direction in Direction
                if shift(self.grid.copy(), direction).moved]

    def get_valid_action_mask(self) -> np.ndarray:
        valid = self.get_valid_moves()
        return np.array([direction in valid for direction in Direction], dtype=bool)

    def reset(self) -> GameStatus:
        self._init_state()
        return self.start()
