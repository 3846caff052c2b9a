import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

import numpy as np

from .grid import Grid, Position

logger = logging.getLogger(__name__)

# Tiles at or above this value never merge again; reaching it wins the game
WIN_VALUE = 2048


class Direction(Enum):
    UP = 'up'
    DOWN = 'down'
    LEFT = 'left'
    RIGHT = 'right'

    @property
    def vector(self) -> Tuple[int, int]:
        return _VECTORS[self]

    @classmethod
    def parse(cls, direction: Union["Direction", str]) -> "Direction":
        if isinstance(direction, cls):
            return direction
        try:
            return cls(str(direction).lower())
        except ValueError:
            raise ValueError(f"Invalid move direction: {direction!r}") from None


_VECTORS = {
    Direction.UP: (0, 1),
    Direction.DOWN: (0, -1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}


class MoveKind(Enum):
    MOVE = 'move'
    MOVE_MERGE = 'move_merge'


@dataclass(frozen=True)
class MoveEvent:
    kind: MoveKind
    tile_id: int
    source: Position
    destination: Position
    value: int                           # value of the moving tile after the move
    destroyed_id: Optional[int] = None   # tile absorbed by a merge, else None

    @property
    def merged(self) -> bool:
        return self.kind is MoveKind.MOVE_MERGE


@dataclass(frozen=True)
class MoveResult:
    direction: Direction
    events: List[MoveEvent]
    snapshot: np.ndarray

    @property
    def moved(self) -> bool:
        return bool(self.events)

    @property
    def merges(self) -> List[MoveEvent]:
        return [event for event in self.events if event.merged]


def traversal_order(grid: Grid, direction: Direction):
    """Occupied tiles ordered so the ones farthest along `direction` come first."""
    tiles = sorted(grid.tiles(), key=lambda tile: (tile.position.x, tile.position.y))
    if direction in (Direction.UP, Direction.RIGHT):
        tiles.reverse()
    return tiles


def shift(grid: Grid, direction: Union[Direction, str], win_value: int = WIN_VALUE) -> MoveResult:
    """
    Slide every tile of `grid` toward `direction`, merging equal neighbours.

    The grid is mutated in place. The returned events are in processing
    order and describe the complete, final state: a tile merges at most
    once per call and stops at the cell it merged into.
    """
    direction = Direction.parse(direction)
    dx, dy = direction.vector
    events: List[MoveEvent] = []

    for tile in traversal_order(grid, direction):
        start = tile.position
        target = start
        absorbed = None

        while True:
            nxt = target.offset(dx, dy)
            if not grid.in_bounds(nxt):
                break
            other = grid.occupant(nxt)
            if other is not None:
                if not other.merged_this_turn and other.can_merge(tile.value, win_value):
                    tile.value *= 2
                    tile.merged_this_turn = True
                    absorbed = other
                    target = nxt
                break
            target = nxt

        if target == start:
            continue

        grid.clear(start)
        if absorbed is not None:
            grid.clear(target)
            events.append(MoveEvent(MoveKind.MOVE_MERGE, tile.id, start, target, tile.value, absorbed.id))
        else:
            events.append(MoveEvent(MoveKind.MOVE, tile.id, start, target, tile.value))
        grid.place(target, tile)

    for tile in grid.tiles():
        tile.merged_this_turn = False

    logger.debug("Shift %s produced %d events (%d merges)", direction.value, len(events),
                 sum(1 for event in events if event.merged))
    return MoveResult(direction, events, grid.snapshot())
