import logging
import random
from dataclasses import dataclass
from typing import List, Tuple

from .grid import Grid, Position

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpawnResult:
    placements: List[Tuple[Position, int]]
    free_before: int


@dataclass(frozen=True)
class SpawnPolicy:
    """
    Picks where new tiles appear and what they are worth.

    Cells are drawn uniformly without replacement from the grid's free
    cells; each value is `first_value` with probability `rate_first_value`,
    else `second_value`. The policy only chooses; the caller places tiles.
    """
    rate_first_value: float = 0.7
    first_value: int = 2
    second_value: int = 1

    def choose_value(self, rng: random.Random) -> int:
        return self.first_value if rng.random() <= self.rate_first_value else self.second_value

    def choose(self, grid: Grid, count: int, rng: random.Random) -> SpawnResult:
        free = grid.free_cells()
        cells = rng.sample(free, min(count, len(free)))
        placements = [(cell, self.choose_value(rng)) for cell in cells]
        logger.debug("Spawn %d of %d requested (%d free cells)", len(placements), count, len(free))
        return SpawnResult(placements, len(free))
