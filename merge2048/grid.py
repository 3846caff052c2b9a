from typing import Iterator, List, NamedTuple, Optional

import numpy as np

from .tile import Tile


class OutOfBounds(IndexError):
    """Raised when a position lies outside the grid."""


class Position(NamedTuple):
    x: int
    y: int

    def offset(self, dx: int, dy: int) -> "Position":
        return Position(self.x + dx, self.y + dy)


class Grid:
    """
    Fixed W x H board of optional tile occupancy.

    Cells are addressed by Position(x, y): x is the column, y the row.
    Every stored tile's `position` matches the cell holding it; only
    `place` writes that field.
    """

    def __init__(self, width: int = 4, height: int = 4):
        if width < 1 or height < 1:
            raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")
        self._width = width
        self._height = height
        self._cells: List[List[Optional[Tile]]] = [[None] * width for _ in range(height)]

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos[0] < self._width and 0 <= pos[1] < self._height

    def _check(self, pos) -> Position:
        if not self.in_bounds(pos):
            raise OutOfBounds(f"Position {tuple(pos)} outside {self._width}x{self._height} grid")
        return Position(*pos)

    def occupant(self, pos) -> Optional[Tile]:
        x, y = self._check(pos)
        return self._cells[y][x]

    def place(self, pos, tile: Tile) -> None:
        """Put `tile` at `pos`, replacing any reference already stored there."""
        pos = self._check(pos)
        self._cells[pos.y][pos.x] = tile
        tile.position = pos

    def clear(self, pos) -> None:
        """Remove the occupant of `pos` without touching the tile itself."""
        x, y = self._check(pos)
        self._cells[y][x] = None

    def free_cells(self) -> List[Position]:
        return [Position(x, y)
                for y in range(self._height)
                for x in range(self._width)
                if self._cells[y][x] is None]

    def tiles(self) -> List[Tile]:
        return [tile for tile in self if tile is not None]

    def __iter__(self) -> Iterator[Optional[Tile]]:
        for row in self._cells:
            yield from row

    def copy(self) -> "Grid":
        """Deep copy; tiles are duplicated so the copy can be shifted freely."""
        other = Grid(self._width, self._height)
        for tile in self.tiles():
            other.place(tile.position, Tile(tile.id, tile.value, merged_this_turn=tile.merged_this_turn))
        return other

    def snapshot(self) -> np.ndarray:
        """Tile values as an (H, W) int array indexed [y, x]; 0 marks a free cell."""
        board = np.zeros((self._height, self._width), dtype=int)
        for tile in self.tiles():
            board[tile.position.y, tile.position.x] = tile.value
        return board

    def max_value(self) -> int:
        return max((tile.value for tile in self.tiles()), default=0)

    def __str__(self):
        # Top row first so that 'up' reads upwards
        lines = []
        for y in reversed(range(self._height)):
            row = self._cells[y]
            row_str = "|".join(f"{t.value:4}" if t is not None else "    " for t in row)
            lines.append(f"|{row_str}|")
        return "\n".join(lines)
