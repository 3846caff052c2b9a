from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

# High-contrast ANSI colors, one per reachable tile value
COLORS = {
    1: '\033[37m',    # grey
    2: '\033[97m',    # white
    4: '\033[90m',    # bright black
    8: '\033[36m',    # cyan
    16: '\033[31m',   # red
    32: '\033[32m',   # green
    64: '\033[33m',   # yellow
    128: '\033[35m',  # magenta
    256: '\033[34m',  # blue
    512: '\033[91m',  # bright red
    1024: '\033[92m', # bright green
    2048: '\033[95m', # bright magenta
}


class UnknownValue(KeyError):
    """Raised when a tile value has no registered TileType."""


@dataclass(eq=False)
class Tile:
    """
    A single numbered tile.

    Tiles compare by identity; `id` is a stable handle the presentation layer
    can use to track a tile across moves. `position` is owned by the Grid.
    """
    id: int
    value: int
    position: Optional[Tuple[int, int]] = None
    merged_this_turn: bool = False

    def can_merge(self, value: int, win_value: int) -> bool:
        if self.value >= win_value:
            return False
        return self.value == value

    def __repr__(self):
        return f"Tile(id={self.id}, value={self.value}, position={self.position})"


@dataclass(frozen=True)
class TileType:
    value: int
    color: str


@dataclass
class TileTypeTable:
    """Lookup from tile value to display metadata."""
    types: Dict[int, TileType] = field(default_factory=dict)

    @classmethod
    def default(cls) -> "TileTypeTable":
        return cls.from_types(TileType(value, color) for value, color in COLORS.items())

    @classmethod
    def from_types(cls, types: Iterable[TileType]) -> "TileTypeTable":
        table = cls()
        for tile_type in types:
            table.register(tile_type)
        return table

    def register(self, tile_type: TileType) -> None:
        self.types[tile_type.value] = tile_type

    def lookup(self, value: int) -> TileType:
        try:
            return self.types[value]
        except KeyError:
            raise UnknownValue(f"No tile type registered for value {value}") from None

    def __contains__(self, value: int) -> bool:
        return value in self.types
