from .tile import Tile, TileType, TileTypeTable, UnknownValue
from .grid import Grid, OutOfBounds, Position
from .shift import WIN_VALUE, Direction, MoveEvent, MoveKind, MoveResult, shift
from .spawn import SpawnPolicy, SpawnResult
from .game import Game2048, GameConfig, GameStatus, TurnMachine

__all__ = [
    "Tile", "TileType", "TileTypeTable", "UnknownValue",
    "Grid", "OutOfBounds", "Position",
    "WIN_VALUE", "Direction", "MoveEvent", "MoveKind", "MoveResult", "shift",
    "SpawnPolicy", "SpawnResult",
    "Game2048", "GameConfig", "GameStatus", "TurnMachine",
]
