import unittest
import numpy as np
from unittest.mock import patch
from statemachine.exceptions import TransitionNotAllowed
from merge2048.game import Game2048, GameConfig, GameStatus, TurnMachine
from merge2048.grid import Position
from merge2048.shift import Direction, MoveEvent, MoveKind
from merge2048.spawn import SpawnPolicy, SpawnResult
from merge2048.tile import TileType, TileTypeTable, UnknownValue
from test_spawn import ScriptedRandom


class TestGame2048(unittest.TestCase):

    def setUp(self):
        self.game = Game2048(rng=ScriptedRandom(cells=[(0, 0), (1, 0), (3, 3)]))

    def test_initial_board(self):
        self.assertEqual(self.game.status, GameStatus.WAITING_INPUT)
        self.assertEqual(self.game.get_move_count(), 0)
        self.assertEqual(np.count_nonzero(self.game.get_state()), 2)

    def test_merge_scenario(self):
        result = self.game.apply_move('left')
        self.assertEqual(result.events, [
            MoveEvent(MoveKind.MOVE_MERGE, 2, Position(1, 0), Position(0, 0), 4, destroyed_id=1),
        ])
        expected = np.zeros((4, 4), dtype=int)
        expected[0, 0] = 4
        np.testing.assert_array_equal(result.snapshot, expected)
        self.assertEqual(self.game.get_status(), GameStatus.APPLYING_MOVE)
        self.assertEqual(self.game.move_count, 1)

        self.assertEqual(self.game.settle(), GameStatus.WAITING_INPUT)
        self.assertEqual(self.game.grid.occupant((3, 3)).value, 2)
        self.assertEqual(len(self.game.grid.tiles()), 2)

    def test_input_ignored_while_applying(self):
        self.game.apply_move(Direction.RIGHT)
        self.assertIsNone(self.game.apply_move(Direction.LEFT))
        self.assertEqual(self.game.move_count, 1)
        self.assertEqual(self.game.status, GameStatus.APPLYING_MOVE)

    def test_settle_outside_move_is_noop(self):
        tiles = len(self.game.grid.tiles())
        self.assertEqual(self.game.settle(), GameStatus.WAITING_INPUT)
        self.assertEqual(len(self.game.grid.tiles()), tiles)

    def test_invalid_direction(self):
        with self.assertRaises(ValueError):
            self.game.apply_move('sideways')

    def test_valid_moves(self):
        before = self.game.get_state()
        valid = self.game.get_valid_moves()
        self.assertEqual(valid, [Direction.UP, Direction.LEFT, Direction.RIGHT])
        np.testing.assert_array_equal(self.game.get_valid_action_mask(), [True, False, True, True])
        np.testing.assert_array_equal(self.game.get_state(), before)
        self.assertEqual(self.game.grid.occupant((1, 0)).id, 2)

    def test_win(self):
        game = Game2048(rng=ScriptedRandom(cells=[(0, 0), (3, 3)]))
        game.spawn_at((0, 1), 1024)
        game.spawn_at((1, 1), 1024)
        game.apply_move('left')
        with self.assertLogs('merge2048.game', level='INFO'):
            status = game.settle()
        self.assertEqual(status, GameStatus.WON)
        self.assertTrue(game.is_game_over())

        self.assertIsNone(game.apply_move('right'))
        self.assertEqual(game.settle(), GameStatus.WON)
        self.assertEqual(game.move_count, 1)

    def test_lose(self):
        config = GameConfig(width=2, height=2)
        rng = ScriptedRandom(cells=[(0, 0), (1, 0), (0, 0), (1, 0)], draws=[0.0, 0.9, 0.0])
        game = Game2048(config, rng=rng)
        self.assertEqual(game.grid.occupant((1, 0)).value, 1)

        game.step('up')
        # Two free cells before spawning: play goes on
        self.assertEqual(game.status, GameStatus.WAITING_INPUT)
        self.assertEqual(len(game.grid.free_cells()), 1)

        # A move that changes nothing still counts and still spawns
        result = game.step('left')
        self.assertFalse(result.moved)
        self.assertEqual(game.move_count, 2)
        self.assertEqual(game.status, GameStatus.LOST)
        self.assertEqual(game.grid.free_cells(), [])

    @patch.object(SpawnPolicy, 'choose')
    def test_lose_on_single_free_cell(self, mock_choose):
        mock_choose.return_value = SpawnResult([], 1)
        game = Game2048()
        self.assertEqual(game.status, GameStatus.LOST)
        self.assertEqual(mock_choose.call_args[0][1], 2)

    @patch.object(SpawnPolicy, 'choose')
    def test_spawn_count_after_first_move(self, mock_choose):
        mock_choose.return_value = SpawnResult([], 16)
        game = Game2048()
        game.step('down')
        counts = [call[0][1] for call in mock_choose.call_args_list]
        self.assertEqual(counts, [2, 1])

    def test_unknown_merge_value(self):
        table = TileTypeTable.from_types([TileType(1, ''), TileType(2, '')])
        game = Game2048(rng=ScriptedRandom(cells=[(0, 0), (1, 0)]), tile_types=table)
        with self.assertRaises(UnknownValue):
            game.apply_move('left')

    def test_spawn_at(self):
        with self.assertRaises(UnknownValue):
            self.game.spawn_at((2, 2), 3)
        with self.assertRaises(ValueError):
            self.game.spawn_at((0, 0), 2)
        tile = self.game.spawn_at((2, 2), 8)
        self.assertEqual(tile.position, (2, 2))
        self.assertEqual(tile.id, 3)

    def test_deferred_start(self):
        game = Game2048(auto_start=False)
        self.assertEqual(game.status, GameStatus.INITIALIZING)
        self.assertIsNone(game.apply_move('up'))
        self.assertEqual(game.start(), GameStatus.WAITING_INPUT)
        with self.assertRaises(RuntimeError):
            game.start()

    def test_reset(self):
        self.game.step('left')
        self.assertEqual(self.game.reset(), GameStatus.WAITING_INPUT)
        self.assertEqual(self.game.move_count, 0)
        self.assertEqual(len(self.game.grid.tiles()), 2)
        self.assertEqual(sorted(tile.id for tile in self.game.grid.tiles()), [1, 2])


class TestGameConfig(unittest.TestCase):

    def test_defaults(self):
        config = GameConfig()
        self.assertEqual((config.width, config.height), (4, 4))
        self.assertEqual((config.initial_spawn_count, config.spawn_count), (2, 1))
        policy = config.spawn_policy()
        self.assertEqual((policy.first_value, policy.second_value), (2, 1))

    def test_validation(self):
        with self.assertRaises(ValueError):
            GameConfig(width=0)
        with self.assertRaises(ValueError):
            GameConfig(spawn_rate_first_value=1.5)
        with self.assertRaises(ValueError):
            GameConfig(spawn_second_value=3)

    def test_overrides(self):
        config = GameConfig().with_overrides(spawn_second_value=4, width=5)
        self.assertEqual(config.spawn_second_value, 4)
        self.assertEqual(config.width, 5)
        self.assertEqual(config.height, 4)


class TestTurnMachine(unittest.TestCase):

    def test_illegal_transition(self):
        machine = TurnMachine()
        with self.assertRaises(TransitionNotAllowed):
            machine.send('move')

    def test_turn_cycle(self):
        machine = TurnMachine()
        for event in ['begin', 'spawned', 'move', 'settle', 'lose']:
            machine.send(event)
        self.assertEqual(machine.current_state.value, GameStatus.LOST.value)


if __name__ == "__main__":
    unittest.main()
