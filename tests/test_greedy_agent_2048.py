import random
import threading

import pytest

from Game2048 import DIRECTIONS, DOWN, RIGHT, Game2048
from features_2048 import DEFAULT_WEIGHTS, FEATURE_NAMES, N_FEATURES
from greedy_agent_2048 import Cancelled, GreedyPlayer, play_game, play_games

FREE_CELLS = FEATURE_NAMES.index("num_free_cells")


def free_cells_weights(value):
    weights = [0.0] * N_FEATURES
    weights[FREE_CELLS] = value
    return weights


def two_tiles_game():
    return Game2048.from_board([
        [2, 2, 0, 0],
        [0, 0, 0, 0],
        [0, 0, 0, 0],
        [0, 0, 0, 0],
    ])


def test_default_weights():
    player = GreedyPlayer()
    assert player.get_weights() == list(DEFAULT_WEIGHTS)


def test_ties_keep_first_direction():
    # right and left both merge the two tiles
    player = GreedyPlayer(free_cells_weights(1.0))
    assert player.get_action(two_tiles_game()) == RIGHT


def test_picks_best_evaluation():
    # down is the only move that merges nothing
    player = GreedyPlayer(free_cells_weights(-1.0))
    assert player.get_action(two_tiles_game()) == DOWN


def test_get_action_leaves_game_unchanged():
    game = Game2048(rng=random.Random(9))
    board = game.get_board().tolist()
    for expectation in (False, True):
        player = GreedyPlayer(expectation=expectation)
        assert player.get_action(game) in DIRECTIONS
        assert game.get_board().tolist() == board
        assert game.get_score() == 0


def test_no_legal_move():
    game = Game2048.from_board([[2, 4], [4, 2]])
    with pytest.raises(RuntimeError):
        GreedyPlayer().get_action(game)


def test_set_weights():
    player = GreedyPlayer()
    player.set_weights([1.0] * N_FEATURES)
    weights = player.get_weights()
    weights[0] = 99.0
    assert player.get_weights() == [1.0] * N_FEATURES
    with pytest.raises(ValueError):
        player.set_weights([1.0] * (N_FEATURES - 1))
    with pytest.raises(ValueError):
        GreedyPlayer([1.0, 2.0])


def test_play_game_is_reproducible():
    player = GreedyPlayer()
    first = play_game(player, seed=123, rows=3, columns=3)
    assert play_game(player, seed=123, rows=3, columns=3) == first
    score, best_tile, moves = first
    assert score >= 0
    assert best_tile >= 2
    assert moves > 0


def test_play_games_mean():
    player = GreedyPlayer(expectation=True)
    mean = play_games(player, 3, rng=random.Random(5), rows=3, columns=3)
    assert mean == play_games(player, 3, rng=random.Random(5), rows=3, columns=3)
    assert mean >= 0.0


def test_play_games_cancelled():
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(Cancelled):
        play_games(GreedyPlayer(), 2, rows=3, columns=3, cancel=cancel)
