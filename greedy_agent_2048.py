import random

import numpy as np

from Game2048 import Game2048, DIRECTIONS
from features_2048 import DEFAULT_WEIGHTS, check_weights, evaluate, expected_evaluate


class Cancelled(Exception):
    """Raised when a cancellation event is set between two games."""


class GreedyPlayer:
    """
    One-ply player: tries every direction without spawning, scores the
    result with a weighted sum of features and keeps the best direction.
    With expectation=True the score is averaged over all possible spawns.
    """

    def __init__(self, weights=DEFAULT_WEIGHTS, expectation=False):
        self.expectation = expectation
        self.set_weights(weights)

    def get_weights(self):
        return list(self.weights)

    def set_weights(self, weights):
        check_weights(weights)
        self.weights = np.array(weights, dtype=float)

    def _evaluate(self, game):
        if self.expectation:
            return expected_evaluate(game, self.weights)
        return evaluate(game, self.weights)

    def get_action(self, game):
        best_value = -np.inf
        best_action = None
        for direction in DIRECTIONS:
            if not game.move(direction, spawn=False):
                continue
            try:
                value = self._evaluate(game)
            finally:
                game.undo()
            # strict comparison: first direction wins ties
            if value > best_value:
                best_value = value
                best_action = direction

        if best_action is None:
            raise RuntimeError("No legal move left")
        return best_action


def play_game(player, seed=None, rows=4, columns=4):
    # Plays a new game to the end, returns the score, best tile and number of moves.
    game = Game2048(rows=rows, columns=columns, rng=random.Random(seed))
    moves = 0
    while game.is_alive():
        game.move(player.get_action(game))
        moves += 1
    return game.get_score(), game.get_best_tile(), moves


def play_games(player, num_games, rng=None, rows=4, columns=4, cancel=None):
    """Mean score of `num_games` independent games."""
    rng = rng or random.Random()
    scores = []
    for _ in range(num_games):
        if cancel is not None and cancel.is_set():
            raise Cancelled()
        score, _, _ = play_game(player, seed=rng.randrange(1, 2**31),
                                rows=rows, columns=columns)
        scores.append(score)
    return float(np.mean(scores))
