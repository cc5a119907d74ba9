import numpy as np

from Game2048 import SPAWN_FOUR_PROB

# --- Board features for the one-ply player ---
# Every feature takes a Game2048 and reads game.board (0 = empty cell).


def monotonicity(game):
    """
    Linear monotonicity with max-combination: the smaller of the two
    disagreement sums per axis, negated. 0.0 for a board whose values only
    grow toward one side along each axis, more negative otherwise.
    """
    board = game.board
    h_diff = board[:, 1:] - board[:, :-1]   # right tile - left tile
    v_diff = board[1:, :] - board[:-1, :]   # bottom tile - top tile

    right_increase = -float(h_diff[h_diff > 0].sum())
    left_increase = float(h_diff[h_diff < 0].sum())
    bottom_increase = -float(v_diff[v_diff > 0].sum())
    top_increase = float(v_diff[v_diff < 0].sum())

    return max(left_increase, right_increase) + max(top_increase, bottom_increase)


def smoothness(game):
    # sum of differences between adjacent tiles
    board = game.board
    horizontal = np.abs(board[:, 1:] - board[:, :-1]).sum()
    vertical = np.abs(board[1:, :] - board[:-1, :]).sum()
    return float(horizontal + vertical)


def num_free_cells(game):
    # squared, so it weighs more as the board fills up
    empty = int(np.sum(game.board == 0))
    return float(empty * empty)


def max_tile(game):
    return float(game.best_tile)


def _can_slide(pairs_a, pairs_b):
    gap = (pairs_a == 0) != (pairs_b == 0)
    merge = (pairs_a != 0) & (pairs_a == pairs_b)
    return bool(np.any(gap | merge))


def freedom_degree(game):
    """1.0 if the board can still slide along both axes, else 0.0."""
    board = game.board
    horizontal = _can_slide(board[:, :-1], board[:, 1:])
    vertical = _can_slide(board[:-1, :], board[1:, :])
    return 1.0 if horizontal and vertical else 0.0


FEATURES = (
    ("monotonicity", monotonicity),
    ("smoothness", smoothness),
    ("num_free_cells", num_free_cells),
    ("max_tile", max_tile),
    ("freedom_degree", freedom_degree),
)
FEATURE_NAMES = tuple(name for name, _ in FEATURES)
N_FEATURES = len(FEATURES)

# Found with the cross-entropy method on the first four features.
DEFAULT_WEIGHTS = (-10.72, -23.29, 71.35, -4.22, 0.0)


def extract_features(game):
    # returns the fixed, ordered feature vector of a game state
    return np.array([feature(game) for _, feature in FEATURES], dtype=float)


def check_weights(weights):
    if len(weights) != N_FEATURES:
        raise ValueError("Expected %d weights, got %d" % (N_FEATURES, len(weights)))


def evaluate(game, weights):
    check_weights(weights)
    return float(np.dot(weights, extract_features(game)))


def expected_evaluate(game, weights):
    """
    Evaluation averaged over every tile the game could spawn next: each empty
    cell with a 2 (probability 0.9) and a 4 (probability 0.1). The board is
    left as it was found.
    """
    check_weights(weights)
    board = game.board
    empties = list(zip(*np.where(board == 0)))
    if not empties:
        raise ValueError("Expectation over spawns needs at least one empty cell")

    total = 0.0
    for cell in empties:
        for tile, prob in ((2, 1.0 - SPAWN_FOUR_PROB), (4, SPAWN_FOUR_PROB)):
            board[cell] = tile
            try:
                total += prob * float(np.dot(weights, extract_features(game)))
            finally:
                board[cell] = 0
    return total / len(empties)


def describe(game, weights):
    values = extract_features(game)
    report = dict(zip(FEATURE_NAMES, values.tolist()))
    report["evaluation"] = evaluate(game, weights)
    return report
