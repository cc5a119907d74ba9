import random
from enum import IntEnum

import numpy as np

# --------- 2048 game (numpy-based) ----------

class Direction(IntEnum):
    RIGHT = 1
    UP = 2
    LEFT = 3
    DOWN = 4

RIGHT, UP, LEFT, DOWN = Direction.RIGHT, Direction.UP, Direction.LEFT, Direction.DOWN
DIRECTIONS = (RIGHT, UP, LEFT, DOWN)   # canonical order

SPAWN_FOUR_PROB = 0.1


class UndoError(RuntimeError):
    pass


class Game2048:
    def __init__(self, rows=4, columns=None, rng=None):
        self.rows = rows
        self.columns = rows if columns is None else columns
        self.rng = rng or random.Random()
        self.reset()

    @classmethod
    def from_board(cls, board, score=0, rng=None):
        """
        Builds a game around an explicit grid (0 = empty cell) instead of
        two random tiles.
        """
        board = np.array(board, dtype=int)
        if board.ndim != 2:
            raise ValueError("Board must be two-dimensional")
        game = cls.__new__(cls)
        game.rows, game.columns = board.shape
        game.rng = rng or random.Random()
        game.board = board
        game.score = score
        game.best_tile = int(board.max())
        game.previous_state = None
        game.alive = game.can_move()
        return game

    def reset(self):    # creates board of just zeroes
        self.board = np.zeros((self.rows, self.columns), dtype=int)
        self.score = 0
        self.best_tile = 0
        self.previous_state = None
        self.spawn()
        self.spawn()
        self.alive = True
        return self.board.copy()

    # --- read-only accessors ---
    def get_num_cells(self):
        return self.rows * self.columns

    def get_num_rows(self):
        return self.rows

    def get_num_columns(self):
        return self.columns

    def get_board(self):
        return self.board.copy()

    def get_score(self):
        return self.score

    def get_best_tile(self):
        return self.best_tile

    def get_max_tile(self):
        return int(self.board.max())

    def is_alive(self):
        return self.alive

    def spawn(self):
        empties = list(zip(*np.where(self.board == 0)))
        if not empties:
            raise RuntimeError("Cannot spawn a tile on a full board")
        r = self.rng.choice(empties)
        # spawn 2 (90%) or 4 (10%)
        tile = 4 if self.rng.random() < SPAWN_FOUR_PROB else 2
        self.board[r] = tile
        if tile > self.best_tile:
            self.best_tile = tile

    def can_move(self):
        if np.any(self.board == 0):
            return True
        # equal neighbours in rows, then in columns
        if np.any(self.board[:, :-1] == self.board[:, 1:]):
            return True
        return bool(np.any(self.board[:-1, :] == self.board[1:, :]))

    def _oriented(self, direction):
        # View of the board in which tiles slide toward index 0 of every row.
        # Writes through the view land in self.board.
        if direction == LEFT:
            return self.board
        if direction == RIGHT:
            return np.fliplr(self.board)
        if direction == UP:
            return self.board.T
        if direction == DOWN:
            return self.board[::-1].T
        raise ValueError("Invalid direction: %r" % (direction,))

    def _slide_line(self, line):
        # Slides one line toward index 0, returns (moved, points gained).
        moved = False
        gained = 0
        landing = 0
        for src in range(1, len(line)):
            tile = int(line[src])
            if tile == 0:
                continue
            target = int(line[landing])
            if target == 0:
                line[landing] = tile
                line[src] = 0
                moved = True
            elif target == tile:
                merged = tile * 2
                line[landing] = merged
                line[src] = 0
                landing += 1    # a merged tile can't merge again this move
                gained += merged
                if merged > self.best_tile:
                    self.best_tile = merged
                moved = True
            else:
                landing += 1
                if landing != src:
                    line[landing] = tile
                    line[src] = 0
                    moved = True
        return moved, gained

    def move(self, direction, spawn=True):
        view = self._oriented(direction)
        state = (self.board.copy(), self.score, self.best_tile, self.alive)

        moved = False
        for line in view:
            line_moved, gained = self._slide_line(line)
            moved = moved or line_moved
            self.score += gained

        if not moved:
            return False

        self.previous_state = state
        if spawn:
            self.spawn()
            self.alive = self.can_move()
        return True

    def undo(self):
        if self.previous_state is None:
            raise UndoError("Cannot undo more")
        board, self.score, self.best_tile, self.alive = self.previous_state
        self.board = board
        self.previous_state = None
