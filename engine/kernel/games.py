"""
AppSchmiede Kernel — Demo Games

Tiny view-local state machines behind the game-dice, game-tictactoe and
game-snake components. Their state is never persisted into props.
Randomness comes from an injectable random.Random.
"""

from __future__ import annotations

import random

# ---------------------------------------------------------------------------
# Dice
# ---------------------------------------------------------------------------

DICE_HISTORY = 5


class Dice:
    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()
        self.history: list[int] = []

    def roll(self) -> int:
        value = self.rng.randint(1, 6)
        self.history = [*self.history[-(DICE_HISTORY - 1) :], value]
        return value


# ---------------------------------------------------------------------------
# Tic-tac-toe
# ---------------------------------------------------------------------------

WIN_LINES: tuple[tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class TicTacToe:
    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.board: list[str | None] = [None] * 9
        self.player = "X"

    @property
    def result(self) -> str | None:
        """'X', 'O', 'draw' or None while the game is open."""
        for a, b, c in WIN_LINES:
            if self.board[a] and self.board[a] == self.board[b] == self.board[c]:
                return self.board[a]
        if all(self.board):
            return "draw"
        return None

    def play(self, index: int) -> bool:
        """Place the current player's mark. Taken cells and finished games ignore the move."""
        if not 0 <= index < 9 or self.board[index] or self.result:
            return False
        self.board[index] = self.player
        self.player = "O" if self.player == "X" else "X"
        return True

    @property
    def status(self) -> str:
        result = self.result
        if result == "draw":
            return "Unentschieden"
        if result:
            return f"{result} hat gewonnen"
        return f"Zug: {self.player}"


# ---------------------------------------------------------------------------
# Snake
# ---------------------------------------------------------------------------

SNAKE_TICK_MS = 500
SNAKE_DURATION_MS = 15_000


class Snake:
    """Score grows by 1-3 per tick; a round stops itself after 15 s of ticks."""

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()
        self.score = 0
        self.playing = False
        self.elapsed_ms = 0

    def start(self) -> None:
        if self.playing:
            return
        self.score = 0
        self.elapsed_ms = 0
        self.playing = True

    def tick(self) -> int:
        if not self.playing:
            return self.score
        self.score += self.rng.randint(1, 3)
        self.elapsed_ms += SNAKE_TICK_MS
        if self.elapsed_ms >= SNAKE_DURATION_MS:
            self.playing = False
        return self.score
