"""Shared fixtures: reachable positions and an independent game-value oracle."""
import random
from functools import lru_cache

import pytest

from game import DRAW, PLAYER_X, board_key, empty_board, legal_moves, other_player, outcome
from minimax_ai import MinimaxCache


@lru_cache(maxsize=None)
def _negamax(board, player_to_move):
    """Value of `board` for the player to move: +1 win, 0 draw, -1 loss."""
    winner = outcome(board)
    if winner == DRAW:
        return 0
    if winner is not None:
        return 1 if winner == player_to_move else -1
    return max(
        -_negamax(board[:m] + (player_to_move,) + board[m + 1:], other_player(player_to_move))
        for m in legal_moves(board)
    )


def solve(board, player_to_move, perspective):
    value = _negamax(board, player_to_move)
    return value if player_to_move == perspective else -value


def _reachable():
    seen = set()
    stack = [(empty_board(), PLAYER_X)]
    while stack:
        board, player = stack.pop()
        if (board, player) in seen:
            continue
        seen.add((board, player))
        if outcome(board) is not None:
            continue
        for m in legal_moves(board):
            stack.append((board[:m] + (player,) + board[m + 1:], other_player(player)))
    positions = [(b, p) for b, p in seen if outcome(b) is None]
    return sorted(positions, key=lambda bp: (board_key(bp[0]), bp[1]))


@pytest.fixture(scope="session")
def reachable_positions():
    """Every non-terminal (board, player_to_move) reachable from the empty board, X first."""
    return _reachable()


@pytest.fixture(scope="session")
def game_value():
    return solve


@pytest.fixture
def cache():
    return MinimaxCache()


@pytest.fixture
def rng():
    return random.Random(1234)
