import random

from game import (
    PLAYER_O, EmptyMoveSetError, check_player, count_empty, legal_moves, other_player, outcome, to_board,
)
from mcts_ai import MCTSAI
from minimax_ai import MinimaxAI


def find_winning_move(board, player):
    """Find an immediate winning move if it exists."""
    for move in legal_moves(board):
        if outcome(board[:move] + (player,) + board[move + 1:]) == player:
            return move
    return None


class HybridAI:
    """Move selection combining tactical checks, exact minimax and MCTS.

    Immediate wins and forced blocks are always taken first. Positions with
    at most `minimax_threshold` empty cells are solved exactly; anything
    deeper goes to MCTS with a budget of `simulations` iterations.
    """

    def __init__(self, player=PLAYER_O, simulations=1000, minimax_threshold=5,
                 minimax=None, mcts=None, rng=None, verbose=False):
        check_player(player)
        self.rng = rng if rng is not None else random.Random()
        self.minimax_ai = minimax if minimax is not None else MinimaxAI(player)
        self.mcts_ai = mcts if mcts is not None else MCTSAI(player, iterations=simulations, rng=self.rng)
        self.simulations = simulations
        self.minimax_threshold = minimax_threshold
        self.verbose = verbose
        self.last_route = None
        self.set_player(player)

    def set_player(self, player):
        """Set the player marker (X or O)."""
        self.player = check_player(player)
        self.opponent = other_player(player)
        self.minimax_ai.set_player(player)
        self.mcts_ai.set_player(player)

    def _decide(self, route, move):
        self.last_route = route
        if self.verbose:
            print(f"Hybrid AI ({self.player}): {route} -> {move}")
        return move

    def choose_move(self, board, simulations=None, minimax_threshold=None):
        board = to_board(board)
        if outcome(board) is not None:
            raise EmptyMoveSetError("No legal moves: the game is already decided")

        simulations = simulations if simulations is not None else self.simulations
        minimax_threshold = minimax_threshold if minimax_threshold is not None else self.minimax_threshold

        # Quick check for winning moves first
        move = find_winning_move(board, self.player)
        if move is not None:
            return self._decide('win', move)

        # Quick check for blocking moves
        move = find_winning_move(board, self.opponent)
        if move is not None:
            return self._decide('block', move)

        if count_empty(board) <= minimax_threshold:
            return self._decide('minimax', self.minimax_ai.minimax(board, self.player).move)

        return self._decide('mcts', self.mcts_ai.mcts(board, simulations))

    best_move = choose_move
