from collections import namedtuple

from game import (
    DRAW, PLAYER_O, EmptyMoveSetError, board_key, check_player, legal_moves, other_player, outcome, to_board,
)

SearchResult = namedtuple('SearchResult', ['score', 'move'])

# Bound type of a cached score
EXACT = 'exact'
LOWER = 'lower'
UPPER = 'upper'


class MinimaxCache:
    """Table storing solved positions, keyed by board configuration and player to move.

    A score produced by an alpha-beta cutoff is only a bound on the real value,
    so every entry remembers which kind it is. Lookups only reuse a bound when
    it is still decisive for the current window, which makes the cache safe to
    clear at any point without changing search results.
    """

    def __init__(self, max_size=100000):
        self.table = {}
        self.max_size = max_size
        self.hits = 0
        self.misses = 0

    def get(self, key):
        """Get the stored (score, move, flag) entry for a position."""
        entry = self.table.get(key)
        if entry is None:
            self.misses += 1
        else:
            self.hits += 1
        return entry

    def store(self, key, score, move, flag=EXACT):
        """Store the result for a position."""
        if key not in self.table and len(self.table) >= self.max_size:
            # Evict the oldest entry
            self.table.pop(next(iter(self.table)))
        self.table[key] = (score, move, flag)

    def clear(self):
        self.table.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self):
        return len(self.table)

    def __contains__(self, key):
        return key in self.table


# Shared by every MinimaxAI that is not given its own cache
DEFAULT_CACHE = MinimaxCache()


class MinimaxAI:
    def __init__(self, player=PLAYER_O, cache=None):
        self.set_player(player)
        self.cache = DEFAULT_CACHE if cache is None else cache

    def set_player(self, player):
        """Set the player marker (X or O)."""
        self.player = check_player(player)
        self.opponent = other_player(player)

    def evaluate(self, winner):
        # +1 engine win, -1 opponent win, 0 draw
        if winner == self.player:
            return 1
        if winner == DRAW:
            return 0
        return -1

    def cache_key(self, board, player_to_move):
        # Scores are relative to self.player, so it is part of the key too
        return (self.player, board_key(board) + player_to_move)

    def minimax(self, board, player_to_move, alpha=-float('inf'), beta=float('inf')):
        """Alpha-beta search returning SearchResult(score, move) from self.player's view."""
        return self._search(to_board(board), check_player(player_to_move), alpha, beta)

    def _search(self, board, player_to_move, alpha, beta):
        key = self.cache_key(board, player_to_move)
        entry = self.cache.get(key)
        if entry is not None:
            score, move, flag = entry
            if flag == EXACT or (flag == LOWER and score >= beta) or (flag == UPPER and score <= alpha):
                return SearchResult(score, move)

        winner = outcome(board)
        if winner is not None:
            score = self.evaluate(winner)
            self.cache.store(key, score, None, EXACT)
            return SearchResult(score, None)

        alpha_orig, beta_orig = alpha, beta
        maximizing = player_to_move == self.player
        next_player = other_player(player_to_move)
        best_score = -float('inf') if maximizing else float('inf')
        best_move = None

        for move in legal_moves(board):
            child = board[:move] + (player_to_move,) + board[move + 1:]
            score = self._search(child, next_player, alpha, beta).score

            # Strict comparison keeps the lowest index among equal scores
            if maximizing:
                if score > best_score:
                    best_score, best_move = score, move
                alpha = max(alpha, best_score)
            else:
                if score < best_score:
                    best_score, best_move = score, move
                beta = min(beta, best_score)

            # Alpha-Beta pruning
            if beta <= alpha:
                break

        if best_score <= alpha_orig:
            flag = UPPER
        elif best_score >= beta_orig:
            flag = LOWER
        else:
            flag = EXACT
        self.cache.store(key, best_score, best_move, flag)
        return SearchResult(best_score, best_move)

    def best_move(self, board):
        """Return the optimal move for self.player by full-window search."""
        board = to_board(board)
        if outcome(board) is not None:
            raise EmptyMoveSetError("No legal moves: the game is already decided")
        return self._search(board, self.player, -float('inf'), float('inf')).move
