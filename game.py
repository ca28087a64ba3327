EMPTY = None
PLAYER_X = 'X'
PLAYER_O = 'O'
DRAW = 'Draw'
PLAYERS = (PLAYER_X, PLAYER_O)

# Rows, columns, diagonals
WIN_LINES = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),
    (0, 3, 6), (1, 4, 7), (2, 5, 8),
    (0, 4, 8), (2, 4, 6),
)

_EMPTY_MARKERS = (None, '', ' ', '.', '_')


class IllegalMoveError(ValueError):
    """Raised when a move targets a cell outside the board or an occupied cell."""


class EmptyMoveSetError(RuntimeError):
    """Raised when a search is asked to move on a board that is already decided."""


def check_player(player):
    if player not in PLAYERS:
        raise IllegalMoveError(f"Unknown player: {player!r}")
    return player


def other_player(player):
    return PLAYER_O if player == PLAYER_X else PLAYER_X


def empty_board():
    return (EMPTY,) * 9


def to_board(cells):
    """Convert a flat 9-cell sequence or a 3x3 grid into a board tuple."""
    cells = list(cells)
    # Accept the 2D [[...], [...], [...]] layout as well
    if len(cells) == 3 and all(isinstance(row, (list, tuple)) for row in cells):
        cells = [cell for row in cells for cell in row]
    if len(cells) != 9:
        raise IllegalMoveError(f"Board must have 9 cells, got {len(cells)}")

    board = []
    for cell in cells:
        if cell in _EMPTY_MARKERS:
            board.append(EMPTY)
        elif cell in PLAYERS:
            board.append(cell)
        else:
            raise IllegalMoveError(f"Unknown cell value: {cell!r}")
    return tuple(board)


def board_key(board):
    return ''.join('_' if cell is None else cell for cell in board)


def legal_moves(board):
    # Ascending order keeps tie-breaking reproducible
    return [i for i, cell in enumerate(board) if cell is None]


def count_empty(board):
    return sum(1 for cell in board if cell is None)


def outcome(board):
    """Return 'X' or 'O' for a win, 'Draw' for a full board, None while in progress."""
    for a, b, c in WIN_LINES:
        if board[a] is not None and board[a] == board[b] == board[c]:
            return board[a]
    if all(cell is not None for cell in board):
        return DRAW
    return None


def is_terminal(board):
    return outcome(board) is not None


def _check_index(index):
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < 9:
        raise IllegalMoveError(f"Cell index out of range: {index!r}")


def apply_move(board, index, player):
    """Return a new board with `player` placed on `index`."""
    _check_index(index)
    check_player(player)
    if board[index] is not None:
        raise IllegalMoveError(f"Cell {index} is already taken by {board[index]}")
    return board[:index] + (player,) + board[index + 1:]


def undo_move(board, index):
    """Return a new board with `index` cleared."""
    _check_index(index)
    if board[index] is None:
        raise IllegalMoveError(f"Cell {index} is already empty")
    return board[:index] + (EMPTY,) + board[index + 1:]


class TicTacToe:
    def __init__(self, starting_player=PLAYER_X):
        self.reset_game(starting_player)

    def reset_game(self, starting_player=PLAYER_X):
        check_player(starting_player)
        self.board = empty_board()
        self.current_player = starting_player
        self.winner = None
        self.history = []
        self.redo_stack = []

    def _snapshot(self):
        return {
            'board': self.board,
            'player': self.current_player,
            'winner': self.winner
        }

    def _restore(self, state):
        self.board = state['board']
        self.current_player = state['player']
        self.winner = state['winner']

    def make_move(self, index):
        if self.winner is not None:
            raise IllegalMoveError("Game is already over")
        # apply_move validates before any state is touched
        new_board = apply_move(self.board, index, self.current_player)

        self.history.append(self._snapshot())
        self.redo_stack = []  # Clear redo stack on new move

        self.board = new_board
        self.winner = outcome(self.board)

        # Switch players if game isn't over
        if self.winner is None:
            self.current_player = other_player(self.current_player)

    def undo(self):
        if not self.history:
            return False
        self.redo_stack.append(self._snapshot())
        self._restore(self.history.pop())
        return True

    def redo(self):
        if not self.redo_stack:
            return False
        self.history.append(self._snapshot())
        self._restore(self.redo_stack.pop())
        return True

    def get_available_moves(self):
        if self.winner is not None:
            return []
        return legal_moves(self.board)

    def is_game_over(self):
        return self.winner is not None
