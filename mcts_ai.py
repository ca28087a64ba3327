import math
import random

from game import (
    DRAW, PLAYER_O, EmptyMoveSetError, check_player, legal_moves, other_player, outcome, to_board,
)


class MCTSNode:
    """Node in the Monte Carlo search tree representing a game state."""

    def __init__(self, board, parent=None, move=None, player=None):
        self.board = board  # Game state at this node
        self.parent = parent  # Handle of the parent node in the pool
        self.move = move  # Move that led to this state
        self.player = player  # Player to move at this node
        self.children = []  # Handles of child nodes
        self.wins = 0  # Reward collected from the engine player's perspective
        self.visits = 0  # Number of simulations that passed through this node

        # Terminal positions have nothing to expand
        self.untried_moves = [] if outcome(board) is not None else legal_moves(board)

    def is_fully_expanded(self):
        """Check if all possible moves have been expanded."""
        return len(self.untried_moves) == 0

    def uct(self, parent_visits, exploration_weight):
        if self.visits == 0:
            return float('inf')
        exploit = self.wins / self.visits
        explore = exploration_weight * math.sqrt(math.log(parent_visits) / self.visits)
        return exploit + explore


class MCTSNodePool:
    """Flat storage for the nodes of one search tree.

    Nodes refer to each other through integer handles into `nodes`, so the
    tree holds no reference cycles and is dropped as a whole with the pool.
    """

    def __init__(self):
        self.nodes = []

    def get_node(self, board, parent=None, move=None, player=None):
        """Create a node and return its handle."""
        self.nodes.append(MCTSNode(board, parent=parent, move=move, player=player))
        return len(self.nodes) - 1

    def __getitem__(self, handle):
        return self.nodes[handle]

    def __len__(self):
        return len(self.nodes)


class MCTSAI:
    """Monte Carlo Tree Search with UCT selection and random playouts."""

    def __init__(self, player=PLAYER_O, iterations=1000, exploration_weight=math.sqrt(2), rng=None):
        self.player = check_player(player)
        self.iterations = iterations
        self.exploration_weight = exploration_weight
        self.rng = rng if rng is not None else random.Random()

    def set_player(self, player):
        """Set the player marker (X or O)."""
        self.player = check_player(player)

    def search(self, board, iterations=None):
        """Build a fresh tree for `board` and return (pool, root_handle)."""
        iterations = iterations if iterations is not None else self.iterations
        if iterations < 1:
            raise ValueError(f"MCTS needs at least one iteration, got {iterations}")

        board = to_board(board)
        if outcome(board) is not None:
            raise EmptyMoveSetError("No legal moves: the game is already decided")

        pool = MCTSNodePool()
        root = pool.get_node(board, player=self.player)

        for _ in range(iterations):
            handle = self.select_node(pool, root)

            if not pool[handle].is_fully_expanded():
                handle = self.expand_node(pool, handle)

            node = pool[handle]
            result = outcome(node.board)
            if result is None:
                result = self.simulate(node.board, node.player)

            self.backpropagate(pool, handle, result)

        return pool, root

    def mcts(self, board, iterations=None):
        """Return the move of the most visited root child after `iterations` simulations."""
        pool, root = self.search(board, iterations)

        best_child = None
        for child in pool[root].children:
            # Strict comparison keeps the first child among equal visit counts
            if best_child is None or pool[child].visits > pool[best_child].visits:
                best_child = child
        return pool[best_child].move

    best_move = mcts

    def best_child(self, pool, handle):
        """Select the child with the highest UCT score."""
        node = pool[handle]
        best_value = -float('inf')
        best_child = None
        for child in node.children:
            value = pool[child].uct(node.visits, self.exploration_weight)
            if best_child is None or value > best_value:
                best_value = value
                best_child = child
        return best_child

    def select_node(self, pool, handle):
        """Descend through fully expanded nodes using UCT."""
        while pool[handle].is_fully_expanded() and pool[handle].children:
            handle = self.best_child(pool, handle)
        return handle

    def expand_node(self, pool, handle):
        """Add a child node for one random untried move."""
        node = pool[handle]
        move = node.untried_moves.pop(self.rng.randrange(len(node.untried_moves)))
        new_board = node.board[:move] + (node.player,) + node.board[move + 1:]

        child = pool.get_node(new_board, parent=handle, move=move, player=other_player(node.player))
        node.children.append(child)
        return child

    def simulate(self, board, player):
        """Play uniformly random moves until the game ends and return the outcome."""
        current_player = player
        while True:
            result = outcome(board)
            if result is not None:
                return result
            move = self.rng.choice(legal_moves(board))
            board = board[:move] + (current_player,) + board[move + 1:]
            current_player = other_player(current_player)

    def backpropagate(self, pool, handle, result):
        """Update statistics on the path back to the root."""
        if result == self.player:
            reward = 1.0
        elif result == DRAW:
            reward = 0.5
        else:
            reward = 0.0

        while handle is not None:
            node = pool[handle]
            node.visits += 1
            node.wins += reward
            handle = node.parent
