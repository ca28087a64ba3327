"""Unit tests for Monte Carlo Tree Search."""
import math
import random

import pytest

from game import (
    DRAW, PLAYER_O, PLAYER_X, EmptyMoveSetError, IllegalMoveError, apply_move, empty_board, legal_moves,
    to_board,
)
from mcts_ai import MCTSAI, MCTSNode, MCTSNodePool
from minimax_ai import MinimaxAI, MinimaxCache


class TestMCTSNode:
    def test_unvisited_node_is_selected_first(self):
        node = MCTSNode(empty_board())

        assert node.uct(10, math.sqrt(2)) == float('inf')

    def test_uct_formula(self):
        node = MCTSNode(empty_board())
        node.visits = 4
        node.wins = 3.0

        expected = 0.75 + math.sqrt(2) * math.sqrt(math.log(16) / 4)
        assert node.uct(16, math.sqrt(2)) == pytest.approx(expected)

    def test_terminal_node_has_nothing_to_expand(self):
        node = MCTSNode(to_board("XXXOO____"))

        assert node.is_fully_expanded()

    def test_pool_handles(self):
        pool = MCTSNodePool()
        root = pool.get_node(empty_board(), player=PLAYER_O)
        child = pool.get_node(apply_move(empty_board(), 0, PLAYER_O), parent=root, move=0, player=PLAYER_X)

        assert (root, child) == (0, 1)
        assert len(pool) == 2
        assert pool[child].parent == root


class TestSearch:
    """Tests for the search loop and its tree."""

    def test_returns_legal_move(self, rng):
        board = to_board("X___O____")
        move = MCTSAI(PLAYER_X, rng=rng).mcts(board, 200)

        assert move in legal_moves(board)

    def test_seeded_search_is_reproducible(self):
        board = to_board("X___O____")
        first = MCTSAI(PLAYER_X, rng=random.Random(42)).mcts(board, 300)
        second = MCTSAI(PLAYER_X, rng=random.Random(42)).mcts(board, 300)

        assert first == second

    def test_visit_accounting(self, rng):
        ai = MCTSAI(PLAYER_O, rng=rng)
        pool, root = ai.search(empty_board(), 500)

        children = pool[root].children
        assert pool[root].visits == 500
        assert len(children) == 9
        assert sum(pool[c].visits for c in children) == 500
        assert sorted(pool[c].move for c in children) == list(range(9))

    def test_tree_links(self, rng):
        pool, root = MCTSAI(PLAYER_O, rng=rng).search(empty_board(), 300)

        assert pool[root].parent is None
        for handle in range(len(pool)):
            node = pool[handle]
            for child in node.children:
                assert pool[child].parent == handle
                assert pool[child].board == apply_move(node.board, pool[child].move, node.player)
            assert node.visits >= sum(pool[c].visits for c in node.children)
            assert 0 <= node.wins <= node.visits

    def test_rewards_are_from_engine_perspective(self, rng):
        ai = MCTSAI(PLAYER_O, rng=rng)
        pool = MCTSNodePool()
        root = pool.get_node(empty_board(), player=PLAYER_O)
        child = ai.expand_node(pool, root)

        ai.backpropagate(pool, child, PLAYER_O)
        ai.backpropagate(pool, child, DRAW)
        ai.backpropagate(pool, child, PLAYER_X)

        assert pool[child].visits == 3
        assert pool[child].wins == 1.5
        assert pool[root].wins == 1.5

    def test_most_visited_child_is_returned(self, rng):
        ai = MCTSAI(PLAYER_O, rng=rng)
        pool, root = ai.search(to_board("X________"), 400)
        # Rebuilding with the same seed gives the same tree
        move = MCTSAI(PLAYER_O, rng=random.Random(1234)).mcts(to_board("X________"), 400)

        visits = {pool[c].move: pool[c].visits for c in pool[root].children}
        assert visits[move] == max(visits.values())

    def test_single_legal_move(self, rng):
        board = to_board("XOXXOOO_X")

        assert MCTSAI(PLAYER_X, rng=rng).mcts(board, 5) == 7

    def test_default_iterations(self, rng):
        ai = MCTSAI(PLAYER_O, iterations=50, rng=rng)
        pool, root = ai.search(empty_board())

        assert pool[root].visits == 50

    def test_terminal_root(self, rng):
        with pytest.raises(EmptyMoveSetError):
            MCTSAI(PLAYER_O, rng=rng).mcts(to_board("XXXOO____"), 10)

    def test_needs_an_iteration(self, rng):
        with pytest.raises(ValueError):
            MCTSAI(PLAYER_O, rng=rng).mcts(empty_board(), 0)


class TestConvergence:
    def test_opening_move_never_loses(self):
        oracle = MinimaxAI(PLAYER_O, cache=MinimaxCache())

        for seed in range(20):
            ai = MCTSAI(PLAYER_O, rng=random.Random(seed))
            move = ai.mcts(empty_board(), 4000)
            child = apply_move(empty_board(), move, PLAYER_O)

            assert oracle.minimax(child, PLAYER_X).score >= 0


class TestTieBreaking:
    """Equal statistics resolve to the first child in the node's child list."""

    @staticmethod
    def _root_with_children(moves, visits, wins):
        pool = MCTSNodePool()
        root = pool.get_node(empty_board(), player=PLAYER_O)
        pool[root].untried_moves = []
        pool[root].visits = sum(visits)
        for move, v, w in zip(moves, visits, wins):
            child = pool.get_node(apply_move(empty_board(), move, PLAYER_O), parent=root, move=move,
                                  player=PLAYER_X)
            pool[child].visits = v
            pool[child].wins = w
            pool[root].children.append(child)
        return pool, root

    def test_final_move_takes_first_of_equal_visits(self, rng, monkeypatch):
        pool, root = self._root_with_children([6, 2, 4, 0], [5, 7, 7, 3], [2, 3, 5, 1])
        ai = MCTSAI(PLAYER_O, rng=rng)
        monkeypatch.setattr(ai, 'search', lambda board, iterations=None: (pool, root))

        assert ai.mcts(empty_board(), 10) == 2

    def test_final_move_when_every_child_ties(self, rng, monkeypatch):
        pool, root = self._root_with_children([8, 3, 1], [4, 4, 4], [1, 2, 3])
        ai = MCTSAI(PLAYER_O, rng=rng)
        monkeypatch.setattr(ai, 'search', lambda board, iterations=None: (pool, root))

        assert ai.mcts(empty_board(), 10) == 8

    def test_best_child_takes_first_unvisited(self, rng):
        pool, root = self._root_with_children([5, 1, 7, 3], [2, 0, 0, 0], [2, 0, 0, 0])

        assert MCTSAI(PLAYER_O, rng=rng).best_child(pool, root) == pool[root].children[1]

    def test_best_child_takes_first_of_equal_uct(self, rng):
        pool, root = self._root_with_children([5, 1, 7], [3, 3, 3], [1.5, 1.5, 1.5])
        # Handles out of creation order, so the winner is decided by list position
        pool[root].children.reverse()

        assert MCTSAI(PLAYER_O, rng=rng).best_child(pool, root) == pool[root].children[0]
        assert pool[pool[root].children[0]].move == 7


class TestPlayerValidation:
    @pytest.mark.parametrize("player", ['Z', 'x', None])
    def test_constructor_rejects_unknown_player(self, player):
        with pytest.raises(IllegalMoveError):
            MCTSAI(player)

    def test_set_player_rejects_unknown_player(self, rng):
        ai = MCTSAI(PLAYER_O, rng=rng)

        with pytest.raises(IllegalMoveError):
            ai.set_player('o')
