"""Difficulty presets and the entry points used by front-ends.

A front-end owns the authoritative board. After every move it calls
`evaluate_outcome` to see whether the game is over, and when it is the
engine's turn it calls `decide_move` and applies the returned cell index
itself.
"""
import random
from collections import namedtuple
from collections.abc import Mapping

from game import EmptyMoveSetError, check_player, legal_moves, outcome, to_board
from hybrid_ai import HybridAI
from minimax_ai import MinimaxAI

DifficultyPreset = namedtuple(
    'DifficultyPreset', ['name', 'simulations', 'minimax_threshold', 'random_move_probability']
)

DIFFICULTY_PRESETS = {
    'easy': DifficultyPreset('easy', simulations=200, minimax_threshold=2, random_move_probability=0.8),
    'medium': DifficultyPreset('medium', simulations=1000, minimax_threshold=5, random_move_probability=0.0),
    'hard': DifficultyPreset('hard', simulations=4000, minimax_threshold=9, random_move_probability=0.0),
}


def get_preset(name):
    try:
        return DIFFICULTY_PRESETS[name.lower()]
    except (AttributeError, KeyError):
        raise ValueError(
            f"Unknown difficulty {name!r}, expected one of {', '.join(DIFFICULTY_PRESETS)}"
        ) from None


def resolve_budget(difficulty, simulations=None, minimax_threshold=None):
    """Return (preset, simulations, minimax_threshold) for a difficulty setting.

    Named presets are ceilings: caller overrides can lower the budget but never
    raise it. An explicit mapping with `simulations` and `minimax_threshold`
    is used as given.
    """
    explicit = isinstance(difficulty, Mapping)
    if isinstance(difficulty, DifficultyPreset):
        preset = difficulty
    elif explicit:
        missing = {'simulations', 'minimax_threshold'} - set(difficulty)
        if missing:
            raise ValueError(f"Explicit difficulty is missing {', '.join(sorted(missing))}")
        preset = DifficultyPreset(
            'custom',
            simulations=difficulty['simulations'],
            minimax_threshold=difficulty['minimax_threshold'],
            random_move_probability=difficulty.get('random_move_probability', 0.0),
        )
        simulations = simulations if simulations is not None else preset.simulations
        minimax_threshold = minimax_threshold if minimax_threshold is not None else preset.minimax_threshold
    else:
        preset = get_preset(difficulty)

    if not explicit:
        simulations = preset.simulations if simulations is None else min(simulations, preset.simulations)
        minimax_threshold = (preset.minimax_threshold if minimax_threshold is None
                             else min(minimax_threshold, preset.minimax_threshold))

    if simulations < 1:
        raise ValueError(f"Simulation count must be at least 1, got {simulations}")
    return preset, simulations, max(1, minimax_threshold)


def decide_move(board, player_to_move, difficulty='medium', simulations=None, minimax_threshold=None,
                rng=None, cache=None, verbose=False):
    """Pick the engine's move for `player_to_move` on `board`."""
    check_player(player_to_move)
    board = to_board(board)
    if outcome(board) is not None:
        raise EmptyMoveSetError("No legal moves: the game is already decided")

    preset, simulations, minimax_threshold = resolve_budget(difficulty, simulations, minimax_threshold)
    rng = rng if rng is not None else random.Random()

    # Easy plays a random move most of the time
    if preset.random_move_probability > 0 and rng.random() < preset.random_move_probability:
        move = rng.choice(legal_moves(board))
        if verbose:
            print(f"Hybrid AI ({player_to_move}): random -> {move}")
        return move

    ai = HybridAI(
        player_to_move,
        simulations=simulations,
        minimax_threshold=minimax_threshold,
        minimax=MinimaxAI(player_to_move, cache=cache),
        rng=rng,
        verbose=verbose,
    )
    return ai.choose_move(board)


def evaluate_outcome(board):
    """Return 'X', 'O', 'Draw', or None while the game is still in progress."""
    return outcome(to_board(board))
