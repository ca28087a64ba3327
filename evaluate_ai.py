import os
import random
import time

import numpy as np

from difficulty import DIFFICULTY_PRESETS, decide_move
from game import DRAW, PLAYER_O, TicTacToe, legal_moves, other_player
from minimax_ai import MinimaxAI

REPORTS_DIR = "reports"
OPPONENTS = ["random", "perfect"]


def random_opponent(board, player, rng):
    return rng.choice(legal_moves(board))


def perfect_opponent(board, player, rng):
    return MinimaxAI(player).best_move(board)


OPPONENT_POLICIES = {
    "random": random_opponent,
    "perfect": perfect_opponent,
}


def play_game(difficulty, opponent, engine_player=PLAYER_O, engine_starts=False, rng=None):
    """Play one game and return the winner ('X', 'O' or 'Draw')."""
    rng = rng if rng is not None else random.Random()
    opponent_policy = OPPONENT_POLICIES[opponent]
    starting_player = engine_player if engine_starts else other_player(engine_player)
    game = TicTacToe(starting_player)

    while not game.is_game_over():
        if game.current_player == engine_player:
            move = decide_move(game.board, engine_player, difficulty, rng=rng)
        else:
            move = opponent_policy(game.board, game.current_player, rng)
        game.make_move(move)

    return game.winner


def run_arena(games=100, difficulties=None, opponents=None, seed=None):
    """Play every difficulty against every opponent, alternating who starts.

    Returns {difficulty: {opponent: {'wins': n, 'losses': n, 'draws': n}}}
    counted from the engine's perspective.
    """
    rng = random.Random(seed)
    difficulties = difficulties or list(DIFFICULTY_PRESETS)
    opponents = opponents or OPPONENTS
    results = {}

    for difficulty in difficulties:
        results[difficulty] = {}
        for opponent in opponents:
            tally = {'wins': 0, 'losses': 0, 'draws': 0}
            for game_index in range(games):
                winner = play_game(difficulty, opponent, engine_player=PLAYER_O,
                                   engine_starts=game_index % 2 == 0, rng=rng)
                if winner == PLAYER_O:
                    tally['wins'] += 1
                elif winner == DRAW:
                    tally['draws'] += 1
                else:
                    tally['losses'] += 1
            results[difficulty][opponent] = tally
    return results


def summarize(results):
    """Turn raw counts into win/loss/draw rates."""
    summary = {}
    for difficulty, by_opponent in results.items():
        for opponent, tally in by_opponent.items():
            counts = np.array([tally['wins'], tally['losses'], tally['draws']], dtype=float)
            rates = counts / max(counts.sum(), 1)
            summary[(difficulty, opponent)] = {
                'win_rate': rates[0],
                'loss_rate': rates[1],
                'draw_rate': rates[2],
            }
    return summary


def report_path(filename, report_type="arena"):
    """Return reports/<report_type>/<filename>, creating the directory on first use."""
    directory = os.path.join(REPORTS_DIR, report_type)
    os.makedirs(directory, exist_ok=True)
    return os.path.join(directory, filename)

def save_results(summary):
    """Save the summary as CSV."""
    try:
        import pandas as pd

        rows = [dict(difficulty=d, opponent=o, **rates) for (d, o), rates in summary.items()]
        results_path = report_path("results.csv")
        pd.DataFrame(rows).to_csv(results_path, index=False)
        print(f"Arena results saved to {results_path}")
    except Exception as e:
        print(f"Could not save arena results: {e}")


def plot_arena_results(summary):
    """Plot win/loss/draw rates per difficulty and opponent with Seaborn."""
    try:
        import matplotlib.pyplot as plt
        import pandas as pd
        import seaborn as sns

        if not summary:
            print("No arena results available.")
            return

        sns.set_theme(style="darkgrid")
        sns.set_context("notebook", font_scale=1.2)

        rows = []
        for (difficulty, opponent), rates in summary.items():
            for metric, label in (('win_rate', 'Wins'), ('loss_rate', 'Losses'), ('draw_rate', 'Draws')):
                rows.append({
                    'Matchup': f"{difficulty} vs {opponent}",
                    'Result': label,
                    'Rate': rates[metric],
                })
        df = pd.DataFrame(rows)

        plt.figure(figsize=(12, 7))
        ax = plt.gca()
        sns.barplot(x='Matchup', y='Rate', hue='Result', data=df,
                    palette={'Wins': 'green', 'Losses': 'red', 'Draws': 'blue'}, ax=ax)

        plt.title('Hybrid Engine Arena Results', fontsize=16, pad=20)
        plt.xlabel('Difficulty vs Opponent', fontsize=14)
        plt.ylabel('Rate', fontsize=14)
        plt.ylim(0, 1)
        plt.legend(title='Result', title_fontsize=13, fontsize=12,
                   frameon=True, facecolor='white', edgecolor='gray')
        plt.tight_layout()

        plot_path = report_path("arena_results.png")
        plt.savefig(plot_path, dpi=300, bbox_inches='tight')
        plt.close()
        print(f"Arena plot saved to {plot_path}")

    except Exception as e:
        print(f"Could not plot arena results: {e}")


def main():
    start_time = time.time()

    print("Running arena games...")
    results = run_arena(games=50, seed=0)
    summary = summarize(results)

    for (difficulty, opponent), rates in summary.items():
        print(f"{difficulty:>6} vs {opponent:<7} Win Rate: {rates['win_rate']:.2f}, "
              f"Loss Rate: {rates['loss_rate']:.2f}, Draw Rate: {rates['draw_rate']:.2f}")

    save_results(summary)
    plot_arena_results(summary)

    elapsed_time = time.time() - start_time
    print(f"Arena complete in {elapsed_time:.2f} seconds!")


if __name__ == "__main__":
    main()
