"""
starting_word/eval.py

Compare opening words.

rank_first_guesses: one-shot split quality of each guess over the answers
  (expected remaining, entropy, worst case, partitions).
evaluate_openers: full self-play games per opener over a target sample
  (solve rate, mean / median / p90 guesses).

Usage:
  python -m starting_word.eval --csv word_list.csv --first roate raise slate --episodes 200
"""

from __future__ import annotations

import argparse
import time
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from wordsolve.data_utils import load_corpus
from wordsolve.env import MAX_TURNS, solve
from wordsolve.feedback import validate_word
from wordsolve.logger import configure_logging, get_logger
from wordsolve.sampler import WordSampler
from wordsolve.scoring import pattern_histogram
from wordsolve.vocab import WordCorpus

LOGGER = get_logger(__name__)


def rank_first_guesses(answers: Sequence[str], guesses: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """
    Score each guess against the full answer set.

    Sorted best first: exp_remaining asc, worst_case asc, entropy desc.
    """
    if not answers:
        raise ValueError("answers must be non-empty")
    pool = guesses if guesses is not None else answers
    n = len(answers)

    rows = []
    for g in pool:
        validate_word(g, name="guess")
        counts = np.fromiter(pattern_histogram(g, answers).values(), dtype=float)
        p = counts / n
        rows.append(
            {
                "guess": g,
                "exp_remaining": float((counts * counts).sum() / n),
                "entropy": float(-(p * np.log2(p)).sum()),
                "worst_case": int(counts.max()),
                "partitions": int(counts.size),
            }
        )
    df = pd.DataFrame(rows, columns=["guess", "exp_remaining", "entropy", "worst_case", "partitions"])
    return df.sort_values(
        ["exp_remaining", "worst_case", "entropy"],
        ascending=[True, True, False],
        kind="mergesort",
    ).reset_index(drop=True)


def evaluate_openers(
    corpus: WordCorpus,
    openers: Sequence[str],
    *,
    targets: Optional[Sequence[str]] = None,
    episodes: int = 200,
    seed: int = 0,
    max_turns: int = MAX_TURNS,
) -> pd.DataFrame:
    """
    Play every opener against the same targets.

    Without `targets`, `episodes` distinct answers are sampled with `seed`.
    Guess counts for failed games are recorded as max_turns + 1.
    """
    if targets is None:
        targets = WordSampler(corpus.answers, seed=seed).sample_words(episodes)
    if not targets:
        raise ValueError("no targets to play")

    rows = []
    for opener in openers:
        validate_word(opener, name="opener")
        t0 = time.perf_counter()
        steps = np.empty(len(targets), dtype=int)
        for i, target in enumerate(targets):
            summary = solve(corpus, target, opener=opener, max_turns=max_turns)
            steps[i] = len(summary.steps) if summary.success else max_turns + 1
        solved = steps <= max_turns
        rows.append(
            {
                "opener": opener,
                "games": len(targets),
                "solve_rate": float(solved.mean()),
                "mean_steps": float(steps[solved].mean()) if solved.any() else float("nan"),
                "median_steps": float(np.median(steps)),
                "p90_steps": float(np.percentile(steps, 90)),
                "seconds": time.perf_counter() - t0,
            }
        )
        LOGGER.info("%s: solve rate %.3f over %d games", opener, rows[-1]["solve_rate"], len(targets))

    df = pd.DataFrame(rows)
    return df.sort_values(["solve_rate", "mean_steps"], ascending=[False, True], kind="mergesort").reset_index(drop=True)


def main(argv: Optional[List[str]] = None) -> None:
    ap = argparse.ArgumentParser(description="Compare opening words by full-game self-play")
    ap.add_argument("--csv", default="word_list.csv", help="Path to word_list.csv (or a word list directory)")
    ap.add_argument("--first", nargs="+", default=["roate", "raise", "slate", "crane"], help="Openers to compare")
    ap.add_argument("--episodes", type=int, default=200)
    ap.add_argument("--seed", type=int, default=0)
    ap.add_argument("--out", default="starting_word_results.csv")
    args = ap.parse_args(argv)

    configure_logging()
    corpus = load_corpus(args.csv)
    df = evaluate_openers(corpus, args.first, episodes=args.episodes, seed=args.seed)
    print(df.to_string(index=False))
    df.to_csv(args.out, index=False)
    print(f"Wrote results to {args.out}")


if __name__ == "__main__":
    main()
