"""
selector.py

Picks the next guess.

With candidates left, a bounded pool (candidates plus exploratory allowed words
that still fit the constraints) is scored and the best word wins, except that a
candidate within `CANDIDATE_BIAS` of a non-candidate winner is preferred. With
no candidates left (the target is outside the tracked answers) a letter-coverage
heuristic over the allowed list takes over.
"""

from __future__ import annotations

from typing import Collection, Iterable, List, Optional, Sequence

from wordsolve.constraints import Constraints, HistoryItem, derive_constraints, fits_constraints
from wordsolve.errors import CorpusExhausted
from wordsolve.logger import get_logger
from wordsolve.scoring import ScoreBreakdown, score_guess
from wordsolve.vocab import WordLists

LOGGER = get_logger(__name__)

CANDIDATE_POOL_LIMIT = 120
EXPLORATORY_POOL_LIMIT = 120
CANDIDATE_BIAS = 0.35
DEFAULT_GUESS = "raise"

SEEN_LETTER_WEIGHT = 0.25
REPEAT_GUESS_PENALTY = 1000


def build_pool(candidates: Sequence[str], lists: WordLists, constraints: Constraints) -> List[str]:
    """Candidates (corpus order, capped) followed by untried allowed words that fit, deduplicated."""
    pool = list(candidates[:CANDIDATE_POOL_LIMIT])
    if len(candidates) > 2:
        in_pool = set(pool)
        added = 0
        for w in lists.allowed:
            if added >= EXPLORATORY_POOL_LIMIT:
                break
            if w in constraints.prev_guesses or not fits_constraints(w, constraints):
                continue
            added += 1
            if w not in in_pool:
                in_pool.add(w)
                pool.append(w)
    return pool


def rank_pool(
    pool: Iterable[str],
    candidates: Sequence[str],
    constraints: Constraints,
    exclude: Collection[str] = (),
) -> List[ScoreBreakdown]:
    """Score every pool word not in `exclude`, best first (ties keep pool order)."""
    scored = [score_guess(w, candidates, constraints) for w in pool if w not in exclude]
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored


def _select_from_candidates(candidates: Sequence[str], lists: WordLists, constraints: Constraints) -> str:
    if not candidates:
        raise CorpusExhausted("no tracked answer fits the history")
    if len(candidates) == 1:
        return candidates[0]

    scored = rank_pool(build_pool(candidates, lists, constraints), candidates, constraints)
    best = scored[0]
    candidate_set = set(candidates)
    if best.word not in candidate_set:
        best_candidate = next((s for s in scored if s.word in candidate_set), None)
        if best_candidate is not None and best.score - best_candidate.score < CANDIDATE_BIAS:
            return best_candidate.word
    return best.word


def exploration_score(word: str, constraints: Constraints, lists: WordLists) -> float:
    """Sum of corpus letter frequencies over distinct letters; letters already tried count a quarter."""
    freq = lists.letter_frequency
    score = 0.0
    for ch in set(word):
        bonus = SEEN_LETTER_WEIGHT if ch in constraints.seen_letters else 1.0
        score += freq.get(ch, 0) * bonus
    if word in constraints.prev_guesses:
        score -= REPEAT_GUESS_PENALTY
    return score


def fallback_guess(constraints: Constraints, lists: WordLists) -> str:
    """Best exploratory word from the allowed list when no candidate is left."""
    pool = [w for w in lists.allowed if w not in constraints.prev_guesses and fits_constraints(w, constraints)]
    if not pool:
        # relax to the excluded-letter filter only
        pool = [
            w
            for w in lists.allowed
            if w not in constraints.prev_guesses and not any(ch in constraints.excluded for ch in w)
        ]
    if not pool:
        return DEFAULT_GUESS
    return max(pool, key=lambda w: exploration_score(w, constraints, lists))


def pick_next_guess(
    candidates: Sequence[str],
    history: Sequence[HistoryItem],
    lists: WordLists,
    constraints: Optional[Constraints] = None,
) -> str:
    """
    Choose the next word to play.

    Parameters
    ----------
    candidates : remaining answers, in corpus order
    history : guesses so far (GuessResult or (guess, pattern) pairs)
    lists : corpus snapshot supplying the allowed words
    constraints : pre-derived constraints for `history`, if the caller has them
    """
    if len(candidates) == 1:
        return candidates[0]
    if constraints is None:
        constraints = derive_constraints(history)
    try:
        return _select_from_candidates(candidates, lists, constraints)
    except CorpusExhausted:
        LOGGER.debug("No candidates left after %d guesses; exploring allowed words", len(history))
        return fallback_guess(constraints, lists)
