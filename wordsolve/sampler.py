from __future__ import annotations

import random
from typing import Sequence


class WordSampler:
    def __init__(self, words: Sequence[str], seed: int | None = None) -> None:
        if not words:
            raise ValueError("no words to sample from")

        self._words = tuple(words)

        # Create RNG (deterministic if seed provided)
        self._rng = random.Random(seed)
        self._seed = seed

    def set_seed(self, seed: int) -> None:
        self._rng = random.Random(seed)
        self._seed = seed

    def choice_word(self) -> str:
        return self._words[self._rng.randrange(len(self._words))]

    def batch_words(self, k: int) -> list[str]:
        if not isinstance(k, int) or k <= 0:
            raise ValueError("k must be a positive integer")
        return [self.choice_word() for _ in range(k)]

    def sample_words(self, k: int) -> list[str]:
        """Up to `k` distinct words, without replacement."""
        if not isinstance(k, int) or k <= 0:
            raise ValueError("k must be a positive integer")
        return self._rng.sample(self._words, min(k, len(self._words)))
