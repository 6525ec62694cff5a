from __future__ import annotations

import hashlib
import json
import threading
from collections import Counter
from dataclasses import dataclass
from functools import cached_property
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from wordsolve.errors import InvalidWordError
from wordsolve.feedback import WORD_LENGTH, validate_word
from wordsolve.logger import get_logger

LOGGER = get_logger(__name__)


def _clean_list(words: Iterable[str], name: str) -> Tuple[str, ...]:
    out: List[str] = []
    seen = set()
    for w in words:
        validate_word(w, name=f"{name} entry")
        if w in seen:
            raise InvalidWordError(f"duplicate word in {name}: {w!r}")
        seen.add(w)
        out.append(w)
    return tuple(out)


@dataclass(frozen=True)
class WordLists:
    """
    The two word lists the solver works from.

    answers : canonical answer set, in corpus order (candidate filtering uses it)
    allowed : every accepted guess; always a superset of `answers`
    """

    answers: Tuple[str, ...]
    allowed: Tuple[str, ...]

    @classmethod
    def build(cls, answers: Iterable[str], allowed: Iterable[str] = ()) -> "WordLists":
        ans = _clean_list(answers, "answers")
        if not ans:
            raise ValueError("no answers provided")
        alw = list(_clean_list(allowed, "allowed"))
        present = set(alw)
        # answers missing from `allowed` are appended, keeping allowed order first
        alw.extend(w for w in ans if w not in present)
        return cls(ans, tuple(alw))

    @cached_property
    def letter_frequency(self) -> Dict[str, int]:
        """Number of allowed words containing each letter (each word counted once per letter)."""
        freq: Counter = Counter()
        for w in self.allowed:
            freq.update(set(w))
        return dict(freq)


class WordCorpus:
    """
    Holder for the current `WordLists`, replaceable at runtime.

    `replace` swaps the whole pair in one assignment; callers take a
    `snapshot()` per operation and never see a mix of old and new lists.
    """

    def __init__(self, answers: Iterable[str], allowed: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self._lists = WordLists.build(answers, allowed)

    # ---------- Construction helpers ----------

    @classmethod
    def from_csv(
        cls,
        path: str,
        column: str = "word",
        *,
        answer_column: Optional[str] = "day",
    ) -> "WordCorpus":
        """
        Load a corpus from a CSV.

        Every valid row is an allowed guess. If `answer_column` exists, only rows
        with a value there are answers; otherwise every row is an answer.
        Words are lowercased; rows that are not 5 letters a-z are dropped and
        later duplicates are ignored.

        Raises
        ------
        FileNotFoundError, KeyError, ValueError
        """
        df = pd.read_csv(path)
        if column not in df.columns:
            raise KeyError(f"column '{column}' not found in {path}")

        df = df.copy()
        df["_w"] = df[column].astype(str).str.strip().str.lower()
        valid = df["_w"].str.fullmatch(f"[a-z]{{{WORD_LENGTH}}}")
        dropped = int((~valid).sum())
        df = df[valid].drop_duplicates(subset="_w", keep="first")

        if answer_column and answer_column in df.columns:
            answers = df.loc[df[answer_column].notna(), "_w"].tolist()
        else:
            answers = df["_w"].tolist()
        allowed = df["_w"].tolist()

        if not answers:
            raise ValueError(f"no valid answers after filtering {path}")
        if dropped:
            LOGGER.info("Dropped %d invalid rows from %s", dropped, path)
        LOGGER.info("Loaded %d answers / %d allowed words from %s", len(answers), len(allowed), path)
        return cls(answers, allowed)

    # ---------- Access ----------

    def snapshot(self) -> WordLists:
        return self._lists

    @property
    def answers(self) -> Tuple[str, ...]:
        return self._lists.answers

    @property
    def allowed(self) -> Tuple[str, ...]:
        return self._lists.allowed

    def __len__(self) -> int:
        return len(self._lists.answers)

    def contains(self, word: str) -> bool:
        """True iff `word` is an allowed guess in the current lists."""
        return word in self._lists.allowed

    def replace(self, answers: Iterable[str], allowed: Iterable[str]) -> WordLists:
        """
        Swap in new lists and return the value now current.

        An empty side keeps its current list, so a partial source cannot wipe
        out a good one.
        """
        answers = list(answers)
        allowed = list(allowed)
        with self._lock:
            current = self._lists
            new = WordLists.build(
                answers or current.answers,
                allowed or current.allowed,
            )
            self._lists = new
        LOGGER.info("Corpus replaced: %d answers / %d allowed", len(new.answers), len(new.allowed))
        return new


def corpus_meta(lists: WordLists) -> Dict[str, Dict[str, object]]:
    """Counts and SHA-256 digests of both lists, for clients validating a cached copy."""

    def _digest(words: Tuple[str, ...]) -> str:
        payload = json.dumps(list(words), separators=(",", ":"))
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()

    return {
        "answers": {"count": len(lists.answers), "sha256": _digest(lists.answers)},
        "allowed": {"count": len(lists.allowed), "sha256": _digest(lists.allowed)},
    }
