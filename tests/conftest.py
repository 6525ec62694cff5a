import pytest

from wordsolve.vocab import WordCorpus

SMALL_ANSWERS = [
    "cigar", "rebut", "sissy", "humph", "awake", "blush", "focal", "evade",
    "naval", "serve", "heath", "dwarf", "model", "karma", "stink", "grade",
    "quiet", "bench", "abate", "feign", "major", "death", "fresh", "crust",
    "stool", "colon", "abase", "marry", "react", "batty", "pride", "floss",
    "helix", "croak", "staff", "paper", "unfed", "whelp", "trawl", "outdo",
    "raise", "apple", "ample", "ankle", "total", "stoal",
]
EXTRA_ALLOWED = ["roate", "soare", "slate", "crane", "lymph", "mound", "boxes"]


@pytest.fixture
def corpus():
    return WordCorpus(SMALL_ANSWERS, EXTRA_ALLOWED)


@pytest.fixture
def tiny_corpus():
    return WordCorpus(["cigar", "rebut", "sissy"], ["roate", "cigar", "rebut", "sissy"])
