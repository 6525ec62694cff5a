import math

import pytest

from wordsolve.constraints import derive_constraints
from wordsolve.feedback import score_pattern
from wordsolve.scoring import entropy_for_guess, explain_guess, score_guess


def test_entropy_of_single_candidate_is_zero():
    for guess in ["apple", "roate", "zzzzz"]:
        assert entropy_for_guess(guess, ["ankle"]) == 0.0


def test_entropy_of_empty_pool_is_zero():
    assert entropy_for_guess("roate", []) == 0.0


def test_entropy_counts_pattern_buckets():
    assert entropy_for_guess("apple", ["apple", "ankle"]) == pytest.approx(1.0)
    # cigar splits these three into three different patterns
    assert entropy_for_guess("cigar", ["cigar", "rebut", "sissy"]) == pytest.approx(math.log2(3))
    # a word that sees all candidates the same way tells us nothing
    assert entropy_for_guess("whoop", ["cigar", "rebut"]) == pytest.approx(0.0)


def test_non_candidate_can_carry_information():
    candidates = ["cigar", "rebut", "sissy"]
    assert "roate" not in candidates
    assert entropy_for_guess("roate", candidates) == pytest.approx(math.log2(3))


def test_breakdown_with_no_history():
    b = score_guess("apple", ["apple", "ankle"], derive_constraints([]))
    assert b.entropy == pytest.approx(1.0)
    assert b.coverage == 0.0
    assert b.new_letter_bonus == 4
    assert b.positional == 0.0
    assert b.penalty == pytest.approx(0.4)
    assert b.score == pytest.approx(1.0 + 4 * 0.2 - 0.4)


def test_breakdown_rewards_constraint_progress():
    history = [("roate", score_pattern("roate", "raise"))]
    b = explain_guess("raise", ["raise"], history)
    assert b.entropy == 0.0
    assert b.coverage == pytest.approx(1.0)
    assert b.new_letter_bonus == 2  # i, s
    # r and e reuse their greens (0.6 each); r, a, e sit in allowed spots (0.15 each)
    assert b.positional == pytest.approx(1.65)
    assert b.penalty == 0.0
    assert b.score == pytest.approx(1.1 + 0.4 + 1.65)


def test_breakdown_penalises_excluded_and_repeated_letters():
    constraints = derive_constraints([("roate", score_pattern("roate", "raise"))])
    b = score_guess("toast", ["raise"], constraints)
    assert b.penalty == pytest.approx(1.5 * 2 + 0.4)
    assert b.coverage == pytest.approx(1 / 3)


def test_breakdown_snapshot_is_serialisable():
    b = explain_guess("crane", ["raise", "arise"], [("roate", [2, 0, 1, 0, 2])])
    d = b.to_dict()
    assert d["word"] == "crane"
    assert d["constraints"]["fixed"] == ["r", None, None, None, "e"]
    assert d["constraints"]["excluded"] == ["o", "t"]
    assert d["constraints"]["forbidden_pos"] == {"a": [2]}
