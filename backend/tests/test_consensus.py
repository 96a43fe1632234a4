from types import SimpleNamespace

from contract_assistant.core.consensus import (
    adjust_score, consensus_items, median_score, pick_representative
)


def _pass(score):
    return SimpleNamespace(parsed=SimpleNamespace(risk_score=score))


def test_median_score():
    assert median_score([40, 70, 55]) == 55
    assert median_score([40, None, 60]) == 50
    assert median_score([None, None]) is None
    assert median_score([]) is None


def test_consensus_prefers_majority_items():
    lists = [
        ["Late fees apply", "Automatic renewal", "Unique to pass one"],
        ["Automatic renewal.", "late fees apply", "Unique to pass two"],
        ["Automatic Renewal", "Something else entirely"],
    ]
    result = consensus_items(lists, limit=3)

    assert result[0] == "Automatic renewal"
    assert result[1] == "Late fees apply"
    assert result[2] == "Unique to pass one"


def test_consensus_counts_item_once_per_pass():
    lists = [["Indemnity", "- Indemnity"], ["Termination"], ["Termination"]]
    assert consensus_items(lists, limit=1) == ["Termination"]


def test_consensus_merges_near_duplicates():
    lists = [["Payment due within 30 days"], ["Payment is due within 30 days"]]
    assert consensus_items(lists, limit=5) == ["Payment due within 30 days"]


def test_consensus_handles_empty_lists():
    assert consensus_items([[], []], limit=5) == []


def test_adjust_score():
    assert adjust_score(60, 50, tolerance=20, weight=0.3) == 60
    assert adjust_score(90, 20, tolerance=20, weight=0.3) == 69
    assert adjust_score(10, 80, tolerance=20, weight=0.3) == 31
    assert adjust_score(70, None) == 70


def test_pick_representative():
    passes = [_pass(40), _pass(None), _pass(66), _pass(64)]
    assert pick_representative(passes, 65) is passes[2]
    assert pick_representative([_pass(None), _pass(None)], 50) is not None
    assert pick_representative([], 50) is None
