from contract_assistant.core.risk_scorer import (
    RISK_CATEGORIES, compute_composite_score, risk_level_for, score_categories
)
from contract_assistant.schemas import CategoryScores, RiskLevel


def test_category_weights_sum_to_one():
    assert abs(sum(c["weight"] for c in RISK_CATEGORIES.values()) - 1.0) < 1e-9


def test_score_categories(sample_contract):
    scores = score_categories(sample_contract)

    # indemnify, terminate for convenience, automatic renewal
    assert scores.legal == 60
    # late payments
    assert scores.financial == 15
    # data protection, regulations
    assert scores.compliance == 35
    # delivery no later than, milestones
    assert scores.operational == 25


def test_indicator_counted_once_and_capped():
    text = "penalty penalty penalty " + " ".join([
        "unlimited liability", "liquidated damages", "late fee", "non-refundable",
        "price increase", "in advance", "minimum purchase"
    ])
    scores = score_categories(text)
    assert scores.financial == 100


def test_clean_text_scores_zero():
    scores = score_categories("The parties agree to meet for coffee.")
    assert scores == CategoryScores()
    assert compute_composite_score(scores) == 0


def test_composite_score_is_weighted():
    scores = CategoryScores(financial=50, legal=100, compliance=0, operational=25)
    # 15 + 30 + 0 + 5
    assert compute_composite_score(scores) == 50


def test_risk_level_thresholds():
    assert risk_level_for(0) == RiskLevel.LOW
    assert risk_level_for(29) == RiskLevel.LOW
    assert risk_level_for(30) == RiskLevel.MODERATE
    assert risk_level_for(59) == RiskLevel.MODERATE
    assert risk_level_for(60) == RiskLevel.HIGH
