"""
Keyword heuristics for contract risk.

Each category carries a weight and a list of (pattern, severity) indicators.
The weighted composite is used to sanity-check the score returned by the model.
"""

import re
from typing import Dict, List, Pattern, Tuple

from contract_assistant.schemas import CategoryScores, RiskLevel
from contract_assistant.utils.logger import logger

RISK_CATEGORIES: Dict[str, Dict] = {
    "financial": {
        "weight": 0.30,
        "indicators": [
            (r'\bunlimited liability\b', 35),
            (r'\bliquidated damages\b', 25),
            (r'\bpenalt(?:y|ies)\b', 20),
            (r'\blate (?:fee|payment|charge)s?\b', 15),
            (r'\binterest\b.{0,40}\bper (?:month|annum)\b', 10),
            (r'\b(?:price|fee|rate)s? (?:increase|escalat)', 15),
            (r'\bnon-?refundable\b', 15),
            (r'\bin advance\b', 10),
            (r'\bminimum (?:purchase|order|volume|commitment|payment)', 20),
        ],
    },
    "legal": {
        "weight": 0.30,
        "indicators": [
            (r'\bindemnif(?:y|ies|ied|ication)\b', 20),
            (r'\bsole discretion\b', 20),
            (r'\bwaive[sd]?\b.{0,40}\b(?:rights?|claims?|jury)\b', 20),
            (r'\bbinding arbitration\b', 15),
            (r'\bexclusive jurisdiction\b', 10),
            (r'\bterminat(?:e|ion)\b.{0,40}\b(?:without cause|for convenience|at any time)\b', 25),
            (r'\bautomatic(?:ally)? renew', 15),
            (r'\bunilateral(?:ly)?\b', 20),
            (r'\bnon-?compet(?:e|ition)\b', 20),
        ],
    },
    "compliance": {
        "weight": 0.20,
        "indicators": [
            (r'\b(?:personal data|data protection|GDPR|HIPAA|CCPA)\b', 20),
            (r'\bregulat(?:ory|ion|ions)\b', 15),
            (r'\bexport control', 20),
            (r'\banti-?(?:bribery|corruption)\b', 15),
            (r'\baudit\b', 10),
            (r'\bconfidential(?:ity)?\b', 10),
            (r'\bcomplian(?:ce|t)\b', 10),
        ],
    },
    "operational": {
        "weight": 0.20,
        "indicators": [
            (r'\b(?:service level|SLA|uptime)\b', 15),
            (r'\bexclusiv(?:e|ity)\b', 20),
            (r'\bdeliver(?:y|ables?|s)?\b.{0,40}\b(?:deadline|no later than|within)\b', 15),
            (r'\bmilestones?\b', 10),
            (r'\bsubcontract', 10),
            (r'\bkey personnel\b', 10),
            (r'\bforce majeure\b', 10),
        ],
    },
}

_COMPILED: Dict[str, List[Tuple[Pattern, int]]] = {
    category: [(re.compile(pattern, re.IGNORECASE), severity) for pattern, severity in settings["indicators"]]
    for category, settings in RISK_CATEGORIES.items()
}


def score_categories(text: str) -> CategoryScores:
    """Sum the severities of matched indicators per category, capped at 100"""
    scores = {}
    for category, indicators in _COMPILED.items():
        total = sum(severity for pattern, severity in indicators if pattern.search(text or ""))
        scores[category] = min(total, 100)

    logger.debug(f"Category risk scores: {scores}")
    return CategoryScores(**scores)


def compute_composite_score(category_scores: CategoryScores) -> int:
    composite = sum(
        getattr(category_scores, category) * settings["weight"]
        for category, settings in RISK_CATEGORIES.items()
    )
    return max(0, min(100, round(composite)))


def risk_level_for(score: int) -> RiskLevel:
    return RiskLevel.from_score(score)
