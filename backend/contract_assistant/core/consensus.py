"""
Reduction of independent analysis passes into one result.
"""

import re
import statistics
from difflib import SequenceMatcher
from typing import List, Optional, Sequence

# Items at least this similar after normalisation count as the same point
SIMILARITY_THRESHOLD = 0.9


def _normalize(item: str) -> str:
    text = re.sub(r'^(?:[-*•]+|\d+[.)])\s*', '', item.strip())
    text = re.sub(r'[^\w\s]', ' ', text.lower())
    return " ".join(text.split())


def median_score(scores: Sequence[Optional[int]]) -> Optional[int]:
    valid = [s for s in scores if s is not None]
    if not valid:
        return None
    return int(round(statistics.median(valid)))


def consensus_items(lists: Sequence[Sequence[str]], limit: int) -> List[str]:
    """
    Merge the item lists of several passes.

    Items reported by a majority of passes come first, ordered by frequency
    and then by first appearance; the remaining slots take the most frequent
    of the rest. The wording of the first occurrence is kept.
    """
    keys: List[str] = []
    counts = {}
    originals = {}

    for items in lists:
        seen_in_pass = set()
        for item in items:
            normalized = _normalize(item)
            if not normalized:
                continue

            key = next(
                (k for k in keys if k == normalized
                 or SequenceMatcher(None, k, normalized).ratio() >= SIMILARITY_THRESHOLD),
                None
            )
            if key is None:
                key = normalized
                keys.append(key)
                counts[key] = 0
                originals[key] = item.strip()

            if key in seen_in_pass:
                continue
            seen_in_pass.add(key)
            counts[key] += 1

    majority = len(lists) // 2 + 1
    ranked = sorted(keys, key=lambda k: (-counts[k], keys.index(k)))
    agreed = [k for k in ranked if counts[k] >= majority]
    remaining = [k for k in ranked if counts[k] < majority]

    return [originals[k] for k in (agreed + remaining)[:limit]]


def adjust_score(median: int, heuristic: Optional[int], tolerance: int = 20, weight: float = 0.3) -> int:
    """Pull the model score towards the keyword heuristic when they disagree by more than the tolerance"""
    score = median
    if heuristic is not None and abs(median - heuristic) > tolerance:
        score = round((1 - weight) * median + weight * heuristic)
    return max(0, min(100, int(score)))


def pick_representative(passes: Sequence, target_score: int):
    """
    Return the pass whose risk score is closest to the target.

    Passes expose ``parsed.risk_score``; passes without a score rank last and
    ties go to the earliest pass.
    """
    if not passes:
        return None

    def distance(indexed):
        index, analysis_pass = indexed
        score = analysis_pass.parsed.risk_score
        return (score is None, abs(score - target_score) if score is not None else 0, index)

    return min(enumerate(passes), key=distance)[1]
