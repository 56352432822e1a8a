"""String similarity scoring for fuzzy header matching."""

from __future__ import annotations

from rapidfuzz.distance import Levenshtein

# Shorter spellings ("c", "o") only ever match exactly.
MIN_CONTAINMENT_LENGTH = 3


def levenshtein_distance(first: str, second: str) -> int:
    """Edit distance with unit insert/delete/substitute costs."""
    return Levenshtein.distance(first, second)


def levenshtein_similarity(first: str, second: str) -> float:
    """Edit distance normalized into [0, 1] by the longer string's length."""
    if not first and not second:
        return 0.0
    return Levenshtein.normalized_similarity(first, second)


def header_similarity(header: str, candidate: str) -> float:
    """
    Score how closely a raw header matches a known spelling.

    1.0 for a case-insensitive exact match, 0.9 when either contains the
    other (the contained string needs at least three characters),
    otherwise normalized edit-distance similarity.
    """
    left = str(header).strip().lower()
    right = str(candidate).strip().lower()
    if not left or not right:
        return 0.0

    if left == right:
        return 1.0
    if min(len(left), len(right)) >= MIN_CONTAINMENT_LENGTH and (left in right or right in left):
        return 0.9
    return levenshtein_similarity(left, right)
