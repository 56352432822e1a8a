from __future__ import annotations

import pytest
from rapidfuzz.distance import Levenshtein

from core.similarity import header_similarity, levenshtein_distance, levenshtein_similarity


def test_levenshtein_distance_classic_pair() -> None:
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("same", "same") == 0


def test_levenshtein_similarity_is_normalized() -> None:
    assert levenshtein_similarity("abcd", "abce") == pytest.approx(0.75)
    assert levenshtein_similarity("", "") == 0.0
    assert levenshtein_similarity("abc", "xyz") == 0.0


def test_header_similarity_exact_ignores_case_and_padding() -> None:
    assert header_similarity("  CLOSE ", "close") == 1.0


def test_header_similarity_containment_scores_point_nine() -> None:
    assert header_similarity("Close Price", "close") == pytest.approx(0.9)
    assert header_similarity("vol", "Volume") == pytest.approx(0.9)


def test_header_similarity_empty_header_scores_zero() -> None:
    assert header_similarity("", "close") == 0.0
    assert header_similarity("   ", "close") == 0.0


def test_single_letter_spelling_needs_exact_match() -> None:
    assert header_similarity("Open Price", "c") < 0.7
    assert header_similarity("High", "h") < 0.7
    assert header_similarity("C", "c") == 1.0


@pytest.mark.parametrize(("first", "second"), [("prev close", "prev. close"), ("vwap", "avg price"), ("", "ltp")])
def test_scores_match_rapidfuzz_levenshtein(first: str, second: str) -> None:
    assert levenshtein_distance(first, second) == Levenshtein.distance(first, second)
    assert levenshtein_similarity(first, second) == Levenshtein.normalized_similarity(first, second)
