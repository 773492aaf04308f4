"""Tests for cosine similarity, embedding decoding and vector ranking."""

from __future__ import annotations

import json
import math

import pytest  # type: ignore

from matchflow.errors import DimensionMismatch
from matchflow.rank.similarity import cosine_similarity, parse_vector, rank_by_vector

from conftest import make_candidate


def test_self_similarity_is_one() -> None:
    """A non-zero vector is perfectly similar to itself."""
    for vector in ([1.0, 0.0], [0.3, -2.5, 7.0], [1e-3] * 16):
        assert math.isclose(cosine_similarity(vector, vector), 1.0, rel_tol=1e-9)


def test_zero_vector_scores_zero() -> None:
    assert cosine_similarity([0.0, 0.0, 0.0], [1.0, 2.0, 3.0]) == 0.0
    assert cosine_similarity([1.0, 2.0, 3.0], [0.0, 0.0, 0.0]) == 0.0


def test_similarity_is_symmetric() -> None:
    a = [0.2, 0.9, -0.4]
    b = [0.5, -0.1, 0.8]
    assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))


def test_orthogonal_and_opposite_vectors() -> None:
    assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)
    assert cosine_similarity([1, 0], [-1, 0]) == pytest.approx(-1.0)


def test_length_mismatch_raises() -> None:
    with pytest.raises(DimensionMismatch) as info:
        cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])
    assert isinstance(info.value, ValueError)
    assert (info.value.left, info.value.right) == (2, 3)


def test_parse_vector_accepts_lists_and_json() -> None:
    assert parse_vector([1, 2]) == [1.0, 2.0]
    assert parse_vector(json.dumps([0.5, 0.25])) == [0.5, 0.25]
    assert parse_vector(b"[1, 0]") == [1.0, 0.0]


def test_parse_vector_absent_values() -> None:
    assert parse_vector(None) is None
    assert parse_vector("   ") is None


@pytest.mark.parametrize("raw", ["not json", '{"a": 1}', '["x", "y"]', 42])
def test_parse_vector_rejects_garbage(raw: object) -> None:
    with pytest.raises(ValueError):
        parse_vector(raw)


def test_rank_by_vector_orders_and_filters() -> None:
    """Best first; unreadable scores 0; missing and mismatched are left out."""
    good = make_candidate("good", [1.0, 0.0])
    fair = make_candidate("fair", [1.0, 1.0])
    broken = make_candidate("broken", "{oops")
    empty = make_candidate("empty", None)
    wrong_size = make_candidate("wrong", [1.0, 0.0, 0.0])

    ranked = rank_by_vector([1.0, 0.0], [broken, fair, empty, good, wrong_size], lambda c: c.embedding)

    assert [c.id for c, _ in ranked] == ["good", "fair", "broken"]
    assert ranked[0][1] == pytest.approx(1.0)
    assert ranked[1][1] == pytest.approx(1 / math.sqrt(2))
    assert ranked[2][1] == 0.0
