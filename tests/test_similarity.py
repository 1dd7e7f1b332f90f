"""Tests for retrieval.similarity — vector helpers."""

import math

import pytest

from retrieval.similarity import (
    cosine_similarity,
    dot_product,
    euclidean_distance,
    magnitude,
    normalize,
    top_k_indices,
)


class TestCosineSimilarity:
    def test_identical_vectors(self):
        assert cosine_similarity([0.3, 0.4, 0.5], [0.3, 0.4, 0.5]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite_vectors(self):
        assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)

    def test_scale_invariant(self):
        assert cosine_similarity([1.0, 2.0], [2.0, 4.0]) == pytest.approx(1.0)

    def test_result_is_clamped(self):
        value = cosine_similarity([1e-8, 1e-8], [1e-8, 1e-8])
        assert -1.0 <= value <= 1.0

    def test_zero_vector_returns_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0

    def test_dimension_mismatch(self):
        with pytest.raises(ValueError, match="dimensions"):
            cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])

    @pytest.mark.parametrize("a,b", [
        ([], []),
        ([1.0, math.nan], [1.0, 1.0]),
        ([1.0, math.inf], [1.0, 1.0]),
        ([1.0, "2"], [1.0, 1.0]),
        ([True, 1.0], [1.0, 1.0]),
    ])
    def test_invalid_vectors(self, a, b):
        with pytest.raises(ValueError):
            cosine_similarity(a, b)


class TestVectorHelpers:
    def test_dot_product(self):
        assert dot_product([1, 2, 3], [4, 5, 6]) == 32

    def test_magnitude(self):
        assert magnitude([3.0, 4.0]) == 5.0

    def test_normalize(self):
        assert normalize([3.0, 4.0]) == pytest.approx([0.6, 0.8])
        assert magnitude(normalize([2.0, 7.0, 1.0])) == pytest.approx(1.0)

    def test_normalize_zero_vector(self):
        with pytest.raises(ValueError, match="zero vector"):
            normalize([0.0, 0.0])

    def test_euclidean_distance(self):
        assert euclidean_distance([0.0, 0.0], [3.0, 4.0]) == 5.0


class TestTopK:
    def test_best_first_with_stable_ties(self):
        assert top_k_indices([0.1, 0.9, 0.5, 0.9], 2) == [1, 3]

    def test_k_larger_than_input(self):
        assert top_k_indices([0.2, 0.1], 5) == [0, 1]

    def test_zero_k(self):
        assert top_k_indices([0.2, 0.1], 0) == []

    def test_negative_k(self):
        with pytest.raises(ValueError):
            top_k_indices([0.2], -1)
