"""
Tests for response sampling.
"""

import numpy as np
import pytest

from screening_analysis.core.constants import MISSING_VALUE
from screening_analysis.core.utils import get_rng
from screening_analysis.irt.estimation.parameters import ItemParameters
from screening_analysis.irt.sampling import sample_responses


class TestSampleResponses:
    def test_shape_and_range(self) -> None:
        items = [
            ItemParameters.graded("A", 1.0, [-1.0, 0.0, 1.0]),
            ItemParameters.graded("B", 2.0, [0.0, 0.5, 1.0]),
        ]
        abilities = get_rng(0).standard_normal(500)

        matrix = sample_responses(abilities, items, get_rng(1))

        assert matrix.responses.shape == (500, 2)
        assert matrix.n_categories == 4
        assert matrix.item_names == ("A", "B")
        assert matrix.responses.min() >= 0
        assert matrix.responses.max() <= 3

    def test_reproducible_with_seed(self) -> None:
        items = [ItemParameters.dichotomous("A", 1.0, 0.0)]
        abilities = np.zeros(100)

        first = sample_responses(abilities, items, get_rng(7))
        second = sample_responses(abilities, items, get_rng(7))

        np.testing.assert_array_equal(first.responses, second.responses)

    def test_endorsement_rate_matches_probability(self) -> None:
        """At θ = b the endorsement rate is close to one half."""
        items = [ItemParameters.dichotomous("A", 1.5, 0.4)]
        abilities = np.full(20000, 0.4)

        matrix = sample_responses(abilities, items, get_rng(2))

        assert abs(matrix.responses.mean() - 0.5) < 0.02

    def test_missing_rate(self) -> None:
        items = [ItemParameters.dichotomous("A", 1.0, 0.0)]
        matrix = sample_responses(
            np.zeros(10000), items, get_rng(3), missing_rate=0.2
        )

        rate = (matrix.responses == MISSING_VALUE).mean()
        assert abs(rate - 0.2) < 0.02

    def test_mixed_category_counts_rejected(self) -> None:
        items = [
            ItemParameters.dichotomous("A", 1.0, 0.0),
            ItemParameters.graded("B", 1.0, [0.0, 1.0]),
        ]
        with pytest.raises(ValueError, match="same number"):
            sample_responses(np.zeros(3), items, get_rng(0))
