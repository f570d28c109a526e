import numpy as np

from screening_analysis.core.utils import (
    get_rng,
    logistic,
    nearest_correlation_matrix,
)


def test_rng_reproducibility() -> None:
    rng1 = get_rng(42)
    rng2 = get_rng(42)
    assert rng1.random() == rng2.random()


class TestLogistic:
    def test_midpoint(self) -> None:
        np.testing.assert_allclose(logistic(np.array([0.0])), [0.5])

    def test_symmetry(self) -> None:
        x = np.linspace(-5, 5, 11)
        np.testing.assert_allclose(logistic(x) + logistic(-x), 1.0)

    def test_extreme_values_are_finite(self) -> None:
        """Large magnitudes should not overflow."""
        result = logistic(np.array([-1e6, 1e6]))
        assert np.all(np.isfinite(result))
        assert result[0] < 1e-12
        assert result[1] > 1 - 1e-12


class TestNearestCorrelationMatrix:
    def test_positive_definite_matrix_unchanged(self) -> None:
        matrix = np.array([[1.0, 0.5], [0.5, 1.0]])
        np.testing.assert_allclose(nearest_correlation_matrix(matrix), matrix)

    def test_repairs_indefinite_matrix(self) -> None:
        """An impossible correlation pattern becomes positive definite."""
        matrix = np.array(
            [
                [1.0, 0.9, -0.9],
                [0.9, 1.0, 0.9],
                [-0.9, 0.9, 1.0],
            ]
        )
        assert np.linalg.eigvalsh(matrix).min() < 0

        repaired = nearest_correlation_matrix(matrix)

        assert np.linalg.eigvalsh(repaired).min() > 0
        np.testing.assert_allclose(np.diag(repaired), 1.0)
        np.testing.assert_allclose(repaired, repaired.T)
