"""
Trait-grid curves of a fitted model: category probabilities, expected
scores, item and test information.

Item information for ordered categories:
    I_j(θ) = Σ_k P_jk'(θ)² / P_jk(θ)
with derivatives by central differences, which covers every family with
the same code.
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from screening_analysis.irt.estimation.data_models import FittedModel

DEFAULT_THETA_LOWER = -6.0
DEFAULT_THETA_UPPER = 6.0
DEFAULT_THETA_STEP = 0.05

# Step for numerical derivatives of category probabilities
DERIVATIVE_STEP = 1e-5


def theta_grid(
    lower: float = DEFAULT_THETA_LOWER,
    upper: float = DEFAULT_THETA_UPPER,
    step: float = DEFAULT_THETA_STEP,
) -> NDArray[np.float64]:
    """Evenly spaced trait values from lower to upper, both included."""
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")
    if upper <= lower:
        raise ValueError(f"upper ({upper}) must exceed lower ({lower})")
    n_points = int(round((upper - lower) / step)) + 1
    return np.linspace(lower, upper, n_points)


@dataclass(frozen=True)
class CurveSet:
    """
    Curves of every item on a common trait grid.

    Attributes:
        theta: Trait grid, shape (n_theta,).
        item_names: Items in model order.
        category_probabilities: Shape (n_items, n_theta, n_categories).
        expected_scores: Σ_k k P_k(θ), shape (n_items, n_theta).
        item_information: Shape (n_items, n_theta).
    """

    theta: NDArray[np.float64]
    item_names: tuple[str, ...]
    category_probabilities: NDArray[np.float64]
    expected_scores: NDArray[np.float64]
    item_information: NDArray[np.float64]

    @property
    def test_information(self) -> NDArray[np.float64]:
        result: NDArray[np.float64] = self.item_information.sum(axis=0)
        return result

    @property
    def standard_error(self) -> NDArray[np.float64]:
        """Standard error of measurement, 1 / sqrt(test information)."""
        information = self.test_information
        with np.errstate(divide="ignore"):
            result: NDArray[np.float64] = np.where(
                information > 0, 1.0 / np.sqrt(information), np.inf
            )
        return result

    @property
    def expected_total_score(self) -> NDArray[np.float64]:
        result: NDArray[np.float64] = self.expected_scores.sum(axis=0)
        return result


def compute_curves(
    model: FittedModel, theta: NDArray[np.float64] | None = None
) -> CurveSet:
    """Evaluate every item of a fitted model on a trait grid."""
    if theta is None:
        theta = theta_grid()
    theta = np.asarray(theta, dtype=np.float64)

    probabilities = []
    information = []
    for params in model.item_parameters:
        probs = params.compute_probabilities(theta)
        derivative = (
            params.compute_probabilities(theta + DERIVATIVE_STEP)
            - params.compute_probabilities(theta - DERIVATIVE_STEP)
        ) / (2.0 * DERIVATIVE_STEP)
        with np.errstate(divide="ignore", invalid="ignore"):
            terms = np.where(probs > 0, derivative**2 / probs, 0.0)
        probabilities.append(probs)
        information.append(terms.sum(axis=1))

    category_probabilities = np.stack(probabilities)
    categories = np.arange(category_probabilities.shape[-1], dtype=np.float64)

    return CurveSet(
        theta=theta,
        item_names=model.item_names,
        category_probabilities=category_probabilities,
        expected_scores=category_probabilities @ categories,
        item_information=np.stack(information),
    )
