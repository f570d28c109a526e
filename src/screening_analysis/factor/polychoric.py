"""
Two-step polychoric correlations (tetrachoric for binary items).

Step 1: thresholds of each item from its marginal cumulative proportions.
Step 2: for each item pair, the correlation of the underlying bivariate
normal that maximizes the likelihood of the observed contingency table,
holding the thresholds fixed.

Pairs use pairwise-complete observations. The assembled matrix is repaired
to the nearest positive-definite correlation matrix.
"""

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from scipy import stats
from scipy.optimize import minimize_scalar

from screening_analysis.core.data_models import ResponseMatrix
from screening_analysis.core.utils import nearest_correlation_matrix

logger = logging.getLogger(__name__)

# Stand-in for infinite thresholds on the standard normal scale
THRESHOLD_LIMIT = 8.0
CORRELATION_BOUND = 0.999
MIN_PAIR_OBSERVATIONS = 3
CELL_PROBABILITY_FLOOR = 1e-15
CDF_TOLERANCE = 1e-8


@dataclass(frozen=True)
class PolychoricResult:
    """
    Attributes:
        correlations: Repaired correlation matrix, shape (n_items, n_items).
        thresholds: Per-item thresholds τ_1..τ_K, shape (n_items, K).
            τ_c = Φ⁻¹(P(X < c)), clipped to ±THRESHOLD_LIMIT.
        item_names: Items in matrix order.
        n_respondents: Respondents with at least one valid response.
    """

    correlations: NDArray[np.float64]
    thresholds: NDArray[np.float64]
    item_names: tuple[str, ...]
    n_respondents: int


def marginal_thresholds(
    responses: NDArray[np.integer], n_categories: int
) -> NDArray[np.float64]:
    """
    Thresholds of one item from its valid responses.

    Returns:
        Shape (n_categories - 1,); empty categories give tied thresholds.
    """
    valid = responses[responses >= 0].astype(np.int64)
    if len(valid) == 0:
        raise ValueError("Cannot compute thresholds without valid responses")
    counts = np.bincount(valid, minlength=n_categories)
    below = np.cumsum(counts)[:-1] / len(valid)
    result: NDArray[np.float64] = np.clip(
        stats.norm.ppf(below), -THRESHOLD_LIMIT, THRESHOLD_LIMIT
    )
    return result


def _bounded(thresholds: NDArray[np.float64]) -> NDArray[np.float64]:
    return np.concatenate([[-THRESHOLD_LIMIT], thresholds, [THRESHOLD_LIMIT]])


def _cell_probabilities(
    rho: float,
    bounds_x: NDArray[np.float64],
    bounds_y: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Bivariate-normal probabilities of every cell of the table."""
    grid_x, grid_y = np.meshgrid(bounds_x, bounds_y, indexing="ij")
    corners = np.column_stack([grid_x.ravel(), grid_y.ravel()])
    cdf = stats.multivariate_normal(
        mean=np.zeros(2),
        cov=np.array([[1.0, rho], [rho, 1.0]]),
        abseps=CDF_TOLERANCE,
    ).cdf(corners)
    cdf = np.asarray(cdf, dtype=np.float64).reshape(grid_x.shape)
    # Inclusion-exclusion over the rectangle corners
    cells = cdf[1:, 1:] - cdf[:-1, 1:] - cdf[1:, :-1] + cdf[:-1, :-1]
    result: NDArray[np.float64] = np.maximum(cells, CELL_PROBABILITY_FLOOR)
    return result


def polychoric_pair(
    x: NDArray[np.integer],
    y: NDArray[np.integer],
    thresholds_x: NDArray[np.float64],
    thresholds_y: NDArray[np.float64],
) -> float:
    """
    Maximum-likelihood correlation of two ordinal variables.

    Args:
        x, y: Valid category codes of the same respondents.
        thresholds_x, thresholds_y: Fixed marginal thresholds.
    """
    n_x = len(thresholds_x) + 1
    n_y = len(thresholds_y) + 1
    table = np.zeros((n_x, n_y), dtype=np.float64)
    np.add.at(table, (x.astype(np.int64), y.astype(np.int64)), 1.0)

    bounds_x = _bounded(thresholds_x)
    bounds_y = _bounded(thresholds_y)

    def neg_log_likelihood(rho: float) -> float:
        cells = _cell_probabilities(rho, bounds_x, bounds_y)
        return -float(np.sum(table * np.log(cells)))

    result = minimize_scalar(
        neg_log_likelihood,
        bounds=(-CORRELATION_BOUND, CORRELATION_BOUND),
        method="bounded",
        options={"xatol": 1e-6},
    )
    return float(result.x)


def polychoric_matrix(matrix: ResponseMatrix) -> PolychoricResult:
    """
    Polychoric correlation matrix of all items.

    Pairs with fewer than MIN_PAIR_OBSERVATIONS joint responses, or where
    one item is constant, get a correlation of 0 and a warning.
    """
    matrix = matrix.drop_empty_rows()
    n_items = matrix.n_items
    responses = matrix.responses
    thresholds = np.stack(
        [
            marginal_thresholds(responses[:, j], matrix.n_categories)
            for j in range(n_items)
        ]
    )

    correlations = np.eye(n_items)
    for i in range(n_items):
        for j in range(i + 1, n_items):
            both = (responses[:, i] >= 0) & (responses[:, j] >= 0)
            x = responses[both, i]
            y = responses[both, j]
            if (
                both.sum() < MIN_PAIR_OBSERVATIONS
                or len(np.unique(x)) < 2
                or len(np.unique(y)) < 2
            ):
                logger.warning(
                    f"Polychoric correlation undefined for "
                    f"({matrix.item_names[i]}, {matrix.item_names[j]}); using 0"
                )
                continue
            rho = polychoric_pair(x, y, thresholds[i], thresholds[j])
            correlations[i, j] = correlations[j, i] = rho

    repaired = nearest_correlation_matrix(correlations)
    if not np.allclose(repaired, correlations):
        logger.warning("Polychoric matrix repaired to positive definite")

    logger.info(
        f"Polychoric matrix of {n_items} items from "
        f"{matrix.n_respondents} respondents"
    )
    return PolychoricResult(
        correlations=repaired,
        thresholds=thresholds,
        item_names=matrix.item_names,
        n_respondents=matrix.n_respondents,
    )
