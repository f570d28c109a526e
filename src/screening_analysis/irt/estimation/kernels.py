"""
Compiled kernels for the EM algorithm.
"""

import numpy as np
from numba import njit  # type: ignore
from numpy.typing import NDArray


@njit  # type: ignore
def expected_category_counts(
    responses: NDArray[np.int8],
    posteriors: NDArray[np.float64],
    n_categories: int,
) -> NDArray[np.float64]:
    """
    Expected number of respondents choosing each category at each node.

        r[j, q, k] = Σ_i posteriors[i, q] * I[responses[i, j] = k]

    Missing responses (negative codes) contribute nothing.

    Args:
        responses: Shape (n_respondents, n_items).
        posteriors: Shape (n_respondents, n_quadrature).
        n_categories: Number of response categories.

    Returns:
        Array of shape (n_items, n_quadrature, n_categories).
    """
    n_respondents, n_items = responses.shape
    n_quadrature = posteriors.shape[1]
    counts = np.zeros((n_items, n_quadrature, n_categories))

    for i in range(n_respondents):
        for j in range(n_items):
            r = responses[i, j]
            if r < 0:
                continue
            for q in range(n_quadrature):
                counts[j, q, r] += posteriors[i, q]

    return counts
