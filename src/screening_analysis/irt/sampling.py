"""
Response sampling for IRT models.

This module samples response matrices given trait values and item
parameters. Works with every model family because each item evaluates its
own category probabilities.
"""

from collections.abc import Sequence

import numpy as np
from numpy.random import Generator
from numpy.typing import NDArray

from screening_analysis.core.constants import MISSING_VALUE
from screening_analysis.core.data_models import ResponseMatrix
from screening_analysis.irt.estimation.parameters import ItemParameters


def sample_responses(
    abilities: NDArray[np.float64],
    item_parameters: Sequence[ItemParameters],
    rng: Generator,
    missing_rate: float = 0.0,
) -> ResponseMatrix:
    """
    Sample responses for all respondents and items.

    Uses vectorized probability computation and inverse-CDF sampling.

    Args:
        abilities: Array of shape (n_respondents,) with trait values.
        item_parameters: Parameters of each item; all items must have the
            same number of categories.
        rng: Random number generator.
        missing_rate: Probability that a cell is independently set to
            MISSING_VALUE.

    Returns:
        ResponseMatrix of shape (n_respondents, n_items).
    """
    if not 0.0 <= missing_rate < 1.0:
        raise ValueError(f"missing_rate must be in [0, 1), got {missing_rate}")

    n_categories = item_parameters[0].n_categories
    if any(p.n_categories != n_categories for p in item_parameters):
        raise ValueError("All items must have the same number of categories")

    abilities = np.asarray(abilities, dtype=np.float64)
    n_respondents = len(abilities)
    responses = np.empty((n_respondents, len(item_parameters)), dtype=np.int8)

    for j, params in enumerate(item_parameters):
        probs = params.compute_probabilities(abilities)

        # Find the category where cumulative probability exceeds u
        cumprobs = np.cumsum(probs, axis=1)
        u = rng.random(n_respondents)
        sampled = np.minimum(
            (cumprobs < u[:, np.newaxis]).sum(axis=1), n_categories - 1
        )
        responses[:, j] = sampled.astype(np.int8)

    if missing_rate > 0.0:
        responses[rng.random(responses.shape) < missing_rate] = MISSING_VALUE

    return ResponseMatrix(
        responses=responses,
        n_categories=n_categories,
        item_names=tuple(p.item_name for p in item_parameters),
    )
