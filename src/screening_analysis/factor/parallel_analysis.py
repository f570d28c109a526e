"""
Horn's parallel analysis for the number of factors.

Eigenvalues of the observed item correlation matrix are compared with a
percentile of eigenvalues from uncorrelated normal data of the same shape.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from screening_analysis.core.data_models import ResponseMatrix
from screening_analysis.core.utils import get_rng

logger = logging.getLogger(__name__)

DEFAULT_N_ITERATIONS = 100
DEFAULT_PERCENTILE = 95.0


@dataclass(frozen=True)
class ParallelAnalysisResult:
    """
    Attributes:
        observed_eigenvalues: Descending eigenvalues of the item
            correlation matrix.
        random_eigenvalues: Percentile of random-data eigenvalues, by rank.
        n_iterations: Number of random data sets.
        percentile: Percentile used for the comparison.
        seed: Seed of the random generator, recorded for reproducibility.
    """

    observed_eigenvalues: NDArray[np.float64]
    random_eigenvalues: NDArray[np.float64]
    n_iterations: int
    percentile: float
    seed: int | None

    @property
    def n_factors(self) -> int:
        """Leading observed eigenvalues that exceed their random counterpart."""
        exceeds = self.observed_eigenvalues > self.random_eigenvalues
        if exceeds.all():
            return len(exceeds)
        return int(np.argmin(exceeds))


def _descending_eigenvalues(
    correlations: NDArray[np.float64],
) -> NDArray[np.float64]:
    result: NDArray[np.float64] = np.sort(np.linalg.eigvalsh(correlations))[::-1]
    return result


def parallel_analysis(
    matrix: ResponseMatrix,
    n_iterations: int = DEFAULT_N_ITERATIONS,
    percentile: float = DEFAULT_PERCENTILE,
    seed: int | None = None,
) -> ParallelAnalysisResult:
    """
    Run parallel analysis on pairwise-complete Pearson correlations.

    Args:
        matrix: Recoded responses.
        n_iterations: Number of random normal data sets.
        percentile: Percentile of the random eigenvalues, in (0, 100).
        seed: Seed for the random generator.
    """
    if n_iterations < 1:
        raise ValueError(f"n_iterations must be >= 1, got {n_iterations}")
    if not 0.0 < percentile < 100.0:
        raise ValueError(f"percentile must be in (0, 100), got {percentile}")

    matrix = matrix.drop_empty_rows()
    observed = (
        pd.DataFrame(matrix.to_float_array(), columns=list(matrix.item_names))
        .corr()
        .fillna(0.0)
        .to_numpy(copy=True)
    )
    np.fill_diagonal(observed, 1.0)
    observed_eigenvalues = _descending_eigenvalues(observed)

    rng = get_rng(seed)
    shape = (matrix.n_respondents, matrix.n_items)
    random_eigenvalues = np.empty((n_iterations, matrix.n_items))
    for iteration in range(n_iterations):
        sample = rng.standard_normal(shape)
        random_eigenvalues[iteration] = _descending_eigenvalues(
            np.corrcoef(sample, rowvar=False)
        )

    result = ParallelAnalysisResult(
        observed_eigenvalues=observed_eigenvalues,
        random_eigenvalues=np.percentile(random_eigenvalues, percentile, axis=0),
        n_iterations=n_iterations,
        percentile=percentile,
        seed=seed,
    )
    logger.info(
        f"Parallel analysis suggests {result.n_factors} factor(s) "
        f"(seed={seed}, {n_iterations} iterations)"
    )
    return result
