"""
Core utility functions shared across analysis modules.
"""

import numpy as np
from numpy.random import Generator
from numpy.typing import NDArray


def get_rng(seed: int | None = None) -> Generator:
    """
    Create a numpy random Generator with optional seed.

    Args:
        seed: Random seed for reproducibility. If None, uses entropy.

    Returns:
        A numpy random Generator instance.
    """
    return np.random.default_rng(seed)


def logistic(x: NDArray[np.floating]) -> NDArray[np.float64]:
    """Numerically stable logistic function."""
    x = np.clip(x, -30.0, 30.0)
    result: NDArray[np.float64] = 1.0 / (1.0 + np.exp(-x))
    return result


def nearest_correlation_matrix(
    matrix: NDArray[np.float64], min_eigenvalue: float = 1e-6
) -> NDArray[np.float64]:
    """
    Repair a symmetric matrix into a positive-definite correlation matrix.

    Negative eigenvalues are clipped to `min_eigenvalue` and the result is
    rescaled to a unit diagonal.
    """
    sym = (matrix + matrix.T) / 2.0
    eigenvalues, eigenvectors = np.linalg.eigh(sym)
    if eigenvalues.min() >= min_eigenvalue:
        return sym

    clipped = np.maximum(eigenvalues, min_eigenvalue)
    repaired = eigenvectors @ np.diag(clipped) @ eigenvectors.T
    scale = np.sqrt(np.diag(repaired))
    result: NDArray[np.float64] = repaired / np.outer(scale, scale)
    np.fill_diagonal(result, 1.0)
    return result
