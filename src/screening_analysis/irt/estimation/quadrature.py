"""
Gauss-Hermite quadrature for latent trait integration.

Marginal likelihoods integrate the trait over N(mean, std^2); the nodes
double as the grid on which posteriors are evaluated during EM.
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from screening_analysis.irt.estimation.config import QuadratureConfig


@dataclass(frozen=True)
class GaussHermiteQuadrature:
    """
    Quadrature nodes and normalized weights.

    Attributes:
        points: Trait values, shape (n_points,).
        weights: Prior probabilities of each node, sum to 1.
    """

    points: NDArray[np.float64]
    weights: NDArray[np.float64]

    @property
    def n_points(self) -> int:
        return len(self.points)

    @property
    def log_weights(self) -> NDArray[np.float64]:
        result: NDArray[np.float64] = np.log(self.weights + 1e-300)
        return result


def get_quadrature(config: QuadratureConfig) -> GaussHermiteQuadrature:
    """
    Build nodes and weights for N(config.mean, config.std^2).

    numpy's hermgauss integrates against exp(-x^2); substituting
    x = z / sqrt(2) turns that into the standard normal density, so nodes are
    scaled by sqrt(2) and weights by 1/sqrt(pi) before shifting to the
    requested mean and scale.
    """
    if config.n_points < 2:
        raise ValueError(f"n_points must be >= 2, got {config.n_points}")
    if config.std <= 0:
        raise ValueError(f"std must be positive, got {config.std}")

    nodes, raw_weights = np.polynomial.hermite.hermgauss(config.n_points)

    theta = config.mean + config.std * np.sqrt(2.0) * nodes
    weights = raw_weights / np.sqrt(np.pi)
    weights = weights / weights.sum()

    return GaussHermiteQuadrature(
        points=theta.astype(np.float64),
        weights=weights.astype(np.float64),
    )
