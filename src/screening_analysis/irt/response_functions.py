"""
Category response functions of the logistic latent-trait family.

All functions use the slope-intercept parameterization and are vectorized
over items: slopes have shape (n_items,), the trait grid has shape
(n_theta,), and the result has shape (n_items, n_theta, n_categories).

- Dichotomous (1PL / 2PL):
    P(X=1 | θ) = 1 / (1 + exp(-(a θ + d)))
- Graded response (Samejima):
    P(X >= c | θ) = 1 / (1 + exp(-(a θ + d_c))),  d_1 > d_2 > ... > d_K
    P(X = c | θ) = P(X >= c | θ) - P(X >= c+1 | θ)
- Rating scale (Andrich, adjacent categories):
    P(X = k | θ) ∝ exp(k (a θ + c) + Σ_{h<=k} s_h),  Σ s_h = 0

The IRT parameterization used in reports relates to these by
b = -d / a (difficulty / extremity), δ = -c / a (location) and
τ_h = -s_h / a (step).
"""

import numpy as np
from numpy.typing import NDArray

from screening_analysis.core.utils import logistic

# Floor applied before taking logs of probabilities
PROBABILITY_FLOOR = 1e-300


def dichotomous_probabilities(
    theta: NDArray[np.float64],
    slopes: NDArray[np.float64],
    intercepts: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Returns:
        Probabilities of shape (n_items, n_theta, 2).
    """
    logits = slopes[:, np.newaxis] * theta[np.newaxis, :] + intercepts[
        :, np.newaxis
    ]
    p_one = logistic(logits)
    result: NDArray[np.float64] = np.stack([1.0 - p_one, p_one], axis=-1)
    return result


def graded_probabilities(
    theta: NDArray[np.float64],
    slopes: NDArray[np.float64],
    intercepts: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Args:
        theta: Trait values, shape (n_theta,).
        slopes: Shape (n_items,).
        intercepts: Decreasing intercepts, shape (n_items, K).

    Returns:
        Probabilities of shape (n_items, n_theta, K + 1).
    """
    logits = (
        slopes[:, np.newaxis, np.newaxis] * theta[np.newaxis, :, np.newaxis]
        + intercepts[:, np.newaxis, :]
    )
    cumulative = logistic(logits)

    n_items, n_theta, _ = cumulative.shape
    ones = np.ones((n_items, n_theta, 1))
    zeros = np.zeros((n_items, n_theta, 1))
    bounded = np.concatenate([ones, cumulative, zeros], axis=-1)

    probs = bounded[..., :-1] - bounded[..., 1:]
    result: NDArray[np.float64] = np.maximum(probs, 0.0)
    return result


def rating_scale_probabilities(
    theta: NDArray[np.float64],
    slopes: NDArray[np.float64],
    intercepts: NDArray[np.float64],
    steps: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Args:
        theta: Trait values, shape (n_theta,).
        slopes: Shape (n_items,).
        intercepts: Item intercepts, shape (n_items,).
        steps: Shared step intercepts s_1..s_K, shape (K,).

    Returns:
        Probabilities of shape (n_items, n_theta, K + 1).
    """
    n_steps = len(steps)
    k = np.arange(n_steps + 1, dtype=np.float64)
    cumulative_steps = np.concatenate([[0.0], np.cumsum(steps)])

    kernel = (
        slopes[:, np.newaxis] * theta[np.newaxis, :]
        + intercepts[:, np.newaxis]
    )
    logits = (
        kernel[..., np.newaxis] * k[np.newaxis, np.newaxis, :]
        + cumulative_steps[np.newaxis, np.newaxis, :]
    )

    # Softmax over categories
    shifted = logits - np.max(logits, axis=-1, keepdims=True)
    exp_shifted = np.exp(shifted)
    result: NDArray[np.float64] = exp_shifted / np.sum(
        exp_shifted, axis=-1, keepdims=True
    )
    return result


def safe_log(probs: NDArray[np.float64]) -> NDArray[np.float64]:
    result: NDArray[np.float64] = np.log(np.maximum(probs, PROBABILITY_FLOOR))
    return result
