"""
Shared MML-EM machinery for the logistic latent-trait families.

Every family is fitted by the same loop:
- E-step: posterior over quadrature nodes for each respondent
- M-step: maximize the expected complete-data log-likelihood over the free
  parameter vector with L-BFGS-B

Subclasses only describe their free parameter vector: starting values,
bounds, names, the category log-probabilities it implies and how it maps
back to ItemParameters. Families that tie parameters across items are
handled naturally because the M-step optimizes all items jointly.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from scipy.optimize import minimize

from screening_analysis.core.data_models import ResponseMatrix
from screening_analysis.core.errors import ConvergenceFailure
from screening_analysis.irt.estimation.config import EstimationConfig
from screening_analysis.irt.estimation.data_models import FittedModel
from screening_analysis.irt.estimation.enums import (
    ConvergenceStatus,
    ModelFamily,
)
from screening_analysis.irt.estimation.kernels import expected_category_counts
from screening_analysis.irt.estimation.parameters import ItemParameters
from screening_analysis.irt.estimation.quadrature import (
    GaussHermiteQuadrature,
    get_quadrature,
)
from screening_analysis.irt.response_functions import safe_log

logger = logging.getLogger(__name__)

# Relative step for finite-difference respondent scores
SCORE_STEP = 1e-5


@dataclass
class EStepResult:
    """
    Results from the E-step of EM algorithm.

    Attributes:
        posteriors: Posterior weights, shape (n_respondents, n_quadrature_points).
            posteriors[i, q] = P(theta = theta_q | responses_i, params).
        log_likelihood: Marginal log-likelihood for current parameters.
    """

    posteriors: NDArray[np.float64]
    log_likelihood: float


def joint_log_likelihood(
    responses: NDArray[np.int8],
    log_probs: NDArray[np.float64],
    log_prior: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    log P(responses_i, θ_q) for every respondent and quadrature node.

    Args:
        responses: Shape (n_respondents, n_items), missing < 0.
        log_probs: Category log-probabilities, shape
            (n_items, n_quadrature, n_categories).
        log_prior: Log quadrature weights, shape (n_quadrature,).

    Returns:
        Shape (n_respondents, n_quadrature). Missing responses contribute 0.
    """
    n_respondents = responses.shape[0]
    log_lik = np.tile(log_prior, (n_respondents, 1))

    for item_idx in range(responses.shape[1]):
        item_responses = responses[:, item_idx]
        valid = item_responses >= 0
        # log_probs[j][:, r] has shape (n_quadrature, n_valid)
        log_lik[valid, :] += log_probs[item_idx][
            :, item_responses[valid].astype(np.int64)
        ].T

    return log_lik


def respondent_log_likelihoods(
    joint: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Log marginal likelihood per respondent via log-sum-exp over nodes."""
    max_joint = np.max(joint, axis=1, keepdims=True)
    sums = np.exp(joint - max_joint).sum(axis=1)
    result: NDArray[np.float64] = max_joint[:, 0] + np.log(sums + 1e-300)
    return result


def posterior_weights(joint: NDArray[np.float64]) -> NDArray[np.float64]:
    """Normalize joint log-likelihoods into posterior weights per respondent."""
    max_joint = np.max(joint, axis=1, keepdims=True)
    posteriors = np.exp(joint - max_joint)
    result: NDArray[np.float64] = posteriors / (
        posteriors.sum(axis=1, keepdims=True) + 1e-300
    )
    return result


def item_log_probabilities(
    item_parameters: Sequence[ItemParameters],
    theta: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Stack category log-probabilities of every item on a trait grid."""
    return np.stack(
        [safe_log(p.compute_probabilities(theta)) for p in item_parameters]
    )


def marginal_log_likelihood(
    data: ResponseMatrix,
    item_parameters: Sequence[ItemParameters],
    quadrature: GaussHermiteQuadrature,
) -> float:
    """Marginal log-likelihood of arbitrary item parameters on the data."""
    log_probs = item_log_probabilities(item_parameters, quadrature.points)
    joint = joint_log_likelihood(
        data.responses, log_probs, quadrature.log_weights
    )
    return float(respondent_log_likelihoods(joint).sum())


class IRTEstimator(ABC):
    """
    Abstract base class for IRT model estimators using MML-EM.

    Subclasses describe the free parameter vector of one model family.
    """

    def __init__(self, config: EstimationConfig | None = None):
        """
        Initialize estimator.

        Args:
            config: Estimation configuration. If None, uses defaults.
        """
        self.config = config or EstimationConfig()
        self._quadrature = get_quadrature(self.config.quadrature)

    @property
    def quadrature(self) -> GaussHermiteQuadrature:
        """Access quadrature points and weights."""
        return self._quadrature

    @property
    @abstractmethod
    def family(self) -> ModelFamily: ...

    def fit(self, data: ResponseMatrix) -> FittedModel:
        """
        Fit the model to response data using the EM algorithm.

        Args:
            data: Response matrix.

        Returns:
            FittedModel with estimated parameters and fit statistics.

        Raises:
            ValueError: If the data does not suit the model family.
            ConvergenceFailure: If EM does not converge or the information
                matrix at the solution is singular.
        """
        self._check_data(data)
        logger.info(
            f"Fitting {self.family.value} to {data.n_respondents} respondents "
            f"x {data.n_items} items"
        )

        vector = self._initial_vector(data)
        prev_ll = -np.inf
        convergence_status = ConvergenceStatus.MAX_ITERATIONS
        n_iterations = 0

        for iteration in range(self.config.convergence.max_em_iterations):
            n_iterations = iteration + 1
            e_result = self._e_step(data, vector)
            logger.debug(
                f"Iteration {n_iterations}: LL = {e_result.log_likelihood:.4f}"
            )

            if not np.isfinite(e_result.log_likelihood):
                convergence_status = ConvergenceStatus.FAILED
                break

            if self._check_convergence(e_result.log_likelihood, prev_ll):
                convergence_status = ConvergenceStatus.CONVERGED
                break

            prev_ll = e_result.log_likelihood
            vector = self._m_step(data, e_result.posteriors, vector)

        if convergence_status != ConvergenceStatus.CONVERGED:
            reason = (
                "non-finite log-likelihood"
                if convergence_status == ConvergenceStatus.FAILED
                else "EM iteration budget exhausted"
            )
            raise ConvergenceFailure(
                self.family.value, data.item_names, reason, n_iterations
            )

        standard_errors = None
        if self.config.compute_standard_errors:
            standard_errors = self._standard_errors(data, vector, n_iterations)

        logger.info(
            f"{self.family.value} converged in {n_iterations} iterations "
            f"(LL = {e_result.log_likelihood:.4f})"
        )

        return FittedModel(
            family=self.family,
            item_parameters=self._to_item_parameters(vector, data),
            log_likelihood=e_result.log_likelihood,
            n_parameters=len(vector),
            n_respondents=data.n_respondents,
            n_iterations=n_iterations,
            convergence_status=convergence_status,
            parameter_names=tuple(self._parameter_names(data)),
            standard_errors=standard_errors,
            model_version=self.config.model_version,
        )

    def _e_step(
        self,
        data: ResponseMatrix,
        vector: NDArray[np.float64],
    ) -> EStepResult:
        """
        E-step: compute posterior distribution over the trait.

        For each respondent:
            P(theta_q | responses) ∝ P(responses | theta_q) * P(theta_q)
        """
        log_probs = self._log_probabilities(vector, self._quadrature.points, data)
        joint = joint_log_likelihood(
            data.responses, log_probs, self._quadrature.log_weights
        )
        total_ll = float(respondent_log_likelihoods(joint).sum())
        return EStepResult(
            posteriors=posterior_weights(joint), log_likelihood=total_ll
        )

    def _m_step(
        self,
        data: ResponseMatrix,
        posteriors: NDArray[np.float64],
        current: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        """
        M-step: maximize the expected complete-data log-likelihood

            Q = Σ_j Σ_q Σ_k r[j, q, k] * log P_jk(θ_q)

        over the whole free parameter vector.
        """
        counts = expected_category_counts(
            data.responses, posteriors, data.n_categories
        )
        theta = self._quadrature.points

        def objective(vector: NDArray[np.float64]) -> float:
            log_probs = self._log_probabilities(vector, theta, data)
            return -float(np.sum(counts * log_probs))

        result = minimize(
            fun=objective,
            x0=current,
            method="L-BFGS-B",
            bounds=self._bounds(data),
            options={
                "maxiter": self.config.convergence.max_lbfgs_iterations,
                "ftol": self.config.convergence.lbfgs_tolerance,
            },
        )
        optimized: NDArray[np.float64] = np.asarray(result.x, dtype=np.float64)
        return optimized

    def _check_convergence(self, current_ll: float, prev_ll: float) -> bool:
        """
        Check if EM has converged based on log-likelihood change.

        Args:
            current_ll: Current log-likelihood.
            prev_ll: Previous log-likelihood.

        Returns:
            True if converged.
        """
        if prev_ll == -np.inf:
            return False

        # Absolute change in log-likelihood
        abs_change = abs(current_ll - prev_ll)
        return bool(abs_change < self.config.convergence.em_tolerance)

    def _respondent_scores(
        self,
        data: ResponseMatrix,
        vector: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        """Central-difference gradient of each respondent's log-likelihood."""
        theta = self._quadrature.points
        log_prior = self._quadrature.log_weights

        def per_respondent(v: NDArray[np.float64]) -> NDArray[np.float64]:
            log_probs = self._log_probabilities(v, theta, data)
            joint = joint_log_likelihood(data.responses, log_probs, log_prior)
            return respondent_log_likelihoods(joint)

        scores = np.empty((data.n_respondents, len(vector)), dtype=np.float64)
        for k in range(len(vector)):
            step = SCORE_STEP * max(1.0, abs(vector[k]))
            forward = vector.copy()
            backward = vector.copy()
            forward[k] += step
            backward[k] -= step
            scores[:, k] = (
                per_respondent(forward) - per_respondent(backward)
            ) / (2.0 * step)
        return scores

    def _standard_errors(
        self,
        data: ResponseMatrix,
        vector: NDArray[np.float64],
        n_iterations: int,
    ) -> tuple[float, ...]:
        """
        Standard errors from the cross-product (XPD) information matrix.

        Raises:
            ConvergenceFailure: If the information matrix is singular.
        """
        scores = self._respondent_scores(data, vector)
        information = scores.T @ scores

        condition = float(np.linalg.cond(information))
        if (
            not np.isfinite(condition)
            or condition > self.config.convergence.max_condition_number
        ):
            raise ConvergenceFailure(
                self.family.value,
                data.item_names,
                f"singular information matrix (condition number {condition:.3g})",
                n_iterations,
            )

        covariance = np.linalg.inv(information)
        return tuple(float(se) for se in np.sqrt(np.abs(np.diag(covariance))))

    @abstractmethod
    def _check_data(self, data: ResponseMatrix) -> None:
        """Raise ValueError if the data cannot be fitted by this family."""
        ...

    @abstractmethod
    def _initial_vector(self, data: ResponseMatrix) -> NDArray[np.float64]:
        """Starting values for the free parameter vector."""
        ...

    @abstractmethod
    def _bounds(self, data: ResponseMatrix) -> list[tuple[float, float]]:
        """Optimizer bounds, one pair per free parameter."""
        ...

    @abstractmethod
    def _parameter_names(self, data: ResponseMatrix) -> list[str]:
        """Names of the free parameters, in vector order."""
        ...

    @abstractmethod
    def _log_probabilities(
        self,
        vector: NDArray[np.float64],
        theta: NDArray[np.float64],
        data: ResponseMatrix,
    ) -> NDArray[np.float64]:
        """
        Category log-probabilities implied by the free parameters.

        Returns:
            Shape (n_items, n_theta, n_categories).
        """
        ...

    @abstractmethod
    def _to_item_parameters(
        self,
        vector: NDArray[np.float64],
        data: ResponseMatrix,
    ) -> tuple[ItemParameters, ...]:
        """Convert the free parameter vector to IRT item parameters."""
        ...
