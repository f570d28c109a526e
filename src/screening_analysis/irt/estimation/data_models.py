import math

from pydantic import BaseModel, ConfigDict

from screening_analysis.irt.estimation.enums import (
    ConvergenceStatus,
    Estimator,
    ModelFamily,
)
from screening_analysis.irt.estimation.parameters import ItemParameters


def aic(n_parameters: int, log_likelihood: float) -> float:
    """Akaike information criterion: 2k - 2 LL."""
    return 2.0 * n_parameters - 2.0 * log_likelihood


def bic(n_parameters: int, log_likelihood: float, n_observations: int) -> float:
    """Bayesian information criterion: k ln(n) - 2 LL."""
    if n_observations <= 0:
        raise ValueError(
            f"n_observations must be positive, got {n_observations}"
        )
    return n_parameters * math.log(n_observations) - 2.0 * log_likelihood


class FittedModel(BaseModel):
    """
    Result of IRT model estimation.

    Attributes:
        family: Model family that was fitted.
        estimator: Estimation method (MML, or WLSMV for parameters
            converted from the ordinal factor model).
        item_parameters: Estimated item parameters, one per item.
        log_likelihood: Marginal log-likelihood at the estimates.
        n_parameters: Number of free parameters.
        n_respondents: Number of respondents the model was fitted to.
        n_iterations: Number of EM iterations performed.
        convergence_status: Status indicating how estimation terminated.
        parameter_names: Names of the free parameters, in optimizer order.
        standard_errors: Standard errors of the free parameters, or None if
            they were not computed.
        model_version: Version string for reproducibility tracking.
    """

    model_config = ConfigDict(frozen=True)

    family: ModelFamily
    estimator: Estimator = Estimator.MML
    item_parameters: tuple[ItemParameters, ...]
    log_likelihood: float
    n_parameters: int
    n_respondents: int
    n_iterations: int
    convergence_status: ConvergenceStatus
    parameter_names: tuple[str, ...] = ()
    standard_errors: tuple[float, ...] | None = None
    model_version: str

    @property
    def n_items(self) -> int:
        """Number of items in the model."""
        return len(self.item_parameters)

    @property
    def item_names(self) -> tuple[str, ...]:
        return tuple(p.item_name for p in self.item_parameters)

    @property
    def n_categories(self) -> int:
        return self.item_parameters[0].n_categories

    @property
    def converged(self) -> bool:
        """Whether estimation converged successfully."""
        return self.convergence_status == ConvergenceStatus.CONVERGED

    @property
    def discriminations_tied(self) -> bool:
        return self.family.ties_discrimination

    @property
    def aic(self) -> float:
        return aic(self.n_parameters, self.log_likelihood)

    @property
    def bic(self) -> float:
        return bic(self.n_parameters, self.log_likelihood, self.n_respondents)

    @property
    def discriminations(self) -> dict[str, float]:
        return {p.item_name: p.discrimination for p in self.item_parameters}

    @property
    def thresholds(self) -> dict[str, tuple[float, ...]]:
        return {p.item_name: p.thresholds for p in self.item_parameters}

    def item(self, name: str) -> ItemParameters:
        for params in self.item_parameters:
            if params.item_name == name:
                return params
        raise KeyError(name)

    def standard_error(self, parameter_name: str) -> float:
        if self.standard_errors is None:
            raise ValueError("Standard errors were not computed")
        return self.standard_errors[self.parameter_names.index(parameter_name)]
