"""
Conversion between IRT discriminations and standardized factor loadings.

For the normal-ogive model with the logistic scaling constant D:
    λ = (a / D) / sqrt(1 + (a / D)²)
    a = D λ / sqrt(1 - λ²)
and thresholds on the latent response scale relate to IRT thresholds by
b_c = τ_c / λ.
"""

import logging
import math

from screening_analysis.core.data_models import ResponseMatrix
from screening_analysis.core.errors import InvalidRange
from screening_analysis.factor.cfa import CFAResult
from screening_analysis.irt.estimation.base import marginal_log_likelihood
from screening_analysis.irt.estimation.config import EstimationConfig
from screening_analysis.irt.estimation.data_models import FittedModel
from screening_analysis.irt.estimation.enums import (
    ConvergenceStatus,
    Estimator,
    ModelFamily,
)
from screening_analysis.irt.estimation.parameters import ItemParameters
from screening_analysis.irt.estimation.quadrature import get_quadrature

logger = logging.getLogger(__name__)

# Logistic approximation to the normal ogive
DEFAULT_SCALING_CONSTANT = 1.7


def _check_scaling_constant(scaling_constant: float) -> None:
    if not math.isfinite(scaling_constant) or scaling_constant <= 0:
        raise InvalidRange(
            scaling_constant, "scaling constant must be positive and finite"
        )


def to_loading(discrimination: float, scaling_constant: float) -> float:
    """
    Standardized loading implied by a discrimination.

    Strictly increasing in the discrimination and bounded in (-1, 1).

    Raises:
        InvalidRange: If the discrimination is not finite or the scaling
            constant is not positive and finite.
    """
    _check_scaling_constant(scaling_constant)
    if not math.isfinite(discrimination):
        raise InvalidRange(discrimination, "discrimination must be finite")
    ratio = discrimination / scaling_constant
    return ratio / math.sqrt(1.0 + ratio * ratio)


def to_discrimination(loading: float, scaling_constant: float) -> float:
    """
    Discrimination implied by a standardized loading; inverse of
    `to_loading`.

    Raises:
        InvalidRange: If |loading| >= 1 or the scaling constant is invalid.
    """
    _check_scaling_constant(scaling_constant)
    if not math.isfinite(loading) or abs(loading) >= 1.0:
        raise InvalidRange(loading, "loading must lie in (-1, 1)")
    return scaling_constant * loading / math.sqrt(1.0 - loading * loading)


def loadings_from_model(
    model: FittedModel, scaling_constant: float
) -> dict[str, float]:
    """
    Loading of every item of a fitted model, in model order.

    Items whose discrimination cannot be converted are reported as NaN.

    Raises:
        InvalidRange: If the scaling constant is invalid.
    """
    _check_scaling_constant(scaling_constant)
    loadings: dict[str, float] = {}
    for params in model.item_parameters:
        try:
            loadings[params.item_name] = to_loading(
                params.discrimination, scaling_constant
            )
        except InvalidRange as e:
            logger.warning(f"{params.item_name}: loading set to NaN ({e})")
            loadings[params.item_name] = math.nan
    return loadings


def model_from_cfa(
    cfa: CFAResult,
    data: ResponseMatrix,
    family: ModelFamily,
    scaling_constant: float = DEFAULT_SCALING_CONSTANT,
    config: EstimationConfig | None = None,
) -> FittedModel:
    """
    IRT model implied by an ordinal factor solution.

    Only 2PL (binary items) and GRM have a factor-analytic counterpart. The
    log-likelihood is the marginal likelihood of the converted parameters
    on `data`.

    Raises:
        ValueError: For other families, or if `data` does not match the
            factor solution.
        InvalidRange: If a loading is not in (0, 1).
    """
    family = ModelFamily(family)
    if family not in (ModelFamily.TWO_PL, ModelFamily.GRM):
        raise ValueError(
            f"{family.value} has no factor-analytic counterpart; use 2PL or GRM"
        )
    if family == ModelFamily.TWO_PL and not data.is_dichotomous:
        raise ValueError("2PL conversion needs dichotomous data")
    if data.item_names != cfa.item_names:
        raise ValueError(
            f"Response columns {list(data.item_names)} do not match factor "
            f"items {list(cfa.item_names)}"
        )
    if config is None:
        config = EstimationConfig()

    item_parameters = []
    for name in data.item_names:
        loading = cfa.loadings[name]
        if loading <= 0:
            raise InvalidRange(loading, f"{name} loading must be positive")
        discrimination = to_discrimination(loading, scaling_constant)
        thresholds = [tau / loading for tau in cfa.thresholds[name]]

        if family == ModelFamily.TWO_PL:
            item_parameters.append(
                ItemParameters.dichotomous(name, discrimination, thresholds[0])
            )
        else:
            item_parameters.append(
                ItemParameters.graded(name, discrimination, thresholds)
            )

    log_likelihood = marginal_log_likelihood(
        data, item_parameters, get_quadrature(config.quadrature)
    )
    n_thresholds = data.max_category
    logger.info(
        f"Converted factor solution to {family.value} (LL = {log_likelihood:.4f})"
    )

    return FittedModel(
        family=family,
        estimator=Estimator.WLSMV,
        item_parameters=tuple(item_parameters),
        log_likelihood=log_likelihood,
        n_parameters=data.n_items * (1 + n_thresholds),
        n_respondents=data.n_respondents,
        n_iterations=0,
        convergence_status=ConvergenceStatus.CONVERGED,
        parameter_names=tuple(
            f"{kind}[{name}]"
            for name in data.item_names
            for kind in ["a"] + [f"b{c}" for c in range(1, n_thresholds + 1)]
        ),
        model_version=config.model_version,
    )
