"""
Ability estimation for fitted IRT models.

This module provides Expected A Posteriori (EAP) trait scores, which work
for every supported model family because each item evaluates its own
category probabilities.
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from screening_analysis.core.data_models import ResponseMatrix
from screening_analysis.irt.estimation.base import (
    item_log_probabilities,
    joint_log_likelihood,
    posterior_weights,
)
from screening_analysis.irt.estimation.config import EstimationConfig
from screening_analysis.irt.estimation.data_models import FittedModel
from screening_analysis.irt.estimation.quadrature import get_quadrature


@dataclass(frozen=True)
class AbilityEstimates:
    """
    Trait estimates for respondents.

    Attributes:
        eap: Expected A Posteriori (posterior mean) estimates,
            shape (n_respondents,).
        se: Standard errors (posterior standard deviation),
            shape (n_respondents,).
    """

    eap: NDArray[np.float64]
    se: NDArray[np.float64]

    @property
    def n_respondents(self) -> int:
        return len(self.eap)


def estimate_abilities(
    data: ResponseMatrix,
    model: FittedModel,
    config: EstimationConfig | None = None,
) -> AbilityEstimates:
    """
    Estimate trait scores using the Expected A Posteriori (EAP) method.

    EAP estimates are the posterior mean of the trait given the responses
    and estimated item parameters:
        θ_EAP = E[θ | responses] = Σ_q θ_q * P(θ_q | responses)

    Standard errors are the posterior standard deviation:
        SE = sqrt(E[θ² | responses] - (E[θ | responses])²)

    Respondents without any valid response get the prior mean and SD.

    Args:
        data: Response matrix with the model's items, in the same order.
        model: Fitted IRT model with item parameters.
        config: Estimation configuration. Uses defaults if None.

    Returns:
        AbilityEstimates with EAP estimates and standard errors.
    """
    if data.item_names != model.item_names:
        raise ValueError(
            f"Response columns {list(data.item_names)} do not match model "
            f"items {list(model.item_names)}"
        )
    if config is None:
        config = EstimationConfig()

    quadrature = get_quadrature(config.quadrature)
    theta = quadrature.points

    log_probs = item_log_probabilities(model.item_parameters, theta)
    joint = joint_log_likelihood(
        data.responses, log_probs, quadrature.log_weights
    )
    posteriors = posterior_weights(joint)

    eap = posteriors @ theta
    # E[θ²] - E[θ]², floored for numerical precision
    variance = np.maximum(posteriors @ theta**2 - eap**2, 0.0)

    return AbilityEstimates(eap=eap, se=np.sqrt(variance))
