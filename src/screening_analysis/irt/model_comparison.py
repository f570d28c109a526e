"""
Information criteria and likelihood-ratio comparison of fitted models.
"""

import logging

from pydantic import BaseModel, ConfigDict
from scipy import stats

from screening_analysis.irt.estimation.data_models import FittedModel
from screening_analysis.irt.estimation.enums import Estimator, ModelFamily

logger = logging.getLogger(__name__)

# (restricted, general) pairs where the restricted model is a special case
NESTED_FAMILIES = {(ModelFamily.ONE_PL, ModelFamily.TWO_PL)}


class LikelihoodRatioTest(BaseModel):
    model_config = ConfigDict(frozen=True)

    statistic: float
    degrees_of_freedom: int
    p_value: float


class ModelComparison(BaseModel):
    """
    Side-by-side fit of two models on the same data.

    Attributes:
        restricted / general: Families of the two models.
        log_likelihoods, aics, bics: Keyed by family value.
        preferred: Family with the lower AIC (the restricted model on ties).
        likelihood_ratio: Present only when the pair is nested.
    """

    model_config = ConfigDict(frozen=True)

    restricted: ModelFamily
    general: ModelFamily
    log_likelihoods: dict[str, float]
    aics: dict[str, float]
    bics: dict[str, float]
    preferred: ModelFamily
    likelihood_ratio: LikelihoodRatioTest | None = None


def compare_models(
    restricted: FittedModel, general: FittedModel
) -> ModelComparison:
    """
    Compare two fitted models by AIC, BIC and, when nested, an LR test.

    Raises:
        ValueError: If the models were fitted to different data or share
            a family.
    """
    if restricted.family == general.family:
        raise ValueError(f"Both models are {restricted.family.value}")
    if (
        restricted.item_names != general.item_names
        or restricted.n_respondents != general.n_respondents
    ):
        raise ValueError("Models were fitted to different data")

    models = (restricted, general)
    preferred = min(models, key=lambda m: m.aic).family

    likelihood_ratio = None
    both_mml = all(m.estimator == Estimator.MML for m in models)
    if both_mml and (restricted.family, general.family) in NESTED_FAMILIES:
        # Optimizer noise can leave the general fit marginally below
        statistic = max(
            0.0, 2.0 * (general.log_likelihood - restricted.log_likelihood)
        )
        dof = general.n_parameters - restricted.n_parameters
        likelihood_ratio = LikelihoodRatioTest(
            statistic=statistic,
            degrees_of_freedom=dof,
            p_value=float(stats.chi2.sf(statistic, dof)),
        )

    comparison = ModelComparison(
        restricted=restricted.family,
        general=general.family,
        log_likelihoods={m.family.value: m.log_likelihood for m in models},
        aics={m.family.value: m.aic for m in models},
        bics={m.family.value: m.bic for m in models},
        preferred=preferred,
        likelihood_ratio=likelihood_ratio,
    )
    logger.info(
        f"{restricted.family.value} vs {general.family.value}: "
        f"AIC prefers {preferred.value}"
    )
    return comparison
