"""
IRT model estimation module.

This module provides infrastructure for estimating Item Response Theory models
using Marginal Maximum Likelihood via the EM algorithm.

Key components:
- EstimationConfig: Configuration for estimation
- ItemParameters: Per-item discrimination and thresholds
- FittedModel: Output from estimation
- IRTEstimator: Abstract base class for estimators
- TwoPLEstimator, RaschEstimator, GradedResponseEstimator,
  RatingScaleEstimator: one estimator per model family
- estimate_abilities: EAP ability estimation
"""

from screening_analysis.irt.estimation.abilities import (
    AbilityEstimates,
    estimate_abilities,
)
from screening_analysis.irt.estimation.base import (
    IRTEstimator,
    marginal_log_likelihood,
)
from screening_analysis.irt.estimation.config import EstimationConfig
from screening_analysis.irt.estimation.data_models import (
    FittedModel,
    aic,
    bic,
)
from screening_analysis.irt.estimation.enums import (
    ConvergenceStatus,
    Estimator,
    ModelFamily,
)
from screening_analysis.irt.estimation.estimators import (
    GradedResponseEstimator,
    RaschEstimator,
    RatingScaleEstimator,
    TwoPLEstimator,
    fit_model,
    get_estimator,
)
from screening_analysis.irt.estimation.parameters import ItemParameters

__all__ = [
    "AbilityEstimates",
    "ConvergenceStatus",
    "EstimationConfig",
    "Estimator",
    "FittedModel",
    "GradedResponseEstimator",
    "IRTEstimator",
    "ItemParameters",
    "ModelFamily",
    "RaschEstimator",
    "RatingScaleEstimator",
    "TwoPLEstimator",
    "aic",
    "bic",
    "estimate_abilities",
    "fit_model",
    "get_estimator",
    "marginal_log_likelihood",
]
