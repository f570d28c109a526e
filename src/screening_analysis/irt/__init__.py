"""
IRT (Item Response Theory) module.

This module provides:
- Category response functions for the 1PL, 2PL, GRM and RSM families
- Estimation infrastructure for fitting the models to data
- Model comparison by information criteria and likelihood ratio
- Trait-grid curves (probabilities, information)
- Sampling functions for generating responses
"""

from screening_analysis.irt.curves import CurveSet, compute_curves, theta_grid
from screening_analysis.irt.estimation import (
    FittedModel,
    ItemParameters,
    ModelFamily,
    estimate_abilities,
    fit_model,
    get_estimator,
)
from screening_analysis.irt.model_comparison import (
    ModelComparison,
    compare_models,
)
from screening_analysis.irt.sampling import sample_responses

__all__ = [
    "CurveSet",
    "FittedModel",
    "ItemParameters",
    "ModelComparison",
    "ModelFamily",
    "compare_models",
    "compute_curves",
    "estimate_abilities",
    "fit_model",
    "get_estimator",
    "sample_responses",
    "theta_grid",
]
