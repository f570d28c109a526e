"""
Factor-analytic side of the comparison.

This module provides:
- Polychoric correlations of ordinal items
- One-factor ordinal CFA fitted with semopy
- Parallel analysis for the number of factors
- Conversion between discriminations and standardized loadings
"""

from screening_analysis.factor.cfa import CFAResult, fit_ordinal_cfa
from screening_analysis.factor.conversion import (
    DEFAULT_SCALING_CONSTANT,
    loadings_from_model,
    model_from_cfa,
    to_discrimination,
    to_loading,
)
from screening_analysis.factor.parallel_analysis import (
    ParallelAnalysisResult,
    parallel_analysis,
)
from screening_analysis.factor.polychoric import (
    PolychoricResult,
    polychoric_matrix,
)

__all__ = [
    "DEFAULT_SCALING_CONSTANT",
    "CFAResult",
    "ParallelAnalysisResult",
    "PolychoricResult",
    "fit_ordinal_cfa",
    "loadings_from_model",
    "model_from_cfa",
    "parallel_analysis",
    "polychoric_matrix",
    "to_discrimination",
    "to_loading",
]
