"""
Core shared types and utilities.

This module provides the instrument definition, the response data model,
error kinds, dataset loading and small numerical helpers used by every
analysis stage.
"""

from screening_analysis.core.data_models import (
    PHQ9,
    Instrument,
    Item,
    ResponseMatrix,
)
from screening_analysis.core.errors import (
    AnalysisError,
    ConvergenceFailure,
    DataLoadFailure,
    InvalidRange,
    MismatchedKeys,
    UndefinedRatio,
)
from screening_analysis.core.utils import get_rng

__all__ = [
    "PHQ9",
    "AnalysisError",
    "ConvergenceFailure",
    "DataLoadFailure",
    "Instrument",
    "InvalidRange",
    "Item",
    "MismatchedKeys",
    "ResponseMatrix",
    "UndefinedRatio",
    "get_rng",
]
