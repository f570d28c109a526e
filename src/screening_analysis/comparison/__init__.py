from screening_analysis.comparison.compare import compare, parameter_vector
from screening_analysis.comparison.data_models import (
    ComparisonRow,
    ComparisonTable,
)

__all__ = [
    "ComparisonRow",
    "ComparisonTable",
    "compare",
    "parameter_vector",
]
