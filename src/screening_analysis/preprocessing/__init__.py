"""
Recoding of raw survey responses into response matrices.
"""

from screening_analysis.preprocessing.recode import (
    RecodeRule,
    dichotomize,
    recode,
    recode_matrix,
    recode_value,
)

__all__ = [
    "RecodeRule",
    "dichotomize",
    "recode",
    "recode_matrix",
    "recode_value",
]
