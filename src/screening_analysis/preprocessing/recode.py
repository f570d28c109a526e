"""
Recoding of raw ordinal item responses into analysis-ready matrices.

Raw survey values arrive as floats: valid codes 0..K, sentinel codes above K
("refused", "don't know") and NaN for skipped questions. Anything above K or
NaN becomes missing. Values that cannot be mapped at all (negative or
non-integral) fail the single cell: it is marked missing and counted.
"""

import logging
import math
from enum import Enum

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from screening_analysis.core.constants import MISSING_VALUE
from screening_analysis.core.data_models import Instrument, ResponseMatrix
from screening_analysis.core.errors import InvalidRange, MismatchedKeys

logger = logging.getLogger(__name__)


class RecodeRule(str, Enum):
    ORDINAL = "ordinal"
    DICHOTOMIZE = "dichotomize"


def recode_value(value: float, max_category: int, rule: RecodeRule) -> int:
    """
    Recode a single raw response.

    Returns:
        The recoded category, or MISSING_VALUE for missing and
        out-of-range values.

    Raises:
        InvalidRange: If the value is negative (other than MISSING_VALUE)
            or not an integer.
    """
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return MISSING_VALUE
    if value == MISSING_VALUE:
        return MISSING_VALUE
    if value < 0:
        raise InvalidRange(value, "negative response code")
    if not math.isfinite(value):
        return MISSING_VALUE
    if value != int(value):
        raise InvalidRange(value, "non-integral response code")
    if value > max_category:
        return MISSING_VALUE

    code = int(value)
    if rule == RecodeRule.DICHOTOMIZE:
        return 1 if code > 0 else 0
    return code


def recode_array(
    values: NDArray[np.floating],
    max_category: int,
    rule: RecodeRule,
) -> tuple[NDArray[np.int8], int]:
    """
    Vectorized `recode_value` over an array of raw values.

    Cells that would raise InvalidRange are marked missing instead.

    Returns:
        Tuple of (recoded int8 array, number of unmappable cells).
    """
    values = np.asarray(values, dtype=np.float64)
    result = np.full(values.shape, MISSING_VALUE, dtype=np.int8)

    present = ~np.isnan(values) & (values != MISSING_VALUE)
    invalid = present & ((values < 0) | (values != np.round(values)))
    in_range = present & ~invalid & (values <= max_category)

    codes = values[in_range].astype(np.int64)
    if rule == RecodeRule.DICHOTOMIZE:
        codes = (codes > 0).astype(np.int64)
    result[in_range] = codes

    return result, int(invalid.sum())


def _n_output_categories(max_category: int, rule: RecodeRule) -> int:
    if rule == RecodeRule.DICHOTOMIZE:
        return 2
    return max_category + 1


def recode(
    frame: pd.DataFrame,
    instrument: Instrument,
    rule: RecodeRule,
) -> ResponseMatrix:
    """
    Recode raw responses for every instrument item.

    Args:
        frame: Raw responses, one column per item (extra columns ignored).
        instrument: Instrument defining items and their ranges.
        rule: Recoding rule.

    Returns:
        ResponseMatrix with columns in instrument order.

    Raises:
        MismatchedKeys: If an instrument item has no column in the frame.
        ValueError: If items declare different ranges under ORDINAL recoding.
    """
    missing = set(instrument.item_names) - set(frame.columns)
    if missing:
        raise MismatchedKeys(missing_in_a=missing, missing_in_b=())

    max_categories = {item.max_category for item in instrument.items}
    if rule == RecodeRule.ORDINAL and len(max_categories) != 1:
        raise ValueError(
            f"ORDINAL recoding needs a common range, got {sorted(max_categories)}"
        )

    columns: list[NDArray[np.int8]] = []
    for item in instrument.items:
        raw = pd.to_numeric(frame[item.name], errors="coerce").to_numpy(
            dtype=np.float64
        )
        recoded, n_invalid = recode_array(raw, item.max_category, rule)
        if n_invalid:
            logger.warning(
                f"{item.name}: {n_invalid} unmappable values set to missing"
            )
        columns.append(recoded)

    responses = np.column_stack(columns)
    n_categories = _n_output_categories(max(max_categories), rule)

    matrix = ResponseMatrix(
        responses=responses.astype(np.int8),
        n_categories=n_categories,
        item_names=instrument.item_names,
    )
    n_missing = int(matrix.missing_mask.sum())
    logger.info(
        f"Recoded {matrix.n_respondents} respondents x {matrix.n_items} items "
        f"({rule.value}, {n_missing} missing cells)"
    )
    return matrix


def recode_matrix(matrix: ResponseMatrix, rule: RecodeRule) -> ResponseMatrix:
    """Apply a recoding rule to an already recoded matrix.

    Recoding is idempotent: applying the same rule twice gives the same
    matrix.
    """
    recoded, _ = recode_array(
        matrix.to_float_array(), matrix.max_category, rule
    )
    return ResponseMatrix(
        responses=recoded,
        n_categories=_n_output_categories(matrix.max_category, rule),
        item_names=matrix.item_names,
    )


def dichotomize(matrix: ResponseMatrix) -> ResponseMatrix:
    """Value > 0 becomes 1, 0 stays 0, missing stays missing."""
    return recode_matrix(matrix, RecodeRule.DICHOTOMIZE)
