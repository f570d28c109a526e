"""
Key-based comparison of two parameter vectors.

Vectors are joined on item name, never on position.
"""

import logging
from collections.abc import Mapping
from typing import Literal

from screening_analysis.comparison.data_models import (
    ComparisonRow,
    ComparisonTable,
)
from screening_analysis.core.errors import MismatchedKeys, UndefinedRatio
from screening_analysis.irt.estimation.data_models import FittedModel

logger = logging.getLogger(__name__)


def ratio(key: str, numerator: float, denominator: float) -> float:
    """
    Raises:
        UndefinedRatio: If the denominator is zero.
    """
    if denominator == 0:
        raise UndefinedRatio(key, numerator)
    return numerator / denominator


def compare(
    a: Mapping[str, float],
    b: Mapping[str, float],
    label_a: str = "a",
    label_b: str = "b",
) -> ComparisonTable:
    """
    Join two keyed vectors and report difference and ratio per key.

    Rows follow the key order of `a`. A zero value in `b` gives an
    undefined (None) ratio for that row.

    Raises:
        MismatchedKeys: If the key sets differ.
    """
    if label_a == label_b:
        raise ValueError(f"Labels must differ, got '{label_a}' twice")
    missing_in_a = set(b) - set(a)
    missing_in_b = set(a) - set(b)
    if missing_in_a or missing_in_b:
        raise MismatchedKeys(missing_in_a, missing_in_b)

    rows = []
    for key, value_a in a.items():
        value_b = b[key]
        try:
            row_ratio: float | None = ratio(key, value_a, value_b)
        except UndefinedRatio as e:
            logger.warning(str(e))
            row_ratio = None
        rows.append(
            ComparisonRow(
                key=key,
                value_a=value_a,
                value_b=value_b,
                difference=value_a - value_b,
                ratio=row_ratio,
            )
        )

    return ComparisonTable(label_a=label_a, label_b=label_b, rows=tuple(rows))


def parameter_vector(
    model: FittedModel,
    name: Literal["discrimination", "threshold"],
) -> dict[str, float]:
    """
    Flatten a fitted model's parameters into a keyed vector.

    Discriminations are keyed by item. Thresholds are keyed by item for
    single-threshold items and by "item[c]" (c = 1..K) otherwise.
    """
    if name == "discrimination":
        return dict(model.discriminations)
    if name != "threshold":
        raise ValueError(f"Unknown parameter '{name}'")

    vector: dict[str, float] = {}
    for params in model.item_parameters:
        if len(params.thresholds) == 1:
            vector[params.item_name] = params.thresholds[0]
            continue
        for c, threshold in enumerate(params.thresholds, start=1):
            vector[f"{params.item_name}[{c}]"] = threshold
    return vector
