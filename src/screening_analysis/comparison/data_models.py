import math

import pandas as pd
from pydantic import BaseModel, ConfigDict


class ComparisonRow(BaseModel):
    """
    One joined key.

    Attributes:
        key: Item (or item[category]) name.
        value_a / value_b: Values from each side.
        difference: value_a - value_b.
        ratio: value_a / value_b, or None when value_b is zero.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    value_a: float
    value_b: float
    difference: float
    ratio: float | None


class ComparisonTable(BaseModel):
    model_config = ConfigDict(frozen=True)

    label_a: str
    label_b: str
    rows: tuple[ComparisonRow, ...]

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(row.key for row in self.rows)

    @property
    def max_abs_difference(self) -> float:
        """Largest finite |difference|, NaN if there is none."""
        finite = [
            abs(row.difference)
            for row in self.rows
            if math.isfinite(row.difference)
        ]
        return max(finite) if finite else math.nan

    def row(self, key: str) -> ComparisonRow:
        for row in self.rows:
            if row.key == key:
                return row
        raise KeyError(key)

    def to_frame(self) -> pd.DataFrame:
        """Rows as a DataFrame indexed by key, value columns named by label."""
        return pd.DataFrame(
            {
                self.label_a: [row.value_a for row in self.rows],
                self.label_b: [row.value_b for row in self.rows],
                "difference": [row.difference for row in self.rows],
                "ratio": [row.ratio for row in self.rows],
            },
            index=pd.Index(self.keys, name="key"),
        )
