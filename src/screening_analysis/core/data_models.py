"""
Data models for the screening instrument and its response data.

This module defines:
- Item / Instrument: the fixed, ordered set of survey items
- ResponseMatrix: recoded responses ready for estimation
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, model_validator

from screening_analysis.core.constants import MISSING_VALUE


class Item(BaseModel):
    """
    One survey item.

    Attributes:
        name: Stable column name (e.g. "DPQ010").
        label: Human-readable item text.
        max_category: Highest valid response code K. Valid responses are 0..K.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    label: str
    max_category: int

    @model_validator(mode="after")
    def _validate_max_category(self) -> "Item":
        if self.max_category < 1:
            raise ValueError(
                f"max_category must be >= 1, got {self.max_category}"
            )
        return self

    @property
    def n_categories(self) -> int:
        return self.max_category + 1


class Instrument(BaseModel):
    """
    An ordered, immutable set of items plus the layout of its source file.

    Attributes:
        name: Instrument name.
        items: Items in column order.
        id_column: Respondent identifier column in the source file.
        excluded_columns: Columns present in the source file that are not
            part of the instrument and are dropped before analysis.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    items: tuple[Item, ...]
    id_column: str
    excluded_columns: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _validate_unique_names(self) -> "Instrument":
        names = [item.name for item in self.items]
        if len(set(names)) != len(names):
            raise ValueError(f"Item names must be unique, got {names}")
        if not names:
            raise ValueError("Instrument must have at least one item")
        return self

    @property
    def item_names(self) -> tuple[str, ...]:
        return tuple(item.name for item in self.items)

    @property
    def n_items(self) -> int:
        return len(self.items)

    def item(self, name: str) -> Item:
        for item in self.items:
            if item.name == name:
                return item
        raise KeyError(name)


PHQ9_RESPONSE_MAX = 3

PHQ9 = Instrument(
    name="PHQ-9",
    id_column="SEQN",
    excluded_columns=("DPQ100",),
    items=(
        Item(
            name="DPQ010",
            label="Little interest or pleasure in doing things",
            max_category=PHQ9_RESPONSE_MAX,
        ),
        Item(
            name="DPQ020",
            label="Feeling down, depressed, or hopeless",
            max_category=PHQ9_RESPONSE_MAX,
        ),
        Item(
            name="DPQ030",
            label="Trouble sleeping or sleeping too much",
            max_category=PHQ9_RESPONSE_MAX,
        ),
        Item(
            name="DPQ040",
            label="Feeling tired or having little energy",
            max_category=PHQ9_RESPONSE_MAX,
        ),
        Item(
            name="DPQ050",
            label="Poor appetite or overeating",
            max_category=PHQ9_RESPONSE_MAX,
        ),
        Item(
            name="DPQ060",
            label="Feeling bad about yourself",
            max_category=PHQ9_RESPONSE_MAX,
        ),
        Item(
            name="DPQ070",
            label="Trouble concentrating on things",
            max_category=PHQ9_RESPONSE_MAX,
        ),
        Item(
            name="DPQ080",
            label="Moving or speaking slowly or too fast",
            max_category=PHQ9_RESPONSE_MAX,
        ),
        Item(
            name="DPQ090",
            label="Thoughts you would be better off dead",
            max_category=PHQ9_RESPONSE_MAX,
        ),
    ),
)


@dataclass(frozen=True)
class ResponseMatrix:
    """
    Response data for estimation.

    Attributes:
        responses: Array of shape (n_respondents, n_items) containing
            category codes 0..n_categories-1. Missing responses are
            indicated by MISSING_VALUE.
        n_categories: Number of response categories (same for all items).
        item_names: Column names, one per item.
    """

    responses: NDArray[np.int8]
    n_categories: int
    item_names: tuple[str, ...]

    def __post_init__(self) -> None:
        """Validate response matrix."""
        if self.responses.ndim != 2:
            raise ValueError(
                f"responses must be 2D, got shape {self.responses.shape}"
            )
        if self.n_categories < 2:
            raise ValueError(
                f"n_categories must be >= 2, got {self.n_categories}"
            )
        if len(self.item_names) != self.responses.shape[1]:
            raise ValueError(
                f"Got {len(self.item_names)} item names for "
                f"{self.responses.shape[1]} columns"
            )
        if len(set(self.item_names)) != len(self.item_names):
            raise ValueError("item_names must be unique")

        valid_responses = self.responses[self.responses != MISSING_VALUE]
        if len(valid_responses) > 0:
            if valid_responses.min() < 0:
                raise ValueError(
                    f"Response values must be >= 0, got min {valid_responses.min()}"
                )
            if valid_responses.max() >= self.n_categories:
                raise ValueError(
                    f"Response values must be < n_categories ({self.n_categories}), "
                    f"got max {valid_responses.max()}"
                )

    @property
    def n_respondents(self) -> int:
        """Number of respondents (rows)."""
        return self.responses.shape[0]

    @property
    def n_items(self) -> int:
        """Number of items (columns)."""
        return self.responses.shape[1]

    @property
    def max_category(self) -> int:
        return self.n_categories - 1

    @property
    def is_dichotomous(self) -> bool:
        return self.n_categories == 2

    @property
    def missing_mask(self) -> NDArray[np.bool_]:
        """Boolean mask where True indicates missing response."""
        result: NDArray[np.bool_] = self.responses == MISSING_VALUE
        return result

    @property
    def valid_mask(self) -> NDArray[np.bool_]:
        """Boolean mask where True indicates valid (non-missing) response."""
        result: NDArray[np.bool_] = self.responses != MISSING_VALUE
        return result

    def item_index(self, name: str) -> int:
        return self.item_names.index(name)

    def item_response_counts(self, item_idx: int) -> NDArray[np.int64]:
        """
        Count responses for each category of an item (excluding missing).

        Returns:
            Array of shape (n_categories,) with counts per category.
        """
        item_responses = self.responses[:, item_idx]
        valid = item_responses[item_responses != MISSING_VALUE]
        counts = np.bincount(
            valid.astype(np.int64), minlength=self.n_categories
        )
        return counts.astype(np.int64)

    def to_float_array(self) -> NDArray[np.float64]:
        """Responses as floats with NaN for missing."""
        result = self.responses.astype(np.float64)
        result[self.missing_mask] = np.nan
        return result

    def drop_empty_rows(self) -> "ResponseMatrix":
        """Remove respondents without a single valid response."""
        keep = self.valid_mask.any(axis=1)
        return ResponseMatrix(
            responses=self.responses[keep],
            n_categories=self.n_categories,
            item_names=self.item_names,
        )
