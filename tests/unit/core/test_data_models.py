"""
Tests for the instrument and response data models.
"""

import numpy as np
import pytest
from pydantic import ValidationError

from screening_analysis.core.constants import MISSING_VALUE
from screening_analysis.core.data_models import (
    PHQ9,
    Instrument,
    Item,
    ResponseMatrix,
)


class TestInstrument:
    def test_phq9_layout(self) -> None:
        """PHQ-9 has nine 0..3 items and drops the difficulty question."""
        assert PHQ9.n_items == 9
        assert PHQ9.item_names[0] == "DPQ010"
        assert PHQ9.item_names[-1] == "DPQ090"
        assert all(item.max_category == 3 for item in PHQ9.items)
        assert PHQ9.id_column == "SEQN"
        assert "DPQ100" in PHQ9.excluded_columns
        assert "DPQ100" not in PHQ9.item_names

    def test_item_lookup(self) -> None:
        assert PHQ9.item("DPQ020").label.startswith("Feeling down")
        with pytest.raises(KeyError):
            PHQ9.item("DPQ100")

    def test_duplicate_item_names_rejected(self) -> None:
        item = Item(name="Q1", label="q", max_category=1)
        with pytest.raises(ValidationError):
            Instrument(name="dup", items=(item, item), id_column="id")

    def test_empty_instrument_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Instrument(name="empty", items=(), id_column="id")

    def test_item_needs_two_categories(self) -> None:
        with pytest.raises(ValidationError):
            Item(name="Q1", label="q", max_category=0)

    def test_instrument_is_frozen(self) -> None:
        with pytest.raises(ValidationError):
            PHQ9.name = "other"  # type: ignore[misc]


class TestResponseMatrix:
    def test_basic_construction(self) -> None:
        """Should construct from valid responses."""
        responses = np.array([[0, 1, 2], [1, 2, 0], [2, 0, 1]], dtype=np.int8)
        rm = ResponseMatrix(
            responses=responses, n_categories=3, item_names=("a", "b", "c")
        )

        assert rm.n_respondents == 3
        assert rm.n_items == 3
        assert rm.max_category == 2
        assert not rm.is_dichotomous

    def test_missing_values(self) -> None:
        """Should handle missing values correctly."""
        responses = np.array(
            [[0, MISSING_VALUE, 2], [1, 2, MISSING_VALUE]], dtype=np.int8
        )
        rm = ResponseMatrix(
            responses=responses, n_categories=3, item_names=("a", "b", "c")
        )

        expected_missing = np.array(
            [[False, True, False], [False, False, True]]
        )
        np.testing.assert_array_equal(rm.missing_mask, expected_missing)
        np.testing.assert_array_equal(rm.valid_mask, ~expected_missing)

    def test_item_response_counts(self) -> None:
        """Should count responses correctly, ignoring missing."""
        responses = np.array(
            [[0, 1], [0, 2], [1, MISSING_VALUE], [1, 0]], dtype=np.int8
        )
        rm = ResponseMatrix(
            responses=responses, n_categories=3, item_names=("a", "b")
        )

        np.testing.assert_array_equal(rm.item_response_counts(0), [2, 2, 0])
        np.testing.assert_array_equal(rm.item_response_counts(1), [1, 1, 1])

    def test_to_float_array(self) -> None:
        responses = np.array([[0, MISSING_VALUE]], dtype=np.int8)
        rm = ResponseMatrix(
            responses=responses, n_categories=2, item_names=("a", "b")
        )

        result = rm.to_float_array()

        assert result[0, 0] == 0.0
        assert np.isnan(result[0, 1])

    def test_drop_empty_rows(self) -> None:
        responses = np.array(
            [[0, 1], [MISSING_VALUE, MISSING_VALUE], [1, MISSING_VALUE]],
            dtype=np.int8,
        )
        rm = ResponseMatrix(
            responses=responses, n_categories=2, item_names=("a", "b")
        )

        kept = rm.drop_empty_rows()

        assert kept.n_respondents == 2
        np.testing.assert_array_equal(kept.responses[1], [1, MISSING_VALUE])

    def test_rejects_out_of_range_codes(self) -> None:
        responses = np.array([[0, 3]], dtype=np.int8)
        with pytest.raises(ValueError, match="n_categories"):
            ResponseMatrix(
                responses=responses, n_categories=3, item_names=("a", "b")
            )

    def test_rejects_mismatched_names(self) -> None:
        responses = np.zeros((2, 2), dtype=np.int8)
        with pytest.raises(ValueError, match="item names"):
            ResponseMatrix(
                responses=responses, n_categories=2, item_names=("a",)
            )

    def test_rejects_one_dimensional_input(self) -> None:
        with pytest.raises(ValueError, match="2D"):
            ResponseMatrix(
                responses=np.zeros(3, dtype=np.int8),
                n_categories=2,
                item_names=("a",),
            )
