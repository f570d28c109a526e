"""
Item parameter representation in the IRT parameterization.

Each item carries a discrimination a and ordered thresholds b_1 <= ... <= b_K:
- 1PL / 2PL: one threshold, the difficulty.
- GRM: K extremities; P(X >= c | θ) = logistic(a (θ - b_c)).
- RSM: thresholds b_h = δ + τ_h built from the item location δ and the
  shared category steps τ_h (Σ τ_h = 0).

For families that tie discriminations across items every item carries the
common value.
"""

from typing import Self

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, model_validator

from screening_analysis.irt.estimation.enums import ModelFamily
from screening_analysis.irt.response_functions import (
    dichotomous_probabilities,
    graded_probabilities,
    rating_scale_probabilities,
)

# Tolerance when checking RSM thresholds against location + steps
THRESHOLD_TOLERANCE = 1e-8


class ItemParameters(BaseModel):
    """
    Parameters for one item.

    Attributes:
        item_name: Name of the item.
        family: Model family the parameters belong to.
        discrimination: Slope a.
        thresholds: Difficulty (dichotomous) or ordered extremities.
        location: RSM item location δ (None for other families).
        steps: RSM category steps τ (None for other families).
    """

    model_config = ConfigDict(frozen=True)

    item_name: str
    family: ModelFamily
    discrimination: float
    thresholds: tuple[float, ...]
    location: float | None = None
    steps: tuple[float, ...] | None = None

    @model_validator(mode="after")
    def _validate_thresholds(self) -> "ItemParameters":
        if len(self.thresholds) < 1:
            raise ValueError("At least one threshold is required")
        if not self.family.is_polytomous and len(self.thresholds) != 1:
            raise ValueError(
                f"{self.family.value} items have exactly one difficulty, "
                f"got {len(self.thresholds)}"
            )
        if self.family == ModelFamily.GRM and any(
            later < earlier
            for earlier, later in zip(self.thresholds, self.thresholds[1:])
        ):
            raise ValueError(
                f"GRM extremities must be non-decreasing, got {self.thresholds}"
            )
        return self

    @model_validator(mode="after")
    def _validate_rating_scale(self) -> "ItemParameters":
        if self.family != ModelFamily.RSM:
            if self.location is not None or self.steps is not None:
                raise ValueError("location and steps are only used by RSM")
            return self

        if self.location is None or self.steps is None:
            raise ValueError("RSM items need a location and steps")
        if len(self.steps) != len(self.thresholds):
            raise ValueError(
                f"Got {len(self.steps)} steps for {len(self.thresholds)} thresholds"
            )
        expected = np.array(self.steps) + self.location
        if not np.allclose(expected, self.thresholds, atol=THRESHOLD_TOLERANCE):
            raise ValueError("RSM thresholds must equal location + steps")
        return self

    @classmethod
    def dichotomous(
        cls,
        item_name: str,
        discrimination: float,
        difficulty: float,
        family: ModelFamily = ModelFamily.TWO_PL,
    ) -> Self:
        return cls(
            item_name=item_name,
            family=family,
            discrimination=float(discrimination),
            thresholds=(float(difficulty),),
        )

    @classmethod
    def graded(
        cls,
        item_name: str,
        discrimination: float,
        extremities: tuple[float, ...] | list[float],
    ) -> Self:
        return cls(
            item_name=item_name,
            family=ModelFamily.GRM,
            discrimination=float(discrimination),
            thresholds=tuple(float(b) for b in extremities),
        )

    @classmethod
    def rating_scale(
        cls,
        item_name: str,
        discrimination: float,
        location: float,
        steps: tuple[float, ...] | list[float],
    ) -> Self:
        steps_tuple = tuple(float(s) for s in steps)
        return cls(
            item_name=item_name,
            family=ModelFamily.RSM,
            discrimination=float(discrimination),
            thresholds=tuple(float(location) + s for s in steps_tuple),
            location=float(location),
            steps=steps_tuple,
        )

    @property
    def n_categories(self) -> int:
        return len(self.thresholds) + 1

    @property
    def difficulty(self) -> float:
        """Single difficulty of a dichotomous item."""
        if len(self.thresholds) != 1:
            raise ValueError(
                f"{self.item_name} has {len(self.thresholds)} thresholds"
            )
        return self.thresholds[0]

    def compute_probabilities(
        self, theta: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        """
        Category probabilities at the given trait values.

        Args:
            theta: Trait values, shape (n_theta,).

        Returns:
            Probabilities, shape (n_theta, n_categories).
        """
        theta = np.asarray(theta, dtype=np.float64)
        a = self.discrimination
        slopes = np.array([a], dtype=np.float64)
        thresholds = np.array(self.thresholds, dtype=np.float64)

        if self.family == ModelFamily.RSM:
            assert self.location is not None and self.steps is not None
            intercepts = np.array([-a * self.location], dtype=np.float64)
            steps = -a * np.array(self.steps, dtype=np.float64)
            probs = rating_scale_probabilities(theta, slopes, intercepts, steps)
        elif self.family == ModelFamily.GRM:
            probs = graded_probabilities(
                theta, slopes, (-a * thresholds)[np.newaxis, :]
            )
        else:
            probs = dichotomous_probabilities(theta, slopes, -a * thresholds)

        result: NDArray[np.float64] = probs[0]
        return result
