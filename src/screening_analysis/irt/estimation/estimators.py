"""
MML-EM estimators for the four supported model families.

Free parameter vectors (slope-intercept form, n_items = J, max category = K):
- 2PL:  [a_1..a_J, d_1..d_J]
- 1PL:  [a, d_1..d_J]
- GRM:  [a_1..a_J, (d_j1, g_j2..g_jK) for each item], with
        d_jc = d_j1 - Σ_{h=2..c} exp(g_jh) so intercepts stay ordered
- RSM:  [a, c_1..c_J, s_1..s_{K-1}], with s_K = -Σ s_h
"""

import numpy as np
from numpy.typing import NDArray

from screening_analysis.core.data_models import ResponseMatrix
from screening_analysis.irt.estimation.base import IRTEstimator
from screening_analysis.irt.estimation.config import EstimationConfig
from screening_analysis.irt.estimation.data_models import FittedModel
from screening_analysis.irt.estimation.enums import ModelFamily
from screening_analysis.irt.estimation.parameters import ItemParameters
from screening_analysis.irt.response_functions import (
    dichotomous_probabilities,
    graded_probabilities,
    rating_scale_probabilities,
    safe_log,
)

# Starting slope for every family
INITIAL_DISCRIMINATION = 1.0
# Smallest starting gap between successive GRM intercepts
MIN_INITIAL_GAP = 0.1


def _smoothed_logit(
    successes: NDArray[np.float64], trials: NDArray[np.float64]
) -> NDArray[np.float64]:
    p = (successes + 0.5) / (trials + 1.0)
    result: NDArray[np.float64] = np.log(p / (1.0 - p))
    return result


class TwoPLEstimator(IRTEstimator):
    """
    Dichotomous logistic model with per-item difficulty.

    Args:
        config: Estimation configuration.
        tie_discriminations: Constrain all items to one common
            discrimination, which yields the 1PL model.
    """

    def __init__(
        self,
        config: EstimationConfig | None = None,
        tie_discriminations: bool = False,
    ):
        super().__init__(config)
        self.tie_discriminations = tie_discriminations

    @property
    def family(self) -> ModelFamily:
        if self.tie_discriminations:
            return ModelFamily.ONE_PL
        return ModelFamily.TWO_PL

    def _n_slopes(self, data: ResponseMatrix) -> int:
        return 1 if self.tie_discriminations else data.n_items

    def _check_data(self, data: ResponseMatrix) -> None:
        if not data.is_dichotomous:
            raise ValueError(
                f"{self.family.value} needs dichotomous data, got "
                f"{data.n_categories} categories"
            )

    def _initial_vector(self, data: ResponseMatrix) -> NDArray[np.float64]:
        valid = data.valid_mask
        endorsed = ((data.responses == 1) & valid).sum(axis=0).astype(np.float64)
        answered = valid.sum(axis=0).astype(np.float64)
        intercepts = _smoothed_logit(endorsed, answered)
        slopes = np.full(self._n_slopes(data), INITIAL_DISCRIMINATION)
        return np.concatenate([slopes, intercepts])

    def _bounds(self, data: ResponseMatrix) -> list[tuple[float, float]]:
        bounds = self.config.bounds
        return [bounds.discrimination] * self._n_slopes(data) + [
            bounds.intercept
        ] * data.n_items

    def _parameter_names(self, data: ResponseMatrix) -> list[str]:
        if self.tie_discriminations:
            slopes = ["a"]
        else:
            slopes = [f"a[{name}]" for name in data.item_names]
        return slopes + [f"d[{name}]" for name in data.item_names]

    def _split(
        self, vector: NDArray[np.float64], data: ResponseMatrix
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        n_slopes = self._n_slopes(data)
        slopes = np.broadcast_to(vector[:n_slopes], (data.n_items,))
        return slopes, vector[n_slopes:]

    def _log_probabilities(
        self,
        vector: NDArray[np.float64],
        theta: NDArray[np.float64],
        data: ResponseMatrix,
    ) -> NDArray[np.float64]:
        slopes, intercepts = self._split(vector, data)
        return safe_log(dichotomous_probabilities(theta, slopes, intercepts))

    def _to_item_parameters(
        self,
        vector: NDArray[np.float64],
        data: ResponseMatrix,
    ) -> tuple[ItemParameters, ...]:
        slopes, intercepts = self._split(vector, data)
        return tuple(
            ItemParameters.dichotomous(
                item_name=name,
                discrimination=float(a),
                difficulty=float(-d / a),
                family=self.family,
            )
            for name, a, d in zip(data.item_names, slopes, intercepts)
        )


class RaschEstimator(TwoPLEstimator):
    """1PL model: the 2PL with one discrimination shared by all items."""

    def __init__(self, config: EstimationConfig | None = None):
        super().__init__(config, tie_discriminations=True)


class GradedResponseEstimator(IRTEstimator):
    """Samejima's graded response model for ordered categories."""

    @property
    def family(self) -> ModelFamily:
        return ModelFamily.GRM

    def _check_data(self, data: ResponseMatrix) -> None:
        # Any number of ordered categories; two categories reduce to 2PL
        return None

    def _initial_vector(self, data: ResponseMatrix) -> NDArray[np.float64]:
        n_thresholds = data.max_category
        blocks: list[NDArray[np.float64]] = []

        for item_idx in range(data.n_items):
            counts = data.item_response_counts(item_idx).astype(np.float64)
            total = counts.sum()
            # P(X >= c) for c = 1..K
            at_least = np.cumsum(counts[::-1])[::-1][1:]
            intercepts = _smoothed_logit(at_least, np.full(n_thresholds, total))
            gaps = np.maximum(-np.diff(intercepts), MIN_INITIAL_GAP)
            blocks.append(np.concatenate([[intercepts[0]], np.log(gaps)]))

        slopes = np.full(data.n_items, INITIAL_DISCRIMINATION)
        return np.concatenate([slopes, *blocks])

    def _bounds(self, data: ResponseMatrix) -> list[tuple[float, float]]:
        bounds = self.config.bounds
        per_item = [bounds.intercept] + [bounds.log_gap] * (data.max_category - 1)
        return [bounds.discrimination] * data.n_items + per_item * data.n_items

    def _parameter_names(self, data: ResponseMatrix) -> list[str]:
        names = [f"a[{name}]" for name in data.item_names]
        for name in data.item_names:
            names.append(f"d[{name}][1]")
            names.extend(
                f"log_gap[{name}][{c}]" for c in range(2, data.max_category + 1)
            )
        return names

    def _split(
        self, vector: NDArray[np.float64], data: ResponseMatrix
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        n_items = data.n_items
        slopes = vector[:n_items]
        blocks = vector[n_items:].reshape(n_items, data.max_category)
        steps = np.concatenate(
            [np.zeros((n_items, 1)), np.cumsum(np.exp(blocks[:, 1:]), axis=1)],
            axis=1,
        )
        intercepts = blocks[:, :1] - steps
        return slopes, intercepts

    def _log_probabilities(
        self,
        vector: NDArray[np.float64],
        theta: NDArray[np.float64],
        data: ResponseMatrix,
    ) -> NDArray[np.float64]:
        slopes, intercepts = self._split(vector, data)
        return safe_log(graded_probabilities(theta, slopes, intercepts))

    def _to_item_parameters(
        self,
        vector: NDArray[np.float64],
        data: ResponseMatrix,
    ) -> tuple[ItemParameters, ...]:
        slopes, intercepts = self._split(vector, data)
        return tuple(
            ItemParameters.graded(
                item_name=name,
                discrimination=float(a),
                extremities=[float(-d / a) for d in item_intercepts],
            )
            for name, a, item_intercepts in zip(
                data.item_names, slopes, intercepts
            )
        )


class RatingScaleEstimator(IRTEstimator):
    """
    Andrich rating scale model.

    Items differ only in location; the category steps and the
    discrimination are shared.
    """

    @property
    def family(self) -> ModelFamily:
        return ModelFamily.RSM

    def _check_data(self, data: ResponseMatrix) -> None:
        return None

    def _initial_vector(self, data: ResponseMatrix) -> NDArray[np.float64]:
        valid = data.valid_mask
        scores = np.where(valid, data.responses, 0).sum(axis=0).astype(np.float64)
        maximum = valid.sum(axis=0).astype(np.float64) * data.max_category
        intercepts = _smoothed_logit(scores, maximum)
        steps = np.zeros(data.max_category - 1)
        return np.concatenate([[INITIAL_DISCRIMINATION], intercepts, steps])

    def _bounds(self, data: ResponseMatrix) -> list[tuple[float, float]]:
        bounds = self.config.bounds
        n_free = data.n_items + data.max_category - 1
        return [bounds.discrimination] + [bounds.intercept] * n_free

    def _parameter_names(self, data: ResponseMatrix) -> list[str]:
        return (
            ["a"]
            + [f"c[{name}]" for name in data.item_names]
            + [f"s[{h}]" for h in range(1, data.max_category)]
        )

    def _split(
        self, vector: NDArray[np.float64], data: ResponseMatrix
    ) -> tuple[float, NDArray[np.float64], NDArray[np.float64]]:
        n_items = data.n_items
        free_steps = vector[1 + n_items :]
        steps = np.append(free_steps, -free_steps.sum())
        return float(vector[0]), vector[1 : 1 + n_items], steps

    def _log_probabilities(
        self,
        vector: NDArray[np.float64],
        theta: NDArray[np.float64],
        data: ResponseMatrix,
    ) -> NDArray[np.float64]:
        a, intercepts, steps = self._split(vector, data)
        slopes = np.full(data.n_items, a)
        return safe_log(
            rating_scale_probabilities(theta, slopes, intercepts, steps)
        )

    def _to_item_parameters(
        self,
        vector: NDArray[np.float64],
        data: ResponseMatrix,
    ) -> tuple[ItemParameters, ...]:
        a, intercepts, steps = self._split(vector, data)
        item_steps = [float(-s / a) for s in steps]
        return tuple(
            ItemParameters.rating_scale(
                item_name=name,
                discrimination=a,
                location=float(-c / a),
                steps=item_steps,
            )
            for name, c in zip(data.item_names, intercepts)
        )


def get_estimator(
    family: ModelFamily | str,
    config: EstimationConfig | None = None,
) -> IRTEstimator:
    """Create the estimator for a model family."""
    family = ModelFamily(family)
    if family == ModelFamily.ONE_PL:
        return RaschEstimator(config)
    if family == ModelFamily.TWO_PL:
        return TwoPLEstimator(config)
    if family == ModelFamily.GRM:
        return GradedResponseEstimator(config)
    return RatingScaleEstimator(config)


def fit_model(
    data: ResponseMatrix,
    family: ModelFamily | str,
    config: EstimationConfig | None = None,
) -> FittedModel:
    """
    Fit one model family to a response matrix by MML-EM.

    Raises:
        ValueError: If the data does not suit the family.
        ConvergenceFailure: If estimation fails.
    """
    return get_estimator(family, config).fit(data)
