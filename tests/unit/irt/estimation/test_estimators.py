"""
Tests for the EM machinery and the family estimators on small data sets.
"""

import numpy as np
import pytest

from screening_analysis.core.constants import MISSING_VALUE
from screening_analysis.core.data_models import ResponseMatrix
from screening_analysis.core.errors import ConvergenceFailure
from screening_analysis.core.utils import get_rng
from screening_analysis.irt.estimation.base import (
    joint_log_likelihood,
    marginal_log_likelihood,
)
from screening_analysis.irt.estimation.config import (
    ConvergenceConfig,
    EstimationConfig,
    ParameterBounds,
    QuadratureConfig,
)
from screening_analysis.irt.estimation.enums import (
    ConvergenceStatus,
    ModelFamily,
)
from screening_analysis.irt.estimation.estimators import (
    GradedResponseEstimator,
    RaschEstimator,
    RatingScaleEstimator,
    TwoPLEstimator,
    fit_model,
    get_estimator,
)
from screening_analysis.irt.estimation.parameters import ItemParameters
from screening_analysis.irt.estimation.quadrature import get_quadrature
from screening_analysis.irt.sampling import sample_responses

FAST_CONFIG = EstimationConfig(
    quadrature=QuadratureConfig(n_points=21),
    compute_standard_errors=False,
    model_version="test",
)


def _binary_data(n_respondents: int = 300, seed: int = 3) -> ResponseMatrix:
    rng = get_rng(seed)
    items = [
        ItemParameters.dichotomous(f"Q{j}", a, b)
        for j, (a, b) in enumerate(
            [(1.0, -0.5), (1.5, 0.0), (0.8, 0.7), (2.0, 0.3)]
        )
    ]
    return sample_responses(rng.standard_normal(n_respondents), items, rng)


def _ordinal_data(n_respondents: int = 300, seed: int = 4) -> ResponseMatrix:
    rng = get_rng(seed)
    items = [
        ItemParameters.graded(f"Q{j}", a, b)
        for j, (a, b) in enumerate(
            [
                (1.2, [-1.0, 0.0, 1.0]),
                (1.8, [-0.5, 0.5, 1.5]),
                (0.9, [-1.5, -0.2, 0.8]),
            ]
        )
    ]
    return sample_responses(rng.standard_normal(n_respondents), items, rng)


class TestJointLogLikelihood:
    def test_missing_responses_contribute_nothing(self) -> None:
        responses = np.array([[1, MISSING_VALUE]], dtype=np.int8)
        log_probs = np.log(
            np.array(
                [
                    [[0.2, 0.8], [0.6, 0.4]],
                    [[0.3, 0.7], [0.9, 0.1]],
                ]
            )
        )
        log_prior = np.log(np.array([0.5, 0.5]))

        joint = joint_log_likelihood(responses, log_probs, log_prior)

        np.testing.assert_allclose(
            joint, np.log([[0.5 * 0.8, 0.5 * 0.4]]), rtol=1e-12
        )


class TestMarginalLogLikelihood:
    def test_symmetric_item(self) -> None:
        """An item centred at the prior mean is endorsed with probability 0.5."""
        data = ResponseMatrix(
            responses=np.array([[1], [0]], dtype=np.int8),
            n_categories=2,
            item_names=("Q",),
        )
        item = ItemParameters.dichotomous("Q", 1.3, 0.0)

        log_likelihood = marginal_log_likelihood(
            data, [item], get_quadrature(QuadratureConfig())
        )

        np.testing.assert_allclose(log_likelihood, 2 * np.log(0.5), rtol=1e-8)


class TestFamilyEstimators:
    @pytest.mark.parametrize(
        ("family", "n_parameters"),
        [(ModelFamily.ONE_PL, 5), (ModelFamily.TWO_PL, 8)],
    )
    def test_dichotomous_parameter_counts(
        self, family: ModelFamily, n_parameters: int
    ) -> None:
        model = fit_model(_binary_data(), family, FAST_CONFIG)

        assert model.family == family
        assert model.n_parameters == n_parameters
        assert model.convergence_status == ConvergenceStatus.CONVERGED
        assert model.item_names == ("Q0", "Q1", "Q2", "Q3")
        assert np.isfinite(model.log_likelihood)

    @pytest.mark.parametrize(
        ("family", "n_parameters"),
        [(ModelFamily.GRM, 12), (ModelFamily.RSM, 6)],
    )
    def test_polytomous_parameter_counts(
        self, family: ModelFamily, n_parameters: int
    ) -> None:
        model = fit_model(_ordinal_data(), family, FAST_CONFIG)

        assert model.n_parameters == n_parameters
        assert model.n_categories == 4
        assert model.item_names == ("Q0", "Q1", "Q2")

    def test_tied_families_share_discrimination(self) -> None:
        rasch = RaschEstimator(FAST_CONFIG).fit(_binary_data())
        rating = RatingScaleEstimator(FAST_CONFIG).fit(_ordinal_data())

        for model in (rasch, rating):
            assert model.discriminations_tied
            assert len(set(model.discriminations.values())) == 1

    def test_rating_scale_steps_shared_and_centred(self) -> None:
        model = RatingScaleEstimator(FAST_CONFIG).fit(_ordinal_data())

        steps = {params.steps for params in model.item_parameters}
        assert len(steps) == 1
        np.testing.assert_allclose(sum(steps.pop() or ()), 0.0, atol=1e-10)

    def test_dichotomous_family_rejects_ordinal_data(self) -> None:
        with pytest.raises(ValueError, match="dichotomous"):
            TwoPLEstimator(FAST_CONFIG).fit(_ordinal_data())

    def test_two_pl_with_fixed_common_slope_reaches_rasch_optimum(
        self,
    ) -> None:
        data = _binary_data()
        rasch = RaschEstimator(FAST_CONFIG).fit(data)
        slope = rasch.item_parameters[0].discrimination
        fixed_slopes = EstimationConfig(
            quadrature=FAST_CONFIG.quadrature,
            bounds=ParameterBounds(discrimination=(slope, slope)),
            compute_standard_errors=False,
            model_version="test",
        )

        restricted = TwoPLEstimator(fixed_slopes).fit(data)
        free = TwoPLEstimator(FAST_CONFIG).fit(data)

        assert restricted.family == ModelFamily.TWO_PL
        np.testing.assert_allclose(
            list(restricted.discriminations.values()), slope
        )
        assert restricted.log_likelihood == pytest.approx(
            rasch.log_likelihood, abs=0.05
        )
        np.testing.assert_allclose(
            [p.difficulty for p in restricted.item_parameters],
            [p.difficulty for p in rasch.item_parameters],
            atol=0.02,
        )
        assert free.log_likelihood >= rasch.log_likelihood - 1e-6

    def test_rasch_log_likelihood_is_marginal_likelihood(self) -> None:
        data = _binary_data()
        rasch = RaschEstimator(FAST_CONFIG).fit(data)

        recomputed = marginal_log_likelihood(
            data,
            rasch.item_parameters,
            get_quadrature(FAST_CONFIG.quadrature),
        )

        assert recomputed == pytest.approx(rasch.log_likelihood, abs=1e-6)

    def test_get_estimator(self) -> None:
        assert isinstance(get_estimator("1PL"), RaschEstimator)
        assert isinstance(get_estimator(ModelFamily.GRM), GradedResponseEstimator)
        assert isinstance(get_estimator("RSM"), RatingScaleEstimator)
        with pytest.raises(ValueError):
            get_estimator("3PL")


class TestConvergenceFailure:
    def test_iteration_budget_exhausted(self) -> None:
        config = EstimationConfig(
            quadrature=QuadratureConfig(n_points=21),
            convergence=ConvergenceConfig(max_em_iterations=1),
            compute_standard_errors=False,
            model_version="test",
        )

        with pytest.raises(ConvergenceFailure) as exc_info:
            TwoPLEstimator(config).fit(_binary_data())

        error = exc_info.value
        assert error.model_family == "2PL"
        assert error.item_names == ("Q0", "Q1", "Q2", "Q3")
        assert error.n_iterations == 1

    def test_singular_information_matrix(self) -> None:
        """An item nobody answered leaves its parameters unidentified."""
        data = _binary_data()
        responses = data.responses.copy()
        responses[:, 2] = MISSING_VALUE
        unanswered = ResponseMatrix(
            responses=responses,
            n_categories=2,
            item_names=data.item_names,
        )
        config = EstimationConfig(
            quadrature=QuadratureConfig(n_points=21), model_version="test"
        )

        with pytest.raises(ConvergenceFailure, match="singular"):
            TwoPLEstimator(config).fit(unanswered)

    def test_standard_errors_reported(self) -> None:
        config = EstimationConfig(
            quadrature=QuadratureConfig(n_points=21), model_version="test"
        )

        model = TwoPLEstimator(config).fit(_binary_data())

        assert model.standard_errors is not None
        assert len(model.standard_errors) == model.n_parameters
        assert all(se > 0 for se in model.standard_errors)
        assert model.standard_error("a[Q1]") > 0
