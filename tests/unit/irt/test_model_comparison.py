"""
Tests for comparing fitted models.
"""

import pytest
from scipy import stats

from screening_analysis.irt.estimation.data_models import FittedModel
from screening_analysis.irt.estimation.enums import (
    ConvergenceStatus,
    Estimator,
    ModelFamily,
)
from screening_analysis.irt.estimation.parameters import ItemParameters
from screening_analysis.irt.model_comparison import compare_models

ITEM_NAMES = tuple(f"DPQ0{i}0" for i in range(1, 10))


def _item(name: str, family: ModelFamily) -> ItemParameters:
    if family == ModelFamily.GRM:
        return ItemParameters.graded(name, 1.0, [-1.0, 0.0, 1.0])
    if family == ModelFamily.RSM:
        return ItemParameters.rating_scale(name, 1.0, 0.0, [-1.0, 0.0, 1.0])
    return ItemParameters.dichotomous(name, 1.0, 0.0, family=family)


def _model(
    family: ModelFamily,
    log_likelihood: float,
    n_parameters: int,
    n_respondents: int = 1000,
    item_names: tuple[str, ...] = ITEM_NAMES,
    estimator: Estimator = Estimator.MML,
) -> FittedModel:
    return FittedModel(
        family=family,
        estimator=estimator,
        item_parameters=tuple(_item(name, family) for name in item_names),
        log_likelihood=log_likelihood,
        n_parameters=n_parameters,
        n_respondents=n_respondents,
        n_iterations=20,
        convergence_status=ConvergenceStatus.CONVERGED,
        model_version="test",
    )


class TestCompareModels:
    def test_aic_scenario(self) -> None:
        """AIC 1018 for the restricted model against 996 for the general."""
        restricted = _model(ModelFamily.ONE_PL, -500.0, 9)
        general = _model(ModelFamily.TWO_PL, -480.0, 18)

        comparison = compare_models(restricted, general)

        assert comparison.aics == {"1PL": 1018.0, "2PL": 996.0}
        assert comparison.preferred == ModelFamily.TWO_PL
        assert comparison.log_likelihoods["2PL"] == -480.0

    def test_likelihood_ratio_for_nested_pair(self) -> None:
        restricted = _model(ModelFamily.ONE_PL, -500.0, 9)
        general = _model(ModelFamily.TWO_PL, -480.0, 18)

        lr = compare_models(restricted, general).likelihood_ratio

        assert lr is not None
        assert lr.statistic == pytest.approx(40.0)
        assert lr.degrees_of_freedom == 9
        assert lr.p_value == pytest.approx(stats.chi2.sf(40.0, 9))

    def test_no_likelihood_ratio_for_non_nested_pair(self) -> None:
        comparison = compare_models(
            _model(ModelFamily.RSM, -900.0, 12),
            _model(ModelFamily.GRM, -880.0, 36),
        )

        assert comparison.likelihood_ratio is None
        assert comparison.preferred == ModelFamily.RSM

    def test_no_likelihood_ratio_for_converted_model(self) -> None:
        comparison = compare_models(
            _model(ModelFamily.ONE_PL, -500.0, 10),
            _model(ModelFamily.TWO_PL, -490.0, 18, estimator=Estimator.WLSMV),
        )
        assert comparison.likelihood_ratio is None

    def test_restricted_preferred_on_tie(self) -> None:
        comparison = compare_models(
            _model(ModelFamily.ONE_PL, -500.0, 10),
            _model(ModelFamily.TWO_PL, -498.0, 12),
        )
        assert comparison.preferred == ModelFamily.ONE_PL

    def test_bic_penalizes_by_sample_size(self) -> None:
        comparison = compare_models(
            _model(ModelFamily.ONE_PL, -500.0, 9),
            _model(ModelFamily.TWO_PL, -480.0, 18),
        )
        assert comparison.bics["2PL"] - comparison.bics["1PL"] == pytest.approx(
            9 * 6.907755278982137 - 40.0
        )

    def test_rejects_different_data(self) -> None:
        with pytest.raises(ValueError, match="different data"):
            compare_models(
                _model(ModelFamily.ONE_PL, -500.0, 9),
                _model(ModelFamily.TWO_PL, -480.0, 18, n_respondents=999),
            )
        with pytest.raises(ValueError, match="different data"):
            compare_models(
                _model(ModelFamily.ONE_PL, -500.0, 9),
                _model(
                    ModelFamily.TWO_PL, -480.0, 18, item_names=ITEM_NAMES[:-1]
                ),
            )

    def test_rejects_same_family(self) -> None:
        with pytest.raises(ValueError):
            compare_models(
                _model(ModelFamily.TWO_PL, -500.0, 18),
                _model(ModelFamily.TWO_PL, -480.0, 18),
            )
