"""
Ordinal CFA on data simulated from a known one-factor model.
"""

import numpy as np
import pytest

from screening_analysis.core.data_models import ResponseMatrix
from screening_analysis.core.utils import get_rng
from screening_analysis.factor.cfa import fit_ordinal_cfa, model_description
from screening_analysis.factor.conversion import to_loading
from screening_analysis.factor.polychoric import polychoric_matrix
from screening_analysis.irt.estimation.parameters import ItemParameters
from screening_analysis.irt.sampling import sample_responses

TRUE_LOADINGS = np.array([0.75, 0.8, 0.55, 0.65, 0.5, 0.75, 0.6, 0.55, 0.6])
CUTS = np.array([0.3, 1.0, 1.6])
ITEM_NAMES = tuple(f"DPQ0{j}0" for j in range(1, 10))
N_RESPONDENTS = 2500


@pytest.fixture(scope="module")
def ordinal_matrix() -> ResponseMatrix:
    rng = get_rng(7)
    trait = rng.standard_normal(N_RESPONDENTS)
    noise = rng.standard_normal((N_RESPONDENTS, len(TRUE_LOADINGS)))
    latent = trait[:, np.newaxis] * TRUE_LOADINGS + noise * np.sqrt(
        1.0 - TRUE_LOADINGS**2
    )
    return ResponseMatrix(
        responses=np.digitize(latent, CUTS).astype(np.int8),
        n_categories=4,
        item_names=ITEM_NAMES,
    )


@pytest.mark.slow
class TestOrdinalCFA:
    def test_polychoric_thresholds(
        self, ordinal_matrix: ResponseMatrix
    ) -> None:
        result = polychoric_matrix(ordinal_matrix)

        np.testing.assert_allclose(
            result.thresholds, np.tile(CUTS, (9, 1)), atol=0.1
        )

    def test_loadings_recovered(self, ordinal_matrix: ResponseMatrix) -> None:
        cfa = fit_ordinal_cfa(ordinal_matrix)

        assert cfa.item_names == ITEM_NAMES
        estimated = np.array([cfa.loadings[name] for name in ITEM_NAMES])
        np.testing.assert_allclose(estimated, TRUE_LOADINGS, atol=0.06)
        assert cfa.srmr < 0.05
        assert cfa.n_respondents == N_RESPONDENTS
        for name in ITEM_NAMES:
            assert cfa.residual_variances[name] == pytest.approx(
                1.0 - cfa.loadings[name] ** 2
            )

    def test_precomputed_correlations_reused(
        self, ordinal_matrix: ResponseMatrix
    ) -> None:
        polychoric = polychoric_matrix(ordinal_matrix)

        first = fit_ordinal_cfa(ordinal_matrix, polychoric=polychoric)
        second = fit_ordinal_cfa(ordinal_matrix, polychoric=polychoric)

        assert first.loadings == pytest.approx(second.loadings)


@pytest.mark.slow
def test_cfa_matches_converted_two_pl_loadings() -> None:
    discriminations = (2.0, 2.4, 1.3, 1.7, 1.2, 2.1, 1.6, 1.4, 1.8)
    truth = [
        ItemParameters.dichotomous(name, a, b)
        for name, a, b in zip(
            ITEM_NAMES,
            discriminations,
            (0.5, 0.7, 0.0, -0.2, 0.6, 0.8, 0.7, 1.2, 1.5),
        )
    ]
    rng = get_rng(11)
    data = sample_responses(rng.standard_normal(4000), truth, rng)

    cfa = fit_ordinal_cfa(data, factor_name="depression")

    expected = np.array([to_loading(a, 1.7) for a in discriminations])
    estimated = np.array([cfa.loadings[name] for name in ITEM_NAMES])
    np.testing.assert_allclose(estimated, expected, atol=0.08)


def test_model_description() -> None:
    assert (
        model_description("depression", ("DPQ010", "DPQ020"))
        == "depression =~ DPQ010 + DPQ020"
    )
