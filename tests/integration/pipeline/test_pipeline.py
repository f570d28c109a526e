"""
End-to-end runs of the analysis pipeline on simulated PHQ-9 responses.
"""

import json
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402
import pytest  # noqa: E402

from screening_analysis.core.constants import (  # noqa: E402
    DONT_KNOW_CODE,
    REFUSED_CODE,
)
from screening_analysis.core.data_models import PHQ9  # noqa: E402
from screening_analysis.core.errors import MismatchedKeys  # noqa: E402
from screening_analysis.core.utils import get_rng  # noqa: E402
from screening_analysis.irt.estimation.config import (  # noqa: E402
    EstimationConfig,
    QuadratureConfig,
)
from screening_analysis.irt.estimation.enums import (  # noqa: E402
    Estimator,
    ModelFamily,
)
from screening_analysis.irt.estimation.parameters import (  # noqa: E402
    ItemParameters,
)
from screening_analysis.irt.sampling import sample_responses  # noqa: E402
from screening_analysis.pipeline import (  # noqa: E402
    AnalysisPipeline,
    PipelineConfig,
    PipelineResult,
)
from screening_analysis.reporting import save_report  # noqa: E402

N_RESPONDENTS = 1500
FAST_CONFIG = EstimationConfig(
    quadrature=QuadratureConfig(n_points=21),
    compute_standard_errors=False,
    model_version="test",
)


@pytest.fixture(scope="module")
def raw_frame() -> pd.DataFrame:
    """Raw survey export: codes 0..3, refusals, skips and extra columns."""
    rng = get_rng(2024)
    truth = [
        ItemParameters.graded(name, a, [b - 0.7, b + 0.2, b + 0.9])
        for name, a, b in zip(
            PHQ9.item_names,
            (2.2, 2.6, 1.4, 1.8, 1.3, 2.3, 1.7, 1.5, 1.9),
            (0.6, 0.8, 0.1, -0.1, 0.7, 0.9, 0.8, 1.4, 1.8),
        )
    ]
    matrix = sample_responses(rng.standard_normal(N_RESPONDENTS), truth, rng)
    values = matrix.responses.astype(np.float64)

    values[rng.random(values.shape) < 0.01] = REFUSED_CODE
    values[rng.random(values.shape) < 0.01] = DONT_KNOW_CODE
    values[rng.random(values.shape) < 0.02] = np.nan
    # A respondent who skipped the whole questionnaire
    values[0] = np.nan

    frame = pd.DataFrame(values, columns=list(PHQ9.item_names))
    frame.insert(0, PHQ9.id_column, np.arange(N_RESPONDENTS) + 100000)
    frame["DPQ100"] = rng.integers(0, 4, N_RESPONDENTS)
    return frame


def _pipeline(**overrides: object) -> AnalysisPipeline:
    config = PipelineConfig(
        parallel_analysis_iterations=20,
        theta_step=0.1,
        **overrides,  # type: ignore[arg-type]
    )
    return AnalysisPipeline(config, FAST_CONFIG)


@pytest.mark.slow
class TestDichotomousPipeline:
    @pytest.fixture(scope="class")
    def result(self, raw_frame: pd.DataFrame) -> PipelineResult:
        return _pipeline().run(raw_frame, PHQ9)

    def test_stages(self, result: PipelineResult) -> None:
        assert result.matrix.is_dichotomous
        assert result.matrix.n_respondents == N_RESPONDENTS - 1
        assert result.matrix.item_names == PHQ9.item_names
        assert result.parallel_analysis.n_factors == 1
        assert result.parallel_analysis.seed == result.config.random_seed
        assert result.model.family == ModelFamily.TWO_PL
        assert result.model.estimator == Estimator.MML
        assert result.model.converged

    def test_loadings_agree(self, result: PipelineResult) -> None:
        assert result.comparison.keys == PHQ9.item_names
        assert result.comparison.label_a == "irt"
        assert result.comparison.label_b == "cfa"
        assert result.comparison.max_abs_difference < 0.1
        for row in result.comparison.rows:
            assert 0.0 < row.value_a < 1.0
            assert row.ratio == pytest.approx(1.0, abs=0.2)

    def test_curves_and_abilities(self, result: PipelineResult) -> None:
        assert result.curves.theta[0] == pytest.approx(-6.0)
        assert result.curves.theta[-1] == pytest.approx(6.0)
        assert result.curves.item_information.shape == (9, 121)
        assert np.all(result.curves.test_information > 0)
        assert result.abilities.n_respondents == result.matrix.n_respondents
        assert np.all(np.isfinite(result.abilities.eap))

    def test_save_report(self, result: PipelineResult, tmp_path: Path) -> None:
        written = save_report(result, tmp_path)

        names = {path.name for path in written}
        assert {
            "model_2pl_mml.json",
            "cfa.json",
            "summary.json",
            "comparison.csv",
            "parameters_2pl_mml.csv",
            "curves.csv",
            "item_characteristic_curves.png",
            "information.png",
            "parallel_analysis.png",
            "loading_comparison.png",
        } == names
        assert all(path.exists() and path.stat().st_size > 0 for path in written)

        summary = json.loads((tmp_path / "summary.json").read_text())
        assert summary["model_family"] == "2PL"
        assert summary["random_seed"] == result.config.random_seed
        assert summary["irt_loadings_source"] == "mml"

        comparison = pd.read_csv(tmp_path / "comparison.csv", index_col="key")
        assert list(comparison.index) == list(PHQ9.item_names)


@pytest.mark.slow
def test_graded_wlsmv_pipeline(
    raw_frame: pd.DataFrame, tmp_path: Path
) -> None:
    result = _pipeline(
        dichotomize=False, model_family="GRM", estimator="WLSMV"
    ).run(raw_frame, PHQ9)

    assert result.matrix.n_categories == 4
    assert result.model.family == ModelFamily.GRM
    assert result.model.estimator == Estimator.WLSMV
    # Converted loadings reproduce the CFA loadings they came from
    assert result.comparison.max_abs_difference < 1e-9
    assert all(len(p.thresholds) == 3 for p in result.model.item_parameters)
    assert result.irt_loadings_source == "cfa_conversion"

    save_report(result, tmp_path)
    summary = json.loads((tmp_path / "summary.json").read_text())
    assert summary["irt_loadings_source"] == "cfa_conversion"
    assert summary["estimator"] == "WLSMV"


def test_missing_item_column(raw_frame: pd.DataFrame) -> None:
    frame = raw_frame.drop(columns=["DPQ050"])

    with pytest.raises(MismatchedKeys) as excinfo:
        _pipeline().run(frame, PHQ9)

    assert excinfo.value.missing_in_a == ("DPQ050",)
