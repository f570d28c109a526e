"""
One-factor confirmatory factor analysis of ordinal items.

The model is fitted with semopy by unweighted least squares on the
polychoric correlation matrix, the limited-information approach of
WLSMV-style ordinal CFA. semopy identifies the factor by fixing the first
loading to 1; the reported loadings are standardized so the factor and
every latent response variate have unit variance.
"""

import logging

import numpy as np
import pandas as pd
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict
from semopy import Model

from screening_analysis.core.data_models import ResponseMatrix
from screening_analysis.core.errors import ConvergenceFailure
from screening_analysis.factor.polychoric import (
    PolychoricResult,
    polychoric_matrix,
)

logger = logging.getLogger(__name__)

DEFAULT_FACTOR_NAME = "depression"
CFA_OBJECTIVE = "ULS"
CFA_MODEL_LABEL = "CFA"


class CFAResult(BaseModel):
    """
    Standardized one-factor solution.

    Attributes:
        factor_name: Name of the latent factor.
        loadings: Standardized loading per item.
        thresholds: Thresholds τ_1..τ_K per item on the latent response scale.
        residual_variances: 1 - loading², per item.
        srmr: Standardized root mean square residual against the
            polychoric matrix.
        n_respondents: Respondents the correlations were computed from.
        objective: semopy objective used for fitting.
    """

    model_config = ConfigDict(frozen=True)

    factor_name: str
    loadings: dict[str, float]
    thresholds: dict[str, tuple[float, ...]]
    residual_variances: dict[str, float]
    srmr: float
    n_respondents: int
    objective: str = CFA_OBJECTIVE

    @property
    def item_names(self) -> tuple[str, ...]:
        return tuple(self.loadings)


def model_description(factor_name: str, item_names: tuple[str, ...]) -> str:
    """semopy measurement model, e.g. "depression =~ DPQ010 + DPQ020"."""
    return f"{factor_name} =~ " + " + ".join(item_names)


def srmr(
    observed: NDArray[np.float64], loadings: NDArray[np.float64]
) -> float:
    """SRMR of a standardized one-factor model against a correlation matrix."""
    implied = np.outer(loadings, loadings)
    np.fill_diagonal(implied, 1.0)
    rows, cols = np.tril_indices(len(loadings))
    residuals = (observed - implied)[rows, cols]
    return float(np.sqrt(np.mean(residuals**2)))


def _standardized_loadings(
    estimates: pd.DataFrame,
    factor_name: str,
    item_names: tuple[str, ...],
) -> NDArray[np.float64]:
    loading_rows = estimates[
        (estimates["op"] == "~") & (estimates["rval"] == factor_name)
    ].set_index("lval")
    variances = estimates[
        (estimates["op"] == "~~") & (estimates["lval"] == estimates["rval"])
    ].set_index("lval")["Estimate"]

    raw = loading_rows.loc[list(item_names), "Estimate"].to_numpy(dtype=float)
    factor_variance = float(variances[factor_name])
    residual = variances.loc[list(item_names)].to_numpy(dtype=float)

    implied_variance = raw**2 * factor_variance + residual
    result: NDArray[np.float64] = (
        raw * np.sqrt(factor_variance) / np.sqrt(implied_variance)
    )
    return result


def fit_ordinal_cfa(
    matrix: ResponseMatrix,
    factor_name: str = DEFAULT_FACTOR_NAME,
    polychoric: PolychoricResult | None = None,
) -> CFAResult:
    """
    Fit a one-factor CFA to ordinal responses.

    Args:
        matrix: Recoded responses.
        factor_name: Name of the latent factor.
        polychoric: Precomputed polychoric correlations of `matrix`;
            computed when None.

    Raises:
        ConvergenceFailure: If the solver fails or yields a non-finite
            solution.
    """
    if polychoric is None:
        polychoric = polychoric_matrix(matrix)
    item_names = polychoric.item_names

    cov = pd.DataFrame(
        polychoric.correlations, index=list(item_names), columns=list(item_names)
    )
    model = Model(model_description(factor_name, item_names))
    try:
        result = model.fit(
            cov=cov, obj=CFA_OBJECTIVE, n_samples=polychoric.n_respondents
        )
    except (np.linalg.LinAlgError, ValueError) as e:
        raise ConvergenceFailure(CFA_MODEL_LABEL, item_names, str(e)) from e

    if not result.success:
        raise ConvergenceFailure(
            CFA_MODEL_LABEL,
            item_names,
            f"solver did not converge: {result.message}",
            result.n_it,
        )

    loadings = _standardized_loadings(model.inspect(), factor_name, item_names)
    if not np.all(np.isfinite(loadings)):
        raise ConvergenceFailure(
            CFA_MODEL_LABEL, item_names, "non-finite standardized loadings"
        )

    fit_srmr = srmr(polychoric.correlations, loadings)
    logger.info(
        f"One-factor CFA on {len(item_names)} items: SRMR = {fit_srmr:.4f}"
    )

    return CFAResult(
        factor_name=factor_name,
        loadings={
            name: float(value) for name, value in zip(item_names, loadings)
        },
        thresholds={
            name: tuple(float(t) for t in polychoric.thresholds[j])
            for j, name in enumerate(item_names)
        },
        residual_variances={
            name: float(1.0 - value**2)
            for name, value in zip(item_names, loadings)
        },
        srmr=fit_srmr,
        n_respondents=polychoric.n_respondents,
    )
