"""
Writing pipeline results to disk: JSON, CSV tables and PNG figures.
"""

import json
import logging
from pathlib import Path

import pandas as pd

from screening_analysis.pipeline.runner import PipelineResult
from screening_analysis.reporting.plotting import (
    plot_information_curves,
    plot_item_characteristic_curves,
    plot_loading_comparison,
    plot_parallel_analysis,
)

logger = logging.getLogger(__name__)


def parameter_table(result: PipelineResult) -> pd.DataFrame:
    """Item parameters of the fitted model with both loadings."""
    rows = []
    for params in result.model.item_parameters:
        row: dict[str, float | str] = {
            "item": params.item_name,
            "discrimination": params.discrimination,
        }
        for c, threshold in enumerate(params.thresholds, start=1):
            row[f"b{c}"] = threshold
        row["irt_loading"] = result.irt_loadings[params.item_name]
        row["cfa_loading"] = result.cfa.loadings[params.item_name]
        rows.append(row)
    return pd.DataFrame(rows).set_index("item")


def curves_table(result: PipelineResult) -> pd.DataFrame:
    curves = result.curves
    data = {"theta": curves.theta}
    for name, scores in zip(curves.item_names, curves.expected_scores):
        data[f"{name}_expected"] = scores
    for name, information in zip(curves.item_names, curves.item_information):
        data[f"{name}_information"] = information
    data["test_information"] = curves.test_information
    data["standard_error"] = curves.standard_error
    return pd.DataFrame(data)


def save_report(result: PipelineResult, output_dir: Path) -> list[Path]:
    """
    Save every artifact of a pipeline run.

    Returns:
        Paths of the written files.
    """
    import matplotlib.pyplot as plt

    output_dir.mkdir(parents=True, exist_ok=True)
    stem = f"{result.model.family.value}_{result.model.estimator.value}".lower()
    written: list[Path] = []

    model_path = output_dir / f"model_{stem}.json"
    model_path.write_text(result.model.model_dump_json(indent=2))
    written.append(model_path)

    cfa_path = output_dir / "cfa.json"
    cfa_path.write_text(result.cfa.model_dump_json(indent=2))
    written.append(cfa_path)

    summary_path = output_dir / "summary.json"
    summary = {
        "model_family": result.model.family.value,
        "estimator": result.model.estimator.value,
        "log_likelihood": result.model.log_likelihood,
        "aic": result.model.aic,
        "bic": result.model.bic,
        "srmr": result.cfa.srmr,
        "n_respondents": result.matrix.n_respondents,
        "parallel_analysis_factors": result.parallel_analysis.n_factors,
        "random_seed": result.parallel_analysis.seed,
        "max_abs_loading_difference": result.comparison.max_abs_difference,
        "irt_loadings_source": result.irt_loadings_source,
    }
    summary_path.write_text(json.dumps(summary, indent=2))
    written.append(summary_path)

    tables = {
        "comparison.csv": result.comparison.to_frame(),
        f"parameters_{stem}.csv": parameter_table(result),
        "curves.csv": curves_table(result),
    }
    for filename, frame in tables.items():
        path = output_dir / filename
        frame.to_csv(path)
        written.append(path)

    figures = {
        "item_characteristic_curves.png": plot_item_characteristic_curves(
            result.curves
        ),
        "information.png": plot_information_curves(result.curves),
        "parallel_analysis.png": plot_parallel_analysis(
            result.parallel_analysis
        ),
        "loading_comparison.png": plot_loading_comparison(result.comparison),
    }
    for filename, fig in figures.items():
        path = output_dir / filename
        fig.savefig(path, dpi=150)
        plt.close(fig)
        written.append(path)

    logger.info(f"Wrote {len(written)} report files to {output_dir}")
    return written
