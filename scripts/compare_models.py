#!/usr/bin/env python
"""
Fit a restricted and a general model family and compare their fit.
"""

import typer
from rich.console import Console
from rich.table import Table

from screening_analysis.core.data import load_instrument_frame
from screening_analysis.core.data_models import PHQ9
from screening_analysis.core.errors import AnalysisError
from screening_analysis.core.settings import ReportSettings
from screening_analysis.irt.estimation import ModelFamily, fit_model
from screening_analysis.irt.model_comparison import compare_models
from screening_analysis.preprocessing import RecodeRule, recode

console = Console(force_terminal=True, legacy_windows=True)
app = typer.Typer()


@app.command()
def main(
    restricted: ModelFamily = typer.Option(
        ModelFamily.ONE_PL, "--restricted", help="Restricted model family"
    ),
    general: ModelFamily = typer.Option(
        ModelFamily.TWO_PL, "--general", help="General model family"
    ),
    source: str | None = typer.Option(
        None, "-i", "--input", help="URL or path of the XPT/CSV dataset"
    ),
) -> None:
    """Compare two model families by AIC, BIC and likelihood ratio."""
    if restricted == general:
        console.print("[red]Choose two different model families[/red]")
        raise typer.Exit(1)
    if restricted.is_polytomous != general.is_polytomous:
        console.print(
            "[red]Both families must be dichotomous or both polytomous[/red]"
        )
        raise typer.Exit(1)

    settings = ReportSettings()
    source = source or settings.dataset_url
    rule = (
        RecodeRule.ORDINAL
        if restricted.is_polytomous
        else RecodeRule.DICHOTOMIZE
    )

    try:
        frame = load_instrument_frame(
            source, PHQ9, timeout=settings.http_timeout_seconds
        )
        data = recode(frame, PHQ9, rule).drop_empty_rows()
        console.print(f"[dim]Fitting {restricted.value}...[/dim]")
        restricted_model = fit_model(data, restricted)
        console.print(f"[dim]Fitting {general.value}...[/dim]")
        general_model = fit_model(data, general)
    except AnalysisError as e:
        console.print(f"[red]{type(e).__name__}: {e}[/red]")
        raise typer.Exit(1) from e

    comparison = compare_models(restricted_model, general_model)

    table = Table(title="Model comparison")
    table.add_column("Model")
    table.add_column("LL", justify="right")
    table.add_column("AIC", justify="right")
    table.add_column("BIC", justify="right")
    for family in (restricted, general):
        table.add_row(
            family.value,
            f"{comparison.log_likelihoods[family.value]:.2f}",
            f"{comparison.aics[family.value]:.2f}",
            f"{comparison.bics[family.value]:.2f}",
        )
    console.print(table)
    console.print(f"AIC prefers [bold]{comparison.preferred.value}[/bold]")

    lr = comparison.likelihood_ratio
    if lr is not None:
        console.print(
            f"LR test: χ²({lr.degrees_of_freedom}) = {lr.statistic:.2f}, "
            f"p = {lr.p_value:.4g}"
        )


if __name__ == "__main__":
    app()
