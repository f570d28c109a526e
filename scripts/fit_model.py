#!/usr/bin/env python
"""
Fit one IRT model family to the PHQ-9 survey and save the fitted model.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from screening_analysis.core.data import load_instrument_frame
from screening_analysis.core.data_models import PHQ9
from screening_analysis.core.errors import AnalysisError
from screening_analysis.core.paths import get_default_output_dir
from screening_analysis.core.settings import ReportSettings
from screening_analysis.irt.estimation import (
    FittedModel,
    ModelFamily,
    estimate_abilities,
    fit_model,
)
from screening_analysis.preprocessing import RecodeRule, recode

console = Console(force_terminal=True, legacy_windows=True)
app = typer.Typer()


def save_model(model: FittedModel, output_path: Path) -> None:
    """Save fitted model to json file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        f.write(model.model_dump_json(indent=4))


@app.command()
def main(
    family: ModelFamily = typer.Argument(
        ModelFamily.TWO_PL, help="Model family to fit"
    ),
    source: str | None = typer.Option(
        None,
        "-i",
        "--input",
        help="URL or path of the XPT/CSV dataset (default: SCREENING_DATASET_URL)",
    ),
    output_dir: Path | None = typer.Option(
        None,
        "-o",
        "--output-dir",
        help="Output directory for fitted model",
    ),
) -> None:
    """Fit an IRT model family and save it as JSON."""
    settings = ReportSettings()
    source = source or settings.dataset_url
    output_dir = output_dir or settings.output_dir or get_default_output_dir()
    rule = (
        RecodeRule.ORDINAL if family.is_polytomous else RecodeRule.DICHOTOMIZE
    )

    try:
        console.print("[dim]Loading data...[/dim]")
        frame = load_instrument_frame(
            source, PHQ9, timeout=settings.http_timeout_seconds
        )
        data = recode(frame, PHQ9, rule).drop_empty_rows()

        console.print(
            Panel(
                f"[bold]Fit {family.value} Model[/bold]\n\n"
                f"Source: [cyan]{source}[/cyan]\n"
                f"Respondents: [cyan]{data.n_respondents}[/cyan]\n"
                f"Items: [cyan]{data.n_items}[/cyan]\n"
                f"Categories: [cyan]{data.n_categories}[/cyan]",
                title="Configuration",
            )
        )

        console.print(f"[dim]Fitting {family.value} model...[/dim]")
        model = fit_model(data, family)
    except AnalysisError as e:
        console.print(f"[red]{type(e).__name__}: {e}[/red]")
        raise typer.Exit(1) from e

    console.print(
        f"  {model.convergence_status.value} "
        f"({model.n_iterations} iterations, LL={model.log_likelihood:.2f}, "
        f"AIC={model.aic:.2f}, BIC={model.bic:.2f})"
    )

    table = Table(title="Item parameters")
    table.add_column("Item")
    table.add_column("a", justify="right")
    table.add_column("Thresholds", justify="right")
    for params in model.item_parameters:
        table.add_row(
            params.item_name,
            f"{params.discrimination:.3f}",
            ", ".join(f"{b:.3f}" for b in params.thresholds),
        )
    console.print(table)

    abilities = estimate_abilities(data, model)
    console.print(
        f"  EAP trait scores: mean={abilities.eap.mean():.3f}, "
        f"mean SE={abilities.se.mean():.3f}"
    )

    output_path = output_dir / f"model_{family.value.lower()}_mml.json"
    save_model(model, output_path)

    console.print(
        Panel(
            f"[bold green]Model saved[/bold green]\n\n"
            f"Output: [cyan]{output_path}[/cyan]",
            title="Done",
        )
    )


if __name__ == "__main__":
    app()
