#!/usr/bin/env python
"""
Run the IRT vs CFA comparison on the PHQ-9 survey and save the report.
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
from screening_analysis.pipeline import AnalysisPipeline, load_pipeline_config
from screening_analysis.reporting import save_report

console = Console(force_terminal=True, legacy_windows=True)
app = typer.Typer()


@app.command()
def main(
    source: str | None = typer.Option(
        None,
        "-i",
        "--input",
        help="URL or path of the XPT/CSV dataset (default: SCREENING_DATASET_URL)",
    ),
    config_path: Path | None = typer.Option(
        None,
        "-c",
        "--config",
        help="YAML pipeline configuration",
    ),
    output_dir: Path | None = typer.Option(
        None,
        "-o",
        "--output-dir",
        help="Output directory for the report",
    ),
) -> None:
    """Compare IRT-implied loadings with ordinal CFA loadings."""
    settings = ReportSettings()
    source = source or settings.dataset_url
    output_dir = output_dir or settings.output_dir or get_default_output_dir()

    try:
        config = load_pipeline_config(config_path)
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1) from e

    console.print(
        Panel(
            f"[bold]Screening Instrument Report[/bold]\n\n"
            f"Source: [cyan]{source}[/cyan]\n"
            f"Model: [cyan]{config.model_family}[/cyan] "
            f"([cyan]{config.estimator}[/cyan])\n"
            f"Dichotomize: [cyan]{config.dichotomize}[/cyan]\n"
            f"Scaling constant: [cyan]{config.scaling_constant}[/cyan]\n"
            f"Seed: [cyan]{config.random_seed}[/cyan]",
            title="Configuration",
        )
    )

    try:
        console.print("[dim]Loading data...[/dim]")
        frame = load_instrument_frame(
            source, PHQ9, timeout=settings.http_timeout_seconds
        )
        console.print("[dim]Running analysis...[/dim]")
        result = AnalysisPipeline(config).run(frame, PHQ9)
    except AnalysisError as e:
        console.print(f"[red]{type(e).__name__}: {e}[/red]")
        raise typer.Exit(1) from e

    table = Table(title="Standardized loadings")
    table.add_column("Item")
    table.add_column("IRT", justify="right")
    table.add_column("CFA", justify="right")
    table.add_column("Difference", justify="right")
    table.add_column("Ratio", justify="right")
    for row in result.comparison.rows:
        table.add_row(
            row.key,
            f"{row.value_a:.4f}",
            f"{row.value_b:.4f}",
            f"{row.difference:+.4f}",
            "undefined" if row.ratio is None else f"{row.ratio:.4f}",
        )
    console.print(table)
    if result.irt_loadings_source == "cfa_conversion":
        console.print(
            "[yellow]IRT loadings were converted from the CFA; the "
            "differences only check the round trip[/yellow]"
        )

    model = result.model
    console.print(
        f"  LL={model.log_likelihood:.2f}  AIC={model.aic:.2f}  "
        f"BIC={model.bic:.2f}  SRMR={result.cfa.srmr:.4f}  "
        f"factors={result.parallel_analysis.n_factors}"
    )

    written = save_report(result, output_dir)
    console.print(
        Panel(
            f"[bold green]Report saved[/bold green]\n\n"
            f"Output: [cyan]{output_dir}[/cyan] ({len(written)} files)",
            title="Done",
        )
    )


if __name__ == "__main__":
    app()
