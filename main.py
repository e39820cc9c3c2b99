from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer

from experiments.plots import PlotSaveConfig, plot_species_effects, plot_stream_order_slopes, plot_vulnerability
from experiments.vulnerability import RunConfig, load_run, run_vulnerability, save_run
from salmonvuln.datahub import load_posterior
from salmonvuln.datahub.config import (
    DEFAULT_DATA_ROOT,
    DEFAULT_N_DRAWS,
    DEFAULT_OUTPUT_ROOT,
    DEFAULT_POPULATION_FILE,
    DEFAULT_POSTERIOR_FILE,
    DEFAULT_SEED,
    DEFAULT_WATERSHED_FILE,
    HABITAT_INDICATORS,
    STREAM_ORDER_CENTER,
)
from salmonvuln.errors import InconsistentEvidence, MalformedInput

app = typer.Typer()


@app.command()
def run(
    data_root: Path = typer.Option(
        DEFAULT_DATA_ROOT,
        "--data-root",
        exists=False,
        file_okay=False,
        dir_okay=True,
        help="Directory holding the posterior, population and watershed inputs.",
    ),
    output_root: Path = typer.Option(
        DEFAULT_OUTPUT_ROOT,
        "--output-root",
        file_okay=False,
        dir_okay=True,
        writable=True,
        help="Directory where run outputs are written.",
    ),
    run_tag: Optional[str] = typer.Option(
        None,
        "--run-tag",
        help="Folder name for this run (defaults to timestamp).",
    ),
    posterior_file: str = typer.Option(DEFAULT_POSTERIOR_FILE, "--posterior", help="Posterior .npz or ArviZ .nc file."),
    population_file: str = typer.Option(DEFAULT_POPULATION_FILE, "--populations", help="Population table CSV."),
    watershed_file: str = typer.Option(DEFAULT_WATERSHED_FILE, "--watersheds", help="Reference watershed CSV."),
    habitat: List[str] = typer.Option(
        list(HABITAT_INDICATORS),
        "--habitat",
        help="Habitat-pressure columns in model order (repeat the option).",
        show_default=True,
    ),
    n_draws: int = typer.Option(DEFAULT_N_DRAWS, "--draws", help="Resampled draws per cell."),
    seed: int = typer.Option(DEFAULT_SEED, "--seed", help="Seed for the resampling generator."),
    credible_interval: float = typer.Option(0.95, "--credible-interval", help="Central interval reported per cell."),
    stream_order_center: float = typer.Option(
        STREAM_ORDER_CENTER,
        "--stream-order-center",
        help="Centering applied to raw stream order when the table lacks a centered column.",
    ),
) -> None:
    """
    Resample the posterior and populations, compute every metric, and save the run.
    """
    config = RunConfig(
        data_root=data_root,
        output_root=output_root,
        population_file=population_file,
        watershed_file=watershed_file,
        posterior_file=posterior_file,
        habitat=tuple(habitat),
        n_draws=n_draws,
        seed=seed,
        credible_interval=credible_interval,
        stream_order_center=stream_order_center,
    )
    try:
        config.validate()
        result = run_vulnerability(config)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    except InconsistentEvidence as exc:
        typer.echo(f"[run] Aborting: {exc}", err=True)
        raise typer.Exit(code=2) from exc

    tag = run_tag or datetime.now().strftime("%Y%m%d-%H%M%S")
    save_run(result, output_root / tag)


@app.command()
def plot(
    run_dir: Path = typer.Argument(..., exists=True, file_okay=False, dir_okay=True, help="Saved run directory."),
    plots_root: Optional[Path] = typer.Option(
        None,
        "--plots-root",
        help="Directory where plots should be saved (defaults to <run_dir>/figures).",
    ),
    plots_tag: Optional[str] = typer.Option(
        None,
        "--plots-tag",
        help="Folder suffix for this set of figures (defaults to timestamp).",
    ),
    save_static: bool = typer.Option(False, help="Write static PNG snapshots (requires kaleido)."),
    save_html: bool = typer.Option(True, help="Write interactive HTML plots."),
) -> None:
    """
    Draw the dot-grid and stream-order figures for a saved run.
    """
    result = load_run(run_dir)
    base_dir = plots_root or run_dir / "figures"
    tag = plots_tag or datetime.now().strftime("%Y%m%d-%H%M%S")
    save_config = PlotSaveConfig(base_dir=base_dir, run_tag=tag, save_static=save_static, save_html=save_html)
    print(f"[plots] Saving figures under {base_dir / tag}")

    vocabulary = result.cells.vocabulary
    plot_species_effects(result.summaries, result.cutoffs, vocabulary, save_to=save_config.for_plot("sens_exp_threat"))
    plot_vulnerability(result.summaries, result.cutoffs, vocabulary, save_to=save_config.for_plot("vulnerability"))
    plot_stream_order_slopes(result.slopes, save_to=save_config.for_plot("stream_order_slopes"))


@app.command("inspect-posterior")
def inspect_posterior(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Posterior .npz or ArviZ .nc file."),
) -> None:
    """
    List the parameters of a posterior file with their grouping shapes.
    """
    try:
        samples = load_posterior(path)
    except MalformedInput as exc:
        raise typer.BadParameter(str(exc)) from exc

    for name in samples.index.parameter_names():
        shape = samples.index.shape(name)
        label = "scalar" if not shape else " × ".join(str(size) for size in shape)
        typer.echo(f"{name}: {label}")


if __name__ == "__main__":
    app()
