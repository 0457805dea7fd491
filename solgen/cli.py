"""solgen CLI - Generate a Visual Studio solution from project references."""

from __future__ import annotations

import logging
import os
import subprocess

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from solgen.config import GenerationConfig, GenerationResult
from solgen.errors import SolgenError
from solgen.pipeline import run_pipeline


@click.group()
def cli() -> None:
    """solgen - Build a solution file from a project and its references."""
    pass


def _configure_logging(verbose: bool) -> None:
    # Recovered failures are reported in the summary, so warnings stay quiet
    level = logging.DEBUG if verbose else logging.ERROR
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _run_with_progress(config: GenerationConfig, console: Console) -> GenerationResult:
    """Run the pipeline with Rich progress display."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Initialising...", total=None)

        def on_phase(name, label):
            progress.update(task, description=label)

        return run_pipeline(config, progress_callback=on_phase)


def _print_summary(result: GenerationResult, console: Console, verbose: bool) -> None:
    table = Table(title=f"Solution: {os.path.basename(result.solution_path)}", show_edge=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Projects", str(result.project_count))
    table.add_row("Folders", str(result.folder_count))
    table.add_row("Common root", result.common_root or "(none)")
    table.add_row("Evaluation failures", str(len(result.evaluation_errors)))
    table.add_row("Skipped entries", str(len(result.skipped_entries)))
    console.print(table)

    for error in result.evaluation_errors + result.skipped_entries:
        console.print(f"[yellow]warning:[/yellow] {error}")
    for cycle in result.reference_cycles:
        console.print(f"[yellow]cycle:[/yellow] {' -> '.join(cycle)}")

    if verbose and result.phase_timings:
        timing_table = Table(title="Phase Timings", show_edge=False)
        timing_table.add_column("Phase", style="bold")
        timing_table.add_column("Time (ms)", justify="right")
        for phase, seconds in result.phase_timings.items():
            timing_table.add_row(phase, f"{seconds * 1000:.1f}")
        console.print(timing_table)


def _open_solution(solution_path: str) -> None:
    """Open the solution in SOLGEN_VS_PATH, or the system default handler."""
    ide = os.environ.get("SOLGEN_VS_PATH")
    if ide:
        subprocess.Popen([ide, solution_path])
    else:
        click.launch(solution_path)


@cli.command("generate")
@click.argument("projects", nargs=-1, type=click.Path(dir_okay=False))
@click.option(
    "-c", "--configs", envvar="SOLGEN_CONFIGS", default="",
    help="Comma-separated build configurations (default: Any CPU)",
)
@click.option("-o", "--output", "output_path", default=None, help="Solution file path")
@click.option(
    "--suffix", envvar="SOLGEN_SOLUTION_SUFFIX", default="",
    help="Suffix appended to the generated solution file name",
)
@click.option(
    "--search-root", default=".", type=click.Path(file_okay=False),
    help="Directory searched for project files when none are given",
)
@click.option("--exclude", multiple=True, help="Additional directory patterns to skip")
@click.option("--open", "open_after", is_flag=True, help="Open the solution when done")
@click.option("--verbose", is_flag=True, help="Show debug logging and phase timings")
@click.option("--quiet", is_flag=True, help="Suppress all output except errors")
def generate_cmd(
    projects: tuple[str, ...],
    configs: str,
    output_path: str | None,
    suffix: str,
    search_root: str,
    exclude: tuple[str, ...],
    open_after: bool,
    verbose: bool,
    quiet: bool,
) -> None:
    """Generate a solution containing PROJECTS and everything they reference.

    With no PROJECTS, every *.*proj file under the search root is added.
    """

    config = GenerationConfig(
        project_paths=list(projects),
        search_root=search_root,
        output_path=output_path,
        build_configurations=[c for c in configs.split(",") if c.strip()],
        solution_suffix=suffix,
        exclude_patterns=list(exclude),
        verbose=verbose,
        quiet=quiet,
    )

    _configure_logging(config.verbose)
    console = Console()
    try:
        if config.quiet:
            result = run_pipeline(config)
        else:
            result = _run_with_progress(config, console)
    except SolgenError as e:
        Console(stderr=True).print(
            f"[red]Solution generation did not complete:[/red] {e} ({type(e).__name__})"
        )
        raise SystemExit(1) from e

    if not config.quiet:
        _print_summary(result, console, config.verbose)
        console.print(f"[green]Solution written to:[/green] {result.solution_path}")

    if open_after:
        _open_solution(result.solution_path)


if __name__ == "__main__":
    cli()
