"""CLI interface for depsweep."""

import logging
from typing import Optional

import typer
from rich.logging import RichHandler

from depsweep import __version__
from depsweep.config import Settings, load_settings
from depsweep.display import (
    confirm_action,
    console,
    show_folder_table,
    show_progress,
    show_prune_summary,
    show_prune_table,
    show_refresh_result,
    show_reinstall_results,
    show_repair_report,
    show_scan_message,
    show_sweep_summary,
)
from depsweep.pipeline import execute_prune, plan_prune, refresh_directory, run_repair, run_sweep
from depsweep.walker import ScanError

# Create Typer app
app = typer.Typer(
    name="depsweep",
    help="Find, score and sweep heavy dependency folders (node_modules, target, .venv, ...)",
    add_completion=False,
)

STAGE_MESSAGES = {
    "sizing": "Found {total} folders. Calculating sizes concurrently...",
    "scoring": "Analyzing {total} folders...",
    "deleting": "Deleting {total} folders concurrently...",
    "reinstalling": "Reinstalling dependencies sequentially...",
    "checking": "Found {total} projects. Checking health...",
}


def _setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _settings(workers: Optional[int] = None, threshold: Optional[int] = None) -> Settings:
    settings = load_settings()
    update = {}
    if workers is not None:
        update["max_workers"] = workers
    if threshold is not None:
        update["threshold"] = threshold
    return settings.model_copy(update=update) if update else settings


def _stage_printer(stage: str, current: int, total: int) -> None:
    """Print a line when a pipeline stage starts."""
    if current == 1 and stage in STAGE_MESSAGES:
        console.print(f"[yellow]{STAGE_MESSAGES[stage].format(total=total)}[/yellow]")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"depsweep version {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    debug: bool = typer.Option(False, "--debug", help="Show debug logging."),
) -> None:
    """depsweep - clean heavy dependency folders from your projects.

    Running depsweep with no subcommand refreshes the current directory.
    """
    _setup_logging(debug)
    if ctx.invoked_subcommand is None:
        ctx.invoke(refresh)


@app.command(name="list")
def list_folders(
    path: str = typer.Option(".", "--path", "-p", help="Directory to scan"),
    workers: Optional[int] = typer.Option(None, "--workers", min=1, help="Concurrent workers"),
) -> None:
    """List heavy dependency folders without deleting anything."""
    _sweep(path, dry_run=True, reinstall=False, no_select=True, settings=_settings(workers))


@app.command()
def sweep(
    path: str = typer.Option(".", "--path", "-p", help="Directory to scan"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Only list, don't delete"),
    reinstall: bool = typer.Option(False, "--reinstall", help="Reinstall packages after removing their folders"),
    no_select: bool = typer.Option(
        False, "--no-select", help="Skip interactive selection (delete/reinstall everything found)"
    ),
    workers: Optional[int] = typer.Option(None, "--workers", min=1, help="Concurrent workers"),
) -> None:
    """Sweep (delete) heavy dependency folders."""
    _sweep(path, dry_run=dry_run, reinstall=reinstall, no_select=no_select, settings=_settings(workers))


def _sweep(path: str, dry_run: bool, reinstall: bool, no_select: bool, settings: Settings) -> None:
    show_scan_message(path, dry_run)

    try:
        report = run_sweep(
            path,
            dry_run=dry_run,
            reinstall=reinstall,
            no_select=no_select,
            settings=settings,
            progress_callback=_stage_printer,
        )
    except ScanError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not report.found:
        console.print("[green]No heavy folders found![/green]")
        raise typer.Exit(0)

    if report.canceled:
        console.print("\n[yellow]Operation canceled.[/yellow]")
        raise typer.Exit(0)

    if not report.folders:
        console.print("\n[green]No folders selected for deletion.[/green]")
        raise typer.Exit(0)

    console.print()
    show_folder_table(report.folders)
    show_sweep_summary(report)

    if report.reinstall_requested:
        console.print()
        if report.reinstall_canceled:
            console.print("[yellow]Reinstallation canceled.[/yellow]")
        elif report.reinstalls:
            show_reinstall_results(report.reinstalls)
        else:
            console.print("[yellow]No projects with known package managers to reinstall.[/yellow]")


@app.command()
def prune(
    path: str = typer.Option(".", "--path", "-p", help="Directory to scan"),
    threshold: Optional[int] = typer.Option(
        None, "--threshold", min=0, max=100, help="Minimum safety score to prune (0-100, default 50)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Only analyze and list, don't delete"),
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation prompt"),
    workers: Optional[int] = typer.Option(None, "--workers", min=1, help="Concurrent workers"),
) -> None:
    """Prune dependency folders by safety score."""
    settings = _settings(workers, threshold)

    if dry_run:
        console.print(f"[bold cyan]Analyzing safely deletable folders in '{path}' (dry-run)...[/bold cyan]\n")
    else:
        console.print(f"[bold cyan]Pruning safely deletable folders in '{path}'...[/bold cyan]\n")

    try:
        with show_progress() as progress:
            tasks = {}

            def update_progress(stage: str, current: int, total: int):
                if stage not in tasks:
                    tasks[stage] = progress.add_task(f"{stage.capitalize()}...", total=total)
                progress.update(tasks[stage], completed=current)

            report = plan_prune(path, dry_run=dry_run, settings=settings, progress_callback=update_progress)
    except ScanError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not report.results:
        console.print("[green]No heavy folders found![/green]")
        raise typer.Exit(0)

    show_prune_table(report.results, report.threshold)

    if report.prunable and not dry_run and not yes:
        console.print()
        if not confirm_action(f"Delete {len(report.prunable)} folders?"):
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(0)

    execute_prune(report, settings=settings, progress_callback=_stage_printer)
    show_prune_summary(report)


@app.command()
def repair(
    path: str = typer.Option(".", "--path", "-p", help="Directory to scan"),
    verbose: bool = typer.Option(False, "--verbose", help="Show details for healthy projects too"),
) -> None:
    """Repair projects with missing or broken dependency folders."""
    console.print(f"[bold cyan]Scanning for projects with broken dependencies in '{path}'...[/bold cyan]\n")

    try:
        report = run_repair(path, settings=_settings(), progress_callback=_stage_printer)
    except ScanError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not report.outcomes:
        console.print("[green]No projects found![/green]")
        raise typer.Exit(0)

    show_repair_report(report, verbose=verbose)


@app.command()
def refresh() -> None:
    """Remove and reinstall the dependencies of the current directory."""
    console.print("Running refresh in current directory...")

    try:
        result = refresh_directory(".", settings=_settings())
    except ScanError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    show_refresh_result(result)
    if not result.success:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
