"""Rich terminal display for depsweep."""

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from depsweep.models import (
    MB,
    DeleteResult,
    PruneReport,
    PruneResult,
    RefreshResult,
    ReinstallResult,
    RepairReport,
    SweepReport,
    TargetFolder,
)

console = Console()

WARNING_MB = 100
CRITICAL_MB = 1000
PATH_WIDTH = 80


def format_size(size_bytes: int) -> str:
    """Format bytes to human-readable string (binary units)."""
    if size_bytes >= 1024**4:
        return f"{size_bytes / (1024**4):.2f} TB"
    elif size_bytes >= 1024**3:
        return f"{size_bytes / (1024**3):.2f} GB"
    elif size_bytes >= 1024**2:
        return f"{size_bytes / (1024**2):.2f} MB"
    elif size_bytes >= 1024:
        return f"{size_bytes / 1024:.2f} KB"
    else:
        return f"{size_bytes} B"


def size_severity(size_bytes: int) -> str:
    """Classify a folder size as 'critical', 'warning' or 'normal'."""
    size_mb = size_bytes / MB
    if size_mb > CRITICAL_MB:
        return "critical"
    if size_mb > WARNING_MB:
        return "warning"
    return "normal"


def styled_size(size_bytes: int) -> str:
    """Get a size string colored and marked by severity."""
    formatted = format_size(size_bytes)
    severity = size_severity(size_bytes)
    if severity == "critical":
        return f"[red]{formatted} 🚨[/red]"
    if severity == "warning":
        return f"[yellow]{formatted} ⚠️[/yellow]"
    return f"[green]{formatted}[/green]"


def styled_score(score: int) -> str:
    """Get a score string colored by confidence."""
    if score >= 80:
        return f"[red]{score}[/red]"
    if score >= 50:
        return f"[yellow]{score}[/yellow]"
    return f"[dim]{score}[/dim]"


def shorten_path(path: str, width: int = PATH_WIDTH) -> str:
    """Keep the tail of a long path, which is the informative part."""
    if len(path) <= width:
        return path
    return "..." + path[-(width - 3):]


def show_scan_message(root: str, dry_run: bool) -> None:
    """Announce the start of a scan."""
    if dry_run:
        console.print(f"[bold cyan]Listing heavy dependency folders in '{root}'...[/bold cyan]\n")
    else:
        console.print(f"[bold cyan]Scanning for heavy dependency folders in '{root}'...[/bold cyan]\n")


def show_folder_table(folders: list[TargetFolder]) -> None:
    """Display found folders with their sizes."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Folder Path", overflow="fold")
    table.add_column("Size", justify="right")

    for folder in folders:
        table.add_row(shorten_path(folder.path), styled_size(folder.size_bytes))

    console.print(table)


def show_prune_table(results: list[PruneResult], threshold: int) -> None:
    """Display scored folders; rows below the threshold are dimmed."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Folder Path", overflow="fold")
    table.add_column("Size", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Reason")

    for r in results:
        path = shorten_path(r.path, 55)
        if r.score < threshold:
            table.add_row(
                f"[dim]{path}[/dim]",
                f"[dim]{format_size(r.size_bytes)}[/dim]",
                styled_score(r.score),
                f"[dim]{r.reason}[/dim]",
            )
        else:
            table.add_row(path, format_size(r.size_bytes), styled_score(r.score), r.reason)

    console.print(table)


def show_delete_failures(deletions: list[DeleteResult]) -> None:
    """List every folder that could not be deleted."""
    for d in deletions:
        if not d.success:
            console.print(f"  [red]✗[/red] {d.path}: {d.error}")


def show_sweep_summary(report: SweepReport) -> None:
    """Display the end-of-run summary of a list or sweep."""
    console.print()
    if report.dry_run:
        console.print(
            f"[bold green]List complete! Found {len(report.found)} heavy folders.[/bold green]"
        )
        console.print(
            f"[cyan]Total space that can be freed: {format_size(report.total_found_bytes)}[/cyan]"
        )
        return

    show_delete_failures(report.deletions)
    console.print(
        f"[bold green]Sweep complete! Processed {len(report.folders)} heavy folders.[/bold green]"
    )

    table = Table(show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Found", f"{format_size(report.total_found_bytes)} in {len(report.found)} folders")
    table.add_row("Deleted", str(report.deleted_count))
    if report.failure_count > 0:
        table.add_row("[red]Failed[/red]", str(report.failure_count))
    table.add_row("Space actually freed", f"[bold green]{format_size(report.total_freed_bytes)}[/bold green]")
    console.print(table)


def show_prune_summary(report: PruneReport) -> None:
    """Display the end-of-run summary of a prune."""
    console.print()
    total = format_size(report.total_found_bytes)

    if not report.prunable:
        console.print(
            f"[green]No folders meet the prune threshold (score ≥ {report.threshold}).[/green]"
        )
        console.print(f"[cyan]Total found: {total} across {len(report.results)} folders[/cyan]")
        return

    if report.dry_run:
        console.print(
            f"[bold green]Analysis complete! {len(report.prunable)}/{len(report.results)} "
            f"folders can be pruned (score ≥ {report.threshold}).[/bold green]"
        )
        console.print(
            f"[cyan]Space that can be freed: {format_size(report.prunable_bytes)} "
            f"(of {total} total found)[/cyan]"
        )
        return

    show_delete_failures(report.deletions)
    console.print(
        f"[bold green]Prune complete! Removed {report.deleted_count} folders "
        f"(score ≥ {report.threshold}).[/bold green]"
    )
    console.print(
        f"[cyan]Space freed: {format_size(report.total_freed_bytes)} (of {total} total found)[/cyan]"
    )


def show_reinstall_results(results: list[ReinstallResult]) -> None:
    """Display the result of each reinstallation."""
    for r in results:
        if r.success:
            console.print(f"  [green]✓[/green] Reinstalled {r.directory} ({r.manager.value})")
        else:
            console.print(f"  [red]✗[/red] Failed to reinstall {r.directory}: {r.error}")

    if results:
        ok = sum(1 for r in results if r.success)
        console.print(f"[bold green]Reinstallation complete! {ok}/{len(results)} projects.[/bold green]")


def show_repair_report(report: RepairReport, verbose: bool = False) -> None:
    """Display the health and repair status of each project."""
    for outcome in report.outcomes:
        health = outcome.health
        if health.healthy:
            if verbose:
                console.print(f"\n[bold]{health.directory}[/bold] ({health.manager.value})")
                console.print("   [green]✓ Healthy, skipping.[/green]")
            continue

        console.print(f"\n[bold]{health.directory}[/bold] ({health.manager.value})")
        for issue in health.issues:
            console.print(f"   [red]✗ {issue}[/red]")
        if outcome.repaired:
            console.print("   [green]✓ Repaired![/green]")
        elif outcome.error:
            console.print(f"   [red]✗ {outcome.error}[/red]")

    console.print()
    console.print(
        Panel(
            f"Fixed {report.repaired_count}/{report.total} projects "
            f"({report.unhealthy_count} unhealthy)",
            title="Repair complete",
            border_style="green" if report.repaired_count == report.unhealthy_count else "yellow",
        )
    )


def show_refresh_result(result: RefreshResult) -> None:
    """Display the outcome of a refresh."""
    console.print(f"Detected package manager: [bold]{result.manager.value}[/bold]")
    if result.removed:
        console.print(f"  [green]✓[/green] Removed {result.target_folder} in {result.duration_seconds:.2f}s")
    elif result.target_folder:
        console.print(f"  [dim]No {result.target_folder} found, skipping deletion.[/dim]")

    if result.success:
        console.print("[bold green]Refresh complete![/bold green]")
    else:
        console.print(f"[red]{result.error}[/red]")


def show_progress() -> Progress:
    """Create progress bar for scanning and deleting."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


def confirm_action(message: str) -> bool:
    """Ask for confirmation."""
    from rich.prompt import Confirm

    return Confirm.ask(message)
