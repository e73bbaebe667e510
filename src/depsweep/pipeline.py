"""Scan, triage and act: the list, sweep, prune, repair and refresh flows."""

import logging
import os
from pathlib import Path
from typing import Callable

from depsweep.analyzer import analyze_all_folders
from depsweep.checker import check_health
from depsweep.classifier import target_folder_for
from depsweep.cleaner import (
    collect_reinstall_targets,
    delete_folders,
    install_dependencies,
    reinstall_projects,
    remove_directory,
)
from depsweep.config import Settings
from depsweep.detector import detect_manager, dir_exists
from depsweep.models import (
    ManagerKind,
    PruneReport,
    RefreshResult,
    ReinstallTarget,
    RepairOutcome,
    RepairReport,
    SelectableItem,
    SweepReport,
    TargetFolder,
)
from depsweep.selector import Selector, select_folders, textual_select
from depsweep.sizer import calculate_folder_sizes
from depsweep.walker import ScanError, find_projects, find_target_folders

log = logging.getLogger(__name__)

# callback(stage, current, total)
ProgressCallback = Callable[[str, int, int], None]

DELETE_TITLE = "Select folders to delete:"
REINSTALL_TITLE = "Select projects to reinstall:"


def discover_folders(
    root: str | Path,
    settings: Settings | None = None,
    progress_callback: ProgressCallback | None = None,
) -> list[TargetFolder]:
    """
    Find and size every target folder under root.

    Returns:
        Sized folders, largest first

    Raises:
        ScanError: If root cannot be walked
    """
    settings = settings or Settings()
    paths = find_target_folders(root)
    if not paths:
        return []

    log.info("Found %d folders under %s, calculating sizes", len(paths), root)

    def on_sized(path: str, current: int, total: int) -> None:
        if progress_callback:
            progress_callback("sizing", current, total)

    return calculate_folder_sizes(paths, settings.max_workers, on_sized)


def run_sweep(
    root: str | Path,
    dry_run: bool = False,
    reinstall: bool = False,
    no_select: bool = False,
    selector: Selector | None = None,
    settings: Settings | None = None,
    progress_callback: ProgressCallback | None = None,
) -> SweepReport:
    """
    Discover heavy folders and delete them, optionally reinstalling.

    Args:
        root: Directory to scan
        dry_run: Only list what would be deleted
        reinstall: Reinstall dependencies of affected projects afterwards
        no_select: Act on everything found without asking
        selector: Selection capability (default: interactive checklist)
        settings: Run settings
        progress_callback: Optional callback(stage, current, total)

    Returns:
        SweepReport with found, selected and freed totals
    """
    settings = settings or Settings()
    selector = selector or textual_select

    found = discover_folders(root, settings, progress_callback)
    report = SweepReport(
        root=str(root),
        dry_run=dry_run,
        found=found,
        folders=found,
        reinstall_requested=reinstall and not dry_run,
    )
    if not found:
        return report

    if not dry_run and not no_select:
        selected = select_folders(found, DELETE_TITLE, selector)
        if selected is None:
            log.info("Deletion canceled by user")
            report.canceled = True
            report.folders = []
            return report
        report.folders = selected

    if dry_run or not report.folders:
        return report

    def on_deleted(path: str, current: int, total: int) -> None:
        if progress_callback:
            progress_callback("deleting", current, total)

    report.deletions = delete_folders(report.folders, settings.max_workers, on_deleted)

    if report.reinstall_requested:
        _reinstall(report, no_select, selector, settings, progress_callback)

    return report


def _reinstall(
    report: SweepReport,
    no_select: bool,
    selector: Selector,
    settings: Settings,
    progress_callback: ProgressCallback | None,
) -> None:
    deleted = {d.path for d in report.deletions if d.success}
    targets = collect_reinstall_targets([f for f in report.folders if f.path in deleted])

    if targets and not no_select:
        items = [
            SelectableItem(label=t.directory, detail=t.manager.value, selected=True) for t in targets
        ]
        result = selector(REINSTALL_TITLE, items)
        if result.canceled:
            log.info("Reinstallation canceled by user")
            report.reinstall_canceled = True
            return
        targets = [t for t, item in zip(targets, result.items) if item.selected]

    report.reinstall_targets = targets

    def on_reinstall(target: ReinstallTarget, current: int, total: int) -> None:
        if progress_callback:
            progress_callback("reinstalling", current, total)

    report.reinstalls = reinstall_projects(targets, settings.command_timeout, on_reinstall)


def plan_prune(
    root: str | Path,
    threshold: int | None = None,
    dry_run: bool = False,
    settings: Settings | None = None,
    progress_callback: ProgressCallback | None = None,
    now: float | None = None,
) -> PruneReport:
    """
    Discover, size and score folders without deleting anything.

    Args:
        root: Directory to scan
        threshold: Minimum score to prune (default: settings.threshold)
        dry_run: Mark the report as a dry run
        settings: Run settings
        progress_callback: Optional callback(stage, current, total)
        now: Reference timestamp for lockfile ages

    Returns:
        PruneReport with results sorted by score descending
    """
    settings = settings or Settings()
    threshold = settings.threshold if threshold is None else threshold

    folders = discover_folders(root, settings, progress_callback)

    def on_scored(path: str, current: int, total: int) -> None:
        if progress_callback:
            progress_callback("scoring", current, total)

    results = analyze_all_folders(folders, threshold, settings, now, on_scored) if folders else []
    return PruneReport(root=str(root), threshold=threshold, dry_run=dry_run, results=results)


def execute_prune(
    report: PruneReport,
    settings: Settings | None = None,
    progress_callback: ProgressCallback | None = None,
) -> PruneReport:
    """Delete every folder of a planned prune whose score meets the threshold."""
    settings = settings or Settings()
    if report.dry_run or not report.prunable:
        return report

    folders = [TargetFolder(path=r.path, size_bytes=r.size_bytes) for r in report.prunable]

    def on_deleted(path: str, current: int, total: int) -> None:
        if progress_callback:
            progress_callback("deleting", current, total)

    report.deletions = delete_folders(folders, settings.max_workers, on_deleted)
    return report


def run_repair(
    root: str | Path,
    settings: Settings | None = None,
    progress_callback: ProgressCallback | None = None,
) -> RepairReport:
    """
    Check every project under root and reinstall the broken ones.

    Returns:
        RepairReport with one outcome per project found
    """
    settings = settings or Settings()
    projects = find_projects(root)
    report = RepairReport(root=str(root))
    total = len(projects)

    for i, project in enumerate(projects):
        if progress_callback:
            progress_callback("checking", i + 1, total)

        health = check_health(project.directory, project.manager, settings.health_timeout)
        outcome = RepairOutcome(health=health)
        report.outcomes.append(outcome)

        if health.healthy:
            continue

        folder = target_folder_for(project.manager)
        if folder and dir_exists(project.directory / folder):
            try:
                remove_directory(project.directory / folder)
            except OSError as e:
                outcome.error = f"Failed to remove {folder}: {e}"
                log.warning("Could not remove %s in %s: %s", folder, project.directory, e)
                continue

        error = install_dependencies(
            project.directory, project.manager, silent=True, timeout=settings.command_timeout
        )
        if error:
            outcome.error = f"Failed to reinstall: {error}"
            continue

        outcome.repaired = True

    return report


def refresh_directory(
    directory: str | Path = ".",
    settings: Settings | None = None,
    silent: bool = False,
) -> RefreshResult:
    """
    Remove a project's dependency folder and install it again.

    Raises:
        ScanError: If no package manager is detected in the directory
    """
    settings = settings or Settings()
    manager = detect_manager(directory)
    if manager == ManagerKind.UNKNOWN:
        raise ScanError(f"Could not detect a package manager in '{directory}'")

    folder = target_folder_for(manager)
    result = RefreshResult(directory=str(directory), manager=manager, target_folder=folder)

    if folder and dir_exists(os.path.join(directory, folder)):
        try:
            result.duration_seconds = remove_directory(os.path.join(directory, folder))
            result.removed = True
        except OSError as e:
            result.error = f"Failed to remove {folder}: {e}"
            return result

    error = install_dependencies(directory, manager, silent=silent, timeout=settings.command_timeout)
    if error:
        result.error = f"Failed to install dependencies: {error}"
    return result
