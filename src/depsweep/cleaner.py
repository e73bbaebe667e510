"""Deletion and reinstallation of dependency folders."""

import logging
import os
import shutil
import subprocess
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable

from depsweep.config import DEFAULT_MAX_WORKERS
from depsweep.detector import detect_manager, file_exists
from depsweep.models import (
    DeleteResult,
    ManagerKind,
    ReinstallResult,
    ReinstallTarget,
    TargetFolder,
)

log = logging.getLogger(__name__)

INSTALL_COMMANDS: dict[ManagerKind, list[str]] = {
    ManagerKind.BUN: ["bun", "install"],
    ManagerKind.PNPM: ["pnpm", "install"],
    ManagerKind.YARN: ["yarn", "install"],
    ManagerKind.NPM: ["npm", "install"],
    ManagerKind.DENO: ["deno", "install"],
    ManagerKind.CARGO: ["cargo", "build"],
    ManagerKind.GO: ["go", "mod", "tidy"],
    ManagerKind.PIP: ["pip", "install", "-r", "requirements.txt"],
}


def remove_directory(path: str | Path) -> float:
    """
    Remove a directory tree.

    A path that is already gone is not an error.

    Returns:
        Seconds spent removing

    Raises:
        OSError: If the tree could not be removed
    """
    start = time.monotonic()
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass
    return time.monotonic() - start


def delete_folder(folder: TargetFolder) -> DeleteResult:
    """
    Delete a single folder.

    Args:
        folder: Sized folder to delete

    Returns:
        DeleteResult; failures carry the error message instead of raising
    """
    if not os.path.lexists(folder.path):
        return DeleteResult(path=folder.path, bytes_freed=0, success=True)

    try:
        duration = remove_directory(folder.path)
    except PermissionError as e:
        log.warning("Could not delete %s: %s", folder.path, e)
        return DeleteResult(path=folder.path, success=False, error=f"Permission denied: {e}")
    except OSError as e:
        log.warning("Could not delete %s: %s", folder.path, e)
        return DeleteResult(path=folder.path, success=False, error=f"OS error: {e}")

    log.debug("Deleted %s in %.2fs", folder.path, duration)
    return DeleteResult(
        path=folder.path,
        bytes_freed=folder.size_bytes,
        success=True,
        duration_seconds=duration,
    )


def delete_folders(
    folders: list[TargetFolder],
    max_workers: int = DEFAULT_MAX_WORKERS,
    progress_callback: Callable[[str, int, int], None] | None = None,
) -> list[DeleteResult]:
    """
    Delete folders in parallel.

    A failed deletion never stops the others.

    Args:
        folders: Folders to delete
        max_workers: Maximum number of deletions at once
        progress_callback: Optional callback(path, current, total)

    Returns:
        One DeleteResult per folder, in the order of `folders`
    """
    total = len(folders)
    by_path: dict[str, DeleteResult] = {}

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_folder = {executor.submit(delete_folder, f): f for f in folders}

        for i, future in enumerate(as_completed(future_to_folder)):
            folder = future_to_folder[future]
            by_path[folder.path] = future.result()

            if progress_callback:
                progress_callback(folder.path, i + 1, total)

    return [by_path[f.path] for f in folders]


def collect_reinstall_targets(folders: list[TargetFolder]) -> list[ReinstallTarget]:
    """
    Build the list of projects to reinstall after deleting folders.

    Folders sharing a parent directory give a single target; projects with
    no detectable package manager are dropped.
    """
    seen: set[str] = set()
    targets: list[ReinstallTarget] = []

    for folder in folders:
        project_dir = os.path.dirname(folder.path)
        if project_dir in seen:
            continue
        seen.add(project_dir)

        manager = detect_manager(project_dir)
        if manager != ManagerKind.UNKNOWN:
            targets.append(ReinstallTarget(directory=project_dir, manager=manager))

    return targets


def get_install_command(directory: str | Path, manager: ManagerKind) -> list[str] | None:
    """Get the install command for a project, or None for unknown managers."""
    if manager == ManagerKind.PIP and not file_exists(os.path.join(directory, "requirements.txt")):
        return ["pip", "install", "."]
    command = INSTALL_COMMANDS.get(manager)
    return list(command) if command else None


def install_dependencies(
    directory: str | Path,
    manager: ManagerKind,
    silent: bool = True,
    timeout: float | None = None,
) -> str | None:
    """
    Run a project's install command.

    Args:
        directory: Project directory
        manager: Package manager owning the project
        silent: Capture the command output instead of streaming it
        timeout: Seconds before the command is abandoned

    Returns:
        Error message, or None on success
    """
    cmd = get_install_command(directory, manager)
    if cmd is None:
        return "Unknown package manager, cannot run install"

    log.debug("Running %s in %s", " ".join(cmd), directory)

    try:
        result = subprocess.run(
            cmd,
            cwd=directory,
            capture_output=silent,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return "Command timed out"
    except OSError as e:
        return f"Could not run {cmd[0]}: {e}"

    if result.returncode != 0:
        if silent and result.stderr and result.stderr.strip():
            return result.stderr.strip().splitlines()[-1]
        return f"{' '.join(cmd)} exited with status {result.returncode}"

    return None


def reinstall_projects(
    targets: list[ReinstallTarget],
    timeout: float | None = None,
    progress_callback: Callable[[ReinstallTarget, int, int], None] | None = None,
) -> list[ReinstallResult]:
    """
    Reinstall dependencies one project at a time.

    Package managers share global caches, so installs never run in
    parallel. A failure is recorded and the next project still runs.
    """
    results: list[ReinstallResult] = []
    total = len(targets)

    for i, target in enumerate(targets):
        if progress_callback:
            progress_callback(target, i + 1, total)

        error = install_dependencies(target.directory, target.manager, silent=True, timeout=timeout)
        if error:
            log.warning("Failed to reinstall %s: %s", target.directory, error)

        results.append(
            ReinstallResult(
                directory=target.directory,
                manager=target.manager,
                success=error is None,
                error=error,
            )
        )

    return results
