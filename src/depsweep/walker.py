"""Recursive discovery of heavy dependency folders.

The walk prunes version control metadata, ignored tooling directories and
every matched target, so no reported folder is ever nested inside another.
"""

import logging
import os
from pathlib import Path
from typing import Generator, NamedTuple

from depsweep.classifier import is_deletable_target, is_ignored
from depsweep.detector import detect_manager
from depsweep.models import ManagerKind

log = logging.getLogger(__name__)


class ScanError(Exception):
    """Raised when a walk cannot start at all."""


class Project(NamedTuple):
    """A directory with a detected package manager."""

    directory: Path
    manager: ManagerKind


def _check_root(root: str | Path) -> Path:
    root_path = Path(root)
    if not root_path.exists():
        raise ScanError(f"Path does not exist: {root_path}")
    if not root_path.is_dir():
        raise ScanError(f"Not a directory: {root_path}")
    return root_path


def _iter_subdirectories(directory: Path) -> list[os.DirEntry]:
    """List child directories sorted by name, symlinks excluded."""
    children = []
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                try:
                    if entry.is_dir(follow_symlinks=False):
                        children.append(entry)
                except OSError:
                    continue
    except OSError as e:
        log.debug("Skipping unreadable directory %s: %s", directory, e)
        return []
    children.sort(key=lambda e: e.name)
    return children


def iter_target_folders(directory: Path) -> Generator[Path, None, None]:
    """
    Yield deletable target folders below a directory, depth-first.

    Uses os.scandir for performance instead of os.walk. Pending directories
    live on an explicit stack, so tree depth is not limited by recursion.

    Args:
        directory: Directory to walk (its own name is classified too)

    Yields:
        Paths of matched target folders
    """
    pending = [directory]
    while pending:
        current = pending.pop()
        name = current.name
        if is_ignored(name):
            continue
        if is_deletable_target(name):
            yield current
            continue

        # Reversed so the smallest name is popped first
        pending.extend(Path(entry.path) for entry in reversed(_iter_subdirectories(current)))


def find_target_folders(root: str | Path) -> list[Path]:
    """
    Find every deletable target folder under root.

    Args:
        root: Directory to start from

    Returns:
        Target folder paths in walk order

    Raises:
        ScanError: If root does not exist or is not a directory
    """
    root_path = _check_root(root)
    targets = list(iter_target_folders(root_path))
    log.debug("Found %d target folders under %s", len(targets), root_path)
    return targets


def _iter_projects(directory: Path) -> Generator[Project, None, None]:
    pending = [directory]
    while pending:
        current = pending.pop()
        name = current.name
        if is_ignored(name) or is_deletable_target(name):
            continue

        manager = detect_manager(current)
        if manager != ManagerKind.UNKNOWN:
            yield Project(current, manager)

        pending.extend(Path(entry.path) for entry in reversed(_iter_subdirectories(current)))


def find_projects(root: str | Path) -> list[Project]:
    """
    Find directories that hold a known manifest or lockfile.

    Dependency folders themselves are never searched, so packages vendored
    inside node_modules are not mistaken for projects.

    Raises:
        ScanError: If root does not exist or is not a directory
    """
    root_path = _check_root(root)
    return list(_iter_projects(root_path))
