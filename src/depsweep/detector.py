"""Package manager detection from manifest and lockfile signatures."""

import os
from pathlib import Path

from depsweep.models import ManagerKind

# Checked in order; the first manager with a matching file wins
MANAGER_SIGNATURES: tuple[tuple[ManagerKind, tuple[str, ...]], ...] = (
    (ManagerKind.BUN, ("bun.lockb", "bun.lock")),
    (ManagerKind.PNPM, ("pnpm-lock.yaml",)),
    (ManagerKind.YARN, ("yarn.lock",)),
    (ManagerKind.NPM, ("package-lock.json",)),
    (ManagerKind.DENO, ("deno.json", "deno.jsonc")),
    (ManagerKind.CARGO, ("Cargo.toml",)),
    (ManagerKind.GO, ("go.mod",)),
    (ManagerKind.PIP, ("requirements.txt", "pyproject.toml")),
)

LOCKFILES: dict[ManagerKind, tuple[str, ...]] = {
    ManagerKind.NPM: ("package-lock.json",),
    ManagerKind.PNPM: ("pnpm-lock.yaml",),
    ManagerKind.YARN: ("yarn.lock",),
    ManagerKind.BUN: ("bun.lockb", "bun.lock"),
    ManagerKind.DENO: ("deno.lock",),
    ManagerKind.CARGO: ("Cargo.lock",),
    ManagerKind.GO: ("go.sum",),
    ManagerKind.PIP: ("requirements.txt", "pyproject.toml"),
}


def file_exists(path: str | Path) -> bool:
    """Return True if path exists and is a regular file."""
    return os.path.isfile(path)


def dir_exists(path: str | Path) -> bool:
    """Return True if path exists and is a directory."""
    return os.path.isdir(path)


def detect_manager(directory: str | Path) -> ManagerKind:
    """
    Detect which package manager owns a directory.

    Only the directory's immediate files are inspected.

    Args:
        directory: Project directory

    Returns:
        Detected ManagerKind, or ManagerKind.UNKNOWN
    """
    for manager, files in MANAGER_SIGNATURES:
        for name in files:
            if file_exists(os.path.join(directory, name)):
                return manager
    return ManagerKind.UNKNOWN


def get_lockfiles(manager: ManagerKind) -> tuple[str, ...]:
    """Get the lockfile names used to measure a project's staleness."""
    return LOCKFILES.get(manager, ())
