"""Directory name classification for discovery.

Every check is an exact basename match: no globbing, no case folding.
"""

from typing import Optional

from depsweep.models import ManagerKind

# Version control metadata is never walked nor reported
VCS_DIRECTORY = ".git"

# Regenerable dependency/build output
DELETABLE_TARGETS = frozenset(
    {
        "node_modules",
        "target",
        ".next",
        ".svelte-kit",
        ".venv",
        "dist",
        "build",
    }
)

# Expensive to walk and never holding project folders we care about
IGNORED_DIRECTORIES = frozenset(
    {
        ".Trash",
        ".cache",
        ".npm",
        ".yarn",
        ".cargo",
        ".rustup",
        "Library",  # macOS user library
        "AppData",  # Windows profile data
        "Local",
        "Roaming",
        ".vscode",
        ".idea",
    }
)

# Pure build output, always safe to regenerate
BUILD_CACHE_NAMES = frozenset({".next", ".svelte-kit", "dist", "build"})

_NODE_MANAGERS = (
    ManagerKind.NPM,
    ManagerKind.PNPM,
    ManagerKind.YARN,
    ManagerKind.BUN,
    ManagerKind.DENO,
)


def is_deletable_target(name: str) -> bool:
    """Return True if a directory with this name is a deletable target."""
    return name in DELETABLE_TARGETS


def is_ignored(name: str) -> bool:
    """Return True if the subtree under this name must not be walked."""
    return name == VCS_DIRECTORY or name in IGNORED_DIRECTORIES


def is_build_cache(name: str) -> bool:
    """Return True for folders that only ever hold build output."""
    return name in BUILD_CACHE_NAMES


def target_folder_for(manager: ManagerKind) -> Optional[str]:
    """
    Get the dependency folder a package manager installs into.

    Args:
        manager: Detected package manager

    Returns:
        Folder name relative to the project, or None if the manager keeps
        its dependencies outside the project
    """
    if manager in _NODE_MANAGERS:
        return "node_modules"
    if manager == ManagerKind.CARGO:
        return "target"
    if manager == ManagerKind.PIP:
        return ".venv"
    return None
