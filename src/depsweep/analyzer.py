"""Safety scoring for discovered dependency folders.

Each folder gets exactly one score from the first heuristic that matches,
in this order:

1. Build cache name (always regenerable)          -> 90
2. No manifest or lockfile in the project (orphan) -> 95
3. Lockfile older than 90 days / 30 days          -> 80 / 60
4. Uncommitted changes reported by git            -> 15
5. Lockfile younger than 7 days                   -> 20
6. Anything else                                  -> 45
"""

import logging
import os
import subprocess
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from depsweep.classifier import is_build_cache
from depsweep.config import DEFAULT_THRESHOLD, Settings
from depsweep.detector import detect_manager, get_lockfiles
from depsweep.models import ManagerKind, PruneResult, TargetFolder

log = logging.getLogger(__name__)

SCORE_BUILD_CACHE = 90
SCORE_ORPHAN = 95
SCORE_VERY_STALE = 80
SCORE_STALE = 60
SCORE_UNCOMMITTED = 15
SCORE_ACTIVE = 20
SCORE_DEFAULT = 45

VERY_STALE_DAYS = 90
STALE_DAYS = 30
ACTIVE_DAYS = 7

SECONDS_PER_DAY = 24 * 60 * 60


def format_days(days: int) -> str:
    """
    Format an age in days for a reason string.

    Ages of 30 days or more are shown in whole months of 30 days.
    """
    if days == 1:
        return "1 day"
    if days < 30:
        return f"{days} days"
    months = days // 30
    if months == 1:
        return "~1 month"
    return f"~{months} months"


def get_lockfile_age(directory: str | Path, manager: ManagerKind, now: float | None = None) -> float | None:
    """
    Get the age of a project's lockfile.

    Args:
        directory: Project directory
        manager: Package manager owning the project
        now: Reference timestamp (default: current time)

    Returns:
        Seconds since the first existing lockfile was modified, or None if
        the manager has no lockfile in the directory
    """
    now = time.time() if now is None else now
    for name in get_lockfiles(manager):
        try:
            mtime = os.stat(os.path.join(directory, name)).st_mtime
        except OSError:
            continue
        return now - mtime
    return None


def find_git_root(directory: str | Path, search_depth: int) -> Path | None:
    """Find the closest directory holding a .git entry, looking up to search_depth parents."""
    current = Path(os.path.abspath(directory))
    for _ in range(search_depth + 1):
        if (current / ".git").exists():
            return current
        if current.parent == current:
            break
        current = current.parent
    return None


def has_uncommitted_changes(
    directory: str | Path,
    search_depth: int = 5,
    timeout: float | None = None,
) -> bool:
    """
    Check whether git reports pending changes for a project directory.

    Any failure to run git counts as no changes.

    Args:
        directory: Project directory
        search_depth: Parent directories searched for the repository root
        timeout: Seconds before git is abandoned

    Returns:
        True if `git status --porcelain .` run inside the directory lists anything
    """
    if find_git_root(directory, search_depth) is None:
        return False

    try:
        result = subprocess.run(
            ["git", "status", "--porcelain", "."],
            cwd=directory,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        log.debug("git status failed in %s: %s", directory, e)
        return False

    if result.returncode != 0:
        log.debug("git status exited with %d in %s", result.returncode, directory)
        return False

    return bool(result.stdout.strip())


def analyze_folder(
    folder_path: str | Path,
    size_bytes: int,
    threshold: int = DEFAULT_THRESHOLD,
    now: float | None = None,
    settings: Settings | None = None,
) -> PruneResult:
    """
    Score how safe a dependency folder is to delete.

    Args:
        folder_path: Folder to analyze
        size_bytes: Measured size of the folder
        threshold: Score at which the folder counts as safe to delete
        now: Reference timestamp for lockfile ages (default: current time)
        settings: Run settings (git search depth, timeouts)

    Returns:
        PruneResult with exactly one score and reason
    """
    settings = settings or Settings()
    path = Path(folder_path)
    project_dir = path.parent

    score, reason = _score(path, project_dir, now, settings)
    return PruneResult(
        path=str(folder_path),
        size_bytes=size_bytes,
        score=score,
        reason=reason,
        safe_to_delete=score >= threshold,
    )


def _score(path: Path, project_dir: Path, now: float | None, settings: Settings) -> tuple[int, str]:
    if is_build_cache(path.name):
        return SCORE_BUILD_CACHE, "Build cache (re-generable)"

    manager = detect_manager(project_dir)
    if manager == ManagerKind.UNKNOWN:
        return SCORE_ORPHAN, "No lockfile (orphan folder)"

    age = get_lockfile_age(project_dir, manager, now)
    days = int(age / SECONDS_PER_DAY) if age is not None and age > 0 else None

    if days is not None:
        if days > VERY_STALE_DAYS:
            return SCORE_VERY_STALE, f"Lockfile very stale ({format_days(days)})"
        if days > STALE_DAYS:
            return SCORE_STALE, f"Lockfile stale ({format_days(days)})"

    if has_uncommitted_changes(project_dir, settings.git_search_depth, settings.command_timeout):
        return SCORE_UNCOMMITTED, "Uncommitted lockfile changes (active work)"

    if days is not None and days < ACTIVE_DAYS:
        return SCORE_ACTIVE, "Active project (recently modified)"

    return SCORE_DEFAULT, "Dependency folder with lockfile"


def sort_results(results: list[PruneResult]) -> list[PruneResult]:
    """Sort by score descending, then size descending, then path."""
    return sorted(results, key=lambda r: (-r.score, -r.size_bytes, r.path))


def analyze_all_folders(
    folders: list[TargetFolder],
    threshold: int = DEFAULT_THRESHOLD,
    settings: Settings | None = None,
    now: float | None = None,
    progress_callback=None,
) -> list[PruneResult]:
    """
    Score every folder in parallel.

    Args:
        folders: Sized folders to analyze
        threshold: Score at which a folder counts as safe to delete
        settings: Run settings (worker count, git options)
        now: Reference timestamp shared by every folder
        progress_callback: Optional callback(path, current, total)

    Returns:
        PruneResults sorted by score descending
    """
    settings = settings or Settings()
    now = time.time() if now is None else now
    results: list[PruneResult] = []
    total = len(folders)

    with ThreadPoolExecutor(max_workers=settings.max_workers) as executor:
        future_to_folder = {
            executor.submit(analyze_folder, f.path, f.size_bytes, threshold, now, settings): f
            for f in folders
        }

        for i, future in enumerate(as_completed(future_to_folder)):
            folder = future_to_folder[future]
            results.append(future.result())

            if progress_callback:
                progress_callback(folder.path, i + 1, total)

    return sort_results(results)
