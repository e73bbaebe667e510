"""Concurrent size calculation for target folders."""

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Iterable

from depsweep.config import DEFAULT_MAX_WORKERS
from depsweep.models import TargetFolder

log = logging.getLogger(__name__)


def get_directory_size(path: str | Path) -> int:
    """
    Sum the apparent size of every regular file under a directory.

    Symlinks are neither followed nor counted. Unreadable entries are
    skipped, so errors only lower the total.

    Args:
        path: Directory to measure

    Returns:
        Total size in bytes
    """
    total_size = 0
    pending = [os.fspath(path)]

    while pending:
        current = pending.pop()
        try:
            with os.scandir(current) as entries:
                for entry in entries:
                    try:
                        if entry.is_file(follow_symlinks=False):
                            total_size += entry.stat(follow_symlinks=False).st_size
                        elif entry.is_dir(follow_symlinks=False):
                            pending.append(entry.path)
                    except OSError:
                        continue
        except OSError as e:
            log.debug("Could not read %s: %s", current, e)

    return total_size


def calculate_folder_sizes(
    paths: Iterable[str | Path],
    max_workers: int = DEFAULT_MAX_WORKERS,
    progress_callback: Callable[[str, int, int], None] | None = None,
) -> list[TargetFolder]:
    """
    Measure folders in parallel.

    Args:
        paths: Folders to measure
        max_workers: Maximum number of folders measured at once
        progress_callback: Optional callback(path, current, total)

    Returns:
        One TargetFolder per path, sorted by size descending
    """
    paths = [str(p) for p in paths]
    total = len(paths)
    folders: list[TargetFolder] = []

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_path = {executor.submit(get_directory_size, p): p for p in paths}

        for i, future in enumerate(as_completed(future_to_path)):
            path = future_to_path[future]
            try:
                size = future.result()
            except Exception as e:
                log.warning("Could not size %s: %s", path, e)
                size = 0

            folders.append(TargetFolder(path=path, size_bytes=size))

            if progress_callback:
                progress_callback(path, i + 1, total)

    folders.sort(key=lambda f: (-f.size_bytes, f.path))
    return folders
