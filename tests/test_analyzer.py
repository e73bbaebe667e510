"""Tests for safety scoring."""

import os
import subprocess
import time
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from depsweep.analyzer import (
    SECONDS_PER_DAY,
    analyze_all_folders,
    analyze_folder,
    find_git_root,
    format_days,
    get_lockfile_age,
    has_uncommitted_changes,
)
from depsweep.config import Settings
from depsweep.models import ManagerKind, TargetFolder

NOW = 1_700_000_000.0


def _project(root: Path, lockfile: str | None, age_days: float | None = None, folder: str = "node_modules") -> Path:
    """Create a project with a dependency folder and an optionally aged lockfile."""
    root.mkdir(parents=True, exist_ok=True)
    target = root / folder
    target.mkdir()
    if lockfile:
        lock = root / lockfile
        lock.write_text("{}")
        if age_days is not None:
            mtime = NOW - age_days * SECONDS_PER_DAY
            os.utime(lock, (mtime, mtime))
    return target


@pytest.fixture
def no_git():
    with patch("depsweep.analyzer.has_uncommitted_changes", return_value=False) as mock:
        yield mock


class TestFormatDays:
    @pytest.mark.parametrize(
        "days,expected",
        [
            (0, "0 days"),
            (1, "1 day"),
            (29, "29 days"),
            (30, "~1 month"),
            (59, "~1 month"),
            (60, "~2 months"),
            (95, "~3 months"),
        ],
    )
    def test_format(self, days, expected):
        assert format_days(days) == expected


class TestBuildCacheRule:
    def test_dist_scores_90(self, tmp_path, no_git):
        target = _project(tmp_path / "app", "package-lock.json", age_days=200, folder="dist")
        result = analyze_folder(target, 10, now=NOW)
        assert result.score == 90
        assert "Build cache" in result.reason

    def test_build_cache_beats_orphan(self, tmp_path, no_git):
        """A build cache in a project without lockfile scores 90, not 95."""
        target = _project(tmp_path / "app", None, folder="build")
        assert analyze_folder(target, 10, now=NOW).score == 90

    @pytest.mark.parametrize("name", [".next", ".svelte-kit", "dist", "build"])
    def test_every_build_cache_name(self, tmp_path, no_git, name):
        target = _project(tmp_path / "app", "package-lock.json", age_days=1, folder=name)
        assert analyze_folder(target, 0, now=NOW).score == 90


class TestOrphanRule:
    def test_no_lockfile_scores_95(self, tmp_path, no_git):
        target = _project(tmp_path / "app", None, folder="target")
        result = analyze_folder(target, 10, now=NOW)
        assert result.score == 95
        assert "orphan" in result.reason

    def test_git_is_not_consulted(self, tmp_path, no_git):
        target = _project(tmp_path / "app", None)
        analyze_folder(target, 10, now=NOW)
        no_git.assert_not_called()


class TestStalenessRule:
    def test_very_stale(self, tmp_path, no_git):
        target = _project(tmp_path / "app", "package-lock.json", age_days=95)
        result = analyze_folder(target, 10, now=NOW)
        assert result.score == 80
        assert result.reason == "Lockfile very stale (~3 months)"

    def test_exactly_90_days_is_only_stale(self, tmp_path, no_git):
        target = _project(tmp_path / "app", "package-lock.json", age_days=90)
        result = analyze_folder(target, 10, now=NOW)
        assert result.score == 60
        assert result.reason == "Lockfile stale (~3 months)"

    def test_31_days_is_stale(self, tmp_path, no_git):
        target = _project(tmp_path / "app", "package-lock.json", age_days=31)
        assert analyze_folder(target, 10, now=NOW).score == 60

    def test_exactly_30_days_falls_through(self, tmp_path, no_git):
        target = _project(tmp_path / "app", "package-lock.json", age_days=30)
        result = analyze_folder(target, 10, now=NOW)
        assert result.score == 45
        no_git.assert_called_once()

    def test_days_are_truncated(self, tmp_path, no_git):
        """30.9 days counts as 30 days."""
        target = _project(tmp_path / "app", "package-lock.json", age_days=30.9)
        assert analyze_folder(target, 10, now=NOW).score == 45

    def test_stale_beats_uncommitted_changes(self, tmp_path):
        target = _project(tmp_path / "app", "yarn.lock", age_days=45)
        with patch("depsweep.analyzer.has_uncommitted_changes", return_value=True) as mock:
            assert analyze_folder(target, 10, now=NOW).score == 60
        mock.assert_not_called()

    def test_cargo_uses_cargo_lock(self, tmp_path, no_git):
        project = tmp_path / "crate"
        target = _project(project, "Cargo.lock", age_days=120, folder="target")
        (project / "Cargo.toml").write_text("")
        assert analyze_folder(target, 10, now=NOW).score == 80


class TestUncommittedRule:
    def test_uncommitted_changes_score_15(self, tmp_path):
        target = _project(tmp_path / "app", "package-lock.json", age_days=3)
        with patch("depsweep.analyzer.has_uncommitted_changes", return_value=True):
            result = analyze_folder(target, 10, now=NOW)
        assert result.score == 15
        assert "Uncommitted" in result.reason


class TestActiveRule:
    def test_recent_lockfile_scores_20(self, tmp_path, no_git):
        target = _project(tmp_path / "app", "package-lock.json", age_days=3)
        result = analyze_folder(target, 10, now=NOW)
        assert result.score == 20
        assert "Active" in result.reason

    def test_exactly_7_days_is_default(self, tmp_path, no_git):
        target = _project(tmp_path / "app", "package-lock.json", age_days=7)
        assert analyze_folder(target, 10, now=NOW).score == 45


class TestDefaultRule:
    def test_manifest_without_lockfile(self, tmp_path, no_git):
        """Cargo.toml without Cargo.lock has no age to judge."""
        project = tmp_path / "crate"
        target = _project(project, "Cargo.toml", folder="target")
        result = analyze_folder(target, 10, now=NOW)
        assert result.score == 45
        assert result.reason == "Dependency folder with lockfile"

    def test_future_mtime_is_ignored(self, tmp_path, no_git):
        target = _project(tmp_path / "app", "package-lock.json", age_days=-5)
        assert analyze_folder(target, 10, now=NOW).score == 45


class TestThreshold:
    def test_safe_to_delete_follows_threshold(self, tmp_path, no_git):
        target = _project(tmp_path / "app", "package-lock.json", age_days=45)
        assert analyze_folder(target, 10, threshold=60, now=NOW).safe_to_delete
        assert not analyze_folder(target, 10, threshold=61, now=NOW).safe_to_delete

    def test_result_carries_path_and_size(self, tmp_path, no_git):
        target = _project(tmp_path / "app", None)
        result = analyze_folder(target, 1234, now=NOW)
        assert result.path == str(target)
        assert result.size_bytes == 1234


class TestGetLockfileAge:
    def test_returns_age(self, tmp_path):
        lock = tmp_path / "package-lock.json"
        lock.write_text("{}")
        os.utime(lock, (NOW - 100, NOW - 100))
        assert get_lockfile_age(tmp_path, ManagerKind.NPM, now=NOW) == pytest.approx(100)

    def test_missing_lockfile(self, tmp_path):
        assert get_lockfile_age(tmp_path, ManagerKind.NPM, now=NOW) is None

    def test_first_existing_lockfile_wins(self, tmp_path):
        lock = tmp_path / "bun.lock"
        lock.write_text("")
        os.utime(lock, (NOW - 50, NOW - 50))
        assert get_lockfile_age(tmp_path, ManagerKind.BUN, now=NOW) == pytest.approx(50)


class TestGitCheck:
    def test_find_git_root_in_parent(self, tmp_path):
        (tmp_path / ".git").mkdir()
        project = tmp_path / "a" / "b"
        project.mkdir(parents=True)
        assert find_git_root(project, 5) == tmp_path

    def test_find_git_root_respects_depth(self, tmp_path):
        (tmp_path / ".git").mkdir()
        project = tmp_path / "a" / "b" / "c"
        project.mkdir(parents=True)
        assert find_git_root(project, 2) is None
        assert find_git_root(project, 3) == tmp_path

    def test_skipped_without_repository(self, tmp_path):
        with patch("depsweep.analyzer.find_git_root", return_value=None):
            with patch("depsweep.analyzer.subprocess.run") as mock_run:
                assert not has_uncommitted_changes(tmp_path)
        mock_run.assert_not_called()

    def test_reports_pending_changes(self, tmp_path):
        (tmp_path / ".git").mkdir()
        with patch("depsweep.analyzer.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout=" M package-lock.json\n")
            assert has_uncommitted_changes(tmp_path)

        args, kwargs = mock_run.call_args
        assert args[0] == ["git", "status", "--porcelain", "."]
        assert kwargs["cwd"] == tmp_path

    def test_relative_project_dir(self, tmp_path, monkeypatch):
        """The pathspec is resolved inside the project, not against it again."""
        (tmp_path / ".git").mkdir()
        (tmp_path / "projA").mkdir()
        monkeypatch.chdir(tmp_path)

        with patch("depsweep.analyzer.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout="?? package-lock.json\n")
            assert has_uncommitted_changes(Path("projA"))

        args, kwargs = mock_run.call_args
        assert args[0][-1] == "."
        assert kwargs["cwd"] == Path("projA")

    def test_clean_tree(self, tmp_path):
        (tmp_path / ".git").mkdir()
        with patch("depsweep.analyzer.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout="")
            assert not has_uncommitted_changes(tmp_path)

    def test_git_missing_fails_open(self, tmp_path):
        (tmp_path / ".git").mkdir()
        with patch("depsweep.analyzer.subprocess.run", side_effect=FileNotFoundError("git")):
            assert not has_uncommitted_changes(tmp_path)

    def test_git_error_fails_open(self, tmp_path):
        (tmp_path / ".git").mkdir()
        with patch("depsweep.analyzer.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=128, stdout="fatal: not a git repository")
            assert not has_uncommitted_changes(tmp_path)

    def test_git_timeout_fails_open(self, tmp_path):
        (tmp_path / ".git").mkdir()
        with patch(
            "depsweep.analyzer.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="git", timeout=1),
        ):
            assert not has_uncommitted_changes(tmp_path, timeout=1)


class TestAnalyzeAllFolders:
    def test_sorted_by_score(self, tmp_path, no_git):
        stale = _project(tmp_path / "a", "package-lock.json", age_days=100)
        orphan = _project(tmp_path / "b", None)
        active = _project(tmp_path / "c", "package-lock.json", age_days=1)
        folders = [
            TargetFolder(path=str(p), size_bytes=10) for p in (active, stale, orphan)
        ]

        results = analyze_all_folders(folders, settings=Settings(max_workers=2), now=NOW)
        assert [r.score for r in results] == [95, 80, 20]

    def test_ties_broken_by_size(self, tmp_path, no_git):
        small = _project(tmp_path / "a", None)
        large = _project(tmp_path / "b", None)
        folders = [
            TargetFolder(path=str(small), size_bytes=1),
            TargetFolder(path=str(large), size_bytes=100),
        ]

        results = analyze_all_folders(folders, now=NOW)
        assert [r.path for r in results] == [str(large), str(small)]

    def test_scores_within_bounds(self, tmp_path, no_git):
        folders = [
            TargetFolder(path=str(_project(tmp_path / f"p{i}", lock, age)), size_bytes=0)
            for i, (lock, age) in enumerate(
                [(None, None), ("package-lock.json", 100), ("package-lock.json", 40), ("yarn.lock", 10)]
            )
        ]
        for result in analyze_all_folders(folders, now=NOW):
            assert 0 <= result.score <= 100
            assert result.reason

    def test_uses_current_time_by_default(self, tmp_path, no_git):
        target = _project(tmp_path / "app", "package-lock.json")
        hour_ago = time.time() - 3600
        os.utime(tmp_path / "app" / "package-lock.json", (hour_ago, hour_ago))

        results = analyze_all_folders([TargetFolder(path=str(target), size_bytes=0)])
        assert results[0].score == 20
