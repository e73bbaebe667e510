"""Data models for depsweep."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

MB = 1024**2


class ManagerKind(str, Enum):
    """Dependency ecosystem that owns a project directory."""

    UNKNOWN = "unknown"  # No manifest or lockfile detected
    NPM = "npm"
    PNPM = "pnpm"
    YARN = "yarn"
    BUN = "bun"
    DENO = "deno"
    CARGO = "cargo"
    GO = "go"
    PIP = "pip"


class TargetFolder(BaseModel):
    """A discovered dependency/build folder and its measured size."""

    path: str = Field(..., description="Path of the folder")
    size_bytes: int = Field(0, ge=0, description="Apparent size of all regular files inside")

    @property
    def size_mb(self) -> float:
        """Size in megabytes (binary)."""
        return self.size_bytes / MB


class PruneResult(BaseModel):
    """Safety analysis of a single target folder."""

    path: str = Field(..., description="Path of the analyzed folder")
    size_bytes: int = Field(0, ge=0, description="Size of the folder in bytes")
    score: int = Field(..., ge=0, le=100, description="0-100, higher is safer to delete")
    reason: str = Field(..., description="Human-readable justification for the score")
    safe_to_delete: bool = Field(False, description="Whether the score meets the threshold")


class SelectableItem(BaseModel):
    """One row of an interactive checklist."""

    label: str = Field(..., description="Main text of the row")
    detail: str = Field("", description="Secondary text, e.g. a formatted size")
    selected: bool = Field(True, description="Whether the row is checked")


class SelectionResult(BaseModel):
    """Outcome of an interactive selection."""

    items: list[SelectableItem] = Field(default_factory=list)
    canceled: bool = Field(False, description="User aborted the selection")


class DeleteResult(BaseModel):
    """Result of deleting a single folder."""

    path: str = Field(..., description="Folder that was deleted")
    bytes_freed: int = Field(0, description="Bytes freed by the deletion")
    success: bool = Field(True, description="Whether the deletion succeeded")
    error: Optional[str] = Field(None, description="Error message if failed")
    duration_seconds: float = Field(0.0, description="Time spent removing the folder")


class ReinstallTarget(BaseModel):
    """A project directory that needs its dependencies reinstalled."""

    directory: str = Field(..., description="Project directory")
    manager: ManagerKind = Field(..., description="Detected package manager")


class ReinstallResult(BaseModel):
    """Result of reinstalling one project."""

    directory: str
    manager: ManagerKind
    success: bool = True
    error: Optional[str] = None


class HealthResult(BaseModel):
    """Result of a dependency health check."""

    directory: str
    manager: ManagerKind
    healthy: bool = True
    issues: list[str] = Field(default_factory=list)


class SweepReport(BaseModel):
    """Aggregated outcome of a list or sweep run."""

    root: str
    timestamp: datetime = Field(default_factory=datetime.now)
    dry_run: bool = False
    found: list[TargetFolder] = Field(default_factory=list, description="Every folder discovered")
    folders: list[TargetFolder] = Field(
        default_factory=list, description="Folders kept after selection"
    )
    canceled: bool = False
    deletions: list[DeleteResult] = Field(default_factory=list)
    reinstall_requested: bool = False
    reinstall_targets: list[ReinstallTarget] = Field(default_factory=list)
    reinstall_canceled: bool = False
    reinstalls: list[ReinstallResult] = Field(default_factory=list)

    @property
    def total_found_bytes(self) -> int:
        """Bytes held by every discovered folder."""
        return sum(f.size_bytes for f in self.found)

    @property
    def total_selected_bytes(self) -> int:
        """Bytes held by the selected folders."""
        return sum(f.size_bytes for f in self.folders)

    @property
    def total_freed_bytes(self) -> int:
        """Bytes actually freed by successful deletions."""
        return sum(d.bytes_freed for d in self.deletions if d.success)

    @property
    def deleted_count(self) -> int:
        return sum(1 for d in self.deletions if d.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for d in self.deletions if not d.success)


class PruneReport(BaseModel):
    """Aggregated outcome of a prune run."""

    root: str
    timestamp: datetime = Field(default_factory=datetime.now)
    threshold: int = Field(50, ge=0, le=100)
    dry_run: bool = False
    results: list[PruneResult] = Field(default_factory=list)
    deletions: list[DeleteResult] = Field(default_factory=list)

    @property
    def prunable(self) -> list[PruneResult]:
        """Results whose score meets the threshold."""
        return [r for r in self.results if r.safe_to_delete]

    @property
    def total_found_bytes(self) -> int:
        return sum(r.size_bytes for r in self.results)

    @property
    def prunable_bytes(self) -> int:
        return sum(r.size_bytes for r in self.prunable)

    @property
    def total_freed_bytes(self) -> int:
        return sum(d.bytes_freed for d in self.deletions if d.success)

    @property
    def deleted_count(self) -> int:
        return sum(1 for d in self.deletions if d.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for d in self.deletions if not d.success)


class RepairOutcome(BaseModel):
    """What happened to one project during repair."""

    health: HealthResult
    repaired: bool = False
    error: Optional[str] = None


class RepairReport(BaseModel):
    """Aggregated outcome of a repair run."""

    root: str
    outcomes: list[RepairOutcome] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def repaired_count(self) -> int:
        return sum(1 for o in self.outcomes if o.repaired)

    @property
    def unhealthy_count(self) -> int:
        return sum(1 for o in self.outcomes if not o.health.healthy)


class RefreshResult(BaseModel):
    """Outcome of refreshing a single project directory."""

    directory: str
    manager: ManagerKind
    target_folder: Optional[str] = None
    removed: bool = False
    duration_seconds: float = 0.0
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None
