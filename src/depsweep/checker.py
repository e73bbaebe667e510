"""Dependency health checks used by the repair flow."""

import json
import logging
import os
import subprocess
from pathlib import Path

from depsweep.classifier import target_folder_for
from depsweep.detector import dir_exists
from depsweep.models import HealthResult, ManagerKind

log = logging.getLogger(__name__)

MAX_ISSUES = 5

NODE_CHECK_COMMANDS: dict[ManagerKind, list[str]] = {
    ManagerKind.NPM: ["npm", "ls", "--json", "--depth=0"],
    ManagerKind.PNPM: ["pnpm", "ls", "--json", "--depth=0"],
    ManagerKind.YARN: ["yarn", "check", "--verify-tree"],
    ManagerKind.BUN: ["bun", "install", "--dry-run"],
    ManagerKind.DENO: ["deno", "check", "."],
}


def _run(cmd: list[str], directory: str | Path, timeout: float | None) -> tuple[int, str]:
    """Run a check command, folding stderr into stdout."""
    result = subprocess.run(
        cmd,
        cwd=directory,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        timeout=timeout,
    )
    return result.returncode, result.stdout or ""


def parse_npm_ls_output(output: str) -> list[str]:
    """
    Extract problem descriptions from `npm ls --json` output.

    Returns:
        At most MAX_ISSUES problems plus a "... and N more issues" line
    """
    try:
        data = json.loads(output)
    except ValueError:
        return []

    problems = data.get("problems", []) if isinstance(data, dict) else []
    problems = [str(p) for p in problems]
    if len(problems) > MAX_ISSUES:
        return problems[:MAX_ISSUES] + [f"... and {len(problems) - MAX_ISSUES} more issues"]
    return problems


def _output_issues(output: str, keyword: str | None = None) -> list[str]:
    issues = []
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        if keyword and keyword not in line:
            continue
        issues.append(line)
        if len(issues) >= MAX_ISSUES:
            break
    return issues


def check_health(
    directory: str | Path,
    manager: ManagerKind,
    timeout: float | None = None,
) -> HealthResult:
    """
    Verify the integrity of a project's installed dependencies.

    Args:
        directory: Project directory
        manager: Package manager owning the project
        timeout: Seconds before the check command is abandoned

    Returns:
        HealthResult; a missing tool or a timeout makes the project unhealthy
    """
    result = HealthResult(directory=str(directory), manager=manager)

    if manager == ManagerKind.UNKNOWN:
        result.healthy = False
        result.issues.append("Unknown package manager, cannot check health")
        return result

    folder = target_folder_for(manager)
    if folder and not dir_exists(os.path.join(directory, folder)):
        result.healthy = False
        if manager == ManagerKind.CARGO:
            result.issues.append("target/ not found (never built)")
        else:
            result.issues.append(f"{folder} not found")
        return result

    if manager in NODE_CHECK_COMMANDS:
        cmd = NODE_CHECK_COMMANDS[manager]
    elif manager == ManagerKind.CARGO:
        cmd = ["cargo", "check"]
    elif manager == ManagerKind.GO:
        cmd = ["go", "mod", "verify"]
    else:
        cmd = [os.path.join(directory, ".venv", "bin", "pip"), "check"]

    try:
        returncode, output = _run(cmd, directory, timeout)
    except subprocess.TimeoutExpired:
        result.healthy = False
        result.issues.append(f"{cmd[0]} health check timed out")
        return result
    except OSError as e:
        result.healthy = False
        result.issues.append(f"Could not run {os.path.basename(cmd[0])}: {e.strerror or e}")
        return result

    if returncode == 0:
        return result

    result.healthy = False
    if manager in (ManagerKind.NPM, ManagerKind.PNPM):
        issues = parse_npm_ls_output(output)
        result.issues = issues or [f"{manager.value} reports dependency issues"]
    elif manager in NODE_CHECK_COMMANDS:
        result.issues = [f"{manager.value} health check failed"]
    elif manager == ManagerKind.CARGO:
        result.issues = _output_issues(output, keyword="error") or ["cargo check failed"]
    elif manager == ManagerKind.GO:
        result.issues = _output_issues(output) or ["go mod verify failed"]
    else:
        result.issues = _output_issues(output) or ["pip check failed"]

    log.debug("%s is unhealthy: %s", directory, result.issues)
    return result
