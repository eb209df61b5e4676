"""Shared component check utilities.

This module provides reusable checks for the external dependencies of the
transfer service: the porklock executable, the log directory and the
download input path list. Used by both the startup validator and the
health check endpoints.
"""

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass
class CheckResult:
    """Result of a component availability check.

    Attributes:
        name: Component name (e.g., "transfer_tool", "log_directory")
        available: Whether the component is available and functional
        error: Error message if check failed
        details: Additional details about the check result
    """

    name: str
    available: bool
    error: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


def check_transfer_tool(executable: str) -> CheckResult:
    """Check that the transfer executable resolves on PATH.

    Args:
        executable: Command name or path of the transfer tool.

    Returns:
        CheckResult with the resolved path in details if available.
    """
    resolved = shutil.which(executable)
    if resolved is None:
        return CheckResult(
            name="transfer_tool",
            available=False,
            error=f"{executable} not found on PATH",
        )
    return CheckResult(name="transfer_tool", available=True, details={"path": resolved})


def check_directory_writable(path: str, create: bool = False) -> CheckResult:
    """Check that a directory exists (optionally creating it) and is writable.

    Args:
        path: Directory to check.
        create: Create the directory if it does not exist.

    Returns:
        CheckResult for the directory.
    """
    directory = Path(path)
    try:
        if not directory.exists():
            if not create:
                return CheckResult(
                    name="log_directory",
                    available=False,
                    error=f"Directory does not exist: {path}",
                )
            directory.mkdir(parents=True, exist_ok=True)

        if not directory.is_dir():
            return CheckResult(
                name="log_directory",
                available=False,
                error=f"Not a directory: {path}",
            )

        if not os.access(directory, os.W_OK):
            return CheckResult(
                name="log_directory",
                available=False,
                error=f"Directory is not writable: {path}",
            )
    except OSError as e:
        return CheckResult(name="log_directory", available=False, error=str(e))

    return CheckResult(name="log_directory", available=True, details={"path": str(directory)})


def check_file_readable(path: str) -> CheckResult:
    """Check that a regular file exists and is readable.

    Args:
        path: File to check.

    Returns:
        CheckResult for the file.
    """
    if not os.path.isfile(path):
        return CheckResult(
            name="path_list",
            available=False,
            error=f"File not found: {path}",
            details={"path": path},
        )
    if not os.access(path, os.R_OK):
        return CheckResult(
            name="path_list",
            available=False,
            error=f"File is not readable: {path}",
            details={"path": path},
        )
    return CheckResult(name="path_list", available=True, details={"path": path})
