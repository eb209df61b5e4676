"""Startup validation for the application.

This module provides startup checks for external dependencies and
configuration validation to ensure the system is properly initialized
before accepting requests. Every check here is critical: a failure
means the service must not start.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog

from file_transfers.core.checks import check_directory_writable, check_transfer_tool
from file_transfers.core.config import Config

logger = structlog.get_logger(__name__)


class StartupError(Exception):
    """Raised when the service cannot start."""

    pass


@dataclass
class ComponentCheckResult:
    """Result of a startup component check.

    Attributes:
        name: Component name (e.g., "transfer_tool", "log_directory")
        passed: Whether the check passed
        message: Human-readable message about the result
        details: Additional details about the check
    """

    name: str
    passed: bool
    message: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class StartupResult:
    """Result of full startup validation.

    Attributes:
        success: Whether startup can proceed
        checks: List of individual component check results
        errors: List of error messages for failed checks
    """

    success: bool
    checks: List[ComponentCheckResult] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


class StartupValidator:
    """Validates system components at startup.

    - Required transfer settings are present
    - porklock is on PATH
    - The log directory exists (created if missing) and is writable
    """

    def __init__(self, config: Config):
        self.config = config
        self.results: List[ComponentCheckResult] = []

    def validate_all(self) -> StartupResult:
        """Run all startup validations.

        Returns:
            StartupResult with overall status and component details.
        """
        logger.info("startup_validation_started")

        self.results = [
            self.check_required_settings(),
            self.check_transfer_tool(),
            self.check_log_directory(),
        ]

        errors = [f"{r.name}: {r.message}" for r in self.results if not r.passed]
        result = StartupResult(success=not errors, checks=self.results, errors=errors)

        log_method = logger.info if result.success else logger.error
        log_method(
            "startup_validation_completed",
            success=result.success,
            errors=errors,
        )

        return result

    def validate_or_raise(self) -> StartupResult:
        """Run all startup validations and raise if any failed.

        Raises:
            StartupError: Listing every failed check.
        """
        result = self.validate_all()
        if not result.success:
            raise StartupError("Startup validation failed: " + "; ".join(result.errors))
        return result

    def check_required_settings(self) -> ComponentCheckResult:
        missing = self.config.transfer.missing_required()
        if missing:
            logger.error("required_settings_missing", missing=missing)
            return ComponentCheckResult(
                name="settings",
                passed=False,
                message="Missing required configuration: "
                + ", ".join(f"transfer.{name}" for name in missing),
            )
        return ComponentCheckResult(
            name="settings",
            passed=True,
            message="Required settings present",
        )

    def check_transfer_tool(self) -> ComponentCheckResult:
        """Check porklock availability on PATH."""
        result = check_transfer_tool(self.config.transfer.executable)

        if result.available:
            logger.info("transfer_tool_check_passed", **result.details)
            return ComponentCheckResult(
                name="transfer_tool",
                passed=True,
                message=f"{self.config.transfer.executable} is available",
                details=result.details,
            )

        logger.error("transfer_tool_check_failed", error=result.error)
        return ComponentCheckResult(
            name="transfer_tool",
            passed=False,
            message=result.error,
        )

    def check_log_directory(self) -> ComponentCheckResult:
        """Check the log directory, creating it if it doesn't exist."""
        result = check_directory_writable(self.config.transfer.log_dir, create=True)

        if result.available:
            logger.info("log_directory_check_passed", path=self.config.transfer.log_dir)
            return ComponentCheckResult(
                name="log_directory",
                passed=True,
                message="Log directory is available and writable",
                details=result.details,
            )

        logger.error(
            "log_directory_check_failed",
            path=self.config.transfer.log_dir,
            error=result.error,
        )
        return ComponentCheckResult(
            name="log_directory",
            passed=False,
            message=result.error,
        )
