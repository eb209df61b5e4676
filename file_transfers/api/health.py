"""Health check endpoints.

- /health: component report with per-kind transfer state
- /liveness: process is alive
- /readiness: porklock is available and the transfer service is configured
"""

import time
from datetime import datetime, timezone
from typing import Dict, Literal

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from file_transfers import __version__
from file_transfers.api.schemas import (
    ComponentHealth,
    HealthResponse,
    LivenessResponse,
    ReadinessResponse,
)
from file_transfers.core.checks import (
    CheckResult,
    check_directory_writable,
    check_file_readable,
    check_transfer_tool,
)
from file_transfers.models.transfer import TransferKind
from file_transfers.services.transfer_service import TransferService

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])

# Track application start time for uptime calculation
_start_time: float = time.time()


def reset_start_time() -> None:
    """Reset the start time (for testing)."""
    global _start_time
    _start_time = time.time()


# Dependency placeholder (to be configured in main app)
async def get_transfer_service() -> TransferService:
    """Get transfer service instance."""
    raise NotImplementedError("Transfer service dependency not configured")


def _component(result: CheckResult, critical: bool = True) -> ComponentHealth:
    details = dict(result.details)
    if result.error:
        details["error"] = result.error
    return ComponentHealth(
        status="healthy" if result.available else "unhealthy",
        critical=critical,
        details=details or None,
    )


def _transfers_component(service: TransferService) -> ComponentHealth:
    details = {
        kind.value: {
            "running": service.is_running(kind),
            "records": len(service.lane(kind).store),
        }
        for kind in TransferKind
    }
    return ComponentHealth(status="healthy", critical=False, details=details)


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={
        200: {"description": "All critical components healthy"},
        503: {"description": "One or more critical components unhealthy"},
    },
)
async def health_check(
    service: TransferService = Depends(get_transfer_service),  # noqa: B008
) -> JSONResponse:
    """
    Detailed health check endpoint.

    Verifies:
    - porklock is on PATH (critical)
    - the log directory is writable (critical)
    - the download input path list is readable (informational)
    - per-kind running state and record counts (informational)

    Returns HTTP 200 if all critical components are healthy,
    HTTP 503 otherwise.
    """
    config = service.config

    components: Dict[str, ComponentHealth] = {
        "transfer_tool": _component(check_transfer_tool(config.executable)),
        "log_directory": _component(check_directory_writable(config.log_dir)),
        "path_list": _component(check_file_readable(config.path_list_file), critical=False),
        "transfers": _transfers_component(service),
    }

    all_healthy = all(c.status == "healthy" for c in components.values() if c.critical)
    overall_status: Literal["healthy", "unhealthy"] = "healthy" if all_healthy else "unhealthy"

    response = HealthResponse(
        status=overall_status,
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=__version__,
        uptime_seconds=round(time.time() - _start_time, 2),
        components=components,
    )

    status_code = status.HTTP_200_OK if all_healthy else status.HTTP_503_SERVICE_UNAVAILABLE

    logger.info(
        "health_check_completed",
        status=overall_status,
        components={k: v.status for k, v in components.items()},
    )

    return JSONResponse(content=response.model_dump(), status_code=status_code)


@router.get("/liveness", response_model=LivenessResponse)
async def liveness_check() -> LivenessResponse:
    """
    Liveness probe endpoint.

    Returns HTTP 200 if the process is alive.
    """
    return LivenessResponse(status="alive")


@router.get(
    "/readiness",
    response_model=ReadinessResponse,
    responses={
        200: {"description": "Service is ready to accept traffic"},
        503: {"description": "Service is not ready"},
    },
)
async def readiness_check() -> JSONResponse:
    """
    Readiness probe endpoint.

    Checks:
    - Transfer service is configured
    - porklock is available
    """
    issues = []

    try:
        from file_transfers.services.transfer_service import get_transfer_service as configured

        service = configured()
    except RuntimeError:
        issues.append("Transfer service not configured")
    else:
        tool = check_transfer_tool(service.config.executable)
        if not tool.available:
            issues.append(tool.error or "Transfer tool not available")

    if issues:
        response = ReadinessResponse(
            status="not_ready",
            ready=False,
            message="; ".join(issues),
        )
        return JSONResponse(
            content=response.model_dump(),
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return JSONResponse(
        content=ReadinessResponse(status="ready", ready=True).model_dump(),
        status_code=status.HTTP_200_OK,
    )
