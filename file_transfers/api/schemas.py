"""Request and response schemas for API endpoints.

This module provides Pydantic models for response serialization
with OpenAPI examples.
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


class TransferRecordResponse(BaseModel):
    """Status record of one upload or download request."""

    uuid: str = Field(..., examples=["550e8400-e29b-41d4-a716-446655440000"])
    start_time: str = Field(..., examples=["2025-12-25T10:30:00+00:00"])
    completion_time: Optional[str] = Field(
        None,
        description="Set once the transfer completed or failed",
        examples=["2025-12-25T10:31:00+00:00"],
    )
    status: Literal["requested", "running", "uploading", "downloading", "failed", "completed"] = (
        Field(..., examples=["requested", "downloading", "completed"])
    )
    kind: Literal["upload", "download"] = Field(..., examples=["download"])


class ComponentHealth(BaseModel):
    """Health status of a single component."""

    status: Literal["healthy", "unhealthy"] = Field(..., examples=["healthy"])
    critical: bool = Field(True, examples=[True])
    details: Optional[Dict[str, Any]] = Field(default=None, examples=[{"path": "/usr/bin/porklock"}])


class HealthResponse(BaseModel):
    """Detailed health check response."""

    status: Literal["healthy", "unhealthy"] = Field(..., examples=["healthy"])
    timestamp: str = Field(..., examples=["2025-12-25T10:30:00Z"])
    version: str = Field(..., examples=["1.0.0"])
    uptime_seconds: float = Field(..., examples=[3600.5])
    components: Dict[str, ComponentHealth]


class LivenessResponse(BaseModel):
    """Simple liveness check response for container orchestration."""

    status: Literal["alive"] = Field(..., examples=["alive"])


class ReadinessResponse(BaseModel):
    """Readiness check response for load balancer integration."""

    status: Literal["ready", "not_ready"] = Field(..., examples=["ready"])
    ready: bool = Field(..., examples=[True])
    message: Optional[str] = Field(default=None, examples=["porklock not found on PATH"])


class ErrorDetail(BaseModel):
    """Structured error response.

    All API errors follow this format with machine-readable error codes
    and optional suggestions for resolution.
    """

    error_code: str = Field(
        ...,
        description="Machine-readable error code",
        examples=["TRANSFER_NOT_FOUND", "SERIALIZATION_FAILED"],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Download not found: 550e8400-e29b-41d4-a716-446655440000"],
    )
    details: Optional[str] = Field(None, description="Additional error context")
    timestamp: str = Field(..., examples=["2025-12-25T10:30:00Z"])
    request_id: Optional[str] = Field(
        None,
        description="Request ID for tracing",
        examples=["req_550e8400e29b"],
    )
    suggestion: Optional[str] = Field(
        None,
        description="Suggested action to resolve the error",
    )
