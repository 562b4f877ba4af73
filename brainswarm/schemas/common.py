"""
Brainswarm Backend — Shared Response Schemas
=============================================

What:  Error, health and plain-message payloads shared by every router.
"""

from typing import Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    message: str = Field(description="Human-readable outcome of the action")


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "forbidden",
            "message": "This action is unauthorized.",
            "details": {"operation": "forceDelete"},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
