"""
PlantDex Backend — Shared Response Schemas
===========================================
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error body for every failure status.

    Example:
        {
            "error": "forbidden",
            "message": "You do not have access to this plant",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    store: str = Field(description="Record store backend and connectivity")
    identification: str = Field(description="Plant.id client: configured, not_configured")
    uptime_seconds: float = Field(description="Seconds since service started")
