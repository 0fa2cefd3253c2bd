"""
Kindred Backend — Shared Response Schemas
==========================================

What:  Error and health response models used across every router.
Why:   Clients need one consistent error structure to parse programmatically.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "insufficient_credits",
            "message": "Not enough credits. Your likes refresh tomorrow.",
            "details": {"field": "credits", "profile_id": 7},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class AckResponse(BaseModel):
    """Plain acknowledgement for mutations that return nothing else."""
    message: str


class HealthResponse(BaseModel):
    """Health check response showing service and dependency status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
