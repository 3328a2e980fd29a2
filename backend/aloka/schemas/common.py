"""
ALOKA Backend — Shared Schemas
===============================

What:  Base model for camelCase wire format, plus error and health responses.
Why:   The front end speaks camelCase (studioName, perHourCharge); Python
       code stays snake_case. One base class does the translation for every
       request and response model.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for all API models.

    alias_generator:  studio_name <-> studioName on the wire
    populate_by_name: services and tests may still construct models with
                      snake_case keyword arguments
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "success": false,
            "error": "validation_error",
            "message": "Location details are required",
            "details": {"required": ["city", "state", "zipCode"], "missing": ["zipCode"]},
            "request_id": "550e8400"
        }
    """
    success: bool = Field(default=False)
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for load balancer and container probes."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
