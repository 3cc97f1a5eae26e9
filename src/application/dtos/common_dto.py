"""Common DTOs for API responses and error handling."""
from __future__ import annotations

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error body of the proxy routes."""
    error: str = Field(..., description="Short description of what failed", examples=["Image edit failed"])
    details: str | None = Field(None, description="User-facing explanation of the failure")
    reason: str | None = Field(
        None,
        description="Outcome variant that caused the failure",
        examples=["Blocked", "StoppedEarly", "NoImageReturned", "TransportError", "MalformedResult"],
    )


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Health status", examples=["OK"])
    timestamp: str = Field(..., description="ISO timestamp of the check")


class RootResponse(BaseModel):
    """Root endpoint response model."""
    status: str = Field(..., description="API status", examples=["ok"])
    service: str = Field(..., description="Service name", examples=["pixshop-backend"])
    version: str = Field(..., description="API version", examples=["0.1.0"])
