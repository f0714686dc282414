"""
NewsNext Backend — Shared Response Schemas
===========================================

Every successful API response uses the same envelope:

    {"success": true, "message": "Ads retrieved successfully", "data": {...}}

and every error the one built by the exception handlers:

    {"success": false, "error": "not_found", "message": "Ad not found",
     "details": {...}, "request_id": "a1b2c3d4"}
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    success: bool = Field(default=True, description="Always true for 2xx responses")
    message: str = Field(description="Human-readable outcome")
    data: Optional[DataT] = Field(default=None, description="Payload, omitted for deletions")


class ErrorResponse(BaseModel):
    """Error envelope, documented on routes via `responses=`."""
    success: bool = Field(default=False)
    error: str = Field(description="Machine-readable error code (e.g. 'validation_error')")
    message: str = Field(description="Human-readable error description")
    details: Optional[Any] = Field(default=None, description="Field errors or context")
    request_id: Optional[str] = Field(default=None, description="Correlation ID for support")


class PageMeta(BaseModel):
    total: int = Field(description="Number of rows matching the filters")
    page: int = Field(description="Current page (1-based)")
    limit: int = Field(description="Page size")
    total_pages: int = Field(description="ceil(total / limit)")


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float = Field(description="Seconds since process start")


class RootResponse(BaseModel):
    message: str
    version: str
    status: str
