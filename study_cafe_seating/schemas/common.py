"""
Common schemas for API responses and error handling.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Schema for detailed error information."""

    error_code: str = Field(..., description="Error code for programmatic handling")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error context")
    suggestions: Optional[List[str]] = Field(None, description="Helpful suggestions for resolving the error")
    retry_after: Optional[int] = Field(None, description="Seconds to wait before retrying")


class ErrorResponse(BaseModel):
    """Schema for API error responses."""

    error: ErrorDetail
    error_id: str
    timestamp: str

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "error": {
                        "error_code": "SEAT_OCCUPIED",
                        "message": "Seat 0c6d8f0e-2f6a-4c55-9a3e-0d0f3f1f8b11 is already in use",
                        "details": {"seat_id": "0c6d8f0e-2f6a-4c55-9a3e-0d0f3f1f8b11"},
                        "suggestions": ["Choose a different seat", "Refresh the seat map"]
                    },
                    "error_id": "5e7d1b8a-4d0b-4a8e-9f5c-3b2f7a1c9d10",
                    "timestamp": "2024-03-01T09:00:00+00:00"
                }
            ]
        }
    }


class SuccessResponse(BaseModel):
    """Schema for simple success responses."""

    message: str = Field(..., description="Success message")
    data: Optional[Dict[str, Any]] = Field(None, description="Additional response data")


class HealthStatus(BaseModel):
    """Schema for health check responses."""

    status: str = Field(..., description="Overall health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    timestamp: str = Field(..., description="Health check timestamp")
    dependencies: Optional[Dict[str, Dict[str, Any]]] = Field(
        None,
        description="Status of service dependencies"
    )
