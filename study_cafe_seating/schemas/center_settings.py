"""
Pydantic schemas for per-center study cafe settings.
"""

from typing import Optional

from pydantic import BaseModel, Field


class CenterSettingsUpdate(BaseModel):
    """Schema for creating or updating a center's settings.

    Fields left out of the request keep their stored value.
    """

    is_enabled: bool
    notice: Optional[str] = Field(None, max_length=2000)
    entry_password: Optional[str] = Field(None, max_length=64)


class CenterSettingsResponse(BaseModel):
    """Schema for center settings responses."""

    center_id: str
    is_enabled: bool
    notice: Optional[str] = None
    entry_password: Optional[str] = None

    model_config = {"from_attributes": True}


class EnabledCenterResponse(BaseModel):
    """A center where the study cafe is switched on."""

    center_id: str
    notice: Optional[str] = None

    model_config = {"from_attributes": True}
