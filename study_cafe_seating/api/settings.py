"""
Center settings API endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.center_settings import (
    CenterSettingsResponse,
    CenterSettingsUpdate,
    EnabledCenterResponse,
)
from ..services.center_settings_service import CenterSettingsService
from ..utils.auth import Actor
from ..utils.dependencies import get_current_actor

router = APIRouter(prefix="/study-cafe", tags=["settings"])


@router.get("/settings/{center_id}", response_model=CenterSettingsResponse)
async def get_center_settings(
    center_id: str,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Get a center's study cafe settings; unconfigured centers read as disabled."""
    return await CenterSettingsService(db).get_settings(center_id)


@router.put("/settings/{center_id}", response_model=CenterSettingsResponse)
async def update_center_settings(
    center_id: str,
    settings_data: CenterSettingsUpdate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    Create or update a center's settings (staff only).

    Enabling the study cafe for a center without seats also seeds the
    default seat layout.
    """
    return await CenterSettingsService(db).upsert_settings(center_id, settings_data, actor)


@router.get("/enabled-centers", response_model=List[EnabledCenterResponse])
async def list_enabled_centers(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """List the centers where the study cafe is switched on."""
    return await CenterSettingsService(db).list_enabled_centers()
