"""
Center settings service: the per-center feature toggle, notice and entry password.
"""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import transactional
from ..models.center_settings import CenterSettings
from ..schemas.center_settings import CenterSettingsUpdate
from ..utils.auth import Actor
from ..utils.exceptions import AuthorizationError, CenterFeatureDisabledError
from ..utils.logging_config import log_business_event
from .seat_service import SeatService

logger = logging.getLogger(__name__)


class CenterSettingsService:
    """Service for reading and changing study cafe settings of a center."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_settings(self, center_id: str) -> CenterSettings:
        """
        Get a center's settings.

        Centers that were never configured get a transient, disabled settings
        object that is not added to the session.
        """
        async with transactional(self.session):
            settings = await self._find(center_id)
        if settings is None:
            return CenterSettings(center_id=center_id, is_enabled=False)
        return settings

    async def is_enabled(self, center_id: str) -> bool:
        """Check whether the study cafe is switched on for a center."""
        settings = await self.get_settings(center_id)
        return bool(settings.is_enabled)

    async def ensure_enabled(self, center_id: str) -> None:
        """
        Raise unless the study cafe is enabled for a center.

        Raises:
            CenterFeatureDisabledError: If the feature is off or never configured
        """
        if not await self.is_enabled(center_id):
            logger.info(f"Study cafe request for disabled center {center_id}")
            raise CenterFeatureDisabledError(center_id)

    async def upsert_settings(
        self,
        center_id: str,
        settings_data: CenterSettingsUpdate,
        actor: Actor,
    ) -> CenterSettings:
        """
        Create or update a center's settings.

        Enabling the study cafe for a center without seats seeds the default
        layout in the same transaction.

        Args:
            center_id: Center to configure
            settings_data: New values; unset optional fields keep stored values
            actor: Calling actor, must be staff

        Returns:
            The stored settings

        Raises:
            AuthorizationError: If the actor is not staff
        """
        if not actor.is_staff:
            raise AuthorizationError(
                "Only staff can change study cafe settings",
                required_permission="staff",
            )

        changes = settings_data.model_dump(exclude_unset=True)

        async with transactional(self.session):
            settings = await self._find(center_id, for_update=True)
            if settings is None:
                settings = CenterSettings(center_id=center_id, is_enabled=False)
                self.session.add(settings)

            was_enabled = bool(settings.is_enabled)
            for field, value in changes.items():
                setattr(settings, field, value)
            await self.session.flush()

            if settings.is_enabled and not was_enabled:
                await SeatService(self.session).initialize_default_layout(center_id)

        log_business_event(
            "center_settings_updated",
            {"center_id": center_id, "is_enabled": settings.is_enabled},
            actor_id=actor.id,
        )
        return settings

    async def list_enabled_centers(self) -> List[CenterSettings]:
        """List settings of every center with the study cafe switched on."""
        async with transactional(self.session):
            result = await self.session.execute(
                select(CenterSettings)
                .where(CenterSettings.is_enabled.is_(True))
                .order_by(CenterSettings.center_id)
            )
            return list(result.scalars().all())

    async def _find(self, center_id: str, for_update: bool = False):
        query = select(CenterSettings).where(CenterSettings.center_id == center_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()
