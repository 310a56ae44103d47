"""
Per-center study cafe settings, including the feature toggle.
"""

from typing import Optional

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class CenterSettings(Base):
    """Study cafe configuration for one center."""

    __tablename__ = "study_cafe_center_settings"

    center_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Shown to students on the seat map
    notice: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    entry_password: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    def __repr__(self) -> str:
        """String representation of the settings row."""
        return f"<CenterSettings(center_id={self.center_id}, enabled={self.is_enabled})>"
