"""Owner settings service."""

from dataclasses import dataclass
from typing import Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


@dataclass(frozen=True)
class OwnerSettings:
    """Stored per-owner preferences."""

    timezone_name: str | None = None
    carb_limit: float | None = None

    @property
    def timezone(self) -> ZoneInfo:
        """Return the owner timezone or UTC if unset or unknown."""
        try:
            return ZoneInfo(self.timezone_name or "UTC")
        except (ZoneInfoNotFoundError, ValueError):
            return ZoneInfo("UTC")


class OwnerSettingsRepository(Protocol):
    """Persistence interface for per-owner settings."""

    def get_settings(self, owner_id: str) -> OwnerSettings | None:
        """Return the owner's stored settings, if any."""


@dataclass
class OwnerSettingsService:
    """Service for owner settings."""

    repository: OwnerSettingsRepository

    def get_settings(self, owner_id: str) -> OwnerSettings:
        """Return the owner's settings, falling back to defaults."""
        return self.repository.get_settings(owner_id) or OwnerSettings()
