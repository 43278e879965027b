"""Supabase repository for owner settings."""

from dataclasses import dataclass

from supabase import Client

from meal_lens.services.owner_settings import OwnerSettings, OwnerSettingsRepository


@dataclass
class SupabaseOwnerSettingsRepository(OwnerSettingsRepository):
    """Supabase implementation for owner settings."""

    client: Client

    def get_settings(self, owner_id: str) -> OwnerSettings | None:
        """Return the stored timezone and carbohydrate ceiling for an owner."""
        response = (
            self.client.table("owner_settings")
            .select("timezone, carb_limit_g")
            .eq("owner_id", owner_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        carb_limit = row.get("carb_limit_g")
        return OwnerSettings(
            timezone_name=row.get("timezone"),
            carb_limit=float(carb_limit) if carb_limit is not None else None,
        )
