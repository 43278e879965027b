"""Daily macro aggregation for an owner's meals."""

import math
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from meal_lens.domain.analysis import AnalysisRecord
from meal_lens.domain.summary import DailySummary, MacroBreakdown
from meal_lens.services.analysis import AnalysisRecordRepository
from meal_lens.services.owner_settings import OwnerSettingsService

PROTEIN_KCAL_PER_G = 4
CARBS_KCAL_PER_G = 4
FAT_KCAL_PER_G = 9


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class DailySummaryService:
    """Service for computing daily summaries in the owner's timezone."""

    repository: AnalysisRecordRepository
    owner_settings: OwnerSettingsService
    clock: Callable[[], datetime] = field(default=_utcnow)

    def get_daily_summary(self, owner_id: str, day: date | None = None) -> DailySummary:
        """Return totals for ``day`` (today when omitted) in local time."""
        settings = self.owner_settings.get_settings(owner_id)
        tz = settings.timezone
        target = day or self.clock().astimezone(tz).date()
        start = datetime.combine(target, time.min, tzinfo=tz)
        end = start + timedelta(days=1)
        records = self.repository.list_records(
            owner_id, start.astimezone(UTC), end.astimezone(UTC)
        )
        local_records = [
            record for record in records if _local_day(record, tz) == target
        ]
        return summarize_day(target, local_records, settings.carb_limit)


def summarize_day(
    day: date, records: list[AnalysisRecord], carb_limit: float | None
) -> DailySummary:
    """Aggregate records into macro grams, calories and calorie shares."""
    protein = sum(record.total_protein_grams for record in records)
    carbs = sum(record.total_carbs_grams for record in records)
    fat = sum(record.total_fat_grams for record in records)

    protein_kcal = protein * PROTEIN_KCAL_PER_G
    carbs_kcal = carbs * CARBS_KCAL_PER_G
    fat_kcal = fat * FAT_KCAL_PER_G
    total_kcal = protein_kcal + carbs_kcal + fat_kcal

    return DailySummary(
        day=day,
        meal_count=len(records),
        macros=MacroBreakdown(
            protein=round(protein, 1), carbs=round(carbs, 1), fat=round(fat, 1)
        ),
        # each share is rounded on its own, so they need not add up to 100
        percentages=MacroBreakdown(
            protein=_percent(protein_kcal, total_kcal),
            carbs=_percent(carbs_kcal, total_kcal),
            fat=_percent(fat_kcal, total_kcal),
        ),
        total_calories=_round_half_up(total_kcal),
        carb_warning=carb_limit is not None and carbs > carb_limit,
        carb_limit=carb_limit,
    )


def _percent(part: float, total: float) -> int:
    if total <= 0:
        return 0
    return _round_half_up(part / total * 100)


def _round_half_up(value: float) -> int:
    # halves round up, not to the nearest even integer
    return math.floor(value + 0.5)


def _local_day(record: AnalysisRecord, tz: ZoneInfo) -> date:
    created_at = record.created_at
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    return created_at.astimezone(tz).date()
