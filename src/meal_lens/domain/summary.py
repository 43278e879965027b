"""Domain models for daily macro summaries."""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class MacroBreakdown:
    """Protein, carbohydrate and fat values."""

    protein: float
    carbs: float
    fat: float


@dataclass(frozen=True)
class DailySummary:
    """Aggregated macros for one local calendar day."""

    day: date
    meal_count: int
    macros: MacroBreakdown
    percentages: MacroBreakdown
    total_calories: float
    carb_warning: bool
    carb_limit: float | None
