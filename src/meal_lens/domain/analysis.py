"""Domain models for persisted meal analyses."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID


class ConfidenceLevel(str, Enum):
    """Confidence of a nutrient estimate, ordered low to high."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class AnalysisItem:
    """Single food item within an analysis record."""

    id: UUID
    name: str
    portion_description: str
    protein_grams: float
    carbs_grams: float = 0.0
    fat_grams: float = 0.0
    is_user_edited: bool = False
    confidence_level: ConfidenceLevel = ConfidenceLevel.MEDIUM


@dataclass(frozen=True)
class AnalysisRecord:
    """Structured nutrient estimate for one captured meal image.

    Totals are derived from ``items`` on every access, so they cannot drift
    from the item values. ``original_items`` keeps the first engine estimate
    untouched by later corrections.
    """

    id: UUID
    owner_id: str
    object_key: str
    items: tuple[AnalysisItem, ...]
    confidence_level: ConfidenceLevel
    notes: str | None
    created_at: datetime
    updated_at: datetime | None = None
    original_items: tuple[AnalysisItem, ...] = field(default=())

    @property
    def total_protein_grams(self) -> float:
        return sum_protein(self.items)

    @property
    def total_carbs_grams(self) -> float:
        return sum(item.carbs_grams for item in self.items)

    @property
    def total_fat_grams(self) -> float:
        return sum(item.fat_grams for item in self.items)


def sum_protein(items: tuple[AnalysisItem, ...] | list[AnalysisItem]) -> float:
    """Return the summed protein grams of the given items."""
    return sum(item.protein_grams for item in items)
