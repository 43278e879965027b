"""Domain models for user corrections."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class ItemOverride:
    """User-supplied replacement for one item of an analysis record."""

    name: str
    protein_grams: float
    id: UUID | None = None
    portion_description: str | None = None
    carbs_grams: float | None = None
    fat_grams: float | None = None
