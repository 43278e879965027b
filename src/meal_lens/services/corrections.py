"""Correction service for user edits of analysis records."""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

from meal_lens.domain.analysis import AnalysisItem, AnalysisRecord, ConfidenceLevel
from meal_lens.domain.corrections import ItemOverride
from meal_lens.errors import FieldError, ValidationError
from meal_lens.services.analysis import AnalysisRecordRepository
from meal_lens.services.meals import load_owned_record

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 200
MAX_PORTION_LENGTH = 100
MAX_ITEM_GRAMS = 999.99
MAX_NOTES_LENGTH = 1000


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class CorrectionService:
    """Merges user overrides into a persisted record."""

    repository: AnalysisRecordRepository
    clock: Callable[[], datetime] = field(default=_utcnow)

    def apply_correction(
        self,
        record_id: UUID,
        owner_id: str,
        overrides: list[ItemOverride],
        notes: str | None = None,
    ) -> AnalysisRecord:
        """Apply overrides and return the full updated record."""
        record = load_owned_record(self.repository, record_id, owner_id)
        errors = validate_overrides(overrides)
        if notes is not None and len(notes) > MAX_NOTES_LENGTH:
            errors.append(FieldError("notes", "Notes are too long"))
        if errors:
            raise ValidationError(errors)

        items = merge_items(list(record.items), overrides)
        updated = replace(
            record,
            items=tuple(items),
            notes=notes if notes is not None else record.notes,
            updated_at=self.clock(),
            original_items=record.original_items or record.items,
        )
        self.repository.save_record(updated)
        logger.info(
            "Meal corrected",
            extra={
                "record_id": str(record.id),
                "override_count": len(overrides),
                "total_protein_grams": updated.total_protein_grams,
            },
        )
        return updated


def validate_overrides(overrides: list[ItemOverride]) -> list[FieldError]:
    """Return one error per offending field."""
    errors: list[FieldError] = []
    for index, override in enumerate(overrides):
        prefix = f"items[{index}]"
        name = override.name.strip()
        if not name:
            errors.append(FieldError(f"{prefix}.name", "Food name is required"))
        elif len(name) > MAX_NAME_LENGTH:
            errors.append(FieldError(f"{prefix}.name", "Food name is too long"))
        if (
            override.portion_description is not None
            and len(override.portion_description) > MAX_PORTION_LENGTH
        ):
            errors.append(
                FieldError(f"{prefix}.portionDescription", "Portion is too long")
            )
        for field_name, value in (
            ("proteinGrams", override.protein_grams),
            ("carbsGrams", override.carbs_grams),
            ("fatGrams", override.fat_grams),
        ):
            message = _grams_error(value)
            if message:
                errors.append(FieldError(f"{prefix}.{field_name}", message))
    return errors


def _grams_error(value: float | None) -> str | None:
    if value is None:
        return None
    if not math.isfinite(value) or value < 0:
        return "Must be a non-negative number"
    if value > MAX_ITEM_GRAMS:
        return f"Must be at most {MAX_ITEM_GRAMS}"
    return None


def merge_items(
    items: list[AnalysisItem], overrides: list[ItemOverride]
) -> list[AnalysisItem]:
    """Replace matching items and append the rest, marking them user-edited."""
    merged = list(items)
    for override in overrides:
        index = _find_item(merged, override)
        if index is None:
            merged.append(_edited_item(override, None))
        else:
            merged[index] = _edited_item(override, merged[index])
    return merged


def _find_item(items: list[AnalysisItem], override: ItemOverride) -> int | None:
    if override.id is not None:
        for index, item in enumerate(items):
            if item.id == override.id:
                return index
        return None
    wanted = override.name.strip().casefold()
    for index, item in enumerate(items):
        if item.name.strip().casefold() == wanted:
            return index
    return None


def _edited_item(override: ItemOverride, existing: AnalysisItem | None) -> AnalysisItem:
    if existing is None:
        item_id = override.id or uuid4()
        portion, carbs, fat = "", 0.0, 0.0
    else:
        item_id = existing.id
        portion = existing.portion_description
        carbs, fat = existing.carbs_grams, existing.fat_grams
    if override.portion_description is not None:
        portion = override.portion_description
    if override.carbs_grams is not None:
        carbs = override.carbs_grams
    if override.fat_grams is not None:
        fat = override.fat_grams
    return AnalysisItem(
        id=item_id,
        name=override.name.strip(),
        portion_description=portion,
        protein_grams=float(override.protein_grams),
        carbs_grams=float(carbs),
        fat_grams=float(fat),
        is_user_edited=True,
        confidence_level=ConfidenceLevel.HIGH,
    )
