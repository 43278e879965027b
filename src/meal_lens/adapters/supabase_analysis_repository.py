"""Supabase repository for meal analysis records."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from meal_lens.domain.analysis import AnalysisItem, AnalysisRecord, ConfidenceLevel
from meal_lens.services.analysis import AnalysisRecordRepository

_TABLE = "meal_analyses"
_COLUMNS = (
    "id, owner_id, object_key, items, original_items, confidence, notes, "
    "created_at, updated_at"
)


@dataclass
class SupabaseAnalysisRepository(AnalysisRecordRepository):
    """Supabase implementation for analysis records."""

    client: Client

    def create_record(self, record: AnalysisRecord) -> None:
        """Insert a new record row."""
        response = self.client.table(_TABLE).insert(_to_row(record)).execute()
        if not response.data:
            raise RuntimeError("Failed to create meal analysis")

    def get_record(self, record_id: UUID) -> AnalysisRecord | None:
        """Return a record by id."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("id", str(record_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_record(response.data[0])

    def save_record(self, record: AnalysisRecord) -> None:
        """Overwrite a record row with the same id."""
        payload = _to_row(record)
        payload.pop("id")
        self.client.table(_TABLE).update(payload).eq("id", str(record.id)).execute()

    def list_records(
        self, owner_id: str, start: datetime, end: datetime
    ) -> list[AnalysisRecord]:
        """Return an owner's records created in the time range."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("owner_id", owner_id)
            .gte("created_at", start.isoformat())
            .lt("created_at", end.isoformat())
            .order("created_at", desc=False)
            .execute()
        )
        return [_parse_record(row) for row in response.data or []]

    def list_recent_records(self, owner_id: str, limit: int) -> list[AnalysisRecord]:
        """Return an owner's most recent records."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("owner_id", owner_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_record(row) for row in response.data or []]

    def delete_record(self, record_id: UUID) -> None:
        """Delete a record row."""
        self.client.table(_TABLE).delete().eq("id", str(record_id)).execute()


def _to_row(record: AnalysisRecord) -> dict[str, object]:
    return {
        "id": str(record.id),
        "owner_id": record.owner_id,
        "object_key": record.object_key,
        "items": [_item_to_json(item) for item in record.items],
        "original_items": [_item_to_json(item) for item in record.original_items],
        "total_protein_g": record.total_protein_grams,
        "total_carbs_g": record.total_carbs_grams,
        "total_fat_g": record.total_fat_grams,
        "confidence": record.confidence_level.value,
        "notes": record.notes,
        "created_at": record.created_at.isoformat(),
        "updated_at": record.updated_at.isoformat() if record.updated_at else None,
    }


def _item_to_json(item: AnalysisItem) -> dict[str, object]:
    return {
        "id": str(item.id),
        "name": item.name,
        "portion": item.portion_description,
        "protein_g": item.protein_grams,
        "carbs_g": item.carbs_grams,
        "fat_g": item.fat_grams,
        "is_user_edited": item.is_user_edited,
        "confidence": item.confidence_level.value,
    }


def _parse_item(raw: dict[str, object]) -> AnalysisItem:
    return AnalysisItem(
        id=UUID(str(raw["id"])),
        name=str(raw.get("name", "")),
        portion_description=str(raw.get("portion") or ""),
        protein_grams=float(raw.get("protein_g", 0.0)),
        carbs_grams=float(raw.get("carbs_g") or 0.0),
        fat_grams=float(raw.get("fat_g") or 0.0),
        is_user_edited=bool(raw.get("is_user_edited", False)),
        confidence_level=ConfidenceLevel(raw.get("confidence") or "medium"),
    )


def _parse_record(row: dict[str, object]) -> AnalysisRecord:
    updated_at_raw = row.get("updated_at")
    return AnalysisRecord(
        id=UUID(str(row["id"])),
        owner_id=str(row["owner_id"]),
        object_key=str(row["object_key"]),
        items=tuple(_parse_item(item) for item in row.get("items") or []),
        confidence_level=ConfidenceLevel(row.get("confidence") or "medium"),
        notes=row.get("notes"),
        created_at=datetime.fromisoformat(str(row["created_at"])),
        updated_at=(
            datetime.fromisoformat(updated_at_raw)
            if isinstance(updated_at_raw, str) and updated_at_raw
            else None
        ),
        original_items=tuple(
            _parse_item(item) for item in row.get("original_items") or []
        ),
    )
