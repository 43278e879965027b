"""Pydantic models for the HTTP API payloads."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from meal_lens.domain.analysis import AnalysisItem, AnalysisRecord
from meal_lens.domain.corrections import ItemOverride
from meal_lens.domain.summary import DailySummary
from meal_lens.domain.uploads import UploadGrant


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadUrlRequest(CamelModel):
    """Upload grant request."""

    file_name: str
    file_size_bytes: int
    content_type: str


class UploadUrlResponse(CamelModel):
    """Upload grant returned to the client."""

    upload_target: str
    object_key: str
    expires_in: int

    @classmethod
    def from_grant(cls, grant: UploadGrant) -> "UploadUrlResponse":
        return cls(
            upload_target=grant.upload_target,
            object_key=grant.object_key,
            expires_in=grant.expiry_seconds,
        )


class AnalyzeRequest(CamelModel):
    """Analysis request for an uploaded object."""

    object_key: str


class AnalysisItemModel(CamelModel):
    """Single food item in an analysis record."""

    id: UUID
    name: str
    portion_description: str
    protein_grams: float
    carbs_grams: float
    fat_grams: float
    is_user_edited: bool
    confidence_level: str

    @classmethod
    def from_item(cls, item: AnalysisItem) -> "AnalysisItemModel":
        return cls(
            id=item.id,
            name=item.name,
            portion_description=item.portion_description,
            protein_grams=item.protein_grams,
            carbs_grams=item.carbs_grams,
            fat_grams=item.fat_grams,
            is_user_edited=item.is_user_edited,
            confidence_level=item.confidence_level.value,
        )


class AnalysisRecordModel(CamelModel):
    """Full analysis record."""

    id: UUID
    owner_id: str
    object_key: str
    items: list[AnalysisItemModel]
    total_protein_grams: float
    total_carbs_grams: float
    total_fat_grams: float
    confidence_level: str
    notes: str | None
    created_at: datetime
    updated_at: datetime | None
    original_items: list[AnalysisItemModel]

    @classmethod
    def from_record(cls, record: AnalysisRecord) -> "AnalysisRecordModel":
        return cls(
            id=record.id,
            owner_id=record.owner_id,
            object_key=record.object_key,
            items=[AnalysisItemModel.from_item(item) for item in record.items],
            total_protein_grams=record.total_protein_grams,
            total_carbs_grams=record.total_carbs_grams,
            total_fat_grams=record.total_fat_grams,
            confidence_level=record.confidence_level.value,
            notes=record.notes,
            created_at=record.created_at,
            updated_at=record.updated_at,
            original_items=[
                AnalysisItemModel.from_item(item) for item in record.original_items
            ],
        )


class CorrectionItem(CamelModel):
    """User override for one item."""

    id: UUID | None = None
    name: str
    portion_description: str | None = None
    protein_grams: float
    carbs_grams: float | None = None
    fat_grams: float | None = None

    def to_override(self) -> ItemOverride:
        return ItemOverride(
            id=self.id,
            name=self.name,
            portion_description=self.portion_description,
            protein_grams=self.protein_grams,
            carbs_grams=self.carbs_grams,
            fat_grams=self.fat_grams,
        )


class Corrections(CamelModel):
    items: list[CorrectionItem]
    notes: str | None = None


class CorrectionRequest(CamelModel):
    """PATCH body for meal corrections."""

    corrections: Corrections


class MacroModel(CamelModel):
    protein: float
    carbs: float
    fat: float


class DailySummaryModel(CamelModel):
    """Daily macro summary."""

    day: date = Field(alias="date")
    meal_count: int
    macros: MacroModel
    percentages: MacroModel
    total_calories: float
    carb_warning: bool
    carb_limit: float | None

    @classmethod
    def from_summary(cls, summary: DailySummary) -> "DailySummaryModel":
        return cls(
            day=summary.day,
            meal_count=summary.meal_count,
            macros=MacroModel(
                protein=summary.macros.protein,
                carbs=summary.macros.carbs,
                fat=summary.macros.fat,
            ),
            percentages=MacroModel(
                protein=summary.percentages.protein,
                carbs=summary.percentages.carbs,
                fat=summary.percentages.fat,
            ),
            total_calories=summary.total_calories,
            carb_warning=summary.carb_warning,
            carb_limit=summary.carb_limit,
        )


class MealListResponse(CamelModel):
    meals: list[AnalysisRecordModel]
