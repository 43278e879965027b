"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from meal_lens.config import Settings, parse_content_types
from meal_lens.containers import AppContainer
from meal_lens.domain.analysis import AnalysisItem, AnalysisRecord, ConfidenceLevel
from meal_lens.services.analysis import AnalysisRecordRepository, AnalysisService
from meal_lens.services.corrections import CorrectionService
from meal_lens.services.engine import (
    AnalysisEngine,
    AnalysisEngineClient,
    AnalysisRequest,
)
from meal_lens.services.meals import MealService
from meal_lens.services.owner_settings import (
    OwnerSettings,
    OwnerSettingsRepository,
    OwnerSettingsService,
)
from meal_lens.services.summary import DailySummaryService
from meal_lens.services.uploads import ObjectStore, UploadGrantService

OWNER_ID = "owner-1"
OTHER_OWNER_ID = "owner-2"
FIXED_NOW = datetime(2026, 3, 14, 12, 30, tzinfo=UTC)
JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg-bytes"


def fixed_clock() -> datetime:
    return FIXED_NOW


@dataclass
class InMemoryObjectStore(ObjectStore):
    """In-memory object store for tests."""

    objects: dict[str, bytes] = field(default_factory=dict)
    upload_targets: list[tuple[str, int]] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)

    def create_upload_target(self, object_key: str, expiry_seconds: int) -> str:
        self.upload_targets.append((object_key, expiry_seconds))
        return f"https://storage.test/upload/{object_key}?token=signed"

    def exists(self, object_key: str) -> bool:
        return object_key in self.objects

    def download(self, object_key: str) -> bytes:
        return self.objects[object_key]

    def delete(self, object_key: str) -> None:
        self.deleted.append(object_key)
        self.objects.pop(object_key, None)


@dataclass
class InMemoryAnalysisRepository(AnalysisRecordRepository):
    """In-memory analysis record repository for tests."""

    records: dict[UUID, AnalysisRecord] = field(default_factory=dict)
    saves: int = 0

    def create_record(self, record: AnalysisRecord) -> None:
        self.records[record.id] = record

    def get_record(self, record_id: UUID) -> AnalysisRecord | None:
        return self.records.get(record_id)

    def save_record(self, record: AnalysisRecord) -> None:
        self.saves += 1
        self.records[record.id] = record

    def list_records(
        self, owner_id: str, start: datetime, end: datetime
    ) -> list[AnalysisRecord]:
        return [
            record
            for record in self.records.values()
            if record.owner_id == owner_id and start <= record.created_at < end
        ]

    def list_recent_records(self, owner_id: str, limit: int) -> list[AnalysisRecord]:
        owned = [r for r in self.records.values() if r.owner_id == owner_id]
        return sorted(owned, key=lambda r: r.created_at, reverse=True)[:limit]

    def delete_record(self, record_id: UUID) -> None:
        self.records.pop(record_id, None)


@dataclass
class InMemoryOwnerSettingsRepository(OwnerSettingsRepository):
    """In-memory owner settings repository for tests."""

    timezones: dict[str, str] = field(default_factory=dict)
    carb_limits: dict[str, float] = field(default_factory=dict)
    reads: list[str] = field(default_factory=list)

    def get_settings(self, owner_id: str) -> OwnerSettings | None:
        self.reads.append(owner_id)
        if owner_id not in self.timezones and owner_id not in self.carb_limits:
            return None
        return OwnerSettings(
            timezone_name=self.timezones.get(owner_id),
            carb_limit=self.carb_limits.get(owner_id),
        )


@dataclass
class FakeAnalysisEngineClient(AnalysisEngineClient):
    """Fake engine client returning a fixed payload."""

    payload: dict[str, object] = field(
        default_factory=lambda: {
            "foods": [
                {
                    "name": "Grilled chicken",
                    "portion": "150g",
                    "protein": 30.0,
                    "carbs": 0.0,
                    "fat": 3.0,
                },
                {
                    "name": "Rice",
                    "portion": "1 cup",
                    "protein": 25.0,
                    "carbs": 45.0,
                    "fat": 13.0,
                },
            ],
            "totalProtein": 55.0,
            "confidence": "medium",
            "notes": "Lunch plate",
        }
    )
    error: Exception | None = None
    delay_seconds: float = 0.0
    requests: list[AnalysisRequest] = field(default_factory=list)

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def analyze(self, request: AnalysisRequest) -> dict[str, object]:
        self.requests.append(request)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        return self.payload


def make_item(
    name: str,
    protein: float,
    carbs: float = 0.0,
    fat: float = 0.0,
    **overrides: object,
) -> AnalysisItem:
    values: dict[str, object] = {
        "id": uuid4(),
        "name": name,
        "portion_description": "1 serving",
        "protein_grams": protein,
        "carbs_grams": carbs,
        "fat_grams": fat,
    }
    values.update(overrides)
    return AnalysisItem(**values)


def make_record(
    items: list[AnalysisItem],
    owner_id: str = OWNER_ID,
    created_at: datetime = FIXED_NOW,
) -> AnalysisRecord:
    return AnalysisRecord(
        id=uuid4(),
        owner_id=owner_id,
        object_key=f"meals/{owner_id}/1700000000000-abcd1234.jpg",
        items=tuple(items),
        confidence_level=ConfidenceLevel.MEDIUM,
        notes=None,
        created_at=created_at,
        original_items=tuple(items),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        openai_api_key="openai-key",
    )


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def repository() -> InMemoryAnalysisRepository:
    return InMemoryAnalysisRepository()


@pytest.fixture
def owner_settings_repository() -> InMemoryOwnerSettingsRepository:
    return InMemoryOwnerSettingsRepository()


@pytest.fixture
def engine_client() -> FakeAnalysisEngineClient:
    return FakeAnalysisEngineClient()


@pytest.fixture
def analysis_service(
    settings: Settings,
    object_store: InMemoryObjectStore,
    repository: InMemoryAnalysisRepository,
    engine_client: FakeAnalysisEngineClient,
) -> AnalysisService:
    engine = AnalysisEngine(
        client=engine_client,
        model=settings.openai_model,
        reasoning_effort=settings.openai_reasoning_effort,
        store=settings.openai_store,
    )
    return AnalysisService(
        object_store=object_store,
        engine=engine,
        repository=repository,
        timeout_seconds=settings.analysis_timeout_seconds,
        clock=fixed_clock,
    )


@pytest.fixture
def container(
    settings: Settings,
    object_store: InMemoryObjectStore,
    repository: InMemoryAnalysisRepository,
    owner_settings_repository: InMemoryOwnerSettingsRepository,
    analysis_service: AnalysisService,
) -> AppContainer:
    upload_grant_service = UploadGrantService(
        object_store=object_store,
        max_bytes=settings.max_upload_bytes,
        expiry_seconds=settings.upload_grant_expiry_seconds,
        allowed_content_types=parse_content_types(settings.allowed_content_types),
        clock=fixed_clock,
        suffix_factory=lambda: "abcd1234",
    )
    summary_service = DailySummaryService(
        repository=repository,
        owner_settings=OwnerSettingsService(owner_settings_repository),
        clock=fixed_clock,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        object_store=object_store,
        upload_grant_service=upload_grant_service,
        analysis_service=analysis_service,
        correction_service=CorrectionService(repository, clock=fixed_clock),
        meal_service=MealService(repository, object_store),
        summary_service=summary_service,
        close_resources=close_resources,
    )
