"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from meal_lens.adapters.openai_analysis_engine import OpenAIAnalysisEngineClient
from meal_lens.adapters.supabase_analysis_repository import (
    SupabaseAnalysisRepository,
)
from meal_lens.adapters.supabase_object_store import SupabaseObjectStore
from meal_lens.adapters.supabase_owner_settings_repository import (
    SupabaseOwnerSettingsRepository,
)
from meal_lens.config import Settings, parse_content_types
from meal_lens.services.analysis import AnalysisService
from meal_lens.services.corrections import CorrectionService
from meal_lens.services.engine import AnalysisEngine
from meal_lens.services.meals import MealService
from meal_lens.services.owner_settings import OwnerSettingsService
from meal_lens.services.summary import DailySummaryService
from meal_lens.services.uploads import ObjectStore, UploadGrantService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    object_store: ObjectStore
    upload_grant_service: UploadGrantService
    analysis_service: AnalysisService
    correction_service: CorrectionService
    meal_service: MealService
    summary_service: DailySummaryService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    object_store = SupabaseObjectStore(
        supabase_client, resolved_settings.storage_bucket
    )
    analysis_repository = SupabaseAnalysisRepository(supabase_client)
    owner_settings_repository = SupabaseOwnerSettingsRepository(supabase_client)
    openai_client = OpenAIAnalysisEngineClient.create(resolved_settings.openai_api_key)
    engine = AnalysisEngine(
        client=openai_client,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    upload_grant_service = UploadGrantService(
        object_store=object_store,
        max_bytes=resolved_settings.max_upload_bytes,
        expiry_seconds=resolved_settings.upload_grant_expiry_seconds,
        allowed_content_types=parse_content_types(
            resolved_settings.allowed_content_types
        ),
    )
    analysis_service = AnalysisService(
        object_store=object_store,
        engine=engine,
        repository=analysis_repository,
        timeout_seconds=resolved_settings.analysis_timeout_seconds,
        dedupe_in_flight=resolved_settings.analysis_dedupe_in_flight,
    )
    summary_service = DailySummaryService(
        repository=analysis_repository,
        owner_settings=OwnerSettingsService(owner_settings_repository),
    )

    async def close_resources() -> None:
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        object_store=object_store,
        upload_grant_service=upload_grant_service,
        analysis_service=analysis_service,
        correction_service=CorrectionService(analysis_repository),
        meal_service=MealService(analysis_repository, object_store),
        summary_service=summary_service,
        close_resources=close_resources,
    )
