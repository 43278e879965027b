"""Meal history, correction and daily summary endpoints."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Query, Request, Response, status

from meal_lens.api.dependencies import require_owner
from meal_lens.api.models import (
    AnalysisRecordModel,
    CorrectionRequest,
    DailySummaryModel,
    MealListResponse,
)
from meal_lens.errors import FieldError, ValidationError

if TYPE_CHECKING:
    from meal_lens.containers import AppContainer

router = APIRouter(prefix="/meals", tags=["meals"])


@router.get("/daily-summary", response_model=DailySummaryModel)
async def daily_summary(
    request: Request,
    date_param: str | None = Query(default=None, alias="date"),
    owner_id: str = Depends(require_owner),
) -> DailySummaryModel:
    """Return the macro summary for one local calendar day."""
    container: AppContainer = request.app.state.container
    day = _parse_day(date_param)
    summary = container.summary_service.get_daily_summary(owner_id, day)
    return DailySummaryModel.from_summary(summary)


@router.get("", response_model=MealListResponse)
async def list_meals(
    request: Request,
    limit: int = 20,
    owner_id: str = Depends(require_owner),
) -> MealListResponse:
    """Return the owner's recent meals."""
    container: AppContainer = request.app.state.container
    records = container.meal_service.list_meals(owner_id, limit)
    return MealListResponse(
        meals=[AnalysisRecordModel.from_record(record) for record in records]
    )


@router.get("/{meal_id}", response_model=AnalysisRecordModel)
async def get_meal(
    request: Request,
    meal_id: UUID,
    owner_id: str = Depends(require_owner),
) -> AnalysisRecordModel:
    """Return one meal."""
    container: AppContainer = request.app.state.container
    record = container.meal_service.get_meal(meal_id, owner_id)
    return AnalysisRecordModel.from_record(record)


@router.patch("/{meal_id}", response_model=AnalysisRecordModel)
async def correct_meal(
    request: Request,
    meal_id: UUID,
    body: CorrectionRequest,
    owner_id: str = Depends(require_owner),
) -> AnalysisRecordModel:
    """Apply user corrections and return the full updated record."""
    container: AppContainer = request.app.state.container
    record = container.correction_service.apply_correction(
        record_id=meal_id,
        owner_id=owner_id,
        overrides=[item.to_override() for item in body.corrections.items],
        notes=body.corrections.notes,
    )
    return AnalysisRecordModel.from_record(record)


@router.delete("/{meal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_meal(
    request: Request,
    meal_id: UUID,
    owner_id: str = Depends(require_owner),
) -> Response:
    """Delete a meal and its stored image."""
    container: AppContainer = request.app.state.container
    container.meal_service.delete_meal(meal_id, owner_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _parse_day(raw: str | None) -> date | None:
    if raw is None:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise ValidationError(
            [FieldError("date", "Invalid date format. Use YYYY-MM-DD.")]
        ) from exc
