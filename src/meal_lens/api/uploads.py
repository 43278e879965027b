"""Upload grant and analysis endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request

from meal_lens.api.dependencies import require_owner
from meal_lens.api.models import (
    AnalysisRecordModel,
    AnalyzeRequest,
    UploadUrlRequest,
    UploadUrlResponse,
)

if TYPE_CHECKING:
    from meal_lens.containers import AppContainer

router = APIRouter(tags=["uploads"])


@router.post("/upload-url", response_model=UploadUrlResponse)
async def upload_url(
    request: Request,
    body: UploadUrlRequest,
    owner_id: str = Depends(require_owner),
) -> UploadUrlResponse:
    """Issue a short-lived grant for a direct upload."""
    container: AppContainer = request.app.state.container
    grant = container.upload_grant_service.issue_upload_grant(
        owner_id=owner_id,
        file_name=body.file_name,
        file_size_bytes=body.file_size_bytes,
        content_type=body.content_type,
    )
    return UploadUrlResponse.from_grant(grant)


@router.post("/analyze", response_model=AnalysisRecordModel)
async def analyze(
    request: Request,
    body: AnalyzeRequest,
    owner_id: str = Depends(require_owner),
) -> AnalysisRecordModel:
    """Analyze an uploaded meal image and persist the result."""
    container: AppContainer = request.app.state.container
    record = await container.analysis_service.analyze(body.object_key, owner_id)
    return AnalysisRecordModel.from_record(record)
