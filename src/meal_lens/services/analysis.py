"""Analysis orchestration: fetch uploaded bytes, call the engine, persist."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID, uuid4

from meal_lens.domain.analysis import AnalysisItem, AnalysisRecord, sum_protein
from meal_lens.domain.engine import EngineEstimate
from meal_lens.errors import (
    AnalysisFailed,
    FieldError,
    Forbidden,
    NotFound,
    ValidationError,
)
from meal_lens.services.engine import AnalysisEngine
from meal_lens.services.uploads import ObjectStore, owner_namespace

logger = logging.getLogger(__name__)

TOTAL_MISMATCH_TOLERANCE_G = 0.5


class AnalysisRecordRepository(Protocol):
    """Persistence interface for analysis records."""

    def create_record(self, record: AnalysisRecord) -> None:
        """Persist a new analysis record."""

    def get_record(self, record_id: UUID) -> AnalysisRecord | None:
        """Return a record by id, if present."""

    def save_record(self, record: AnalysisRecord) -> None:
        """Overwrite an existing record (same id)."""

    def list_records(
        self, owner_id: str, start: datetime, end: datetime
    ) -> list[AnalysisRecord]:
        """Return an owner's records created within ``[start, end)``."""

    def list_recent_records(self, owner_id: str, limit: int) -> list[AnalysisRecord]:
        """Return an owner's most recent records, newest first."""

    def delete_record(self, record_id: UUID) -> None:
        """Delete a record."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class AnalysisService:
    """Turns an uploaded object into a persisted analysis record.

    Each engine call is made at most once per invocation and is bounded by
    ``timeout_seconds``. When ``dedupe_in_flight`` is set, concurrent calls
    for the same object key share a single engine call and record.
    """

    object_store: ObjectStore
    engine: AnalysisEngine
    repository: AnalysisRecordRepository
    timeout_seconds: float
    dedupe_in_flight: bool = True
    clock: Callable[[], datetime] = field(default=_utcnow)
    _in_flight: dict[str, "asyncio.Future[AnalysisRecord]"] = field(
        default_factory=dict, init=False, repr=False
    )

    async def analyze(self, object_key: str, owner_id: str) -> AnalysisRecord:
        """Analyze an uploaded meal image owned by ``owner_id``."""
        verify_object_owner(object_key, owner_id)
        if not self.dedupe_in_flight:
            return await self._analyze_once(object_key, owner_id)

        pending = self._in_flight.get(object_key)
        if pending is None:
            pending = asyncio.ensure_future(self._analyze_once(object_key, owner_id))
            self._in_flight[object_key] = pending
            pending.add_done_callback(lambda done: self._forget(object_key, done))
        else:
            logger.info("Joining in-flight analysis", extra={"object_key": object_key})
        return await asyncio.shield(pending)

    def _forget(self, object_key: str, done: "asyncio.Future[AnalysisRecord]") -> None:
        if self._in_flight.get(object_key) is done:
            del self._in_flight[object_key]
        if not done.cancelled():
            # marks a failure as retrieved when every waiter was cancelled
            done.exception()

    async def _analyze_once(self, object_key: str, owner_id: str) -> AnalysisRecord:
        if not self.object_store.exists(object_key):
            raise NotFound(f"No uploaded image found for {object_key}")
        image_bytes = self.object_store.download(object_key)

        try:
            estimate = await asyncio.wait_for(
                self.engine.estimate(image_bytes), timeout=self.timeout_seconds
            )
        except TimeoutError as exc:
            logger.warning(
                "Analysis engine timed out",
                extra={"object_key": object_key, "timeout": self.timeout_seconds},
            )
            raise AnalysisFailed(
                f"engine did not respond within {self.timeout_seconds:g}s"
            ) from exc
        except Exception as exc:
            logger.exception(
                "Analysis engine failed", extra={"object_key": object_key}
            )
            raise AnalysisFailed(f"{type(exc).__name__}: {exc}") from exc

        record = build_record(
            estimate, owner_id=owner_id, object_key=object_key, now=self.clock()
        )
        self.repository.create_record(record)
        logger.info(
            "Meal analysis persisted",
            extra={
                "record_id": str(record.id),
                "object_key": object_key,
                "item_count": len(record.items),
                "total_protein_grams": record.total_protein_grams,
            },
        )
        return record


def verify_object_owner(object_key: str, owner_id: str) -> None:
    """Reject keys outside the owner's namespace."""
    if not object_key.strip():
        raise ValidationError([FieldError("objectKey", "Object key is required")])
    prefix = owner_namespace(owner_id)
    if not object_key.startswith(prefix) or ".." in object_key[len(prefix) :]:
        raise Forbidden("Object key does not belong to the requesting owner")


def build_record(
    estimate: EngineEstimate, *, owner_id: str, object_key: str, now: datetime
) -> AnalysisRecord:
    """Map engine output to a new record. Totals come from the items only."""
    items = tuple(
        AnalysisItem(
            id=uuid4(),
            name=food.name,
            portion_description=food.portion,
            protein_grams=food.protein,
            carbs_grams=food.carbs or 0.0,
            fat_grams=food.fat or 0.0,
            confidence_level=estimate.confidence,
        )
        for food in estimate.foods
    )
    if estimate.total_protein is not None:
        computed = sum_protein(items)
        if abs(computed - estimate.total_protein) > TOTAL_MISMATCH_TOLERANCE_G:
            logger.warning(
                "Engine total disagrees with item sum",
                extra={
                    "object_key": object_key,
                    "engine_total": estimate.total_protein,
                    "item_sum": computed,
                },
            )
    return AnalysisRecord(
        id=uuid4(),
        owner_id=owner_id,
        object_key=object_key,
        items=items,
        confidence_level=estimate.confidence,
        notes=estimate.notes,
        created_at=now,
        original_items=items,
    )
