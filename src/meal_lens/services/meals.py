"""Meal history service."""

import logging
from dataclasses import dataclass
from uuid import UUID

from meal_lens.domain.analysis import AnalysisRecord
from meal_lens.errors import Forbidden, NotFound
from meal_lens.services.analysis import AnalysisRecordRepository
from meal_lens.services.uploads import ObjectStore

logger = logging.getLogger(__name__)

MAX_HISTORY_LIMIT = 100


def load_owned_record(
    repository: AnalysisRecordRepository, record_id: UUID, owner_id: str
) -> AnalysisRecord:
    """Return a record, enforcing that ``owner_id`` owns it."""
    record = repository.get_record(record_id)
    if record is None:
        raise NotFound(f"Meal {record_id} not found")
    if record.owner_id != owner_id:
        logger.warning(
            "Rejected access to another owner's meal",
            extra={"record_id": str(record_id)},
        )
        raise Forbidden("You do not have permission to access this meal")
    return record


@dataclass
class MealService:
    """Lists, reads and deletes an owner's analysis records."""

    repository: AnalysisRecordRepository
    object_store: ObjectStore

    def list_meals(self, owner_id: str, limit: int = 20) -> list[AnalysisRecord]:
        """Return recent meals, newest first."""
        bounded = max(1, min(limit, MAX_HISTORY_LIMIT))
        return self.repository.list_recent_records(owner_id, bounded)

    def get_meal(self, record_id: UUID, owner_id: str) -> AnalysisRecord:
        """Return one meal owned by ``owner_id``."""
        return load_owned_record(self.repository, record_id, owner_id)

    def delete_meal(self, record_id: UUID, owner_id: str) -> None:
        """Delete a meal record and its stored image."""
        record = load_owned_record(self.repository, record_id, owner_id)
        self.repository.delete_record(record.id)
        self.object_store.delete(record.object_key)
        logger.info("Meal deleted", extra={"record_id": str(record.id)})
