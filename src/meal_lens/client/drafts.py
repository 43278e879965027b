"""Versioned on-disk drafts of an in-progress capture session."""

import logging
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from meal_lens.client.state_machine import SelectedFile, UploadSession, UploadState

logger = logging.getLogger(__name__)

DRAFT_VERSION = 1


class DraftSnapshot(BaseModel):
    """Serializable subset of an upload session.

    File bytes are never persisted; a restored draft only describes what the
    user had picked and how far the flow got.
    """

    model_config = ConfigDict(frozen=True)

    version: int
    state: UploadState
    file_name: str | None = None
    file_size_bytes: int | None = None
    content_type: str | None = None
    object_key: str | None = None
    record_id: str | None = None

    @classmethod
    def from_session(cls, session: UploadSession, version: int) -> "DraftSnapshot":
        selected = session.selected_file
        record_id = None
        if session.analysis_record is not None:
            raw_id = session.analysis_record.get("id")
            record_id = str(raw_id) if raw_id is not None else None
        return cls(
            version=version,
            state=session.state,
            file_name=selected.name if selected else None,
            file_size_bytes=selected.size_bytes if selected else None,
            content_type=selected.content_type if selected else None,
            object_key=session.object_key,
            record_id=record_id,
        )


@dataclass
class DraftStore:
    """Stores one draft per path, tagged with a schema version."""

    path: Path
    version: int = DRAFT_VERSION

    def save(self, session: UploadSession) -> DraftSnapshot:
        snapshot = DraftSnapshot.from_session(session, self.version)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(snapshot.model_dump_json(), encoding="utf-8")
        return snapshot

    def load(self) -> DraftSnapshot | None:
        """Return the stored draft, or None when absent or incompatible.

        Incompatible drafts are deleted so the caller starts from idle.
        """
        if not self.path.exists():
            return None
        try:
            snapshot = DraftSnapshot.model_validate_json(
                self.path.read_text(encoding="utf-8")
            )
        except PydanticValidationError:
            logger.warning(
                "Discarding unreadable draft", extra={"path": str(self.path)}
            )
            self.clear()
            return None
        if snapshot.version != self.version:
            logger.info(
                "Discarding draft with mismatched version",
                extra={"found": snapshot.version, "expected": self.version},
            )
            self.clear()
            return None
        return snapshot

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


def session_from_draft(snapshot: DraftSnapshot | None) -> UploadSession:
    """Rebuild a session from a stored draft.

    Only finished analyses can be resumed. Any other draft restores to idle,
    since the file bytes needed to continue an upload are not kept.
    """
    if (
        snapshot is None
        or snapshot.state is not UploadState.DONE
        or snapshot.record_id is None
        or snapshot.file_name is None
        or snapshot.file_size_bytes is None
        or snapshot.content_type is None
    ):
        return UploadSession()
    return UploadSession(
        state=UploadState.DONE,
        selected_file=SelectedFile(
            name=snapshot.file_name,
            size_bytes=snapshot.file_size_bytes,
            content_type=snapshot.content_type,
        ),
        progress_percent=100,
        object_key=snapshot.object_key,
        analysis_record={"id": snapshot.record_id},
    )
