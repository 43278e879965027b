"""Client-side upload session state machine.

``transition`` is a pure reducer: it never performs I/O and never raises.
Event/state pairs that make no sense (for example ``Progress`` while idle)
return the session unchanged. The caller owns all network work and feeds
the outcomes back in as events.
"""

import math
from dataclasses import dataclass, replace
from enum import Enum


class UploadState(str, Enum):
    IDLE = "idle"
    SELECTED = "selected"
    UPLOADING = "uploading"
    ANALYZING = "analyzing"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True)
class SelectedFile:
    """A file picked by the user, held in memory until uploaded."""

    name: str
    size_bytes: int
    content_type: str
    content: bytes = b""


@dataclass(frozen=True)
class UploadSession:
    state: UploadState = UploadState.IDLE
    selected_file: SelectedFile | None = None
    progress_percent: int = 0
    object_key: str | None = None
    analysis_record: dict[str, object] | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class Select:
    file: SelectedFile


@dataclass(frozen=True)
class StartUpload:
    pass


@dataclass(frozen=True)
class Progress:
    percent: float


@dataclass(frozen=True)
class UploadComplete:
    object_key: str


@dataclass(frozen=True)
class AnalyzeComplete:
    record: dict[str, object]


@dataclass(frozen=True)
class Fail:
    message: str


@dataclass(frozen=True)
class Retry:
    pass


@dataclass(frozen=True)
class Reset:
    pass


Event = (
    Select
    | StartUpload
    | Progress
    | UploadComplete
    | AnalyzeComplete
    | Fail
    | Retry
    | Reset
)


def transition(session: UploadSession, event: Event) -> UploadSession:  # noqa: PLR0911
    """Return the session that results from applying ``event``."""
    if isinstance(event, Reset):
        return UploadSession()
    if isinstance(event, Select):
        return UploadSession(state=UploadState.SELECTED, selected_file=event.file)
    if isinstance(event, Fail):
        return replace(
            session,
            state=UploadState.ERROR,
            progress_percent=0,
            error_message=event.message,
        )

    state = session.state
    if isinstance(event, StartUpload) and state is UploadState.SELECTED:
        return replace(session, state=UploadState.UPLOADING, progress_percent=0)
    if isinstance(event, Progress) and state is UploadState.UPLOADING:
        return replace(session, progress_percent=clamp_percent(event.percent))
    if isinstance(event, UploadComplete) and state is UploadState.UPLOADING:
        return replace(
            session,
            state=UploadState.ANALYZING,
            progress_percent=100,
            object_key=event.object_key,
        )
    if isinstance(event, AnalyzeComplete) and state is UploadState.ANALYZING:
        return replace(session, state=UploadState.DONE, analysis_record=event.record)
    if (
        isinstance(event, Retry)
        and state is UploadState.ERROR
        and session.selected_file is not None
    ):
        return UploadSession(
            state=UploadState.SELECTED, selected_file=session.selected_file
        )
    return session


def clamp_percent(value: float) -> int:
    """Clamp a progress value into 0..100."""
    if math.isnan(value):
        return 0
    return round(min(100.0, max(0.0, value)))
