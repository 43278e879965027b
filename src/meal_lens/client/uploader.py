"""Async driver that performs upload I/O and feeds the state machine."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field

import httpx

from meal_lens.client.drafts import DraftSnapshot, DraftStore, session_from_draft
from meal_lens.client.state_machine import (
    AnalyzeComplete,
    Event,
    Fail,
    Progress,
    Reset,
    Retry,
    Select,
    SelectedFile,
    StartUpload,
    UploadComplete,
    UploadSession,
    UploadState,
    transition,
)

logger = logging.getLogger(__name__)

Subscriber = Callable[[UploadSession], None]

UPLOAD_CHUNK_BYTES = 64 * 1024


@dataclass
class MealUploader:
    """Runs select, grant, upload and analyze for one capture session.

    Operations are serialized by a lock so at most one network flow is in
    flight. Selecting a new file or resetting bumps a generation counter;
    results that arrive for an older generation are dropped. With a
    ``draft_store`` every session change is saved as a draft and returning
    to idle removes it.
    """

    api_base_url: str
    owner_id: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 30.0
    session: UploadSession = field(default_factory=UploadSession)
    draft_store: DraftStore | None = None
    _saved_draft: DraftSnapshot | None = field(default=None, init=False)
    _subscribers: list[Subscriber] = field(default_factory=list, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)
    _generation: int = field(default=0, init=False)

    @classmethod
    def create(
        cls, api_base_url: str, owner_id: str, draft_store: DraftStore | None = None
    ) -> "MealUploader":
        """Create an uploader with a managed httpx session."""
        return cls(
            api_base_url=api_base_url.rstrip("/"),
            owner_id=owner_id,
            http_client=httpx.AsyncClient(),
            draft_store=draft_store,
        )

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register a callback for every session change."""
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def dispatch(self, event: Event) -> UploadSession:
        """Apply an event and notify subscribers when the session changed."""
        updated = transition(self.session, event)
        if updated == self.session:
            return updated
        self.session = updated
        self._save_draft(updated)
        self._notify()
        return updated

    def restore(self) -> UploadSession:
        """Resume from the stored draft, or start idle when there is none."""
        if self.draft_store is None:
            return self.session
        self._generation += 1
        self.session = session_from_draft(self.draft_store.load())
        self._saved_draft = None
        self._save_draft(self.session)
        self._notify()
        return self.session

    async def upload(self, file: SelectedFile) -> UploadSession:
        """Select ``file`` and run it through upload and analysis."""
        self._generation += 1
        generation = self._generation
        self.dispatch(Select(file))
        async with self._lock:
            if generation != self._generation:
                return self.session
            await self._run(generation, file)
        return self.session

    async def retry(self) -> UploadSession:
        """Re-run the full flow for the file kept by an errored session."""
        if self.session.state is not UploadState.ERROR:
            return self.session
        self._generation += 1
        generation = self._generation
        session = self.dispatch(Retry())
        if session.selected_file is None:
            return session
        async with self._lock:
            if generation != self._generation:
                return self.session
            await self._run(generation, session.selected_file)
        return self.session

    def reset(self) -> UploadSession:
        """Return to idle and drop any in-flight results."""
        self._generation += 1
        session = self.dispatch(Reset())
        self._save_draft(session)
        return session

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()

    def _notify(self) -> None:
        for subscriber in list(self._subscribers):
            subscriber(self.session)

    def _save_draft(self, session: UploadSession) -> None:
        if self.draft_store is None:
            return
        if session.state is UploadState.IDLE:
            self.draft_store.clear()
            self._saved_draft = None
            return
        snapshot = DraftSnapshot.from_session(session, self.draft_store.version)
        # progress ticks do not change the draft
        if snapshot != self._saved_draft:
            self._saved_draft = self.draft_store.save(session)

    async def _run(self, generation: int, file: SelectedFile) -> None:
        try:
            grant = await self._post_json(
                "/upload-url",
                {
                    "fileName": file.name,
                    "fileSizeBytes": file.size_bytes,
                    "contentType": file.content_type,
                },
            )
            upload_target = str(grant["uploadTarget"])
            object_key = str(grant["objectKey"])
            if not self._emit(generation, StartUpload()):
                return
            await self._put_file(generation, upload_target, file)
            if not self._emit(generation, UploadComplete(object_key)):
                return
            record = await self._post_json("/analyze", {"objectKey": object_key})
            self._emit(generation, AnalyzeComplete(record))
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.warning(
                "Meal upload failed",
                extra={"file_name": file.name, "error": type(exc).__name__},
            )
            self._emit(generation, Fail(failure_message(exc)))

    def _emit(self, generation: int, event: Event) -> bool:
        if generation != self._generation:
            logger.info("Dropping stale upload result", extra={"event": repr(event)})
            return False
        self.dispatch(event)
        return True

    async def _post_json(
        self, path: str, payload: dict[str, object]
    ) -> dict[str, object]:
        response = await self.http_client.post(
            f"{self.api_base_url}{path}",
            json=payload,
            headers={"X-Owner-Id": self.owner_id},
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected response from {path}")
        return data

    async def _put_file(
        self, generation: int, upload_target: str, file: SelectedFile
    ) -> None:
        total = len(file.content)

        async def body() -> AsyncIterator[bytes]:
            sent = 0
            for start in range(0, total, UPLOAD_CHUNK_BYTES):
                chunk = file.content[start : start + UPLOAD_CHUNK_BYTES]
                yield chunk
                sent += len(chunk)
                self._emit(generation, Progress(sent / total * 100))

        response = await self.http_client.put(
            upload_target,
            content=body(),
            headers={
                "Content-Type": file.content_type,
                "Content-Length": str(total),
            },
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()


def failure_message(exc: Exception) -> str:
    """Return a human-readable message for a failed flow step."""
    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            detail = payload.get("message") or payload.get("error")
            if detail:
                return str(detail)
        return f"Request failed with status {response.status_code}"
    if isinstance(exc, httpx.TimeoutException):
        return "The request timed out. Please try again."
    if isinstance(exc, httpx.HTTPError):
        return "Network error. Check your connection and try again."
    return "Unexpected response from the server."
