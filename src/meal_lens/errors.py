"""Typed failures surfaced by the capture-to-analysis pipeline."""

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """A single offending input field."""

    field: str
    message: str


class MealLensError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code = 500
    title = "Internal Server Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(MealLensError):
    """Malformed or out-of-range input; the client must fix and resubmit."""

    status_code = 400
    title = "Validation Error"

    def __init__(self, fields: list[FieldError], message: str | None = None) -> None:
        self.fields = list(fields)
        summary = ", ".join(f"{item.field}: {item.message}" for item in self.fields)
        super().__init__(message or summary or "Invalid request")


class NotFound(MealLensError):
    status_code = 404
    title = "Not Found"


class Forbidden(MealLensError):
    status_code = 403
    title = "Forbidden"


class UnsupportedMediaType(MealLensError):
    status_code = 415
    title = "Unsupported Media Type"

    def __init__(self, content_type: str, allowed: frozenset[str]) -> None:
        self.content_type = content_type
        allowed_list = ", ".join(sorted(allowed))
        super().__init__(
            f"Unsupported file type: {content_type}. Allowed: {allowed_list}."
        )


class PayloadTooLarge(MealLensError):
    status_code = 413
    title = "Payload Too Large"

    def __init__(self, size_bytes: int, max_bytes: int) -> None:
        self.size_bytes = size_bytes
        self.max_bytes = max_bytes
        super().__init__(
            f"File size {size_bytes} bytes exceeds limit of {max_bytes} bytes."
        )


class AnalysisFailed(MealLensError):
    """Engine error or timeout. Never retried automatically."""

    status_code = 500
    title = "Analysis Failed"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"AI analysis failed: {detail}")
