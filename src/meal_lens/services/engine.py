"""Meal analysis engine service using vision LLMs."""

import base64
from dataclasses import dataclass
from typing import Protocol

from meal_lens.domain.engine import EngineEstimate

_NULLABLE_GRAMS = {"anyOf": [{"type": "number", "minimum": 0.0}, {"type": "null"}]}

ANALYSIS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "foods": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "portion": {"type": "string"},
                    "protein": {"type": "number", "minimum": 0.0},
                    "carbs": _NULLABLE_GRAMS,
                    "fat": _NULLABLE_GRAMS,
                },
                "required": ["name", "portion", "protein", "carbs", "fat"],
                "additionalProperties": False,
            },
        },
        "totalProtein": {"type": "number", "minimum": 0.0},
        "confidence": {"type": "string", "enum": ["high", "medium", "low"]},
        "notes": {"anyOf": [{"type": "string"}, {"type": "null"}]},
    },
    "required": ["foods", "totalProtein", "confidence", "notes"],
    "additionalProperties": False,
}

ANALYSIS_PROMPT = (
    "You are a nutritionist looking at a photo of a meal. "
    "List every visible food with a specific name, a realistic portion "
    "(for example '150g' or '1 cup') and its protein, carbohydrate and fat "
    "content in grams. Give your best estimate for every macro. "
    "Set confidence to high when all items are clearly recognizable, medium "
    "when some are unclear and low when the photo is blurry. "
    "If there is no food in the photo, return an empty list and explain in notes."
)

# (mime type, [(offset, magic bytes), ...]); every part must match
_IMAGE_SIGNATURES: tuple[tuple[str, tuple[tuple[int, bytes], ...]], ...] = (
    ("image/jpeg", ((0, b"\xff\xd8\xff"),)),
    ("image/png", ((0, b"\x89PNG\r\n\x1a\n"),)),
    ("image/webp", ((0, b"RIFF"), (8, b"WEBP"))),
    ("image/heic", ((4, b"ftypheic"),)),
    ("image/heic", ((4, b"ftypheix"),)),
    ("image/heic", ((4, b"ftypmif1"),)),
)
DEFAULT_IMAGE_TYPE = "image/jpeg"


@dataclass(frozen=True)
class AnalysisRequest:
    """One structured-output call to the analysis engine."""

    model: str
    prompt: str
    image_data_url: str
    schema: dict[str, object]
    reasoning_effort: str | None = None
    store: bool = False


class AnalysisEngineClient(Protocol):
    """Interface for the external analysis engine."""

    async def analyze(self, request: AnalysisRequest) -> dict[str, object]:
        """Return the engine's raw JSON answer for ``request``."""


@dataclass
class AnalysisEngine:
    """Prepares engine prompts and validates the structured result."""

    client: AnalysisEngineClient
    model: str
    reasoning_effort: str | None
    store: bool

    def build_request(self, image_bytes: bytes) -> AnalysisRequest:
        return AnalysisRequest(
            model=self.model,
            prompt=ANALYSIS_PROMPT,
            image_data_url=image_data_url(image_bytes),
            schema=ANALYSIS_SCHEMA,
            reasoning_effort=self.reasoning_effort,
            store=self.store,
        )

    async def estimate(self, image_bytes: bytes) -> EngineEstimate:
        """Estimate the foods and macros shown in an image."""
        raw = await self.client.analyze(self.build_request(image_bytes))
        return EngineEstimate.model_validate(raw)


def sniff_image_type(image_bytes: bytes) -> str:
    """Return the MIME type matching the image's magic bytes.

    Unrecognized data is labelled JPEG, the most common camera format.
    """
    for mime_type, parts in _IMAGE_SIGNATURES:
        if all(
            image_bytes[offset : offset + len(magic)] == magic
            for offset, magic in parts
        ):
            return mime_type
    return DEFAULT_IMAGE_TYPE


def image_data_url(image_bytes: bytes) -> str:
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{sniff_image_type(image_bytes)};base64,{encoded}"
