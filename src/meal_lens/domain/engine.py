"""Models for analysis engine output."""

from pydantic import BaseModel, Field

from meal_lens.domain.analysis import ConfidenceLevel


class EngineFood(BaseModel):
    """Single food item estimated by the analysis engine."""

    name: str = Field(min_length=1, max_length=200)
    portion: str = Field(default="", max_length=100)
    protein: float = Field(ge=0.0, le=999.99)
    carbs: float | None = Field(default=None, ge=0.0, le=999.99)
    fat: float | None = Field(default=None, ge=0.0, le=999.99)


class EngineEstimate(BaseModel):
    """Structured output for a meal image analysis."""

    foods: list[EngineFood] = Field(max_length=50)
    total_protein: float | None = Field(default=None, alias="totalProtein")
    confidence: ConfidenceLevel
    notes: str | None = None

    model_config = {"populate_by_name": True}
