"""Contracts for the listing scope — draft/result models and the closed category set."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_CATEGORY = "Home & Garden"

# Closed set, in the order the prompt lists them.
CATEGORIES: tuple[str, ...] = (
    "Baby & Kids",
    "Electronics",
    "Home & Garden",
    "Clothing",
    "Sports",
    "Books & Media",
    "Vehicles",
    "Tools",
    "Collectibles",
)

MAX_DETECTED_ITEMS = 5


class AnalysisMethod(StrEnum):
    LLM = "llm"
    DETERMINISTIC = "deterministic"


class PipelineState(StrEnum):
    VALIDATING = "validating"
    ANALYZING_VISION = "analyzing_vision"
    GENERATING_LLM = "generating_llm"
    GENERATING_DETERMINISTIC = "generating_deterministic"
    DONE = "done"
    FAILED = "failed"


class ListingDraft(BaseModel):
    """Canonical output of every listing generator. All fields populated."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    category: str
    price: str = Field(..., pattern=r"^\$[0-9]+$")
    detected_items: list[str] = Field(default_factory=list, max_length=MAX_DETECTED_ITEMS, alias="detectedItems")

    @field_validator("category")
    @classmethod
    def _category_in_closed_set(cls, v: str) -> str:
        if v not in CATEGORIES:
            msg = f"Unknown category {v!r}; valid: {list(CATEGORIES)}"
            raise ValueError(msg)
        return v


class ListingResult(BaseModel):
    """What the pipeline returns: the draft plus generation metadata."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    draft: ListingDraft
    confidence: float
    analysis_method: AnalysisMethod = Field(alias="analysisMethod")

    def to_payload(self) -> dict:
        """Flat camelCase body sent to API clients."""
        payload = self.draft.model_dump(by_alias=True)
        payload["confidence"] = self.confidence
        payload["analysisMethod"] = self.analysis_method.value
        return payload
