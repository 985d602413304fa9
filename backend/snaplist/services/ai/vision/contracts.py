"""Vision scope contracts — normalized image annotation result."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class _Annotation(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class LabelAnnotation(_Annotation):
    description: str = ""
    score: float = Field(default=0.0, ge=0.0, le=1.0)


class ObjectAnnotation(_Annotation):
    name: str = ""
    score: float = 0.0


class TextAnnotation(_Annotation):
    # The vision service calls the text field "description".
    content: str = Field(default="", validation_alias=AliasChoices("description", "content"))
    locale: str = ""


class VisionAnalysis(BaseModel):
    """Structured output from vision analysis.

    Every sequence field is a list once constructed; downstream code checks
    for empty lists, never for missing fields. ``texts[0]`` is the full text
    block detected in the image, the rest are individual fragments.
    """

    model_config = ConfigDict(populate_by_name=True)

    labels: list[LabelAnnotation] = Field(default_factory=list)
    objects: list[ObjectAnnotation] = Field(default_factory=list)
    texts: list[TextAnnotation] = Field(default_factory=list)
    faces: list[dict[str, Any]] = Field(default_factory=list)
    landmarks: list[dict[str, Any]] = Field(default_factory=list)
    safe_search: dict[str, Any] | None = Field(default=None, alias="safeSearch")

    @classmethod
    def from_annotate_result(cls, result: dict[str, Any]) -> VisionAnalysis:
        """Normalize one ``responses[]`` entry of an ``images:annotate`` reply."""
        return cls(
            labels=result.get("labelAnnotations") or [],
            objects=result.get("localizedObjectAnnotations") or [],
            texts=result.get("textAnnotations") or [],
            faces=result.get("faceAnnotations") or [],
            landmarks=result.get("landmarkAnnotations") or [],
            safe_search=result.get("safeSearchAnnotation"),
        )

    @property
    def detected_text(self) -> str:
        return self.texts[0].content if self.texts else ""

    def top_labels(self, n: int) -> list[str]:
        return [label.description for label in self.labels[:n]]

    @property
    def top_score(self) -> float | None:
        return self.labels[0].score if self.labels else None
