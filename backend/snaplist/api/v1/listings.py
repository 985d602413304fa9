"""Listing endpoints — photo in, marketplace listing out.

Endpoints:
  POST    /analyze-image — run the listing pipeline on a data-URI image
  OPTIONS /analyze-image — empty CORS reply for non-preflight OPTIONS calls
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, ConfigDict, Field

from snaplist.core.config import get_settings
from snaplist.services.listing.contracts import AnalysisMethod
from snaplist.services.listing.pipeline import ListingPipeline, PipelineConfig

logger = logging.getLogger(__name__)

router = APIRouter()


def get_listing_pipeline() -> ListingPipeline:
    """Build a pipeline from the current settings (overridden in tests)."""
    return ListingPipeline(PipelineConfig.from_settings(get_settings()))


# ---------------------------------------------------------------------------
# Request/Response models
# ---------------------------------------------------------------------------


class AnalyzeImageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_data: str | None = Field(default=None, alias="imageData")
    item_description: str | None = Field(default=None, alias="itemDescription")


class ListingResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: str
    category: str
    price: str
    detected_items: list[str] = Field(alias="detectedItems")
    confidence: float
    analysis_method: AnalysisMethod = Field(alias="analysisMethod")


# ---------------------------------------------------------------------------
# POST /analyze-image
# ---------------------------------------------------------------------------


@router.post(
    "/analyze-image",
    response_model=ListingResponse,
    summary="Generate a marketplace listing from an item photo",
)
async def analyze_image(
    body: AnalyzeImageRequest,
    pipeline: ListingPipeline = Depends(get_listing_pipeline),
):
    image_data = body.image_data or ""
    logger.info("analyze-image request: image_data length=%d", len(image_data))
    result = await pipeline.run(image_data, item_description=body.item_description)
    return ListingResponse(**result.to_payload())


def allowed_origin(origin: str | None, allowed: list[str]) -> str | None:
    """Value for ``Access-Control-Allow-Origin``: ``*`` or the single matching origin."""
    if not allowed or "*" in allowed:
        return "*"
    if origin and origin in allowed:
        return origin
    return None


@router.options("/analyze-image", include_in_schema=False)
async def analyze_image_options(request: Request) -> Response:
    settings = get_settings()
    headers = {"Access-Control-Allow-Headers": ", ".join(settings.cors_allow_headers)}
    origin = allowed_origin(request.headers.get("origin"), settings.cors_allow_origins)
    if origin is not None:
        headers["Access-Control-Allow-Origin"] = origin
        if origin != "*":
            headers["Vary"] = "Origin"
    return Response(status_code=200, headers=headers)
