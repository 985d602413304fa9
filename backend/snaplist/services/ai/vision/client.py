"""Vision analysis client for the ``images:annotate`` endpoint."""

from __future__ import annotations

import logging
import re
import time
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from snaplist.core.config import DEFAULT_VISION_API_URL
from snaplist.services.listing.errors import VisionServiceError

from .contracts import VisionAnalysis

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)

_DATA_URI_PREFIX_RE = re.compile(r"^data:image/[A-Za-z0-9.+-]+;base64,")

# Always requested together, whether or not the listing uses them.
FEATURES: list[dict[str, Any]] = [
    {"type": "LABEL_DETECTION", "maxResults": 15},
    {"type": "OBJECT_LOCALIZATION", "maxResults": 15},
    {"type": "TEXT_DETECTION", "maxResults": 10},
    {"type": "FACE_DETECTION", "maxResults": 5},
    {"type": "LANDMARK_DETECTION", "maxResults": 5},
    {"type": "SAFE_SEARCH_DETECTION"},
]


def strip_data_uri(image_data: str) -> str:
    """Drop a leading ``data:image/<type>;base64,`` prefix, if any."""
    return _DATA_URI_PREFIX_RE.sub("", image_data, count=1)


def build_annotate_request(image_data: str) -> dict[str, Any]:
    return {
        "requests": [
            {
                "image": {"content": strip_data_uri(image_data)},
                "features": [dict(f) for f in FEATURES],
            }
        ]
    }


def _safe_json(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


class VisionClient:
    """Sends one image to the vision service and normalizes the reply.

    No retries: a failed call raises ``VisionServiceError`` and that is
    terminal for the request.
    """

    def __init__(
        self,
        *,
        endpoint: str = DEFAULT_VISION_API_URL,
        timeout_seconds: float | None = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def analyze(self, image_data: str, api_key: str) -> VisionAnalysis:
        import httpx

        payload = build_annotate_request(image_data)
        t0 = time.monotonic()

        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds, transport=self._transport) as client:
                resp = await client.post(
                    self._endpoint,
                    params={"key": api_key},
                    headers={"Content-Type": "application/json"},
                    json=payload,
                )
        except httpx.HTTPError as exc:
            logger.error("Vision API request failed: %s", exc)
            raise VisionServiceError(f"Vision API request failed: {exc}") from exc

        elapsed = (time.monotonic() - t0) * 1000
        data = _safe_json(resp)

        if not resp.is_success:
            logger.error("Vision API error status=%s body=%s", resp.status_code, data)
            raise VisionServiceError(
                f"Vision API error ({resp.status_code}): {resp.text}",
                upstream_status=resp.status_code,
                body=data,
            )

        responses = data.get("responses") if isinstance(data, dict) else None
        if not isinstance(responses, list) or not responses or not isinstance(responses[0], dict):
            raise VisionServiceError(
                "Vision API returned no annotation result",
                upstream_status=resp.status_code,
                body=data,
            )

        result = responses[0]
        error = result.get("error")
        if error:
            # Per-image failures come back with a 200 and an "error" entry.
            message = error.get("message", error) if isinstance(error, dict) else error
            raise VisionServiceError(
                f"Vision API image error: {message}",
                upstream_status=resp.status_code,
                body=data,
            )

        try:
            analysis = VisionAnalysis.from_annotate_result(result)
        except ValidationError as exc:
            raise VisionServiceError(
                f"Vision API returned an unexpected result shape: {exc.error_count()} error(s)",
                upstream_status=resp.status_code,
                body=data,
            ) from exc

        logger.info(
            "Vision analysis complete: labels=%d objects=%d texts=%d faces=%d landmarks=%d (%.0f ms)",
            len(analysis.labels),
            len(analysis.objects),
            len(analysis.texts),
            len(analysis.faces),
            len(analysis.landmarks),
            elapsed,
        )
        return analysis
