"""Listing pipeline errors.

Only input validation and infrastructure failures (missing vision credential,
vision service failure) ever reach the caller. ``LLMGenerationError`` and its
subclasses are always recovered inside the pipeline by falling back to the
deterministic generator.
"""

from __future__ import annotations

from typing import Any


class ListingError(Exception):
    """Base class for errors surfaced by the listing pipeline."""

    status_code: int = 500

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        # Pipeline state the request was in when it failed; set by the pipeline.
        self.stage = stage


class InputValidationError(ListingError):
    status_code = 400


class MissingImageData(InputValidationError):
    def __init__(self, *, stage: str | None = None) -> None:
        super().__init__("No image data provided", stage=stage)


class ConfigurationError(ListingError):
    status_code = 500


class MissingVisionCredential(ConfigurationError):
    def __init__(self, *, stage: str | None = None) -> None:
        super().__init__("Google Cloud API key not configured", stage=stage)


class VisionServiceError(ListingError):
    """Vision service call failed or returned an unusable reply.

    ``upstream_status`` is the HTTP status of the reply, ``None`` when the
    request never got one (transport failure).
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        upstream_status: int | None = None,
        body: Any = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message, stage=stage)
        self.upstream_status = upstream_status
        self.body = body


class LLMGenerationError(Exception):
    """Any failure of the LLM listing path. Never surfaced to the caller."""


class LLMServiceError(LLMGenerationError):
    """Generation service call failed (transport, HTTP status, reply shape)."""


class MalformedLLMResponse(LLMGenerationError):
    """Reply text could not be parsed as a JSON object."""


class IncompleteLLMResponse(LLMGenerationError):
    def __init__(self, missing_fields: list[str]) -> None:
        super().__init__(f"Missing required fields in LLM response: {', '.join(missing_fields)}")
        self.missing_fields = list(missing_fields)
