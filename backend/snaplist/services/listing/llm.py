"""LLM listing generation — prompt, call, parse, validate, normalize.

The generator never raises for generation problems: ``generate`` returns
``LLMSuccess`` or ``LLMFailure`` and the pipeline decides what to do with a
failure (fall back to the deterministic generator).
"""

from __future__ import annotations

import logging
import math
import re
import time
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from snaplist.services.ai.common.audit import log_ai_run
from snaplist.services.ai.common.json_tools import load_json_object
from snaplist.services.ai.common.providers.base import BaseProvider, ProviderResult
from snaplist.services.ai.vision.contracts import VisionAnalysis

from .contracts import CATEGORIES, MAX_DETECTED_ITEMS, ListingDraft
from .errors import IncompleteLLMResponse, LLMGenerationError, LLMServiceError, MalformedLLMResponse
from .prompt import LISTING_SYSTEM_PROMPT, build_prompt
from .rules import classify_category

logger = logging.getLogger(__name__)

REQUIRED_FIELDS: tuple[str, ...] = ("title", "description", "category", "estimatedPrice")

_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")
_CATEGORY_LOOKUP = {c.lower(): c for c in CATEGORIES}


@dataclass(frozen=True)
class LLMSuccess:
    draft: ListingDraft
    provider_result: ProviderResult
    latency_ms: float


@dataclass(frozen=True)
class LLMFailure:
    error: LLMGenerationError
    latency_ms: float


LLMOutcome = LLMSuccess | LLMFailure


def normalize_price(value: Any) -> str | None:
    """Return ``"$<int>"`` for *value*, or ``None`` when it holds no number.

    Accepts numbers and strings like ``"$45"``, ``"45.00"``, ``"$1,200"`` or
    ``"$40-60"`` (first number wins).
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        raw = value
    else:
        match = _NUMBER_RE.search(str(value).replace(",", ""))
        if not match:
            return None
        raw = match.group()
    try:
        amount = float(raw)
    except (OverflowError, ValueError):
        return None
    if not math.isfinite(amount) or amount < 0:
        return None
    return f"${int(round(amount))}"


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_listing_reply(raw_text: str, analysis: VisionAnalysis) -> ListingDraft:
    """Turn a raw model reply into a ``ListingDraft``.

    Raises ``MalformedLLMResponse`` when the reply is not a JSON object and
    ``IncompleteLLMResponse`` when a required field is missing or empty.
    """
    try:
        parsed = load_json_object(raw_text)
    except ValueError as exc:
        raise MalformedLLMResponse(f"Failed to parse LLM response: {exc}") from exc

    title = _text(parsed.get("title"))
    description = _text(parsed.get("description"))
    category = _text(parsed.get("category"))
    raw_price = parsed.get("estimatedPrice")
    price = normalize_price(raw_price) if raw_price not in (None, "") else None

    values = {"title": title, "description": description, "category": category, "estimatedPrice": price}
    missing = [name for name in REQUIRED_FIELDS if not values[name]]
    if missing:
        raise IncompleteLLMResponse(missing)

    detected_items = analysis.top_labels(MAX_DETECTED_ITEMS)

    canonical = _CATEGORY_LOOKUP.get(category.lower())
    if canonical is None:
        canonical = classify_category(detected_items)
        logger.warning("LLM returned unknown category %r, using %r", category, canonical)

    try:
        return ListingDraft(
            title=title,
            description=description,
            category=canonical,
            price=price,
            detected_items=detected_items,
        )
    except ValidationError as exc:
        raise MalformedLLMResponse(f"LLM response failed listing validation: {exc.error_count()} error(s)") from exc


class LLMListingGenerator:
    """Generates a listing draft through a text-generation provider."""

    def __init__(
        self,
        provider: BaseProvider,
        *,
        model: str = "",
        temperature: float = 0.7,
        max_tokens: int = 800,
        timeout_seconds: float = 30.0,
        log_raw: bool = False,
    ) -> None:
        self.provider = provider
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds
        self.log_raw = log_raw

    async def _call(self, prompt: str) -> ProviderResult:
        try:
            return await self.provider.generate(
                prompt,
                system_prompt=LISTING_SYSTEM_PROMPT,
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                timeout_seconds=self.timeout_seconds,
            )
        except httpx.HTTPStatusError as exc:
            raise LLMServiceError(
                f"{self.provider.name} API error ({exc.response.status_code}): {exc.response.text}"
            ) from exc
        except httpx.HTTPError as exc:
            raise LLMServiceError(f"{self.provider.name} request failed: {exc}") from exc
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise LLMServiceError(f"{self.provider.name} returned an unexpected reply shape: {exc!r}") from exc

    async def generate(self, analysis: VisionAnalysis, *, item_description: str | None = None) -> LLMOutcome:
        prompt = build_prompt(analysis, item_description)
        t0 = time.monotonic()

        try:
            provider_result = await self._call(prompt)
            draft = parse_listing_reply(provider_result.raw_text, analysis)
        except LLMGenerationError as exc:
            elapsed = round((time.monotonic() - t0) * 1000, 2)
            logger.warning("LLM listing generation failed (%s): %s", type(exc).__name__, exc)
            return LLMFailure(error=exc, latency_ms=elapsed)
        except Exception as exc:
            elapsed = round((time.monotonic() - t0) * 1000, 2)
            logger.warning("LLM listing generation failed unexpectedly", exc_info=True)
            error = MalformedLLMResponse(f"Unexpected error handling LLM reply: {exc!r}")
            error.__cause__ = exc
            return LLMFailure(error=error, latency_ms=elapsed)

        elapsed = round((time.monotonic() - t0) * 1000, 2)
        log_ai_run(
            scope="listing",
            provider_result=provider_result,
            prompt_text=prompt,
            parsed_output=draft.model_dump(by_alias=True),
            log_raw=self.log_raw,
            extra_meta={"category": draft.category, "label_count": len(analysis.labels)},
        )
        return LLMSuccess(draft=draft, provider_result=provider_result, latency_ms=elapsed)
