"""Listing pipeline — vision analysis, LLM generation, deterministic fallback.

States::

    VALIDATING -> ANALYZING_VISION -> GENERATING_LLM -> DONE
                                   \\-> GENERATING_DETERMINISTIC -> DONE
    (any of the first two) -> FAILED

Vision failures are terminal because both generators need its output. LLM
failures never are: the request degrades to the deterministic generator.
A pipeline instance holds only immutable configuration and collaborators,
so one instance can serve concurrent requests.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from snaplist.core.config import DEFAULT_VISION_API_URL
from snaplist.services.ai.common.providers import get_provider
from snaplist.services.ai.vision.client import VisionClient
from snaplist.services.ai.vision.contracts import VisionAnalysis

from .contracts import AnalysisMethod, ListingDraft, ListingResult, PipelineState
from .errors import ListingError, MissingImageData, MissingVisionCredential
from .llm import LLMFailure, LLMListingGenerator, LLMOutcome, LLMSuccess
from .rules import generate_deterministic_listing

if TYPE_CHECKING:
    from snaplist.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.8


@dataclass(frozen=True)
class PipelineConfig:
    """Everything the pipeline needs from the environment, resolved once at startup."""

    vision_api_key: str = ""
    vision_endpoint: str = DEFAULT_VISION_API_URL
    vision_timeout_seconds: float | None = 30.0
    llm_provider: str = "openai"
    llm_api_key: str = ""
    llm_model: str = ""
    llm_temperature: float = 0.7
    llm_max_tokens: int = 800
    llm_timeout_seconds: float = 30.0
    log_raw_ai_io: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> PipelineConfig:
        return cls(
            vision_api_key=settings.google_cloud_api_key,
            vision_endpoint=settings.vision_api_url,
            vision_timeout_seconds=settings.vision_timeout_seconds,
            llm_provider=settings.listing_llm_provider,
            llm_api_key=settings.listing_llm_api_key,
            llm_model=settings.listing_llm_model,
            llm_temperature=settings.listing_llm_temperature,
            llm_max_tokens=settings.listing_llm_max_tokens,
            llm_timeout_seconds=settings.listing_llm_timeout_seconds,
            log_raw_ai_io=settings.ai_debug_log_raw,
        )

    @property
    def has_vision_credential(self) -> bool:
        return bool(self.vision_api_key)

    @property
    def has_llm_credential(self) -> bool:
        return bool(self.llm_api_key)


class VisionAnalyzer(Protocol):
    async def analyze(self, image_data: str, api_key: str) -> VisionAnalysis: ...


class ListingGenerator(Protocol):
    async def generate(self, analysis: VisionAnalysis, *, item_description: str | None = None) -> LLMOutcome: ...


def build_llm_generator(config: PipelineConfig) -> LLMListingGenerator | None:
    provider = get_provider(config.llm_provider, config.llm_api_key)
    if provider is None:
        return None
    return LLMListingGenerator(
        provider,
        model=config.llm_model,
        temperature=config.llm_temperature,
        max_tokens=config.llm_max_tokens,
        timeout_seconds=config.llm_timeout_seconds,
        log_raw=config.log_raw_ai_io,
    )


class ListingPipeline:
    def __init__(
        self,
        config: PipelineConfig,
        *,
        vision_client: VisionAnalyzer | None = None,
        llm_generator: ListingGenerator | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config
        self.vision_client = vision_client or VisionClient(
            endpoint=config.vision_endpoint,
            timeout_seconds=config.vision_timeout_seconds,
        )
        self.llm_generator = llm_generator if llm_generator is not None else build_llm_generator(config)
        self.rng = rng

    async def run(self, image_data: str, *, item_description: str | None = None) -> ListingResult:
        """Produce a listing for *image_data* (a data-URI or bare base64 image).

        Raises ``MissingImageData``, ``MissingVisionCredential`` or
        ``VisionServiceError``; the raised error's ``stage`` records the state
        the request failed in.
        """
        state = PipelineState.VALIDATING
        try:
            if not image_data:
                raise MissingImageData()
            if not self.config.has_vision_credential:
                logger.error("Vision credential missing; cannot analyze image")
                raise MissingVisionCredential()

            state = self._advance(state, PipelineState.ANALYZING_VISION)
            analysis = await self.vision_client.analyze(image_data, self.config.vision_api_key)
        except ListingError as exc:
            exc.stage = state
            self._advance(state, PipelineState.FAILED)
            raise

        method = AnalysisMethod.DETERMINISTIC
        draft: ListingDraft | None = None

        if self.config.has_llm_credential and self.llm_generator is not None:
            state = self._advance(state, PipelineState.GENERATING_LLM)
            outcome = await self.llm_generator.generate(analysis, item_description=item_description)
            if isinstance(outcome, LLMSuccess):
                draft = outcome.draft
                method = AnalysisMethod.LLM
            elif isinstance(outcome, LLMFailure):
                logger.warning("Falling back to deterministic listing: %s", outcome.error)
        else:
            logger.info("No generation credential; using deterministic listing")

        if draft is None:
            state = self._advance(state, PipelineState.GENERATING_DETERMINISTIC)
            draft = generate_deterministic_listing(analysis, self.rng)

        self._advance(state, PipelineState.DONE)
        top_score = analysis.top_score
        result = ListingResult(
            draft=draft,
            confidence=top_score if top_score is not None else DEFAULT_CONFIDENCE,
            analysis_method=method,
        )
        logger.info(
            "Listing generated: method=%s category=%s price=%s",
            result.analysis_method,
            draft.category,
            draft.price,
        )
        return result

    @staticmethod
    def _advance(current: PipelineState, new: PipelineState) -> PipelineState:
        logger.debug("Pipeline state %s -> %s", current, new)
        return new
