"""AI run log — one structured log record per successful generation call."""

from __future__ import annotations

import hashlib
import logging
from typing import Any

from .providers.base import ProviderResult

logger = logging.getLogger(__name__)

def build_ai_run_record(
    *,
    scope: str,
    provider_result: ProviderResult,
    prompt_text: str,
    parsed_output: dict[str, Any] | None,
    log_raw: bool = False,
    extra_meta: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the metadata dict logged for an AI run.

    Prompt and reply are always hashed; raw text is only included when
    *log_raw* is set (``AI_DEBUG_LOG_RAW=true``).
    """
    record: dict[str, Any] = {
        "action": f"AI_{scope.upper()}_GENERATED",
        "scope": scope,
        "provider": provider_result.provider,
        "model": provider_result.model,
        "prompt_tokens": provider_result.prompt_tokens,
        "completion_tokens": provider_result.completion_tokens,
        "latency_ms": provider_result.latency_ms,
        "prompt_hash": hashlib.sha256(prompt_text.encode()).hexdigest(),
        "response_hash": hashlib.sha256(provider_result.raw_text.encode()).hexdigest(),
        "output_keys": sorted(parsed_output) if parsed_output else [],
    }

    if log_raw:
        record["prompt_raw"] = prompt_text
        record["response_raw"] = provider_result.raw_text

    if extra_meta:
        record.update(extra_meta)

    return record


def log_ai_run(
    *,
    scope: str,
    provider_result: ProviderResult,
    prompt_text: str,
    parsed_output: dict[str, Any] | None,
    log_raw: bool = False,
    extra_meta: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Log an AI run at info level and return the logged record."""
    record = build_ai_run_record(
        scope=scope,
        provider_result=provider_result,
        prompt_text=prompt_text,
        parsed_output=parsed_output,
        log_raw=log_raw,
        extra_meta=extra_meta,
    )
    logger.info("%s provider=%s model=%s", record["action"], record["provider"], record["model"], extra={"ai_run": record})
    return record
