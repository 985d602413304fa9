"""Provider factory — returns the generation provider for a configured name."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .base import BaseProvider, ProviderResult

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)

__all__ = ["get_provider", "BaseProvider", "ProviderResult"]


def get_provider(
    provider_name: str,
    api_key: str,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> BaseProvider | None:
    """Return a provider instance for *provider_name*.

    Returns ``None`` when *api_key* is empty: a missing generation credential
    is not an error, callers use their deterministic path instead.
    """
    name = provider_name.lower().strip()

    if not api_key:
        logger.info("No API key for generation provider %r", name)
        return None

    if name == "openai":
        from .openai import OpenAIProvider

        return OpenAIProvider(api_key, transport=transport)

    if name == "claude":
        from .claude import ClaudeProvider

        return ClaudeProvider(api_key, transport=transport)

    if name == "groq":
        from .groq import GroqProvider

        return GroqProvider(api_key, transport=transport)

    raise ValueError(f"Unknown generation provider {provider_name!r}")
