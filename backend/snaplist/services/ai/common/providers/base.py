"""Abstract base for all text-generation providers."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


@dataclass(frozen=True)
class ProviderResult:
    """Immutable result returned by every provider."""

    raw_text: str
    model: str
    provider: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    latency_ms: float = 0.0


class BaseProvider(abc.ABC):
    """Contract that every generation provider must implement."""

    name: str = "base"
    default_model: str = ""

    def __init__(self, api_key: str, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._api_key = api_key
        self._transport = transport

    @abc.abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        model: str = "",
        temperature: float = 0.7,
        max_tokens: int = 800,
        timeout_seconds: float = 30.0,
    ) -> ProviderResult:
        """Send *prompt* and return a ``ProviderResult``.

        Raises ``httpx.HTTPError`` on transport failures and non-2xx replies.
        """
