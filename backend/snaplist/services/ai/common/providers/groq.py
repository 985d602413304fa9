"""Groq provider (OpenAI-compatible API)."""

from __future__ import annotations

from .openai import OpenAIProvider


class GroqProvider(OpenAIProvider):
    name = "groq"
    default_model = "llama-3.1-70b-versatile"
    endpoint = "https://api.groq.com/openai/v1/chat/completions"
