from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_VISION_API_URL = "https://vision.googleapis.com/v1/images:annotate"

LLM_PROVIDERS = ("openai", "claude", "groq")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        validate_by_name=True,
        populate_by_name=True,
    )

    google_cloud_api_key: str = ""
    vision_api_url: str = DEFAULT_VISION_API_URL
    vision_timeout_seconds: float = 30.0

    listing_llm_provider: str = "openai"
    listing_llm_model: str = ""
    listing_llm_temperature: float = 0.7
    listing_llm_max_tokens: int = 800
    listing_llm_timeout_seconds: float = 30.0

    openai_api_key: str = ""
    anthropic_api_key: str = ""
    groq_api_key: str = ""

    ai_debug_log_raw: bool = False

    docs_enabled: bool = True
    expose_error_details: bool = True
    log_level: str = "INFO"

    cors_allow_origins: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["*"])
    cors_allow_headers: Annotated[list[str], NoDecode] = Field(default_factory=lambda: [
        "authorization",
        "x-client-info",
        "apikey",
        "content-type",
    ])

    @field_validator("cors_allow_origins", "cors_allow_headers", mode="before")
    @classmethod
    def _split_csv(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            if value.strip() == "":
                return []
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("listing_llm_provider", mode="before")
    @classmethod
    def _normalize_provider(cls, value):
        name = str(value or "openai").lower().strip()
        if name not in LLM_PROVIDERS:
            raise ValueError(f"Unknown LISTING_LLM_PROVIDER {name!r}; valid: {list(LLM_PROVIDERS)}")
        return name

    @property
    def listing_llm_api_key(self) -> str:
        """Credential of the selected generation provider ("" when unset)."""
        return {
            "openai": self.openai_api_key,
            "claude": self.anthropic_api_key,
            "groq": self.groq_api_key,
        }.get(self.listing_llm_provider, "")


@lru_cache
def get_settings() -> Settings:
    return Settings()
