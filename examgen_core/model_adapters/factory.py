"""Build the configured model adapter."""

from examgen_core.config import Settings, get_settings
from examgen_core.model_adapters.base import BaseModelAdapter
from examgen_core.model_adapters.google import GoogleAdapter
from examgen_core.model_adapters.openai import OpenAIAdapter

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


def build_model_adapter(settings: Settings | None = None) -> BaseModelAdapter:
    """Create the adapter selected by ``settings.provider``.

    Args:
        settings: Settings to read (defaults to the process settings)

    Returns:
        Model adapter instance

    Raises:
        ValueError: If the provider is unknown or its API key is missing
    """
    settings = settings or get_settings()
    provider = settings.provider.strip().lower()

    if provider == "google":
        api_key = (settings.google_api_key or "").strip()
        if not api_key:
            raise ValueError("Missing API key for provider: google")
        return GoogleAdapter(
            api_key=api_key,
            model=settings.google_model,
            timeout=settings.request_timeout,
            max_retries=settings.max_retries,
        )

    if provider in {"openai", "openrouter"}:
        api_key = (settings.openai_api_key or "").strip()
        if not api_key:
            raise ValueError(f"Missing API key for provider: {provider}")

        base_url = settings.openai_base_url
        if provider == "openrouter" and not base_url:
            base_url = OPENROUTER_BASE_URL

        return OpenAIAdapter(
            api_key=api_key,
            model=settings.openai_model,
            base_url=base_url,
            timeout=settings.request_timeout,
            max_retries=settings.max_retries,
        )

    raise ValueError(f"Unsupported provider: {provider}")
