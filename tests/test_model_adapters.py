"""Tests for model adapter helpers and the adapter factory."""

import pytest

from examgen_core.config import Settings
from examgen_core.errors import ModelResponseError
from examgen_core.model_adapters import (
    GoogleAdapter,
    OpenAIAdapter,
    build_model_adapter,
    parse_json_response,
)
from examgen_core.model_adapters.factory import OPENROUTER_BASE_URL


class TestParseJsonResponse:
    """Tests for parse_json_response."""

    def test_plain_object(self) -> None:
        """Test that a bare JSON object is parsed."""
        assert parse_json_response('{"rows": []}') == {"rows": []}

    def test_code_fence_stripped(self) -> None:
        """Test that a fenced payload is unwrapped."""
        content = 'Here you go:\n```json\n{"entries": [{"question_id": "q1"}]}\n```'

        assert parse_json_response(content) == {"entries": [{"question_id": "q1"}]}

    def test_list_accepted(self) -> None:
        """Test that a top-level list is returned as-is."""
        assert parse_json_response("[1, 2]") == [1, 2]

    def test_empty_rejected(self) -> None:
        """Test that an empty reply is an error."""
        with pytest.raises(ModelResponseError, match="empty"):
            parse_json_response("   ")

    def test_invalid_json_rejected(self) -> None:
        """Test that non-JSON text is an error."""
        with pytest.raises(ModelResponseError, match="not valid JSON"):
            parse_json_response("Sorry, I cannot help with that.")

    def test_scalar_rejected(self) -> None:
        """Test that a JSON scalar is an error."""
        with pytest.raises(ModelResponseError):
            parse_json_response('"just a string"')


class TestBuildModelAdapter:
    """Tests for build_model_adapter."""

    def test_google(self) -> None:
        """Test that the Google provider builds a Gemini adapter."""
        settings = Settings(
            provider="google", google_api_key="key", google_model="gemini-test"
        )

        adapter = build_model_adapter(settings)

        assert isinstance(adapter, GoogleAdapter)
        assert adapter.model == "gemini-test"

    def test_openai(self) -> None:
        """Test that the OpenAI provider keeps the configured base URL."""
        settings = Settings(
            provider="openai",
            openai_api_key="key",
            openai_base_url="http://localhost:11434/v1",
        )

        adapter = build_model_adapter(settings)

        assert isinstance(adapter, OpenAIAdapter)
        assert adapter.base_url == "http://localhost:11434/v1"

    def test_openrouter_default_url(self) -> None:
        """Test that OpenRouter gets its base URL when none is set."""
        settings = Settings(provider="OpenRouter", openai_api_key="key")

        adapter = build_model_adapter(settings)

        assert adapter.base_url == OPENROUTER_BASE_URL

    def test_missing_key(self) -> None:
        """Test that a provider without an API key is refused."""
        with pytest.raises(ValueError, match="Missing API key"):
            build_model_adapter(Settings(provider="google", google_api_key=" "))

    def test_unknown_provider(self) -> None:
        """Test that unknown providers are refused."""
        with pytest.raises(ValueError, match="Unsupported provider"):
            build_model_adapter(Settings(provider="carrier-pigeon"))
