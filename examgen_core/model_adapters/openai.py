"""OpenAI model adapter.

Also works with OpenAI-compatible servers (e.g. a local Ollama) through
``base_url``.
"""

import asyncio
from typing import Any

from examgen_core.model_adapters.base import (
    BaseModelAdapter,
    JsonPayload,
    parse_json_response,
)
from examgen_core.utils.logging import get_logger
from examgen_core.utils.retry import with_retry

logger = get_logger(__name__)

# Default timeout for API calls (seconds)
DEFAULT_TIMEOUT = 120.0


class OpenAIAdapter(BaseModelAdapter):
    """Adapter for OpenAI chat completion models."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = 3,
        max_tokens: int = 8192,
    ):
        """Initialize the OpenAI adapter.

        Args:
            api_key: OpenAI API key
            model: Vision-capable chat model used for every stage
            base_url: Optional custom base URL
            timeout: Request timeout in seconds
            max_retries: Maximum retry attempts for transient failures
            max_tokens: Completion token limit
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.max_tokens = max_tokens

        self._client: Any = None
        logger.info(f"Initialized OpenAI adapter (model={model})")

    @property
    def client(self) -> Any:
        """Lazy-load the OpenAI client."""
        if self._client is None:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
            )
        return self._client

    async def _call_api(
        self,
        messages: list[dict[str, Any]],
        operation_name: str,
    ) -> str:
        """Call the OpenAI API with retry logic.

        Args:
            messages: Chat messages
            operation_name: Name for logging

        Returns:
            Response content string
        """

        async def _make_request() -> str:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    max_tokens=self.max_tokens,
                    response_format={"type": "json_object"},
                ),
                timeout=self.timeout,
            )
            return response.choices[0].message.content or ""

        logger.debug(f"Starting {operation_name} with model {self.model}")
        result = await with_retry(
            _make_request,
            max_attempts=self.max_retries,
            operation_name=operation_name,
        )
        logger.debug(f"Completed {operation_name}")
        return result

    async def generate_structured(
        self,
        prompt: str,
        images: list[str] | None = None,
        system_instruction: str | None = None,
    ) -> JsonPayload:
        """Generate structured JSON, sending page images as data URLs."""
        messages: list[dict[str, Any]] = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})

        if images:
            content: list[dict[str, Any]] = [{"type": "text", "text": prompt}]
            for image in images:
                content.append(
                    {
                        "type": "image_url",
                        "image_url": {
                            "url": f"data:image/jpeg;base64,{image}",
                            "detail": "high",
                        },
                    }
                )
            messages.append({"role": "user", "content": content})
            logger.debug(f"Attaching {len(images)} images to request")
        else:
            messages.append({"role": "user", "content": prompt})

        content_text = await self._call_api(
            messages=messages,
            operation_name="generate_structured",
        )
        return parse_json_response(content_text)
