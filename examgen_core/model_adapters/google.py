"""Google Gemini model adapter."""

import asyncio
from typing import Any

from examgen_core.model_adapters.base import (
    BaseModelAdapter,
    JsonPayload,
    parse_json_response,
)
from examgen_core.utils.logging import get_logger
from examgen_core.utils.retry import RateLimitError, with_retry

logger = get_logger(__name__)

# Default timeout for API calls (seconds)
DEFAULT_TIMEOUT = 120.0

IMAGE_MIME_TYPE = "image/jpeg"


def _wrap_google_error(e: Exception) -> Exception:
    """Convert Google API errors to standard exceptions for retry handling.

    Args:
        e: Original exception from Google API

    Returns:
        Wrapped exception (RateLimitError for rate limits, original otherwise)
    """
    error_str = str(e).lower()
    error_type = type(e).__name__

    if any(
        indicator in error_str
        for indicator in [
            "resource exhausted",
            "quota",
            "rate limit",
            "429",
            "too many requests",
        ]
    ) or error_type in ("ResourceExhausted", "TooManyRequests"):
        return RateLimitError(f"Google API rate limit: {e}")

    if any(
        indicator in error_str
        for indicator in ["503", "500", "internal", "unavailable", "deadline"]
    ) or error_type in (
        "ServiceUnavailable",
        "InternalServerError",
        "DeadlineExceeded",
    ):
        return ConnectionError(f"Google API server error: {e}")

    return e


def _extract_text(response: Any, operation_name: str) -> str:
    """Pull the text parts out of a Gemini response, tolerating blocked replies."""
    if not response.candidates:
        logger.warning(f"{operation_name}: No candidates in response")
        return ""
    candidate = response.candidates[0]
    # 1=STOP (normal), 2=MAX_TOKENS, 3=SAFETY, 4=RECITATION, 5=OTHER
    finish_reason = getattr(candidate, "finish_reason", None)
    if finish_reason and finish_reason != 1:
        logger.warning(f"{operation_name}: Response finished with reason {finish_reason}")
    if not candidate.content or not candidate.content.parts:
        logger.warning(
            f"{operation_name}: No content parts in response (finish_reason={finish_reason})"
        )
        return ""
    return "".join(
        part.text for part in candidate.content.parts if hasattr(part, "text")
    )


class GoogleAdapter(BaseModelAdapter):
    """Adapter for Google Gemini models."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = 3,
    ):
        """Initialize the Google Gemini adapter.

        Args:
            api_key: Google AI API key
            model: Gemini model used for every stage
            timeout: Request timeout in seconds
            max_retries: Maximum retry attempts for transient failures
        """
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.max_retries = max_retries

        self._client: Any = None
        logger.info(f"Initialized Google adapter (model={model})")

    @property
    def client(self) -> Any:
        """Lazy-load the Google Generative AI client."""
        if self._client is None:
            import google.generativeai as genai

            genai.configure(api_key=self.api_key)
            self._client = genai
        return self._client

    async def _call_api(
        self,
        contents: list[Any],
        operation_name: str,
        system_instruction: str | None = None,
    ) -> str:
        """Call the Gemini API with retry logic.

        Args:
            contents: Content parts for the request
            operation_name: Name for logging
            system_instruction: Optional system instruction

        Returns:
            Response content string
        """

        async def _make_request() -> str:
            try:
                model_instance = self.client.GenerativeModel(
                    model_name=self.model,
                    system_instruction=system_instruction,
                    generation_config={
                        "response_mime_type": "application/json",
                    },
                )
                response = await asyncio.wait_for(
                    asyncio.to_thread(model_instance.generate_content, contents),
                    timeout=self.timeout,
                )
                return _extract_text(response, operation_name)
            except Exception as e:
                raise _wrap_google_error(e) from e

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
        """Generate structured JSON, sending page images inline after the prompt."""
        contents: list[Any] = [prompt]
        for image in images or []:
            contents.append({"mime_type": IMAGE_MIME_TYPE, "data": image})
        if images:
            logger.debug(f"Attaching {len(images)} images to request")

        content = await self._call_api(
            contents=contents,
            operation_name="generate_structured",
            system_instruction=system_instruction,
        )
        return parse_json_response(content)
