"""Base model adapter interface."""

import json
import re
from abc import ABC, abstractmethod
from typing import Any

from examgen_core.errors import ModelResponseError
from examgen_core.utils.logging import get_logger

logger = get_logger(__name__)

JsonPayload = dict[str, Any] | list[Any]

_CODE_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


def parse_json_response(content: str) -> JsonPayload:
    """Parse JSON content returned by a model.

    Markdown code fences around the payload are tolerated.

    Args:
        content: Raw response content string

    Returns:
        Parsed JSON payload (dict or list)

    Raises:
        ModelResponseError: If the content is empty or not JSON
    """
    if not content or not content.strip():
        raise ModelResponseError("The model returned an empty response")

    text = content.strip()
    match = _CODE_FENCE.search(text)
    if match:
        text = match.group(1)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse JSON response: {e}. Content: {content[:200]}...")
        raise ModelResponseError("The model returned a response that is not valid JSON") from e

    if not isinstance(data, (dict, list)):
        raise ModelResponseError("The model returned JSON that is not an object")
    return data


class BaseModelAdapter(ABC):
    """Abstract base class for model adapters.

    Adapters only move prompts and images to a provider and bring JSON back;
    prompt construction lives in the generation stages.
    """

    @abstractmethod
    async def generate_structured(
        self,
        prompt: str,
        images: list[str] | None = None,
        system_instruction: str | None = None,
    ) -> JsonPayload:
        """Generate structured JSON from a model call.

        Args:
            prompt: Prompt that specifies the JSON output format
            images: Optional base64 JPEG images sent after the prompt
            system_instruction: Optional system prompt

        Returns:
            Parsed JSON data (dict or list)

        Raises:
            ModelResponseError: If the reply is not usable JSON
        """
