"""Model adapters for different LLM backends.

Supported providers:
- Google: Gemini models via GoogleAdapter
- OpenAI: chat completion models via OpenAIAdapter, including
  OpenAI-compatible local servers through ``base_url``
"""

from examgen_core.model_adapters.base import BaseModelAdapter, parse_json_response
from examgen_core.model_adapters.factory import build_model_adapter
from examgen_core.model_adapters.google import GoogleAdapter
from examgen_core.model_adapters.openai import OpenAIAdapter

__all__ = [
    "BaseModelAdapter",
    "GoogleAdapter",
    "OpenAIAdapter",
    "build_model_adapter",
    "parse_json_response",
]
