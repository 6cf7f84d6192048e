"""Similarity lookup via LLM providers, with optional tracing."""

from .providers.base import SimilarityProvider, parse_similarity_response
from .providers.factory import available_providers, create_provider
from .providers.gemini import GeminiProvider
from .providers.openai_compatible import OpenAICompatibleProvider
from .tracing import setup_langfuse, flush, start_span, set_span_output, record_span_error

__all__ = [
    "SimilarityProvider",
    "parse_similarity_response",
    "GeminiProvider",
    "OpenAICompatibleProvider",
    "create_provider",
    "available_providers",
    "setup_langfuse",
    "flush",
    "start_span",
    "set_span_output",
    "record_span_error",
]
