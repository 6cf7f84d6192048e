from .base import SimilarityProvider, parse_similarity_response
from .factory import available_providers, create_provider
from .gemini import GeminiProvider
from .openai_compatible import OpenAICompatibleProvider

__all__ = [
    "SimilarityProvider",
    "parse_similarity_response",
    "GeminiProvider",
    "OpenAICompatibleProvider",
    "available_providers",
    "create_provider",
]
