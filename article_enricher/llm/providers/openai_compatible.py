"""OpenAI-compatible chat completions provider."""

from __future__ import annotations

from typing import Any

from ...errors import SimilarityServiceError
from ..prompts import SYSTEM_PROMPT
from .base import SimilarityProvider


class OpenAICompatibleProvider(SimilarityProvider):
    """Provider for any endpoint speaking the OpenAI chat completions API."""

    name = "openai"
    default_model = "gpt-4o-mini"
    default_base_url = "https://api.openai.com/v1"
    default_api_key_env = "OPENAI_API_KEY"

    def _complete(self, prompt: str) -> str:
        payload = {
            "model": self.cfg.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "response_format": {"type": "json_object"},
            "temperature": self.cfg.temperature,
        }
        data = self._post(payload)
        return _extract_text(data)

    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.cfg.base_url.rstrip('/')}/chat/completions"
        headers = {"Authorization": f"Bearer {self.api_key}"}
        with self._client() as client:
            resp = client.post(url, headers=headers, json=payload)
            resp.raise_for_status()
            try:
                return resp.json()
            except ValueError as exc:
                raise SimilarityServiceError("Provider returned a non-JSON body") from exc


def _extract_text(data: dict[str, Any]) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return content or ""
