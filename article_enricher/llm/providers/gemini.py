"""Google Gemini provider."""

from __future__ import annotations

from typing import Any

from ...errors import SimilarityServiceError
from ..prompts import SYSTEM_PROMPT
from .base import SimilarityProvider


class GeminiProvider(SimilarityProvider):
    """Gemini-backed similarity lookup via the generateContent REST API."""

    name = "gemini"
    default_model = "gemini-2.5-flash"
    default_base_url = "https://generativelanguage.googleapis.com"
    default_api_key_env = "GOOGLE_API_KEY"

    def _complete(self, prompt: str) -> str:
        payload = {
            "systemInstruction": {"parts": [{"text": SYSTEM_PROMPT}]},
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.cfg.temperature,
                "responseMimeType": "application/json",
            },
        }
        data = self._post(payload)
        return _extract_text(data)

    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.cfg.base_url.rstrip('/')}/v1beta/models/{self.cfg.model}:generateContent"
        params = {"key": self.api_key}
        with self._client() as client:
            resp = client.post(url, params=params, json=payload)
            resp.raise_for_status()
            try:
                return resp.json()
            except ValueError as exc:
                raise SimilarityServiceError("Provider returned a non-JSON body") from exc


def _extract_text(data: dict[str, Any]) -> str:
    """Join the non-thought text parts of the first candidate.

    Falls back to every text part when the model only returned thoughts.
    """
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return ""
    texts = [p.get("text", "") for p in parts if isinstance(p, dict) and not p.get("thought")]
    if not any(texts):
        texts = [p.get("text", "") for p in parts if isinstance(p, dict)]
    return "".join(texts)
