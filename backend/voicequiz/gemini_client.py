from __future__ import annotations
import httpx
from typing import Any, Dict, Optional
from .settings import settings


class GeminiClient:
	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		base_url: Optional[str] = None,
		model: Optional[str] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self.api_key = api_key or settings.gemini_api_key
		if not self.api_key:
			raise ValueError("GEMINI_API_KEY is not configured")
		self.model = model or settings.gemini_model
		# Google AI Studio (Generative Language API)
		self.base_url = base_url or f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent"
		self._client = httpx.AsyncClient(timeout=settings.gemini_timeout_seconds, transport=transport)

	async def generate_json(
		self,
		prompt: str,
		schema: Dict[str, Any],
		*,
		temperature: Optional[float] = None,
	) -> str:
		"""Ask for output constrained to `schema`; returns the raw JSON text."""
		config = self._generation_config(temperature)
		config["responseMimeType"] = "application/json"
		config["responseSchema"] = schema
		payload: Dict[str, Any] = {
			"contents": [{"parts": [{"text": prompt}]}],
			"generationConfig": config,
		}
		return await self._post_payload(payload)

	def _generation_config(self, temperature: Optional[float]) -> Dict[str, Any]:
		return {
			"temperature": settings.gemini_temperature if temperature is None else temperature,
			"maxOutputTokens": settings.gemini_max_output_tokens,
		}

	async def _post_payload(self, payload: Dict[str, Any]) -> str:
		r = await self._client.post(self.base_url, params={"key": self.api_key}, json=payload)
		r.raise_for_status()
		try:
			data = r.json()
			return data["candidates"][0]["content"]["parts"][0]["text"]
		except (ValueError, KeyError, IndexError, TypeError) as exc:
			raise RuntimeError(f"Unexpected Gemini response: {r.text}") from exc

	async def aclose(self) -> None:
		await self._client.aclose()
