"""Chat-completion responder: one-shot persona plus user turn against an OpenAI-compatible API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from src.errors import ResponderError

if TYPE_CHECKING:
    from src.config import RelayConfig

logger = logging.getLogger(__name__)


class ChatResponder:
    """Produces a candidate reply for a single user message."""

    def __init__(
        self,
        api_key: str,
        persona_prompt: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4-turbo",
        temperature: float = 0.2,
        max_tokens: int = 400,
        timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._persona_prompt = persona_prompt
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: RelayConfig) -> ChatResponder:
        return cls(
            api_key=config.openai_api_key,
            persona_prompt=config.persona_prompt,
            base_url=config.openai_base_url,
            model=config.openai_model,
            temperature=config.openai_temperature,
            max_tokens=config.openai_max_tokens,
            timeout=config.http_timeout,
        )

    def build_request(self, text: str) -> dict[str, Any]:
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": self._persona_prompt},
                {"role": "user", "content": text},
            ],
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }

    async def reply(self, text: str) -> str:
        """Return the first choice's message content, stripped.

        Raises ResponderError on transport errors, non-2xx responses, or a
        body without usable content.
        """
        url = f"{self._base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    url, json=self.build_request(text), headers=headers,
                    timeout=self._timeout,
                )
        except httpx.HTTPError as exc:
            raise ResponderError(f"Chat completion request failed: {exc}") from exc

        logger.debug("Chat completion status %s", resp.status_code)
        if resp.status_code >= 300:
            raise ResponderError(f"Chat completion returned HTTP {resp.status_code}")

        try:
            content = resp.json()["choices"][0]["message"]["content"]
        except (ValueError, LookupError, TypeError) as exc:
            # ValueError covers JSON and UTF-8 decoding errors
            raise ResponderError("Chat completion response had no message content") from exc

        if not isinstance(content, str) or not content.strip():
            raise ResponderError("Chat completion returned an empty reply")
        return content.strip()
