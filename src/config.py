"""Relay configuration, built once from the environment at startup."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, ValidationError

DEFAULT_PERSONA_PROMPT = (
    "You are a helpful, friendly bilingual (English and Hindi) shopping assistant "
    "for our store. Use Hindi if the user writes in Hindi, otherwise use English. "
    "When a user asks about order status, ask for the order number if they have "
    "not shared it. Keep replies short and sales-focused but polite."
)

# env var -> field name
_REQUIRED = {
    "META_VERIFY_TOKEN": "verify_token",
    "META_ACCESS_TOKEN": "access_token",
    "META_PHONE_NUMBER_ID": "phone_number_id",
    "OPENAI_API_KEY": "openai_api_key",
}

_OPTIONAL = {
    "META_API_BASE": "graph_api_base",
    "META_API_VERSION": "graph_api_version",
    "OPENAI_BASE_URL": "openai_base_url",
    "OPENAI_MODEL": "openai_model",
    "OPENAI_TEMPERATURE": "openai_temperature",
    "OPENAI_MAX_TOKENS": "openai_max_tokens",
    "PERSONA_PROMPT": "persona_prompt",
    "DEFAULT_GREETING": "default_greeting",
    "SHOPIFY_STORE_DOMAIN": "shopify_store_domain",
    "SHOPIFY_ADMIN_TOKEN": "shopify_admin_token",
    "SHOPIFY_API_VERSION": "shopify_api_version",
    "HTTP_TIMEOUT_SECONDS": "http_timeout",
    "PORT": "port",
    "TURN_LOG_PATH": "turn_log_path",
}

_SECRET_FIELDS = ("verify_token", "access_token", "openai_api_key", "shopify_admin_token")


class ConfigError(Exception):
    """Raised when the environment does not describe a usable relay."""


class RelayConfig(BaseModel):
    """Immutable settings shared by every relay component."""

    model_config = ConfigDict(frozen=True)

    verify_token: str
    access_token: str
    phone_number_id: str
    graph_api_base: str = "https://graph.facebook.com"
    graph_api_version: str = "v16.0"

    openai_api_key: str
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4-turbo"
    openai_temperature: float = 0.2
    openai_max_tokens: int = 400
    persona_prompt: str = DEFAULT_PERSONA_PROMPT
    default_greeting: str = "Hi"

    shopify_store_domain: str | None = None
    shopify_admin_token: str | None = None
    shopify_api_version: str = "2024-10"

    http_timeout: float = 10.0
    port: int = 3000
    turn_log_path: str | None = None

    @property
    def order_lookup_enabled(self) -> bool:
        return bool(self.shopify_store_domain and self.shopify_admin_token)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RelayConfig:
        """Create RelayConfig from environment variables.

        Blank values are treated as unset. Raises ConfigError listing every
        missing required variable, or describing the first invalid value.
        """
        env = os.environ if environ is None else environ
        missing = [key for key in _REQUIRED if not env.get(key, "").strip()]
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        values: dict[str, str] = {}
        for key, field_name in {**_REQUIRED, **_OPTIONAL}.items():
            raw = env.get(key, "").strip()
            if raw:
                values[field_name] = raw

        try:
            return cls.model_validate(values)
        except ValidationError as exc:
            raise ConfigError(f"Invalid relay configuration: {exc}") from exc

    def masked(self) -> dict[str, object]:
        """Configuration as a dict with secrets replaced by a short mask."""
        data = self.model_dump()
        for name in _SECRET_FIELDS:
            value = data.get(name)
            if value:
                data[name] = f"{value[:3]}***" if len(value) > 8 else "***"
        return data
