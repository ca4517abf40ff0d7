"""
Anthropic Messages API trigger.

Sends the smallest possible streaming request (one token, "hi") so the
platform starts a new quota window, and reads only the first chunk of the
response.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from quota_activator.models.exceptions import ActionFailure, ConfigurationError
from quota_activator.platforms.base import RetryingAction

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-3-5-sonnet-20241022"
DEFAULT_TIMEOUT_SECONDS = 30
ANTHROPIC_VERSION = "2023-06-01"


class AnthropicAction(RetryingAction):
    name = "anthropic"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = 0,
        retry_base_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(max_retries=max_retries, retry_base_delay=retry_base_delay)
        self.base_url = base_url
        self.api_key = api_key
        self.model = model
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @classmethod
    def from_config(cls, config) -> "AnthropicAction":
        options: Dict[str, Any] = config.options or {}
        api_key = options.get("api_key")
        if not isinstance(api_key, str) or not api_key:
            raise ConfigurationError("api_key is required for anthropic platform")
        return cls(
            base_url=config.base_url,
            api_key=api_key,
            model=options.get("model") or DEFAULT_MODEL,
            timeout_seconds=_int_option(options, "timeout_seconds", DEFAULT_TIMEOUT_SECONDS),
            max_retries=_int_option(options, "max_retries", 0),
            retry_base_delay=float(options.get("retry_base_delay_seconds", 1.0)),
        )

    def validate_config(self) -> None:
        if not self.base_url:
            raise ConfigurationError("base_url is required")
        if not self.api_key:
            raise ConfigurationError("api_key is required")
        if not self.model:
            raise ConfigurationError("model is required")
        if self.timeout_seconds <= 0:
            raise ConfigurationError("timeout_seconds must be positive")
        if self.max_retries < 0:
            raise ConfigurationError("max_retries cannot be negative")

    @property
    def messages_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/v1/messages"

    def build_payload(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": 1,
            "stream": True,
            "messages": [{"role": "user", "content": "hi"}],
        }

    def build_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    async def attempt(self) -> None:
        # httpx limits each phase separately; wait_for bounds the attempt as a whole
        try:
            resp, first_chunk = await asyncio.wait_for(self._send(), self.timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise ActionFailure(f"request timed out after {self.timeout_seconds}s") from exc

        logger.info("[Anthropic] Response status: %d (model: %s)", resp.status_code, self.model)
        logger.debug("[Anthropic] Response body: %s", first_chunk[:1024].decode("utf-8", errors="replace"))

        if not resp.is_success:
            raise ActionFailure(f"unexpected status code: {resp.status_code}", status_code=resp.status_code)

        logger.info("[Anthropic] Triggered successfully with model: %s", self.model)

    async def _send(self) -> Tuple[httpx.Response, bytes]:
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds),
                transport=self._transport,
            ) as client:
                async with client.stream(
                    "POST",
                    self.messages_url,
                    json=self.build_payload(),
                    headers=self.build_headers(),
                ) as resp:
                    first_chunk = b""
                    async for chunk in resp.aiter_bytes():
                        first_chunk = chunk
                        break
        except httpx.TimeoutException as exc:
            raise ActionFailure(f"request timed out after {self.timeout_seconds}s") from exc
        except httpx.HTTPError as exc:
            raise ActionFailure(f"request failed: {exc}") from exc
        return resp, first_chunk


def _int_option(options: Dict[str, Any], key: str, default: int) -> int:
    value = options.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"platform.options.{key} must be a number, got: {value!r}")
    return int(value)
