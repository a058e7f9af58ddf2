from __future__ import annotations

import logging
from typing import Any, Protocol

from openai import APIConnectionError, APIError, APIStatusError, APITimeoutError, AsyncOpenAI

from career_eval.errors import UpstreamTransportError

LOGGER = logging.getLogger(__name__)


class RiskModelProvider(Protocol):
    async def complete(self, messages: list[dict[str, str]]) -> str:
        ...


class OpenAIRiskProvider:
    """Chat-completions adapter that returns the single text completion.

    The SDK's own retries are disabled: one failed upstream call ends the
    request.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout_seconds: float,
        max_completion_tokens: int,
        client: Any = None,
    ) -> None:
        self._client = client or AsyncOpenAI(api_key=api_key, timeout=timeout_seconds, max_retries=0)
        self._model = model
        self._timeout_seconds = timeout_seconds
        self._max_completion_tokens = max_completion_tokens

    async def aclose(self) -> None:
        await self._client.close()

    async def complete(self, messages: list[dict[str, str]]) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                max_completion_tokens=self._max_completion_tokens,
                timeout=self._timeout_seconds,
            )
        except APIError as exc:
            message, raw = describe_provider_error(exc)
            LOGGER.error(
                "Model provider call failed (%s, status=%s): %s",
                type(exc).__name__,
                getattr(exc, "status_code", None),
                message,
            )
            raise UpstreamTransportError(message, raw=raw) from exc

        LOGGER.debug("Model provider returned %d choice(s)", len(response.choices or []))
        return _first_completion_text(response)


def describe_provider_error(exc: APIError) -> tuple[str, Any]:
    """Return the provider's reported message, falling back to the transport one."""
    body = exc.body
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        body = body["error"]

    if isinstance(exc, APIStatusError) and isinstance(body, dict):
        reported = str(body.get("message") or "").strip()
        if reported:
            return reported, body

    if isinstance(exc, APITimeoutError):
        return str(exc) or "Request timed out.", None
    if isinstance(exc, APIConnectionError):
        return str(exc) or "Connection error.", None
    return str(exc), body if isinstance(body, dict) else None


def _first_completion_text(response: Any) -> str:
    choices = getattr(response, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    return str(getattr(message, "content", None) or "")
