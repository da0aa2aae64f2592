"""LLM client: Protocol + httpx implementation + mock for tests."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

import httpx
import structlog

logger = structlog.get_logger(__name__)

ChatMessage = dict[str, Any]


class LLMError(Exception):
    """Completion provider failed or returned an unusable response."""


@runtime_checkable
class LLMClient(Protocol):
    """Protocol for chat completion. Implement with httpx or mock for tests."""

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> str:
        """
        Send role/content messages to the model, return the raw response text.
        Caller is responsible for parsing JSON if it asked for it.
        """
        ...


class HttpLLMClient:
    """Async httpx-based LLM client. Expects an OpenAI-compatible chat API.

    Owns one AsyncClient for its lifetime; call aclose() (or use it as an
    async context manager) at shutdown.
    """

    def __init__(
        self,
        base_url: str,
        model: str = "gpt-4o-mini",
        api_key: str | None = None,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        headers = {}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @property
    def model(self) -> str:
        return self._model

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> str:
        payload: dict[str, Any] = {"model": model or self._model, "messages": list(messages)}
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_completion_tokens"] = max_tokens
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        try:
            r = await self._client.post("/v1/chat/completions", json=payload)
            r.raise_for_status()
            data = r.json()
        except httpx.HTTPStatusError as e:
            logger.error("llm_request_failed", status=e.response.status_code, model=payload["model"])
            raise LLMError(f"completion request failed with status {e.response.status_code}") from e
        except (httpx.RequestError, ValueError) as e:
            logger.error("llm_request_error", error=str(e), model=payload["model"])
            raise LLMError(f"completion request failed: {e}") from e

        choices = data.get("choices", [])
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content", "") or ""

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpLLMClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


class MockLLMClient:
    """Implements LLMClient with scripted responses for tests. No network.

    A scripted entry that is an Exception instance is raised instead of returned.
    """

    def __init__(self, responses: list[str | Exception] | None = None, default: str = "") -> None:
        self.responses = list(responses) if responses else []
        self.default = default
        self.call_count = 0
        self.calls: list[dict[str, Any]] = []

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> str:
        self.calls.append({"messages": list(messages), "model": model, "json_mode": json_mode})
        if self.call_count < len(self.responses):
            out = self.responses[self.call_count]
        else:
            out = self.default
        self.call_count += 1
        if isinstance(out, Exception):
            raise out
        return out
