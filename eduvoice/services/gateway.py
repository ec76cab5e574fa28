"""
AI gateway client for the OpenRouter multi-model chat completion API.

One httpx.AsyncClient is shared for the life of the application. Calls are
never retried: a failed request fails the user-facing request with a
GatewayError carrying the upstream status and body.
"""

import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from eduvoice.config import Settings
from eduvoice.errors import GatewayError

logger = logging.getLogger(__name__)

IMAGE_ANALYSIS_PROMPT = (
    "Analyze this image and extract any text, equations, diagrams, or educational content. "
    "Describe what you see in detail. If there are math equations, provide them in LaTeX format. "
    "If there are diagrams, describe their structure and relationships."
)


class ModelTask(str, Enum):
    """Task class used to pick a model."""

    CHAT = "chat"
    VISION = "vision"
    REASONING = "reasoning"


@dataclass
class Completion:
    """First choice of a chat completion."""

    text: str
    model: str | None = None


def image_message(prompt: str, image_base64: str, mime_type: str = "image/jpeg") -> dict[str, Any]:
    """Build a user message carrying inline base64 image data."""
    return {
        "role": "user",
        "content": [
            {"type": "text", "text": prompt},
            {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{image_base64}"}},
        ],
    }


def _error_code(error: Any) -> int | None:
    code = error.get("code") if isinstance(error, dict) else None
    return code if isinstance(code, int) else None


class GatewayClient:
    """Thin wrapper over POST {base_url}/chat/completions."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        self.settings = settings
        self.models = {
            ModelTask.CHAT: settings.model_chat,
            ModelTask.VISION: settings.model_vision,
            ModelTask.REASONING: settings.model_reasoning,
        }
        self.client = http_client or httpx.AsyncClient(timeout=settings.gateway_timeout_seconds)

    async def aclose(self) -> None:
        await self.client.aclose()

    @property
    def _url(self) -> str:
        return f"{self.settings.openrouter_base_url.rstrip('/')}/chat/completions"

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.openrouter_api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.settings.openrouter_referer,
            "X-Title": self.settings.openrouter_title,
        }

    def _payload(
        self,
        messages: list[dict[str, Any]],
        task: ModelTask,
        temperature: float | None,
        max_tokens: int | None,
        json_mode: bool,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.models[task],
            "messages": messages,
            "max_tokens": max_tokens or self.settings.llm_max_tokens,
        }
        if temperature is not None:
            payload["temperature"] = temperature
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    async def chat(
        self,
        messages: list[dict[str, Any]],
        *,
        task: ModelTask = ModelTask.CHAT,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> Completion:
        """
        Run a chat completion and return the first choice's text.

        Raises GatewayError on transport failure, non-2xx status, or a
        response without choices.
        """
        payload = self._payload(messages, task, temperature, max_tokens, json_mode)
        try:
            response = await self.client.post(self._url, headers=self._headers, json=payload)
        except httpx.HTTPError as e:
            raise GatewayError(f"AI gateway request failed: {e}") from e

        if response.status_code >= 400:
            raise GatewayError(
                f"AI gateway error: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
            text = data["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise GatewayError(
                "AI gateway returned an unexpected response shape",
                status_code=response.status_code,
                body=response.text,
            ) from e

        logger.debug("Completion from %s (%d chars)", data.get("model"), len(text))
        return Completion(text=text, model=data.get("model"))

    async def stream_chat(
        self,
        messages: list[dict[str, Any]],
        *,
        task: ModelTask = ModelTask.CHAT,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> AsyncIterator[str]:
        """Stream a chat completion, yielding text deltas as they arrive."""
        payload = self._payload(messages, task, temperature, max_tokens, json_mode=False)
        payload["stream"] = True
        try:
            async with self.client.stream("POST", self._url, headers=self._headers, json=payload) as response:
                if response.status_code >= 400:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    raise GatewayError(
                        f"AI gateway error: {response.status_code} - {body}",
                        status_code=response.status_code,
                        body=body,
                    )
                async for line in response.aiter_lines():
                    # SSE framing: "data: {...}"; comment lines start with ":"
                    if not line.startswith("data:"):
                        continue
                    data = line[len("data:"):].strip()
                    if data == "[DONE]":
                        break
                    try:
                        chunk = json.loads(data)
                    except ValueError:
                        logger.warning("Skipping malformed stream chunk: %.200s", data)
                        continue
                    # Upstream failures after the 200 arrive as in-band error chunks
                    if isinstance(chunk, dict) and chunk.get("error"):
                        raise GatewayError(
                            f"AI gateway stream error: {chunk['error']}",
                            status_code=_error_code(chunk["error"]),
                            body=data,
                        )
                    try:
                        choice = chunk["choices"][0]
                        delta = choice.get("delta", {}).get("content")
                    except (KeyError, IndexError, TypeError, AttributeError):
                        logger.warning("Skipping malformed stream chunk: %.200s", data)
                        continue
                    if choice.get("finish_reason") == "error":
                        raise GatewayError("AI gateway stream ended with an error", body=data)
                    if delta:
                        yield delta
        except httpx.HTTPError as e:
            raise GatewayError(f"AI gateway stream failed: {e}") from e

    async def analyze_image(self, image_base64: str, mime_type: str = "image/jpeg") -> Completion:
        """Describe an image's educational content with the vision model."""
        return await self.chat(
            [image_message(IMAGE_ANALYSIS_PROMPT, image_base64, mime_type)],
            task=ModelTask.VISION,
            temperature=0.5,
        )
