"""GatewayClient against a mocked OpenRouter endpoint."""

import json

import httpx
import pytest

from eduvoice.errors import GatewayError
from eduvoice.services.gateway import GatewayClient, ModelTask

from tests.conftest import make_settings


def _client(handler, **overrides) -> GatewayClient:
    settings = make_settings(
        openrouter_base_url="https://gateway.test/api/v1",
        model_chat="chat/model",
        model_vision="vision/model",
        model_reasoning="reasoning/model",
        **overrides,
    )
    return GatewayClient(settings, http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def _completion(text: str, model: str = "chat/model") -> dict:
    return {"model": model, "choices": [{"message": {"role": "assistant", "content": text}}]}


async def test_chat_request_shape():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion("Hi there"))

    gateway = _client(handler)
    completion = await gateway.chat(
        [{"role": "user", "content": "Hello"}],
        task=ModelTask.REASONING,
        temperature=0.2,
        max_tokens=100,
        json_mode=True,
    )
    await gateway.aclose()

    assert completion.text == "Hi there"
    assert completion.model == "chat/model"
    assert seen["url"] == "https://gateway.test/api/v1/chat/completions"
    assert seen["headers"]["authorization"] == "Bearer test-openrouter-key"
    assert seen["headers"]["x-title"] == "EduVoice AI"
    assert "http-referer" in seen["headers"]
    assert seen["body"]["model"] == "reasoning/model"
    assert seen["body"]["temperature"] == 0.2
    assert seen["body"]["max_tokens"] == 100
    assert seen["body"]["response_format"] == {"type": "json_object"}


async def test_chat_defaults():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion("ok"))

    gateway = _client(handler, llm_max_tokens=512)
    await gateway.chat([{"role": "user", "content": "x"}])

    assert seen["body"]["model"] == "chat/model"
    assert seen["body"]["max_tokens"] == 512
    assert "response_format" not in seen["body"]
    assert "temperature" not in seen["body"]


async def test_non_2xx_raises_with_status_and_body():
    gateway = _client(lambda request: httpx.Response(429, text="rate limited"))
    with pytest.raises(GatewayError) as exc_info:
        await gateway.chat([{"role": "user", "content": "x"}])
    assert exc_info.value.status_code == 429
    assert exc_info.value.body == "rate limited"


async def test_transport_error_raises_without_status():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    gateway = _client(handler)
    with pytest.raises(GatewayError) as exc_info:
        await gateway.chat([{"role": "user", "content": "x"}])
    assert exc_info.value.status_code is None


async def test_unexpected_shape_raises():
    gateway = _client(lambda request: httpx.Response(200, json={"choices": []}))
    with pytest.raises(GatewayError):
        await gateway.chat([{"role": "user", "content": "x"}])


async def test_stream_chat_yields_deltas():
    events = [
        ": OPENROUTER PROCESSING",
        "data: " + json.dumps({"choices": [{"delta": {"role": "assistant"}}]}),
        "data: " + json.dumps({"choices": [{"delta": {"content": "Hel"}}]}),
        "data: " + json.dumps({"choices": [{"delta": {"content": "lo"}}]}),
        "data: [DONE]",
        "data: " + json.dumps({"choices": [{"delta": {"content": "ignored"}}]}),
    ]
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            headers={"content-type": "text/event-stream"},
            content="\n\n".join(events).encode(),
        )

    gateway = _client(handler)
    chunks = [chunk async for chunk in gateway.stream_chat([{"role": "user", "content": "x"}])]

    assert chunks == ["Hel", "lo"]
    assert seen["body"]["stream"] is True


async def test_stream_chat_error_status():
    gateway = _client(lambda request: httpx.Response(500, text="boom"))
    with pytest.raises(GatewayError) as exc_info:
        async for _ in gateway.stream_chat([{"role": "user", "content": "x"}]):
            pass
    assert exc_info.value.status_code == 500
    assert exc_info.value.body == "boom"


async def test_analyze_image_sends_inline_data():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion("A triangle", model="vision/model"))

    gateway = _client(handler)
    completion = await gateway.analyze_image("aGVsbG8=", "image/png")

    assert completion.text == "A triangle"
    body = seen["body"]
    assert body["model"] == "vision/model"
    content = body["messages"][0]["content"]
    assert content[0]["type"] == "text"
    assert content[1]["image_url"]["url"] == "data:image/png;base64,aGVsbG8="


async def test_stream_chat_error_chunk_raises():
    events = [
        "data: " + json.dumps({"choices": [{"delta": {"content": "Half an"}}]}),
        "data: " + json.dumps({"error": {"code": 502, "message": "Provider disconnected"}}),
        "data: [DONE]",
    ]
    gateway = _client(
        lambda request: httpx.Response(
            200,
            headers={"content-type": "text/event-stream"},
            content="\n\n".join(events).encode(),
        )
    )

    chunks = []
    with pytest.raises(GatewayError) as exc_info:
        async for chunk in gateway.stream_chat([{"role": "user", "content": "x"}]):
            chunks.append(chunk)
    assert chunks == ["Half an"]
    assert exc_info.value.status_code == 502
    assert "Provider disconnected" in exc_info.value.body


async def test_stream_chat_error_finish_reason_raises():
    events = [
        "data: " + json.dumps({"choices": [{"delta": {"content": "Hi"}, "finish_reason": None}]}),
        "data: " + json.dumps({"choices": [{"delta": {"content": ""}, "finish_reason": "error"}]}),
    ]
    gateway = _client(
        lambda request: httpx.Response(
            200,
            headers={"content-type": "text/event-stream"},
            content="\n\n".join(events).encode(),
        )
    )

    with pytest.raises(GatewayError):
        async for _ in gateway.stream_chat([{"role": "user", "content": "x"}]):
            pass
