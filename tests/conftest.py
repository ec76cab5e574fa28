"""Pytest configuration and fixtures."""

import os

# Required settings must exist before eduvoice.main builds its module-level app
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ.setdefault("OPENROUTER_API_KEY", "test-openrouter-key")
os.environ.setdefault("STORAGE_BACKEND", "memory")

import json
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from eduvoice.config import Settings
from eduvoice.main import create_app
from eduvoice.services.gateway import Completion, ModelTask
from eduvoice.services.voice import Transcription
from eduvoice.storage import MemoryStorage


def make_settings(**overrides) -> Settings:
    values = {
        "jwt_secret_key": "test-jwt-secret",
        "session_secret": "test-session-secret",
        "openrouter_api_key": "test-openrouter-key",
        "storage_backend": "memory",
        "environment": "development",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeGateway:
    """
    Scripted stand-in for GatewayClient.

    Queue replies with push(); an Exception in the queue is raised instead of
    returned. With an empty queue every call answers "ok".
    """

    def __init__(self) -> None:
        self.replies: list = []
        self.calls: list[dict] = []
        self.model = "fake/model"

    def push(self, *replies) -> None:
        self.replies.extend(replies)

    def push_json(self, data) -> None:
        self.replies.append(json.dumps(data))

    def _next(self):
        reply = self.replies.pop(0) if self.replies else "ok"
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def chat(self, messages, *, task=ModelTask.CHAT, temperature=None, max_tokens=None, json_mode=False):
        self.calls.append(
            {"messages": messages, "task": task, "max_tokens": max_tokens, "json_mode": json_mode}
        )
        return Completion(text=self._next(), model=self.model)

    async def stream_chat(self, messages, *, task=ModelTask.CHAT, temperature=None, max_tokens=None):
        self.calls.append({"messages": messages, "task": task, "stream": True})
        reply = self._next()
        chunks = reply if isinstance(reply, list) else [reply]
        for chunk in chunks:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk

    async def analyze_image(self, image_base64, mime_type="image/jpeg"):
        self.calls.append({"image": image_base64, "mime_type": mime_type, "task": ModelTask.VISION})
        return Completion(text=self._next(), model=self.model)

    async def aclose(self) -> None:
        return None


class FakeVoice:
    """Stand-in for VoiceClient that records what it was asked to do."""

    def __init__(self) -> None:
        self.transcriptions: list[dict] = []
        self.spoken: list[str] = []
        self.transcript = Transcription(text="What is osmosis?", duration=1.5)
        self.audio = b"ID3\x04fake-mp3"

    async def transcribe(self, filename, data, content_type):
        self.transcriptions.append({"filename": filename, "data": data, "content_type": content_type})
        return self.transcript

    async def speak(self, text):
        self.spoken.append(text)
        return self.audio

    async def aclose(self) -> None:
        return None


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def voice() -> FakeVoice:
    return FakeVoice()


@pytest.fixture
def app(settings, storage, gateway, voice):
    return create_app(settings, storage=storage, gateway=gateway, voice_client=voice)


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints (session auth mode)."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
async def token_client(storage, gateway) -> AsyncGenerator[AsyncClient, None]:
    """Client against an app running in token auth mode."""
    app = create_app(make_settings(auth_mode="token"), storage=storage, gateway=gateway)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


async def register(
    client: AsyncClient,
    username: str = "alice",
    password: str = "secret123",
    role: str = "student",
) -> dict:
    """Register (and thereby log in) a user; returns the AuthResponse body."""
    response = await client.post(
        "/api/register",
        json={
            "username": username,
            "email": f"{username}@example.com",
            "password": password,
            "role": role,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
async def user(client) -> dict:
    """A logged-in student; the session cookie lives in the client's jar."""
    return (await register(client))["user"]


@pytest.fixture
async def other_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Second, separately logged-in client against the same app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        await register(ac, username="mallory")
        yield ac
