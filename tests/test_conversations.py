"""Conversations, tutor replies and SSE streaming."""

import pytest
from httpx import ASGITransport, AsyncClient
from sse_starlette.sse import AppStatus

from eduvoice.errors import GatewayError
from eduvoice.main import create_app
from eduvoice.services.chat_service import FALLBACK_REPLY

from tests.conftest import make_settings, register


@pytest.fixture(autouse=True)
def reset_sse_exit_event():
    # The exit event is created lazily and bound to the loop of the first streamed response
    AppStatus.should_exit_event = None
    yield
    AppStatus.should_exit_event = None


async def _conversation(client, title="Biology") -> dict:
    response = await client.post("/api/conversations", json={"title": title})
    assert response.status_code == 201
    return response.json()


async def _material(client, filename: str, text: str) -> dict:
    response = await client.post(
        "/api/materials/upload",
        files={"file": (filename, text.encode(), "text/plain")},
    )
    assert response.status_code == 201
    return response.json()


async def test_create_and_list_conversations(client, user):
    first = await _conversation(client, "First")
    untitled = (await client.post("/api/conversations", json={})).json()
    assert untitled["title"] == "New Conversation"

    listed = (await client.get("/api/conversations")).json()
    assert listed["total"] == 2
    assert {c["id"] for c in listed["conversations"]} == {first["id"], untitled["id"]}


async def test_send_message_stores_both_turns(client, user, gateway):
    conversation = await _conversation(client)
    gateway.push("Cells are the basic unit of life.")

    response = await client.post(
        f"/api/conversations/{conversation['id']}/messages",
        json={"content": "What is a cell?"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["user_message"]["role"] == "user"
    assert body["user_message"]["content"] == "What is a cell?"
    assert body["assistant_message"]["role"] == "assistant"
    assert body["assistant_message"]["content"] == "Cells are the basic unit of life."

    messages = (await client.get(f"/api/conversations/{conversation['id']}/messages")).json()["messages"]
    assert [m["role"] for m in messages] == ["user", "assistant"]

    # Listing is idempotent and stays in ascending order
    again = (await client.get(f"/api/conversations/{conversation['id']}/messages")).json()["messages"]
    assert [m["id"] for m in again] == [m["id"] for m in messages]


async def test_history_is_sent_to_the_model(client, user, gateway):
    conversation = await _conversation(client)
    url = f"/api/conversations/{conversation['id']}/messages"
    gateway.push("first answer", "second answer")
    await client.post(url, json={"content": "first question"})
    await client.post(url, json={"content": "second question"})

    messages = gateway.calls[-1]["messages"]
    assert messages[0]["role"] == "system"
    assert [m["content"] for m in messages[1:]] == [
        "first question",
        "first answer",
        "second question",
    ]


async def test_only_owned_materials_feed_the_context(client, user, other_client, gateway):
    mine = await _material(client, "mine.txt", "Krebs cycle details")
    theirs = await _material(other_client, "theirs.txt", "Top secret notes")
    conversation = await _conversation(client)

    response = await client.post(
        f"/api/conversations/{conversation['id']}/messages",
        json={"content": "Explain", "material_ids": [mine["id"], theirs["id"]]},
    )
    assert response.status_code == 201
    assert response.json()["user_message"]["material_ids"] == [mine["id"], theirs["id"]]

    system_prompt = gateway.calls[-1]["messages"][0]["content"]
    assert "EduVoice AI" in system_prompt
    assert "Krebs cycle details" in system_prompt
    assert "Top secret notes" not in system_prompt


async def test_material_context_is_truncated(storage, gateway):
    app = create_app(
        make_settings(material_context_max_chars=10),
        storage=storage,
        gateway=gateway,
    )
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        await register(client)
        material = await _material(client, "long.txt", "0123456789ABCDEFGHIJ")
        conversation = await _conversation(client)
        await client.post(
            f"/api/conversations/{conversation['id']}/messages",
            json={"content": "Summarise", "material_ids": [material["id"]]},
        )

    system_prompt = gateway.calls[-1]["messages"][0]["content"]
    assert "0123456789" in system_prompt
    assert "ABCDEFGHIJ" not in system_prompt
    assert "content truncated" in system_prompt


async def test_gateway_failure_keeps_user_message(storage, gateway):
    app = create_app(make_settings(environment="production"), storage=storage, gateway=gateway)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="https://test") as client:
        await register(client)
        conversation = await _conversation(client)
        gateway.push(GatewayError("upstream exploded", status_code=502, body="bad gateway"))

        response = await client.post(
            f"/api/conversations/{conversation['id']}/messages",
            json={"content": "Hello?"},
        )
        assert response.status_code == 500
        assert response.json() == {"detail": "AI service request failed."}

        messages = (await client.get(f"/api/conversations/{conversation['id']}/messages")).json()["messages"]
        assert [m["content"] for m in messages] == ["Hello?"]


async def test_empty_message_is_400(client, user):
    conversation = await _conversation(client)
    response = await client.post(
        f"/api/conversations/{conversation['id']}/messages",
        json={"content": ""},
    )
    assert response.status_code == 400


async def test_stream_message(client, user, gateway):
    conversation = await _conversation(client)
    gateway.push(["Photo", "synthesis"])

    response = await client.post(
        f"/api/conversations/{conversation['id']}/messages/stream",
        json={"content": "Define photosynthesis"},
    )
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert "event: message" in response.text
    assert "data: Photo" in response.text
    assert "data: synthesis" in response.text
    assert "event: done" in response.text

    messages = (await client.get(f"/api/conversations/{conversation['id']}/messages")).json()["messages"]
    assert [m["content"] for m in messages] == ["Define photosynthesis", "Photosynthesis"]


async def test_stream_failure_emits_error_event(client, user, gateway):
    conversation = await _conversation(client)
    gateway.push(["partial", GatewayError("stream dropped")])

    response = await client.post(
        f"/api/conversations/{conversation['id']}/messages/stream",
        json={"content": "Go"},
    )
    assert "event: error" in response.text
    assert "event: done" not in response.text

    messages = (await client.get(f"/api/conversations/{conversation['id']}/messages")).json()["messages"]
    assert [m["role"] for m in messages] == ["user"]


async def test_foreign_conversation_is_404(client, user, other_client):
    conversation = await _conversation(client)
    base = f"/api/conversations/{conversation['id']}"

    assert (await other_client.get(f"{base}/messages")).status_code == 404
    assert (await other_client.post(f"{base}/messages", json={"content": "hi"})).status_code == 404
    assert (await other_client.delete(base)).status_code == 404


async def test_delete_conversation_removes_messages(client, user, storage):
    conversation = await _conversation(client)
    await client.post(f"/api/conversations/{conversation['id']}/messages", json={"content": "hi"})
    assert len(storage.messages) == 2

    assert (await client.delete(f"/api/conversations/{conversation['id']}")).status_code == 204
    assert storage.messages == {}
    assert (await client.get(f"/api/conversations/{conversation['id']}/messages")).status_code == 404


async def test_message_content_is_returned_verbatim(client, user, gateway):
    conversation = await _conversation(client)
    gateway.push("    indented code\n")

    body = (
        await client.post(
            f"/api/conversations/{conversation['id']}/messages",
            json={"content": "  hi  "},
        )
    ).json()
    assert body["user_message"]["content"] == "  hi  "
    assert body["assistant_message"]["content"] == "    indented code\n"

    messages = (await client.get(f"/api/conversations/{conversation['id']}/messages")).json()["messages"]
    assert [m["content"] for m in messages] == ["  hi  ", "    indented code\n"]


async def test_empty_stream_stores_fallback_reply(client, user, gateway):
    conversation = await _conversation(client)
    gateway.push([])

    response = await client.post(
        f"/api/conversations/{conversation['id']}/messages/stream",
        json={"content": "Anything?"},
    )
    assert f"data: {FALLBACK_REPLY}" in response.text
    assert "event: done" in response.text

    messages = (await client.get(f"/api/conversations/{conversation['id']}/messages")).json()["messages"]
    assert [m["content"] for m in messages] == ["Anything?", FALLBACK_REPLY]
