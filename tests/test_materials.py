"""Material upload, extraction and ownership."""

import base64

import pymupdf
from httpx import ASGITransport, AsyncClient

from eduvoice.main import create_app
from eduvoice.services.gateway import ModelTask

from tests.conftest import make_settings, register


async def test_upload_text_keeps_exact_content(client, user):
    text = "Photosynthesis converts light energy into chemical energy.\nChlorophyll absorbs light."
    response = await client.post(
        "/api/materials/upload",
        files={"file": ("notes.txt", text.encode("utf-8"), "text/plain")},
    )
    assert response.status_code == 201
    material = response.json()
    assert material["type"] == "text"
    assert material["filename"] == "notes.txt"
    assert material["content"] == text
    assert material["user_id"] == user["id"]
    assert material["file_metadata"]["size"] == len(text.encode("utf-8"))

    listed = (await client.get("/api/materials")).json()
    assert listed["total"] == 1
    assert listed["materials"][0]["id"] == material["id"]


async def test_upload_pdf_extracts_text(client, user):
    doc = pymupdf.open()
    page = doc.new_page()
    page.insert_text((72, 72), "Mitochondria are the powerhouse of the cell")
    pdf_bytes = doc.tobytes()
    doc.close()

    response = await client.post(
        "/api/materials/upload",
        files={"file": ("cells.pdf", pdf_bytes, "application/pdf")},
    )
    assert response.status_code == 201
    material = response.json()
    assert material["type"] == "pdf"
    assert "Mitochondria" in material["content"]
    assert material["file_metadata"]["page_count"] == 1


async def test_upload_broken_pdf_is_400(client, user):
    response = await client.post(
        "/api/materials/upload",
        files={"file": ("broken.pdf", b"not really a pdf", "application/pdf")},
    )
    assert response.status_code == 400


async def test_upload_image_uses_vision_model(client, user, gateway):
    gateway.push("A diagram of the water cycle.")
    response = await client.post(
        "/api/materials/upload",
        files={"file": ("cycle.png", b"\x89PNG fake image bytes", "image/png")},
    )
    assert response.status_code == 201
    assert response.json()["type"] == "image"
    assert response.json()["content"] == "A diagram of the water cycle."

    call = gateway.calls[-1]
    assert call["task"] == ModelTask.VISION
    assert call["mime_type"] == "image/png"
    assert base64.b64decode(call["image"]) == b"\x89PNG fake image bytes"


async def test_upload_video_gets_placeholder(client, user):
    response = await client.post(
        "/api/materials/upload",
        files={"file": ("lecture.mp4", b"\x00\x00\x00 ftyp", "video/mp4")},
    )
    assert response.status_code == 201
    assert response.json()["type"] == "video"
    assert "lecture.mp4" in response.json()["content"]


async def test_upload_rejects_unsupported_and_empty(client, user):
    unsupported = await client.post(
        "/api/materials/upload",
        files={"file": ("archive.zip", b"PK\x03\x04", "application/zip")},
    )
    assert unsupported.status_code == 400

    empty = await client.post(
        "/api/materials/upload",
        files={"file": ("empty.txt", b"", "text/plain")},
    )
    assert empty.status_code == 400


async def test_upload_too_large_is_413(storage, gateway):
    app = create_app(make_settings(max_upload_size_bytes=16), storage=storage, gateway=gateway)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        await register(client)
        response = await client.post(
            "/api/materials/upload",
            files={"file": ("big.txt", b"x" * 17, "text/plain")},
        )
        assert response.status_code == 413

        at_limit = await client.post(
            "/api/materials/upload",
            files={"file": ("ok.txt", b"x" * 16, "text/plain")},
        )
        assert at_limit.status_code == 201


async def test_upload_requires_auth(client):
    response = await client.post(
        "/api/materials/upload",
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 401


async def test_youtube_material(client, user):
    response = await client.post(
        "/api/materials/youtube",
        json={"url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=42"},
    )
    assert response.status_code == 201
    material = response.json()
    assert material["type"] == "youtube"
    assert material["filename"] == "YouTube Video - dQw4w9WgXcQ"
    assert material["file_metadata"]["video_id"] == "dQw4w9WgXcQ"

    short = await client.post("/api/materials/youtube", json={"url": "https://youtu.be/dQw4w9WgXcQ"})
    assert short.json()["filename"] == "YouTube Video - dQw4w9WgXcQ"

    invalid = await client.post("/api/materials/youtube", json={"url": "https://vimeo.com/123"})
    assert invalid.status_code == 400


async def test_analyze_image_is_stateless(client, user, gateway):
    gateway.push("E = mc^2")
    response = await client.post(
        "/api/materials/analyze",
        json={"image_base64": base64.b64encode(b"img").decode(), "mime_type": "image/jpeg"},
    )
    assert response.status_code == 200
    assert response.json() == {"analysis": "E = mc^2", "model": "fake/model"}
    assert (await client.get("/api/materials")).json()["total"] == 0


async def test_foreign_material_is_404(client, user, other_client):
    created = await client.post(
        "/api/materials/upload",
        files={"file": ("notes.txt", b"private", "text/plain")},
    )
    material_id = created.json()["id"]

    assert (await other_client.get(f"/api/materials/{material_id}")).status_code == 404
    assert (await other_client.delete(f"/api/materials/{material_id}")).status_code == 404
    assert (await other_client.get("/api/materials")).json()["total"] == 0

    assert (await client.delete(f"/api/materials/{material_id}")).status_code == 204
    assert (await client.get(f"/api/materials/{material_id}")).status_code == 404


async def test_text_round_trips_surrounding_whitespace(client, user):
    text = "  photosynthesis converts light to energy\n"
    created = (
        await client.post(
            "/api/materials/upload",
            files={"file": ("padded.txt", text.encode("utf-8"), "text/plain")},
        )
    ).json()
    assert created["content"] == text

    fetched = (await client.get(f"/api/materials/{created['id']}")).json()
    assert fetched["content"] == text
