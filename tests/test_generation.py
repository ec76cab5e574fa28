"""Structured output parsing and material context building."""

from types import SimpleNamespace

import pytest

from eduvoice.errors import GenerationError
from eduvoice.services.chat_service import build_chat_messages, build_material_context
from eduvoice.services.generation import parse_json_object, strip_code_fences
from eduvoice.services.material_processor import MaterialProcessor, UnsupportedMaterialError

from tests.conftest import make_settings


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


def test_parse_json_object_errors():
    assert parse_json_object('{"nodes": []}') == {"nodes": []}
    with pytest.raises(GenerationError):
        parse_json_object("Sure! Here is your mind map")
    with pytest.raises(GenerationError):
        parse_json_object('["not", "an", "object"]')


def test_material_context_caps():
    settings = make_settings(material_context_max_chars=5, max_total_context_chars=50)
    materials = [
        SimpleNamespace(filename="a.txt", content="abcdefgh"),
        SimpleNamespace(filename="empty.txt", content=None),
        SimpleNamespace(filename="b.txt", content="12345"),
        SimpleNamespace(filename="c.txt", content="xyz"),
    ]
    context = build_material_context(materials, settings)

    assert context.startswith("a.txt: abcde\n\n[... content truncated ...]")
    assert "empty.txt" not in context
    assert "b.txt: 12345" not in context
    assert "additional materials omitted" in context


def test_history_window():
    history = [SimpleNamespace(role="user" if i % 2 == 0 else "assistant", content=str(i)) for i in range(6)]
    messages = build_chat_messages("system", history, "new", history_window=2)
    assert [m["content"] for m in messages] == ["system", "4", "5", "new"]

    assert len(build_chat_messages("system", history, "new", history_window=0)) == 2


def test_classify_mime_types():
    assert MaterialProcessor.classify("text/markdown").value == "text"
    assert MaterialProcessor.classify("application/pdf").value == "pdf"
    assert MaterialProcessor.classify("image/jpeg").value == "image"
    assert MaterialProcessor.classify("video/webm").value == "video"
    with pytest.raises(UnsupportedMaterialError):
        MaterialProcessor.classify("application/octet-stream")
    with pytest.raises(UnsupportedMaterialError):
        MaterialProcessor.classify(None)


def test_youtube_video_id():
    assert MaterialProcessor.youtube_video_id("https://www.youtube.com/watch?v=abc123XYZ_-") == "abc123XYZ_-"
    assert MaterialProcessor.youtube_video_id("https://youtube.com/watch?feature=share&v=abc123XYZ") == "abc123XYZ"
    assert MaterialProcessor.youtube_video_id("https://youtu.be/abc123XYZ?t=5") == "abc123XYZ"
    assert MaterialProcessor.youtube_video_id("https://www.youtube.com/shorts/abc123XYZ") == "abc123XYZ"
    assert MaterialProcessor.youtube_video_id("https://example.com/watch?v=abc123") is None
