"""Storage contract, run against the in-memory and the SQLite-backed database backend."""

from datetime import timedelta
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from eduvoice.db.models import utcnow
from eduvoice.db.session import create_all, create_session_factory
from eduvoice.storage import DatabaseStorage, DuplicateUserError, MemoryStorage


@pytest.fixture(params=["memory", "database"])
async def store(request, tmp_path):
    if request.param == "memory":
        yield MemoryStorage()
        return

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'eduvoice.db'}")
    await create_all(engine)
    backend = DatabaseStorage(engine, create_session_factory(engine))
    yield backend
    await backend.close()


async def _user(store, username="alice"):
    return await store.create_user(
        username=username,
        email=f"{username}@example.com",
        password_hash="scrypt$x",
    )


async def test_user_lookup(store):
    user = await _user(store)
    assert user.id is not None
    assert user.role == "student"
    assert user.plan == "free"
    assert (await store.get_user(user.id)).username == "alice"
    assert (await store.get_user_by_username("alice")).id == user.id
    assert (await store.get_user_by_email("alice@example.com")).id == user.id
    assert await store.get_user_by_username("nobody") is None
    assert await store.get_user(uuid4()) is None


async def test_duplicate_username_or_email_rejected(store):
    await _user(store)
    with pytest.raises(DuplicateUserError):
        await store.create_user(username="alice", email="other@example.com", password_hash="scrypt$x")
    with pytest.raises(DuplicateUserError):
        await store.create_user(username="alice2", email="alice@example.com", password_hash="scrypt$x")

    # A failed insert leaves the store usable
    assert (await _user(store, "bob")).username == "bob"


async def test_update_user(store):
    user = await _user(store)
    updated = await store.update_user(user.id, language="es", plan="student_pro")
    assert updated.language == "es"
    assert updated.plan == "student_pro"
    assert await store.update_user(uuid4(), language="es") is None


async def test_sessions_expire(store):
    user = await _user(store)
    live = await store.create_session(user.id, utcnow() + timedelta(hours=1))
    stale = await store.create_session(user.id, utcnow() - timedelta(seconds=1))

    assert (await store.get_session(live.id)).user_id == user.id
    assert await store.get_session(stale.id) is None
    assert await store.delete_session(live.id)
    assert await store.get_session(live.id) is None


async def test_materials_newest_first(store):
    user = await _user(store)
    first = await store.create_material(user_id=user.id, filename="a.txt", type="text", content="A")
    second = await store.create_material(
        user_id=user.id,
        filename="b.pdf",
        type="pdf",
        content="B",
        file_metadata={"page_count": 2},
    )

    listed = await store.get_materials_by_user(user.id)
    assert [m.id for m in listed] == [second.id, first.id]
    assert (await store.get_material(second.id)).file_metadata == {"page_count": 2}

    assert await store.delete_material(first.id)
    assert not await store.delete_material(first.id)
    assert await store.get_material(first.id) is None


async def test_messages_ascending_and_cascade(store):
    user = await _user(store)
    conversation = await store.create_conversation(user_id=user.id, title="Biology")
    ids = []
    for i in range(5):
        message = await store.create_message(
            conversation_id=conversation.id,
            role="user" if i % 2 == 0 else "assistant",
            content=f"m{i}",
            material_ids=["x"] if i == 0 else None,
        )
        ids.append(message.id)

    messages = await store.get_messages_by_conversation(conversation.id)
    assert [m.id for m in messages] == ids
    assert messages[0].material_ids == ["x"]
    # Reading again changes nothing
    assert [m.id for m in await store.get_messages_by_conversation(conversation.id)] == ids

    assert await store.delete_conversation(conversation.id)
    assert await store.get_conversation(conversation.id) is None
    assert await store.get_messages_by_conversation(conversation.id) == []
    assert await store.get_message(ids[0]) is None


async def test_mind_map_update_refreshes_updated_at(store):
    user = await _user(store)
    graph = {"nodes": [{"id": "1", "label": "Cells", "type": "central"}], "connections": []}
    mind_map = await store.create_mind_map(user_id=user.id, title="Cells", graph=graph)
    before = mind_map.updated_at

    updated = await store.update_mind_map(mind_map.id, title="Cell biology")
    assert updated.title == "Cell biology"
    assert updated.graph == graph
    assert updated.updated_at > before
    assert await store.update_mind_map(uuid4(), title="x") is None


async def test_quiz_delete_cascades_attempts(store):
    user = await _user(store)
    quiz = await store.create_quiz(
        user_id=user.id,
        title="Q",
        questions=[{"id": "q1", "question": "?", "correct_answer": "A"}],
    )
    assert quiz.difficulty == "medium"

    attempt = await store.create_quiz_attempt(
        user_id=user.id, quiz_id=quiz.id, answers={"q1": "B"}, score=0, total_questions=1
    )
    assert [a.id for a in await store.get_quiz_attempts_by_user(user.id)] == [attempt.id]
    assert [a.id for a in await store.get_quiz_attempts_by_quiz(quiz.id)] == [attempt.id]

    assert await store.delete_quiz(quiz.id)
    assert await store.get_quiz_attempt(attempt.id) is None
    assert await store.get_quiz_attempts_by_user(user.id) == []


async def test_lists_are_scoped_to_owner(store):
    alice = await _user(store, "alice")
    bob = await _user(store, "bob")
    await store.create_conversation(user_id=alice.id, title="mine")
    await store.create_quiz(user_id=bob.id, title="theirs", questions=[])

    assert len(await store.get_conversations_by_user(alice.id)) == 1
    assert await store.get_conversations_by_user(bob.id) == []
    assert await store.get_quizzes_by_user(alice.id) == []
