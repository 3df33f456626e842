import pytest

from cadence.domain.errors import SessionCorruptError
from cadence.domain.models import SavedSession
from cadence.infrastructure.adapters.json_session import JsonFileSessionStore


@pytest.fixture
def session_file(tmp_path):
    return tmp_path / "state" / "session.json"


@pytest.mark.asyncio
async def test_missing_file_is_no_session(session_file):
    assert await JsonFileSessionStore(session_file).get() is None


@pytest.mark.asyncio
async def test_set_then_get(session_file, now):
    store = JsonFileSessionStore(session_file)
    session = SavedSession(item_ids=["a", "b"], cursor=1, timestamp=now)

    await store.set(session)

    assert session_file.exists()
    assert not session_file.with_suffix(".json.tmp").exists()
    assert await JsonFileSessionStore(session_file).get() == session


@pytest.mark.asyncio
async def test_clear_is_idempotent(session_file, now):
    store = JsonFileSessionStore(session_file)
    await store.set(SavedSession(item_ids=["a"], cursor=0, timestamp=now))

    await store.clear()
    await store.clear()

    assert await store.get() is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "blob",
    [
        "not json",
        '{"item_ids": ["a"], "cursor": -1, "timestamp": "2026-03-10T12:00:00+00:00"}',
        '{"cursor": 0}',
    ],
)
async def test_corrupt_blob(session_file, blob):
    session_file.parent.mkdir(parents=True)
    session_file.write_text(blob)

    with pytest.raises(SessionCorruptError):
        await JsonFileSessionStore(session_file).get()
