"""Recording control API tests."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient

from assistant_web.main import app
from assistant_web.services.engine_manager import engine_manager, get_engine

NOT_FOUND = {"error": "No conversation found"}


async def _open_conversation():
    engine = engine_manager.get_engine("bob")
    return await engine.assistant.open_conversation("main")


def _mock_engine(conversation) -> MagicMock:
    engine = MagicMock()
    engine.assistant.get_conversation = AsyncMock(return_value=conversation)
    app.dependency_overrides[get_engine] = lambda: engine
    return engine


# ── No conversation ──────────────────────────────────────────────────


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method,path",
    [
        ("POST", "/recording/start"),
        ("POST", "/recording/stop"),
        ("GET", "/recording/status"),
        ("POST", "/recording/vote/up"),
        ("POST", "/recording/save"),
        ("GET", "/recording/log"),
    ],
)
async def test_no_conversation(client: AsyncClient, method: str, path: str):
    resp = await client.request(method, path)
    assert resp.status_code == 404
    assert resp.json() == NOT_FOUND


@pytest.mark.asyncio
async def test_comment_no_conversation(client: AsyncClient):
    resp = await client.post("/recording/comment", json={"comment": "nice"})
    assert resp.status_code == 404
    assert resp.json() == NOT_FOUND


@pytest.mark.asyncio
async def test_requires_login(anon_client: AsyncClient):
    resp = await anon_client.post("/recording/start")
    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}

    resp = await anon_client.get(
        "/recording/status", headers={"Authorization": "Bearer not-a-token"}
    )
    assert resp.status_code == 401


# ── Start / stop / status ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_start_stop_status(client: AsyncClient):
    await _open_conversation()

    resp = await client.get("/recording/status")
    assert resp.status_code == 200
    assert resp.json() == {"status": "off"}

    resp = await client.post("/recording/start")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert (await client.get("/recording/status")).json() == {"status": "on"}

    resp = await client.post("/recording/stop")
    assert resp.json() == {"status": "ok"}
    assert (await client.get("/recording/status")).json() == {"status": "off"}


# ── Vote ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_vote_invalid_option(client: AsyncClient):
    await _open_conversation()
    resp = await client.post("/recording/vote/sideways")
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid voting option"}


@pytest.mark.asyncio
async def test_vote_invalid_option_wins_over_missing_conversation(client: AsyncClient):
    resp = await client.post("/recording/vote/sideways")
    assert resp.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("vote", ["up", "down"])
async def test_vote_forwarded(client: AsyncClient, vote: str):
    conversation = MagicMock()
    conversation.vote_last = AsyncMock()
    _mock_engine(conversation)

    resp = await client.post(f"/recording/vote/{vote}")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    conversation.vote_last.assert_awaited_once_with(vote)


# ── Comment ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_comment_missing(client: AsyncClient):
    await _open_conversation()
    resp = await client.post("/recording/comment", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing comment"}

    resp = await client.post("/recording/comment", json={"comment": ""})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_comment_forwarded(client: AsyncClient):
    conversation = MagicMock()
    conversation.comment_last = AsyncMock()
    _mock_engine(conversation)

    resp = await client.post("/recording/comment", json={"comment": "nice"})
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    conversation.comment_last.assert_awaited_once_with("nice")


# ── Save / log ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_log_before_save(client: AsyncClient):
    await _open_conversation()
    resp = await client.get("/recording/log")
    assert resp.status_code == 404
    assert resp.json() == NOT_FOUND


@pytest.mark.asyncio
async def test_record_save_and_download(client: AsyncClient):
    conversation = await _open_conversation()

    await client.post("/recording/start")
    await conversation.handle_command("hello")
    await client.post("/recording/vote/down")
    await client.post("/recording/comment", json={"comment": "should greet back"})

    resp = await client.post("/recording/save")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}

    resp = await client.get("/recording/log")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")
    assert resp.headers["content-disposition"] == 'attachment; filename="log-main.txt"'
    assert resp.content == Path(conversation.log).read_bytes()
    assert "U: hello" in resp.text
    assert "#! vote: down" in resp.text
    assert "#! comment: should greet back" in resp.text


@pytest.mark.asyncio
async def test_log_file_removed_after_save(client: AsyncClient, tmp_path):
    conversation = MagicMock()
    conversation.log = tmp_path / "log-main.txt"
    _mock_engine(conversation)

    resp = await client.get("/recording/log")
    assert resp.status_code == 404
    assert resp.json() == NOT_FOUND


@pytest.mark.asyncio
async def test_engine_errors_propagate(client: AsyncClient):
    conversation = MagicMock()
    conversation.save_log = AsyncMock(side_effect=RuntimeError("disk full"))
    _mock_engine(conversation)

    with pytest.raises(RuntimeError, match="disk full"):
        await client.post("/recording/save")
