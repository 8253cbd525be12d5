"""Helpers for the end-to-end tests against a running assistant-web server."""

import json
import os
from typing import Any

import httpx

BASE_URL = os.environ.get("ASSISTANT_WEB_TEST_SERVER", "")
USERNAME = os.environ.get("ASSISTANT_WEB_TEST_USER", "bob")
PASSWORD = os.environ.get("ASSISTANT_WEB_TEST_PASSWORD", "12345678")


def ws_url(path: str) -> str:
    base = BASE_URL.rstrip("/")
    if base.startswith("https://"):
        return "wss://" + base[len("https://"):] + path
    return "ws://" + base[len("http://"):] + path


async def login(client: httpx.AsyncClient) -> str:
    resp = await client.post("/user/token", json={"username": USERNAME, "password": PASSWORD})
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]


async def request(
    client: httpx.AsyncClient,
    method: str,
    path: str,
    *,
    token: str | None = None,
    **kwargs: Any,
) -> httpx.Response:
    headers = kwargs.pop("headers", {})
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return await client.request(method, path, headers=headers, **kwargs)


async def assert_http_error(response: httpx.Response, status: int, message: str | None = None) -> None:
    """Check an error response, including the ``{"error": ...}`` body when one is expected."""
    assert response.status_code == status, f"expected {status}, got {response.status_code}: {response.text}"
    if message is not None:
        assert response.json() == {"error": message}


async def receive_until(ws, predicate, limit: int = 50) -> list[dict]:
    """Read frames until one satisfies ``predicate``; returns everything read."""
    frames = []
    for _ in range(limit):
        frame = json.loads(await ws.recv())
        frames.append(frame)
        if predicate(frame):
            return frames
    raise AssertionError(f"no matching frame in {frames}")
