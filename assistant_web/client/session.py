"""Conversation WebSocket client with automatic reconnection.

States: disconnected → connecting → open. The first frame received after a
connect marks the session open and resets the backoff. A drop while open
reconnects at once; a close or failed connect before reaching open waits
``base * 1.5**(n-1)`` seconds before the n-th retry. Retries never stop.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any
from urllib.parse import urljoin, urlsplit, urlunsplit

import websockets
from pydantic import BaseModel, ValidationError
from websockets.asyncio.client import connect as ws_connect

from assistant_web.schemas.messages import (
    ChatMessage,
    CommandRequest,
    ParsedRequest,
    ThingTalkRequest,
    bookkeeping,
    parse_chat_message,
)

logger = logging.getLogger(__name__)

BASE_RECONNECT_DELAY = 0.1  # seconds
BACKOFF_FACTOR = 1.5


class ConnectionState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"


class NotConnectedError(RuntimeError):
    """A command was sent while the session is not open."""


class ReconnectPolicy:
    """Exponential backoff between failed connection attempts (uncapped)."""

    def __init__(self, base: float = BASE_RECONNECT_DELAY, factor: float = BACKOFF_FACTOR) -> None:
        self.base = base
        self.factor = factor
        self.failures = 0

    def next_delay(self) -> float:
        delay = self.base * self.factor ** self.failures
        self.failures += 1
        return delay

    def reset(self) -> None:
        self.failures = 0


def conversation_url(page_url: str) -> str:
    """WebSocket URL of the conversation endpoint for a page, mirroring its scheme."""
    parts = urlsplit(urljoin(page_url, "api/conversation"))
    scheme = "wss" if parts.scheme == "https" else "ws"
    return urlunsplit(parts._replace(scheme=scheme, query="", fragment=""))


MessageHandler = Callable[[ChatMessage], Awaitable[None] | None]
FeedbackHandler = Callable[[ConnectionState, bool], None]


class ConversationSession:
    """One logical connection to /api/conversation."""

    def __init__(
        self,
        url: str,
        *,
        token: str | None = None,
        on_message: MessageHandler | None = None,
        on_feedback: FeedbackHandler | None = None,
        connect: Callable[..., Awaitable[Any]] = ws_connect,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        policy: ReconnectPolicy | None = None,
    ) -> None:
        self.url = url
        self.on_message = on_message
        self.on_feedback = on_feedback
        self.state = ConnectionState.DISCONNECTED
        self.thinking = False
        self._token = token
        self._connect = connect
        self._sleep = sleep
        self._policy = policy or ReconnectPolicy()
        self._ws: Any = None
        self._stopped = False

    @property
    def disconnected(self) -> bool:
        return self.state is not ConnectionState.OPEN

    # ── Connection lifecycle ─────────────────────────────────────────

    async def run(self) -> None:
        """Connect and keep reconnecting until ``stop`` is called."""
        self._stopped = False
        try:
            while not self._stopped:
                delay = await self._connect_once()
                if self._stopped:
                    break
                if delay:
                    logger.info("Reconnecting to %s in %.2fs", self.url, delay)
                    await self._sleep(delay)
        finally:
            self._set_state(ConnectionState.DISCONNECTED)

    async def stop(self) -> None:
        self._stopped = True
        if self._ws is not None:
            await self._ws.close()

    async def _connect_once(self) -> float:
        """Run one connection until it closes; returns the delay before the next attempt."""
        self._set_state(ConnectionState.CONNECTING)
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else None
        try:
            self._ws = await self._connect(self.url, additional_headers=headers)
        except (OSError, TimeoutError, websockets.InvalidHandshake) as exc:
            logger.warning("Connection to %s failed: %s", self.url, exc)
            return self._policy.next_delay()

        if self._stopped:
            await self._ws.close()
            self._ws = None
            return 0.0

        try:
            async for raw in self._ws:
                if self._stopped:
                    break
                if self.state is not ConnectionState.OPEN:
                    self._policy.reset()
                    self._set_state(ConnectionState.OPEN)
                    logger.info("Connected to %s", self.url)
                await self._receive(raw)
        except websockets.ConnectionClosed as exc:
            logger.debug("Connection closed: %s", exc)
        finally:
            self._ws = None

        was_open = self.state is ConnectionState.OPEN
        logger.error("Web socket closed")
        self._set_state(ConnectionState.DISCONNECTED)
        if was_open:
            return 0.0
        return self._policy.next_delay()

    async def _receive(self, raw: str | bytes) -> None:
        self.thinking = False
        text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
        try:
            message = parse_chat_message(text)
        except ValidationError as exc:
            logger.warning("Ignoring malformed frame %r: %s", text[:200], exc.errors()[:1])
        else:
            logger.debug("received %s", text)
            if self.on_message is not None:
                result = self.on_message(message)
                if inspect.isawaitable(result):
                    await result
        self._notify()

    def _set_state(self, state: ConnectionState) -> None:
        if state is self.state:
            return
        self.state = state
        if state is not ConnectionState.OPEN:
            self.thinking = False
        self._notify()

    def _notify(self) -> None:
        if self.on_feedback is not None:
            self.on_feedback(self.state, self.thinking)

    # ── Outgoing commands ────────────────────────────────────────────

    async def _send(self, frame: BaseModel) -> None:
        if self.state is not ConnectionState.OPEN or self._ws is None:
            raise NotConnectedError("Not connected to the conversation")
        self.thinking = True
        self._notify()
        await self._ws.send(frame.model_dump_json(by_alias=True))

    async def send_command(self, text: str) -> None:
        """Send free-form input; ``\\r <json|tokens>`` and ``\\t <code>`` are shortcuts."""
        if text.startswith("\\r"):
            await self._send_raw_parsed(text[3:])
        elif text.startswith("\\t"):
            await self.send_thingtalk(text[3:])
        else:
            await self._send(CommandRequest(text=text))

    async def _send_raw_parsed(self, line: str) -> None:
        line = line.strip()
        if line.startswith("{"):
            await self.send_parsed(json.loads(line))
        else:
            await self.send_parsed({"code": line.split(" "), "entities": {}})

    async def send_parsed(self, json_: Any) -> None:
        await self._send(ParsedRequest(json=json_))

    async def send_thingtalk(self, code: str) -> None:
        await self._send(ThingTalkRequest(code=code))

    async def send_choice(self, idx: int) -> None:
        await self.send_parsed(bookkeeping("choice", str(idx)))

    async def send_special(self, special: str) -> None:
        await self.send_parsed(bookkeeping("special", f"special:{special}"))
