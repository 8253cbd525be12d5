"""Recording service — transcript recording operations on the user's conversation.

Each operation maps (engine, validated input) to a result or raises a typed
error from ``assistant_web.errors``. Operations on the same conversation are
serialized; the engine is not assumed to do it.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from pathlib import Path

from assistant_web.adapters.base import Conversation, Engine
from assistant_web.errors import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)

NO_CONVERSATION = "No conversation found"
VOTES = ("up", "down")

_locks: weakref.WeakKeyDictionary[Conversation, asyncio.Lock] = weakref.WeakKeyDictionary()


def _lock(conversation: Conversation) -> asyncio.Lock:
    lock = _locks.get(conversation)
    if lock is None:
        lock = _locks[conversation] = asyncio.Lock()
    return lock


async def get_conversation(engine: Engine) -> Conversation:
    conversation = await engine.assistant.get_conversation()
    if conversation is None:
        raise NotFoundError(NO_CONVERSATION)
    return conversation


async def start(engine: Engine) -> None:
    conversation = await get_conversation(engine)
    async with _lock(conversation):
        await conversation.start_recording()


async def stop(engine: Engine) -> None:
    conversation = await get_conversation(engine)
    async with _lock(conversation):
        await conversation.end_recording()


async def status(engine: Engine) -> str:
    conversation = await get_conversation(engine)
    return "on" if conversation.in_recording_mode else "off"


async def vote(engine: Engine, value: str) -> None:
    if value not in VOTES:
        raise BadRequestError("Invalid voting option")
    conversation = await get_conversation(engine)
    async with _lock(conversation):
        await conversation.vote_last(value)


async def comment(engine: Engine, text: str | None) -> None:
    if not text:
        raise BadRequestError("Missing comment")
    conversation = await get_conversation(engine)
    async with _lock(conversation):
        await conversation.comment_last(text)


async def save(engine: Engine) -> None:
    conversation = await get_conversation(engine)
    async with _lock(conversation):
        await conversation.save_log()


async def get_log(engine: Engine) -> tuple[Path, str]:
    """Return (path, download file name) of the saved transcript."""
    conversation = await get_conversation(engine)
    path = conversation.log
    if path is None or not await asyncio.to_thread(Path(path).is_file):
        raise NotFoundError(NO_CONVERSATION)
    return Path(path), f"log-{conversation.id}.txt"
