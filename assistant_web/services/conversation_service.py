"""Conversation service — relay user commands to the engine and collect replies."""

from __future__ import annotations

import logging
from typing import Any

from assistant_web.adapters.base import Conversation, Engine
from assistant_web.schemas.converse import ConverseResponse
from assistant_web.schemas.messages import (
    CommandRequest,
    ParsedRequest,
    ThingTalkRequest,
    UserCommand,
)

logger = logging.getLogger(__name__)

MAIN_CONVERSATION = "main"
API_CONVERSATION = "api"


async def dispatch(conversation: Conversation, command: UserCommand) -> None:
    """Hand one decoded client command to the conversation."""
    if isinstance(command, CommandRequest):
        await conversation.handle_command(command.text)
    elif isinstance(command, ParsedRequest):
        await conversation.handle_parsed(command.json_)
    elif isinstance(command, ThingTalkRequest):
        await conversation.handle_thingtalk(command.code)
    else:
        raise TypeError(f"Unsupported command: {command!r}")


class _Collector:
    """Output delegate gathering the replies to a single command."""

    def __init__(self) -> None:
        self.ask_special: str | None = None
        self.messages: list[dict[str, Any]] = []
        self.active = False

    async def __call__(self, message: dict[str, Any]) -> None:
        if not self.active:
            return
        if message.get("type") == "askSpecial":
            self.ask_special = message.get("ask")
            return
        if message.get("type") == "command":
            message = {**message, "command": message.get("text", "")}
            message.pop("text", None)
        self.messages.append(message)


async def converse(engine: Engine, command: UserCommand) -> ConverseResponse:
    """Run one command on the user's API conversation and return what it produced."""
    conversation = await engine.assistant.open_conversation(API_CONVERSATION)
    collector = _Collector()
    # history replay on attach is not part of the answer
    await conversation.add_output(collector)
    collector.active = True
    try:
        await dispatch(conversation, command)
    finally:
        await conversation.remove_output(collector)
    return ConverseResponse(askSpecial=collector.ask_special, messages=collector.messages)
