"""In-process engine — a minimal stand-in for the real assistant.

It speaks the full conversation protocol (message ids, history replay,
ask-special, command echoes) and implements transcript recording, but it
understands nothing: every command gets the same fallback reply.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel
from sqlalchemy import delete

from assistant_web.adapters.base import Assistant, Conversation, Engine, OutputDelegate
from assistant_web.config import settings
from assistant_web.database import async_session
from assistant_web.models.recording import RecordedTurn
from assistant_web.schemas.messages import (
    AskSpecialMessage,
    ButtonMessage,
    ChoiceMessage,
    CommandMessage,
    LinkMessage,
    PictureMessage,
    RdlMessage,
    ResultMessage,
    TextMessage,
    dump_frame,
)
from assistant_web.utils.transcript import render_transcript

logger = logging.getLogger(__name__)

MAIN_CONVERSATION = "main"

WELCOME = "Hello! I'm your virtual assistant. How can I help you?"
FALLBACK = "Sorry, I did not understand that. Can you rephrase it?"
NEVERMIND = "Sorry I couldn't help on that."
NO_PROGRAMS = "Sorry, I cannot run programs on this server."


class Turn(BaseModel):
    user: str
    assistant: list[str] = []
    vote: str | None = None
    comment: str | None = None


def _describe(message: BaseModel) -> str | None:
    """One transcript line for an assistant message, None if it is not recorded."""
    if isinstance(message, TextMessage):
        return message.text
    if isinstance(message, ResultMessage):
        return message.fallback
    if isinstance(message, PictureMessage):
        return f"picture: {message.url}"
    if isinstance(message, RdlMessage):
        return f"rdl: {message.rdl.displayTitle} {message.rdl.webCallback}"
    if isinstance(message, ChoiceMessage):
        return f"choice {message.idx}: {message.title}"
    if isinstance(message, ButtonMessage):
        return f"button: {message.title}"
    if isinstance(message, LinkMessage):
        return f"link: {message.title} {message.url}"
    return None


class LocalConversation(Conversation):
    def __init__(self, conversation_id: str, *, owner: str, log_dir: Path) -> None:
        self._id = conversation_id
        self._owner = owner
        self._log_dir = log_dir
        self._outputs: list[OutputDelegate] = []
        self._history: list[dict[str, Any]] = []
        self._next_id = 0
        self._started = False
        self._ask_special: str | None = None
        self._recording = False
        self._turns: list[Turn] = []
        self._log: Path | None = None

    # ── Properties ───────────────────────────────────────────────────

    @property
    def id(self) -> str:
        return self._id

    @property
    def in_recording_mode(self) -> bool:
        return self._recording

    @property
    def log(self) -> Path | None:
        return self._log

    @property
    def ask_special(self) -> str | None:
        return self._ask_special

    @property
    def turns(self) -> list[Turn]:
        return list(self._turns)

    # ── Recording ────────────────────────────────────────────────────

    async def start_recording(self) -> None:
        self._recording = True
        logger.info("Recording started for %s/%s", self._owner, self._id)

    async def end_recording(self) -> None:
        self._recording = False
        logger.info("Recording stopped for %s/%s", self._owner, self._id)

    async def vote_last(self, vote: str) -> None:
        if not self._turns:
            logger.debug("Vote on %s ignored: nothing recorded yet", self._id)
            return
        self._turns[-1].vote = vote

    async def comment_last(self, comment: str) -> None:
        if not self._turns:
            logger.debug("Comment on %s ignored: nothing recorded yet", self._id)
            return
        self._turns[-1].comment = comment

    async def save_log(self) -> None:
        async with async_session() as db:
            await db.execute(
                delete(RecordedTurn).where(
                    RecordedTurn.owner == self._owner,
                    RecordedTurn.conversation_id == self._id,
                )
            )
            db.add_all(
                RecordedTurn(
                    owner=self._owner,
                    conversation_id=self._id,
                    turn_index=idx,
                    user=turn.user,
                    assistant="\n".join(turn.assistant),
                    vote=turn.vote,
                    comment=turn.comment,
                )
                for idx, turn in enumerate(self._turns)
            )
            await db.commit()

        path = self._log_dir / f"log-{self._id}.txt"
        body = render_transcript(self._id, self._turns)
        await asyncio.to_thread(self._write_log, path, body)
        self._log = path
        logger.info("Saved %d turns of %s/%s to %s", len(self._turns), self._owner, self._id, path)

    @staticmethod
    def _write_log(path: Path, body: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(body, encoding="utf-8")

    # ── Outputs ──────────────────────────────────────────────────────

    async def add_output(self, delegate: OutputDelegate) -> None:
        self._outputs.append(delegate)
        if not self._started:
            self._started = True
            await self._send(TextMessage(text=WELCOME, icon=None))
            await self._set_ask_special(None)
            return
        for message in self._history:
            await delegate(message)
        await delegate(dump_frame(AskSpecialMessage(ask=self._ask_special)))

    async def remove_output(self, delegate: OutputDelegate) -> None:
        if delegate in self._outputs:
            self._outputs.remove(delegate)

    async def _broadcast(self, data: dict[str, Any]) -> None:
        for output in list(self._outputs):
            try:
                await output(data)
            except Exception:
                # one broken output never blocks the others
                logger.exception("Output of %s/%s failed, detaching it", self._owner, self._id)
                await self.remove_output(output)

    async def _send(self, message: BaseModel) -> None:
        data = dump_frame(message)
        data["id"] = self._next_id
        self._next_id += 1
        self._history.append(data)

        line = _describe(message)
        if line is not None and self._recording and self._turns:
            self._turns[-1].assistant.append(line)
        await self._broadcast(data)

    async def _set_ask_special(self, ask: str | None) -> None:
        self._ask_special = ask
        await self._broadcast(dump_frame(AskSpecialMessage(ask=ask)))

    # ── Commands ─────────────────────────────────────────────────────

    async def _exchange(self, echo: str, reply: str) -> None:
        if self._recording:
            self._turns.append(Turn(user=echo))
        await self._send(CommandMessage(text=echo))
        await self._send(TextMessage(text=reply, icon=None))
        await self._set_ask_special(None)

    async def handle_command(self, text: str) -> None:
        await self._exchange(text, FALLBACK)

    async def handle_parsed(self, json_: Any) -> None:
        code = json_.get("code", []) if isinstance(json_, dict) else []
        echo = "\\r " + json.dumps(json_)
        if code == ["bookkeeping", "special", "special:nevermind"]:
            await self._exchange(echo, NEVERMIND)
        else:
            await self._exchange(echo, FALLBACK)

    async def handle_thingtalk(self, code: str) -> None:
        await self._exchange("\\t " + code, NO_PROGRAMS)


class LocalAssistant(Assistant):
    def __init__(self, owner: str, *, log_dir: Path | None = None) -> None:
        self._owner = owner
        self._log_dir = log_dir or settings.log_dir / owner
        self._conversations: dict[str, LocalConversation] = {}

    async def get_conversation(self, conversation_id: str | None = None) -> Conversation | None:
        return self._conversations.get(conversation_id or MAIN_CONVERSATION)

    async def open_conversation(self, conversation_id: str) -> Conversation:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            conversation = LocalConversation(
                conversation_id, owner=self._owner, log_dir=self._log_dir
            )
            self._conversations[conversation_id] = conversation
            logger.info("Opened conversation %s for %s", conversation_id, self._owner)
        return conversation


class LocalEngine(Engine):
    def __init__(self, owner: str, *, log_dir: Path | None = None) -> None:
        self._assistant = LocalAssistant(owner, log_dir=log_dir)

    @property
    def assistant(self) -> LocalAssistant:
        return self._assistant
