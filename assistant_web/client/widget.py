"""Chat widget controller — ties the session, transcript and command history together."""

from __future__ import annotations

import logging

from pydantic import BaseModel

from assistant_web.client.history import CommandHistory
from assistant_web.client.session import ConnectionState, ConversationSession
from assistant_web.client.transcript import InputBox, Transcript, TranscriptNode
from assistant_web.schemas.messages import ChatMessage

logger = logging.getLogger(__name__)


class Feedback(BaseModel):
    """What the input form shows: the disconnected warning or the spinner."""

    disconnected: bool = True
    thinking: bool = False


class ChatWidget:
    def __init__(self, session: ConversationSession, transcript: Transcript | None = None) -> None:
        self.session = session
        self.transcript = transcript or Transcript()
        self.history = CommandHistory()
        self.feedback = Feedback()
        session.on_message = self.on_message
        session.on_feedback = self.update_feedback

    @property
    def input(self) -> InputBox:
        return self.transcript.input

    def update_feedback(self, state: ConnectionState, thinking: bool) -> None:
        if state is not ConnectionState.OPEN:
            self.feedback = Feedback(disconnected=True, thinking=False)
        else:
            self.feedback = Feedback(disconnected=False, thinking=thinking)

    def on_message(self, message: ChatMessage) -> None:
        self.transcript.render(message)

    # ── User actions ─────────────────────────────────────────────────

    async def submit(self) -> None:
        """Send the input box content as a command."""
        text = self.input.value
        self.history.commit(text)
        self.input.value = ""
        await self.session.send_command(text)

    def key_up(self) -> None:
        self.input.value = self.history.up(self.input.value)

    def key_down(self) -> None:
        self.input.value = self.history.down(self.input.value)

    async def cancel(self) -> None:
        await self.session.send_special("nevermind")

    async def click(self, node: TranscriptNode) -> None:
        """Activate a grid button; links open out-of-band and send nothing."""
        command = self.transcript.activate(node)
        if command is None:
            logger.debug("Link %s opened, nothing to send", node.href)
            return
        await self.session.send_parsed(command.json_)
