"""Abstract interfaces of the conversational engine.

The web layer never owns dialogue state: it reaches a per-user engine and
calls these methods. Swap the local engine for a real one by implementing
this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

# Receives every outgoing ChatMessage as a wire dict
OutputDelegate = Callable[[dict[str, Any]], Awaitable[None]]


class Conversation(ABC):
    """One dialogue with one user, with optional transcript recording."""

    @property
    @abstractmethod
    def id(self) -> str:
        """Stable conversation identifier (used in log file names)."""

    @property
    @abstractmethod
    def in_recording_mode(self) -> bool:
        """Whether exchanges are currently being recorded."""

    @property
    @abstractmethod
    def log(self) -> Path | None:
        """Path of the saved transcript, None until ``save_log`` has run."""

    @property
    @abstractmethod
    def ask_special(self) -> str | None:
        """Kind of input the engine expects next, if any."""

    @abstractmethod
    async def start_recording(self) -> None: ...

    @abstractmethod
    async def end_recording(self) -> None: ...

    @abstractmethod
    async def vote_last(self, vote: str) -> None:
        """Mark the last recorded turn ``up`` or ``down``."""

    @abstractmethod
    async def comment_last(self, comment: str) -> None:
        """Attach a free-form comment to the last recorded turn."""

    @abstractmethod
    async def save_log(self) -> None:
        """Persist the recorded transcript and set ``log``."""

    @abstractmethod
    async def handle_command(self, text: str) -> None: ...

    @abstractmethod
    async def handle_parsed(self, json_: Any) -> None: ...

    @abstractmethod
    async def handle_thingtalk(self, code: str) -> None: ...

    @abstractmethod
    async def add_output(self, delegate: OutputDelegate) -> None:
        """Attach an output; the conversation replays its history to it."""

    @abstractmethod
    async def remove_output(self, delegate: OutputDelegate) -> None: ...


class Assistant(ABC):
    """Registry of a user's conversations."""

    @abstractmethod
    async def get_conversation(self, conversation_id: str | None = None) -> Conversation | None:
        """Return the conversation, or None if it was never opened."""

    @abstractmethod
    async def open_conversation(self, conversation_id: str) -> Conversation:
        """Return the conversation, creating it if needed."""


class Engine(ABC):
    """Per-user engine handle exposing the assistant."""

    @property
    @abstractmethod
    def assistant(self) -> Assistant: ...
