"""Shell-style command history for the chat input box."""

from __future__ import annotations


class CommandHistory:
    """Two-stack history browser.

    ``up`` holds older commands (top = most recent), ``down`` holds the
    entries the user has scrolled past. The entry currently shown in the
    input box lives in neither stack until the user moves away from it or
    submits.
    """

    def __init__(self) -> None:
        self._up: list[str] = []
        self._down: list[str] = []
        self._current: str | None = None

    @property
    def entries(self) -> list[str]:
        """Full history, oldest first."""
        current = [self._current] if self._current else []
        return self._up + current + self._down[::-1]

    def up(self, current_input: str) -> str:
        """Move to the previous command; returns the new input box content."""
        if not self._up:
            return current_input
        self._current = self._up.pop()
        if current_input:
            self._down.append(current_input)
        return self._current

    def down(self, current_input: str) -> str:
        """Move to the next command; returns the new input box content."""
        if not self._down:
            return current_input
        self._current = self._down.pop()
        if current_input:
            self._up.append(current_input)
        return self._current

    def commit(self, text: str) -> None:
        """Record a submitted command and rewind to the end of the history."""
        if self._current:
            self._up.append(self._current)
            self._current = None
        if self._down:
            self._up.extend(reversed(self._down))
            self._down = []
        self._up.append(text)
