"""Headless chat transcript — renders ChatMessage frames into a node tree.

The tree mirrors the browser widget's DOM: assistant messages, user echoes
and button grids are top-level nodes tagged with the same CSS classes.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel

from assistant_web.config import settings
from assistant_web.schemas.messages import (
    ASK_SPECIAL_KINDS,
    CHAT_MESSAGE_TYPES,
    DEFAULT_ICON,
    GRID_CLOSING_TYPES,
    AskSpecialMessage,
    ButtonMessage,
    ChatMessage,
    ChoiceMessage,
    CommandMessage,
    HypothesisMessage,
    LinkMessage,
    ParsedRequest,
    PictureMessage,
    RdlMessage,
    ResultMessage,
    TextMessage,
    bookkeeping,
)

logger = logging.getLogger(__name__)

# Second scroll catches images and layout that settle late
SCROLL_DELAY = 1.0

BUTTON_CLASSES = ("message-button", "message-choice", "message-yesno")


class TranscriptNode(BaseModel):
    classes: list[str]
    text: str = ""
    title: str | None = None
    href: str | None = None  # link target (rdl card, link button)
    src: str | None = None  # picture URL
    icon: str | None = None  # icon URL of assistant messages
    action: ParsedRequest | None = None  # command sent when clicked
    children: list[TranscriptNode] = []

    def has_class(self, cls: str) -> bool:
        return cls in self.classes


class InputBox(BaseModel):
    value: str = ""
    type: Literal["text", "password"] = "text"
    focused: bool = False
    cancel_visible: bool = False


class Transcript:
    """Applies ChatMessages to the transcript and the input box, in order."""

    def __init__(
        self,
        *,
        input_box: InputBox | None = None,
        thingpedia_url: str | None = None,
        scroll: Callable[[], None] | None = None,
        call_later: Callable[[float, Callable[[], None]], Any] | None = None,
    ) -> None:
        self.input = input_box or InputBox()
        self.nodes: list[TranscriptNode] = []
        self._thingpedia_url = thingpedia_url or settings.thingpedia_url
        self._scroll = scroll
        self._call_later = call_later
        self._grid: TranscriptNode | None = None

    # ── Queries ──────────────────────────────────────────────────────

    def find(self, cls: str) -> list[TranscriptNode]:
        """All nodes (including grid buttons) carrying a CSS class."""
        found: list[TranscriptNode] = []
        for node in self.nodes:
            if node.has_class(cls):
                found.append(node)
            found.extend(child for child in node.children if child.has_class(cls))
        return found

    @property
    def grid(self) -> TranscriptNode | None:
        """The button grid new choices/buttons go to, if one is open."""
        return self._grid

    # ── Rendering ────────────────────────────────────────────────────

    def render(self, message: ChatMessage) -> None:
        getattr(self, _HANDLERS[type(message)])(message)
        if message.type in GRID_CLOSING_TYPES:
            self._grid = None

    def _icon_url(self, icon: str | None) -> str:
        return f"{self._thingpedia_url}/api/devices/icon/{icon or DEFAULT_ICON}"

    def _assistant_message(self, node: TranscriptNode, icon: str | None) -> None:
        node.classes.append("from-almond")
        node.icon = self._icon_url(icon)
        self.nodes.append(node)
        self._maybe_scroll()

    def _get_grid(self) -> TranscriptNode:
        if self._grid is None:
            self._grid = TranscriptNode(classes=["message-container", "button-grid"])
            self.nodes.append(self._grid)
        return self._grid

    def _grid_button(self, node: TranscriptNode) -> None:
        self._get_grid().children.append(node)
        self._maybe_scroll()

    def _render_text(self, message: TextMessage) -> None:
        node = TranscriptNode(classes=["message", "message-text"], text=message.text)
        self._assistant_message(node, message.icon)

    def _render_result(self, message: ResultMessage) -> None:
        node = TranscriptNode(classes=["message", "message-text"], text=message.fallback)
        self._assistant_message(node, message.icon)

    def _render_picture(self, message: PictureMessage) -> None:
        node = TranscriptNode(classes=["message", "message-picture"], src=message.url)
        self._assistant_message(node, message.icon)

    def _render_rdl(self, message: RdlMessage) -> None:
        node = TranscriptNode(
            classes=["message", "message-rdl"],
            href=message.rdl.webCallback,
            title=message.rdl.displayTitle,
            text=message.rdl.displayText or "",
        )
        self._assistant_message(node, message.icon)

    def _render_choice(self, message: ChoiceMessage) -> None:
        self._grid_button(
            TranscriptNode(
                classes=["message", "message-choice"],
                text=message.title,
                action=ParsedRequest(json=bookkeeping("choice", str(message.idx))),
            )
        )

    def _render_button(self, message: ButtonMessage) -> None:
        self._grid_button(
            TranscriptNode(
                classes=["message", "message-button"],
                text=message.title,
                action=ParsedRequest(json=message.json_),
            )
        )

    def _render_link(self, message: LinkMessage) -> None:
        self._grid_button(
            TranscriptNode(classes=["message", "message-button"], text=message.title, href=message.url)
        )

    def _render_ask_special(self, message: AskSpecialMessage) -> None:
        if message.ask is not None and message.ask not in ASK_SPECIAL_KINDS:
            logger.debug("Unknown ask-special kind %r, treated as text", message.ask)
        self.input.type = "password" if message.ask == "password" else "text"
        self.input.cancel_visible = message.ask is not None
        if message.ask == "yesno":
            grid = self._get_grid()
            for title, special in (("Yes", "yes"), ("No", "no")):
                grid.children.append(
                    TranscriptNode(
                        classes=["message", "message-yesno"],
                        text=title,
                        action=ParsedRequest(json=bookkeeping("special", f"special:{special}")),
                    )
                )
            self._maybe_scroll()

    def _render_hypothesis(self, message: HypothesisMessage) -> None:
        self.input.value = message.hypothesis

    def _render_command(self, message: CommandMessage) -> None:
        self.input.value = ""
        self.collapse_buttons()
        self.nodes.append(TranscriptNode(classes=["message", "message-text", "from-user"], text=message.text))

    def collapse_buttons(self) -> None:
        """Drop every pending button (and the grids left empty) and close the grid."""
        kept: list[TranscriptNode] = []
        for node in self.nodes:
            if node.has_class("button-grid"):
                node.children = [
                    child for child in node.children
                    if not any(child.has_class(cls) for cls in BUTTON_CLASSES)
                ]
                if not node.children:
                    continue
            kept.append(node)
        self.nodes = kept
        self._grid = None

    # ── Scrolling ────────────────────────────────────────────────────

    def _maybe_scroll(self) -> None:
        if self._scroll is None or not self.input.focused:
            return
        self._scroll()
        if self._call_later is not None:
            self._call_later(SCROLL_DELAY, self._scroll)
        else:
            asyncio.get_running_loop().call_later(SCROLL_DELAY, self._scroll)

    # ── Actions ──────────────────────────────────────────────────────

    @staticmethod
    def activate(node: TranscriptNode) -> ParsedRequest | None:
        """Command a click on ``node`` submits; None for plain links."""
        return node.action


_HANDLERS: dict[type[BaseModel], str] = {
    TextMessage: "_render_text",
    PictureMessage: "_render_picture",
    RdlMessage: "_render_rdl",
    ResultMessage: "_render_result",
    ChoiceMessage: "_render_choice",
    ButtonMessage: "_render_button",
    LinkMessage: "_render_link",
    AskSpecialMessage: "_render_ask_special",
    HypothesisMessage: "_render_hypothesis",
    CommandMessage: "_render_command",
}

_missing = set(CHAT_MESSAGE_TYPES) - set(_HANDLERS)
if _missing:
    raise TypeError(f"Transcript has no renderer for {sorted(t.__name__ for t in _missing)}")
