"""Conversation wire protocol — JSON frames exchanged over /api/conversation.

Server → client frames form the ``ChatMessage`` union, client → server
frames the ``UserCommand`` union; both are discriminated on ``type``.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union, get_args

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter

# Ask-special kinds the engine is known to emit; others are passed through.
ASK_SPECIAL_KINDS = (
    "yesno",
    "location",
    "number",
    "phone_number",
    "email_address",
    "date",
    "time",
    "raw_string",
    "password",
    "picture",
    "command",
    "choice",
    "generic",
)

DEFAULT_ICON = "org.thingpedia.builtin.thingengine.builtin"


class _Frame(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | None = None


# ── Server → client ──────────────────────────────────────────────────


class TextMessage(_Frame):
    type: Literal["text"] = "text"
    text: str
    icon: str | None = None


class PictureMessage(_Frame):
    type: Literal["picture"] = "picture"
    url: str
    icon: str | None = None


class Rdl(BaseModel):
    model_config = ConfigDict(extra="ignore")

    webCallback: str
    displayTitle: str = ""
    displayText: str | None = None


class RdlMessage(_Frame):
    type: Literal["rdl"] = "rdl"
    rdl: Rdl
    icon: str | None = None


class ResultMessage(_Frame):
    type: Literal["result"] = "result"
    fallback: str
    icon: str | None = None


class ChoiceMessage(_Frame):
    type: Literal["choice"] = "choice"
    idx: int
    title: str


class ButtonMessage(_Frame):
    type: Literal["button"] = "button"
    title: str
    json_: Any = Field(alias="json")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class LinkMessage(_Frame):
    type: Literal["link"] = "link"
    title: str
    url: str


class AskSpecialMessage(_Frame):
    type: Literal["askSpecial"] = "askSpecial"
    ask: str | None = None


class HypothesisMessage(_Frame):
    type: Literal["hypothesis"] = "hypothesis"
    hypothesis: str


class CommandMessage(_Frame):
    type: Literal["command"] = "command"
    # /api/converse replies carry the echo under "command"
    text: str = Field(validation_alias=AliasChoices("text", "command"))


ChatMessage = Annotated[
    Union[
        TextMessage,
        PictureMessage,
        RdlMessage,
        ResultMessage,
        ChoiceMessage,
        ButtonMessage,
        LinkMessage,
        AskSpecialMessage,
        HypothesisMessage,
        CommandMessage,
    ],
    Field(discriminator="type"),
]

CHAT_MESSAGE_TYPES: tuple[type[BaseModel], ...] = get_args(get_args(ChatMessage)[0])

# Message kinds after which the current button grid is closed
GRID_CLOSING_TYPES = frozenset({"text", "picture", "rdl", "result", "command"})


# ── Client → server ──────────────────────────────────────────────────


class CommandRequest(BaseModel):
    type: Literal["command"] = "command"
    text: str


class ParsedRequest(BaseModel):
    type: Literal["parsed"] = "parsed"
    json_: Any = Field(alias="json")

    model_config = ConfigDict(populate_by_name=True)


class ThingTalkRequest(BaseModel):
    type: Literal["tt"] = "tt"
    code: str


UserCommand = Annotated[
    Union[CommandRequest, ParsedRequest, ThingTalkRequest],
    Field(discriminator="type"),
]

_chat_message_adapter: TypeAdapter[ChatMessage] = TypeAdapter(ChatMessage)
_user_command_adapter: TypeAdapter[UserCommand] = TypeAdapter(UserCommand)


def parse_chat_message(raw: str | bytes | dict) -> ChatMessage:
    """Decode one server frame. Raises ``pydantic.ValidationError`` on bad input."""
    if isinstance(raw, dict):
        return _chat_message_adapter.validate_python(raw)
    return _chat_message_adapter.validate_json(raw)


def parse_user_command(raw: str | bytes | dict) -> UserCommand:
    """Decode one client frame. Raises ``pydantic.ValidationError`` on bad input."""
    if isinstance(raw, dict):
        return _user_command_adapter.validate_python(raw)
    return _user_command_adapter.validate_json(raw)


def dump_frame(frame: BaseModel) -> dict[str, Any]:
    """Serialize a frame the way it travels on the wire (aliases, no nulls except ask)."""
    data = frame.model_dump(by_alias=True, exclude_none=True)
    if isinstance(frame, AskSpecialMessage):
        data["ask"] = frame.ask
    return data


def bookkeeping(kind: str, value: str) -> dict[str, Any]:
    """Build a synthetic bookkeeping command, e.g. a choice or special."""
    return {"code": ["bookkeeping", kind, value], "entities": {}}
