"""Chat widget tests."""

import json

import pytest

from assistant_web.client.session import ConnectionState, ConversationSession, NotConnectedError
from assistant_web.client.transcript import Transcript
from assistant_web.client.widget import ChatWidget
from assistant_web.schemas.messages import parse_chat_message


class RecordingSocket:
    def __init__(self) -> None:
        self.sent: list[dict] = []

    async def send(self, data: str) -> None:
        self.sent.append(json.loads(data))


@pytest.fixture
def socket() -> RecordingSocket:
    return RecordingSocket()


@pytest.fixture
def widget(socket) -> ChatWidget:
    session = ConversationSession("ws://test/api/conversation")
    widget = ChatWidget(session, Transcript(thingpedia_url="https://thingpedia.example"))
    # pretend the first frame arrived
    session._ws = socket
    session._set_state(ConnectionState.OPEN)
    return widget


def test_feedback_tracks_connection():
    session = ConversationSession("ws://test/api/conversation")
    widget = ChatWidget(session)
    assert widget.feedback.disconnected is True

    session._set_state(ConnectionState.OPEN)
    assert widget.feedback.disconnected is False
    assert widget.feedback.thinking is False

    session._set_state(ConnectionState.CONNECTING)
    assert widget.feedback.disconnected is True


@pytest.mark.asyncio
async def test_submit_sends_and_records_history(widget: ChatWidget, socket: RecordingSocket):
    for text in ("a", "b", "c"):
        widget.input.value = text
        await widget.submit()
    assert widget.input.value == ""
    assert [frame["text"] for frame in socket.sent] == ["a", "b", "c"]
    assert widget.feedback.thinking is True

    seen = []
    for _ in range(3):
        widget.key_up()
        seen.append(widget.input.value)
    assert seen == ["c", "b", "a"]

    widget.key_down()
    assert widget.input.value == "b"
    widget.key_down()
    assert widget.input.value == "c"


@pytest.mark.asyncio
async def test_message_clears_thinking(widget: ChatWidget):
    widget.input.value = "hello"
    await widget.submit()
    assert widget.feedback.thinking is True

    await widget.session._receive('{"type": "text", "text": "hi"}')
    assert widget.feedback.thinking is False
    assert widget.transcript.nodes[-1].text == "hi"


@pytest.mark.asyncio
async def test_click_choice_and_link(widget: ChatWidget, socket: RecordingSocket):
    widget.on_message(parse_chat_message({"type": "choice", "idx": 1, "title": "second"}))
    widget.on_message(parse_chat_message({"type": "link", "title": "Docs", "url": "https://example.com"}))
    choice, link = widget.transcript.grid.children

    await widget.click(link)
    assert socket.sent == []

    await widget.click(choice)
    assert socket.sent == [
        {"type": "parsed", "json": {"code": ["bookkeeping", "choice", "1"], "entities": {}}}
    ]


@pytest.mark.asyncio
async def test_cancel(widget: ChatWidget, socket: RecordingSocket):
    await widget.cancel()
    assert socket.sent[0]["json"]["code"] == ["bookkeeping", "special", "special:nevermind"]


@pytest.mark.asyncio
async def test_submit_while_disconnected():
    widget = ChatWidget(ConversationSession("ws://test/api/conversation"))
    widget.input.value = "hello"
    with pytest.raises(NotConnectedError):
        await widget.submit()
    # the command still went into the history
    widget.key_up()
    assert widget.input.value == "hello"
