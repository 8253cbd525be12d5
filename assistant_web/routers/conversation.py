"""Conversation endpoints — the chat WebSocket and one-shot /converse."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from assistant_web.adapters.base import Engine
from assistant_web.auth import websocket_user
from assistant_web.schemas.converse import ConverseRequest, ConverseResponse
from assistant_web.schemas.messages import parse_user_command
from assistant_web.services import conversation_service
from assistant_web.services.engine_manager import engine_manager, get_engine

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/conversation")
async def conversation_ws(ws: WebSocket):
    """Chat relay.

    Server sends ChatMessage frames ({"type": "text|picture|rdl|...", ...}),
    starting with the conversation history (or a welcome message).
    Client sends UserCommand frames ({"type": "command|parsed|tt", ...}).
    """
    user = websocket_user(ws)
    if user is None:
        await ws.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await ws.accept()
    engine = engine_manager.get_engine(user)
    conversation = await engine.assistant.open_conversation(
        conversation_service.MAIN_CONVERSATION
    )
    logger.info("Conversation WS connected for %s (%s)", user, conversation.id)

    async def send(message: dict[str, Any]) -> None:
        await ws.send_json(message)

    await conversation.add_output(send)
    try:
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
            raw = message.get("text")
            if raw is None:
                logger.warning("Ignoring binary frame from %s", user)
                continue
            try:
                command = parse_user_command(raw)
            except ValidationError as exc:
                logger.warning("Ignoring malformed frame from %s: %s", user, exc.errors()[:1])
                continue
            await conversation_service.dispatch(conversation, command)
    except WebSocketDisconnect:
        logger.info("Conversation WS disconnected for %s", user)
    finally:
        await conversation.remove_output(send)


@router.post("/converse", response_model=ConverseResponse)
async def converse(body: ConverseRequest, engine: Engine = Depends(get_engine)):
    return await conversation_service.converse(engine, body.command)
