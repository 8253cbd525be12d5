"""Schemas for the one-shot /api/converse endpoint."""

from typing import Any

from pydantic import BaseModel

from assistant_web.schemas.messages import UserCommand


class ConverseRequest(BaseModel):
    command: UserCommand


class ConverseResponse(BaseModel):
    askSpecial: str | None = None
    messages: list[dict[str, Any]] = []
