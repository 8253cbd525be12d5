"""Recording control request/response schemas."""

from typing import Literal

from pydantic import BaseModel


class StatusResponse(BaseModel):
    status: Literal["ok"] = "ok"


class RecordingStatus(BaseModel):
    status: Literal["on", "off"]


class CommentRequest(BaseModel):
    comment: str | None = None  # validated by the service, missing → 400


class ErrorResponse(BaseModel):
    error: str
