"""Recording control endpoints — start/stop/vote/comment/save/download a transcript."""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from assistant_web.adapters.base import Engine
from assistant_web.schemas.recording import (
    CommentRequest,
    ErrorResponse,
    RecordingStatus,
    StatusResponse,
)
from assistant_web.services import recording_service
from assistant_web.services.engine_manager import get_engine

_errors = {
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}

router = APIRouter(responses=_errors)


@router.post("/start", response_model=StatusResponse)
async def start_recording(engine: Engine = Depends(get_engine)):
    await recording_service.start(engine)
    return StatusResponse()


@router.post("/stop", response_model=StatusResponse)
async def stop_recording(engine: Engine = Depends(get_engine)):
    await recording_service.stop(engine)
    return StatusResponse()


@router.get("/status", response_model=RecordingStatus)
async def recording_status(engine: Engine = Depends(get_engine)):
    return RecordingStatus(status=await recording_service.status(engine))


@router.post(
    "/vote/{vote}",
    response_model=StatusResponse,
    responses={400: {"model": ErrorResponse}},
)
async def vote_last(vote: str, engine: Engine = Depends(get_engine)):
    await recording_service.vote(engine, vote)
    return StatusResponse()


@router.post(
    "/comment",
    response_model=StatusResponse,
    responses={400: {"model": ErrorResponse}},
)
async def comment_last(
    body: CommentRequest | None = None, engine: Engine = Depends(get_engine)
):
    await recording_service.comment(engine, body.comment if body else None)
    return StatusResponse()


@router.post("/save", response_model=StatusResponse)
async def save_log(engine: Engine = Depends(get_engine)):
    await recording_service.save(engine)
    return StatusResponse()


@router.get("/log", response_class=FileResponse)
async def download_log(engine: Engine = Depends(get_engine)):
    path, filename = await recording_service.get_log(engine)
    return FileResponse(path, media_type="text/plain", filename=filename)
