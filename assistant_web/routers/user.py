"""Access token endpoint."""

from fastapi import APIRouter

from assistant_web import auth
from assistant_web.schemas.user import TokenRequest, TokenResponse

router = APIRouter()


@router.post("/token", response_model=TokenResponse)
async def create_token(body: TokenRequest):
    return TokenResponse(token=auth.login(body.username, body.password))
