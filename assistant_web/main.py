"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from assistant_web.config import settings
from assistant_web.database import close_db, init_db
from assistant_web.errors import register_exception_handlers
from assistant_web.routers import conversation, recording, user

# ── Logging setup ────────────────────────────────────────────────────
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    if not settings.users:
        logger.warning("No users configured (ASSISTANT_WEB_USERS); nobody can log in")
    logger.info("assistant-web ready (%s)", settings.env)
    yield
    await close_db()


app = FastAPI(
    title="assistant-web",
    description="Web front-end for a conversational assistant engine",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Mount routers
app.include_router(user.router, prefix="/user", tags=["user"])
app.include_router(conversation.router, prefix="/api", tags=["conversation"])
app.include_router(recording.router, prefix="/recording", tags=["recording"])


@app.get("/health")
async def health():
    return {"status": "ok", "service": "assistant-web"}
