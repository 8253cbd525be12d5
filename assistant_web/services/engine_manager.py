"""Per-user engine registry."""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import Depends

from assistant_web.adapters.base import Engine
from assistant_web.adapters.local import LocalEngine
from assistant_web.auth import require_user

logger = logging.getLogger(__name__)


class EngineManager:
    """Lazily creates and caches one engine per user."""

    def __init__(self, factory: Callable[[str], Engine] = LocalEngine) -> None:
        self._factory = factory
        self._engines: dict[str, Engine] = {}

    def get_engine(self, user_id: str) -> Engine:
        engine = self._engines.get(user_id)
        if engine is None:
            engine = self._factory(user_id)
            self._engines[user_id] = engine
            logger.info("Started engine for user %s", user_id)
        return engine

    def clear(self) -> None:
        self._engines.clear()


# Singleton shared across the application
engine_manager = EngineManager()


async def get_engine(user: str = Depends(require_user)) -> Engine:
    """FastAPI dependency: the logged-in user's engine."""
    return engine_manager.get_engine(user)
