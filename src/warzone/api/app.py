"""FastAPI application wiring for warzone."""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from warzone.api import routes
from warzone.api.runtime import ApiState, build_state
from warzone.config import get_settings
from warzone.domain.errors import GameRuleError

logger = logging.getLogger(__name__)


async def game_rule_error_handler(request: Request, exc: GameRuleError) -> JSONResponse:
    """Report a rejected map, order or tournament as a client error."""

    logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


def create_app(*, state_factory: Callable[[], ApiState] = build_state) -> FastAPI:
    """Build the API around an :class:`ApiState` holding the map store and tournaments."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        state = state_factory()
        app.state.api_state = state
        logger.info("serving maps from %s", state.maps.base_path)
        try:
            yield
        finally:
            await state.shutdown()

    app = FastAPI(title="Warzone API", version="0.1.0", lifespan=lifespan)
    settings = get_settings()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(GameRuleError, game_rule_error_handler)
    app.include_router(routes.router)
    return app


app = create_app()
