"""FastAPI application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import get_settings
from .errors import BlobVaultError, Outcome
from .routers.data import router as data_router
from .schemas import Envelope
from .store import BlobStore

logger = logging.getLogger(__name__)


def create_app(store: Optional[BlobStore] = None) -> FastAPI:
    """Build the HTTP app around ``store``.

    When no store is given one is built from settings on startup and
    disposed on shutdown. A store passed in stays owned by the caller.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if store is not None:
            yield
            return
        owned = BlobStore.from_settings(get_settings())
        await owned.init()
        app.state.store = owned
        try:
            yield
        finally:
            await owned.close()

    app = FastAPI(title="blobvault", version="0.1.0", lifespan=lifespan)
    if store is not None:
        app.state.store = store
    app.include_router(data_router)

    @app.exception_handler(RequestValidationError)
    async def on_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Error entries echo the request body back as "input"; keep only where and why.
        problems = [(error["loc"], error["msg"]) for error in exc.errors()]
        logger.warning("%s: malformed request: %s", request.url.path, problems)
        return Envelope.fail("invalid request").response()

    @app.exception_handler(BlobVaultError)
    async def on_store_error(request: Request, exc: BlobVaultError) -> JSONResponse:
        if exc.outcome is Outcome.VALIDATION_FAILURE:
            logger.warning("%s: %s", request.url.path, exc)
            return Envelope.fail(str(exc)).response()
        logger.error("%s: store failure", request.url.path, exc_info=exc)
        return Envelope.error().response()

    @app.exception_handler(Exception)
    async def on_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error("%s: unhandled error", request.url.path, exc_info=exc)
        return Envelope.error().response()

    @app.get("/health", tags=["system"])
    async def healthcheck() -> dict[str, str]:
        """Simple readiness probe for uptime checks."""

        return {"status": "ok"}

    return app


app = create_app()
