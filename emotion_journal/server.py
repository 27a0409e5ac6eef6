"""
FastAPI server for the Emotion Journal service.

This module assembles the HTTP application: user registration, the emotion
journal and the token issuing route, plus CORS, request logging and the
handlers that turn application exceptions into ``{"error": ...}`` responses.
The journal store is constructed once by the caller and passed in.
"""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from . import __version__
from .config import Settings
from .exceptions import (
    ConfigurationError,
    InvalidFieldError,
    JournalError,
    MissingFieldError,
)
from .middleware import RequestLoggingMiddleware
from .mongo import MongoJournalStore
from .routes import emotions, tokens, users
from .store import JournalStore, MemoryJournalStore

logger = logging.getLogger(__name__)

BANNER = "Emotion Journal API is running!"


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging to stdout for the whole process."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    # The access middleware already logs every request
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def build_store(settings: Settings) -> JournalStore:
    """Create the journal store selected by ``STORAGE_BACKEND``."""
    if settings.storage_backend == "memory":
        logger.warning("Using in-memory storage; data is lost on restart")
        return MemoryJournalStore()
    if not settings.mongodb_uri:
        raise ConfigurationError(["MONGODB_URI is not set"])
    return MongoJournalStore(settings.mongodb_uri, database=settings.mongodb_database)


def _translate_validation_error(exc: RequestValidationError) -> JournalError:
    """Collapse FastAPI's validation report into a single client error."""
    missing: list[str] = []
    invalid: list[str] = []

    for error in exc.errors():
        loc = error.get("loc", ())
        error_type = error.get("type")

        if error_type == "json_invalid":
            return InvalidFieldError(["body"], "Malformed JSON body")
        if len(loc) < 2:
            # The body as a whole is absent or not an object
            if error_type == "missing":
                return MissingFieldError(["request body"])
            return InvalidFieldError(["body"], "Request body must be a JSON object")

        field = str(loc[1])
        if error_type in ("missing", "string_too_short") or error.get("input") is None:
            target = missing
        else:
            target = invalid
        if field not in target:
            target.append(field)

    if missing:
        return MissingFieldError(missing)
    return InvalidFieldError(invalid)


def register_exception_handlers(app: FastAPI) -> None:
    """Map application exceptions to JSON error responses."""

    @app.exception_handler(JournalError)
    async def handle_journal_error(request: Request, exc: JournalError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %r", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        error = _translate_validation_error(exc)
        return JSONResponse(status_code=error.status_code, content={"error": error.message})

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        # Route failures are answered by RequestLoggingMiddleware; this only
        # sees errors raised by the middleware stack itself
        logger.error(
            "Unexpected error on %s %s", request.method, request.url.path, exc_info=exc
        )
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(store: JournalStore, settings: Settings | None = None) -> FastAPI:
    """
    Create a FastAPI application with the given journal store.

    Args:
        store: The JournalStore instance every route uses
        settings: Application settings; read from the environment when omitted

    Returns:
        Configured FastAPI application

    Raises:
        ConfigurationError: if required settings are missing
    """
    settings = settings or Settings()
    settings.validate_required()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Open the store on startup and close it on shutdown."""
        await store.open()
        logger.info(
            "Emotion Journal %s ready (%s storage)", __version__, settings.storage_backend
        )
        yield
        await store.close()
        logger.info("Emotion Journal shut down")

    app = FastAPI(
        title="Emotion Journal",
        description="User registration and emotion journal API",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    register_exception_handlers(app)

    @app.get("/")
    async def root() -> PlainTextResponse:
        """Liveness banner."""
        return PlainTextResponse(BANNER)

    app.include_router(tokens.create_router(settings))
    app.include_router(users.create_router(store))
    app.include_router(emotions.create_router(store))

    return app


def create_default_app() -> FastAPI:
    """Build the application from environment settings (``uvicorn --factory``)."""
    settings = Settings()
    setup_logging(settings.log_level)
    return create_app(build_store(settings), settings)


def main() -> None:
    """Main entry point for the server."""
    import uvicorn

    settings = Settings()
    setup_logging(settings.log_level)
    try:
        settings.validate_required()
    except ConfigurationError as e:
        logger.error("%s", e)
        raise SystemExit(1)

    uvicorn.run(
        "emotion_journal.server:create_default_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
