"""FastAPI application factory."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, List

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lexideck.api.v1 import api_router
from lexideck.config import Settings, settings
from lexideck.db.document_store import SqlDeckDocumentStore
from lexideck.db.session import SessionLocal
from lexideck.services.enrichment import build_enrichment_clients
from lexideck.services.registry import DeckRegistry
from lexideck.utils.cache import FileFallbackCache
from lexideck.utils.exceptions import (
    CardNotFoundError,
    DeckNotLoadedError,
    SessionError,
    handle_card_not_found_error,
    handle_deck_not_loaded_error,
    handle_session_error,
)


tags_metadata: List[dict[str, str]] = [
    {"name": "decks", "description": "Browse and edit a learner's spaced-repetition deck."},
    {"name": "review", "description": "Run timed review sessions over due cards."},
]


def build_registry(app_settings: Settings) -> DeckRegistry:
    """Wire the SQL document store, file fallback cache and enrichment clients."""

    dictionary, examples = build_enrichment_clients(app_settings)
    registry = DeckRegistry(
        app_settings,
        SqlDeckDocumentStore(SessionLocal),
        FileFallbackCache(app_settings.FALLBACK_CACHE_DIR),
        dictionary=dictionary,
        examples=examples,
    )
    for client in (dictionary, examples):
        if client is not None:
            registry.add_close_callback(client.aclose)
    return registry


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if getattr(app.state, "registry", None) is None:
        app.state.registry = build_registry(settings)
    try:
        yield
    finally:
        await app.state.registry.aclose()


def _as_response(exc: HTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Spaced-repetition vocabulary decks with timed review sessions.",
        version="0.1.0",
        openapi_tags=tags_metadata,
        docs_url=f"{settings.API_V1_STR}/docs",
        redoc_url=f"{settings.API_V1_STR}/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": exc.errors(), "message": "Validation failed"},
        )

    @app.exception_handler(DeckNotLoadedError)
    async def deck_not_loaded_handler(request: Request, exc: DeckNotLoadedError) -> JSONResponse:
        return _as_response(handle_deck_not_loaded_error(exc))

    @app.exception_handler(CardNotFoundError)
    async def card_not_found_handler(request: Request, exc: CardNotFoundError) -> JSONResponse:
        return _as_response(handle_card_not_found_error(exc))

    @app.exception_handler(SessionError)
    async def session_error_handler(request: Request, exc: SessionError) -> JSONResponse:
        return _as_response(handle_session_error(exc))

    app.include_router(api_router, prefix=settings.API_V1_STR)
    return app


app = create_app()
