"""
simple-crud — FastAPI Application Factory
==========================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn (uvicorn simplecrud.main:app / python -m simplecrud)
       and by the tests, which inject their own DocumentStore.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────────────┐                   │
    │  │ Req ID   │→│  Logging        │                   │
    │  └──────────┘ └─────────────────┘                   │
    │                                                     │
    │  Routes:                                            │
    │  ┌─────────────────────────────────────────────┐    │
    │  │ ANY /{path}  → Dispatcher → PathRepository  │    │
    │  └─────────────────────────────────────────────┘    │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ StoreError→500 │ Exception→500                │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Build the DocumentStore from settings (unless one was injected)
    3. Ping the store; failure aborts startup and the server never serves
    4. Create the collection table if missing

    Shutdown:
    1. Dispose the engine (close all pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from simplecrud import __version__
from simplecrud.config import settings
from simplecrud.exceptions import SimpleCrudError
from simplecrud.middleware.logging import RequestLoggingMiddleware
from simplecrud.middleware.request_id import RequestIDMiddleware, request_id_var
from simplecrud.routes import dispatcher
from simplecrud.schemas.envelope import make_response
from simplecrud.services.document_store import DocumentStore
from simplecrud.services.repository import PathRepository

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # Our access log replaces uvicorn's; SQL echo is controlled by LOG_LEVEL
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Connect to the store before serving and release it on shutdown.

    An injected store (create_app(store=...)) belongs to the caller and is
    neither pinged nor closed here.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("simple-crud %s starting up...", __version__)

    store: Optional[DocumentStore] = getattr(app.state, "store", None)
    owns_store = store is None
    if owns_store:
        store = DocumentStore.from_settings(settings)
        try:
            await store.ping(timeout=settings.startup_timeout)
            await store.create_collection()
        except SimpleCrudError as e:
            logger.critical("Document store unavailable: %s | Context: %s", e.message, e.context)
            await store.close()
            raise
        attach_store(app, store)

    logger.info("Server ready at http://%s:%d", settings.server_host, settings.server_port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("simple-crud shutting down...")
    if owns_store:
        await store.close()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Turn anything that escapes the dispatcher into a 500 envelope.

    Handler hierarchy:
        SimpleCrudError (StoreError, StoreTimeoutError, DuplicateKeyError) → 500
        Exception (fallback)                                              → 500

    The failing request ends; the listener keeps serving. Details are logged
    server-side only.
    """

    @app.exception_handler(SimpleCrudError)
    async def handle_store_error(request: Request, exc: SimpleCrudError):
        rid = request_id_var.get("")
        logger.error("[%s] Store error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=make_response("Internal server error", 500).model_dump(),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error(
            "[%s] Unexpected error: %s",
            rid,
            str(exc),
            exc_info=True,
        )
        # Runs outside RequestIDMiddleware, which never sees this response
        return JSONResponse(
            status_code=500,
            content=make_response("Internal server error", 500).model_dump(),
            headers={"X-Request-ID": rid} if rid else None,
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def attach_store(app: FastAPI, store: DocumentStore) -> None:
    """Expose the shared store and its repository to the dispatcher."""
    app.state.store = store
    app.state.repository = PathRepository(store)


def create_app(store: Optional[DocumentStore] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        store: an already-connected DocumentStore. When omitted, the lifespan
               builds one from settings at startup.
    """
    # No docs/OpenAPI routes: every path belongs to the document namespace
    app = FastAPI(
        title="simple-crud",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )

    if store is not None:
        attach_store(app, store)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → route
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    dispatcher.register(app)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn imports `simplecrud.main:app`; no connection is made until startup
app = create_app()
