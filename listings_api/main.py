import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from listings_api.config import Settings
from listings_api.deps import build_store
from listings_api.repository.listings import SqlListingStore
from listings_api.routers import admin, listings

LOG = logging.getLogger("listings_api")


def configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO),
                        format="%(asctime)s | %(levelname)s | %(message)s")


def ping_database(store: SqlListingStore) -> bool:
    """Connectivity ping; a down database must not keep the API from starting."""
    try:
        with store.connect() as conn:
            now = conn.execute(text("SELECT now()")).scalar_one()
    except SQLAlchemyError as e:
        LOG.error("DB connection error: %s", e)
        return False
    LOG.info("PostgreSQL connected, server time %s", now)
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = app.state.store
    if isinstance(store, SqlListingStore):
        # blocking driver call, kept off the event loop
        await run_in_threadpool(ping_database, store)
    else:
        LOG.info("Using in-memory listing store")
    try:
        yield
    finally:
        if isinstance(store, SqlListingStore):
            store.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    settings.validate()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Listings API",
        version="1.0.0",
        description="Find listings near a point, fetch one listing, create listings (admin).",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = build_store(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": "Invalid request parameters"})

    @app.exception_handler(SQLAlchemyError)
    async def store_error(request: Request, exc: SQLAlchemyError):
        LOG.error("Store error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(listings.router)
    app.include_router(admin.router)

    # Front-end assets last so they never shadow the API
    if settings.static_dir and os.path.isdir(settings.static_dir):
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
    elif settings.static_dir:
        LOG.warning("STATIC_DIR %s is not a directory, static files not served", settings.static_dir)

    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
