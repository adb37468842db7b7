"""
Immistats — FastAPI app factory with startup data loading.
"""
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from immistats import __version__
from immistats.config import CORS_ORIGINS, DATA_PATH
from immistats.data.store import DataStore
from immistats.errors import DataCorrupt, DataUnavailable, InvalidInput, StatsError
from immistats.api.dependencies import set_store
from immistats.api.router_meta import router as meta_router
from immistats.api.router_stats import router as stats_router
from immistats.api.router_estimation import router as estimation_router


def _make_lifespan(store_factory):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build the store and try an eager first load."""
        store = store_factory()
        set_store(store)
        print(f"  DATA_PATH = {store.data_path}")
        try:
            store.load()
        except StatsError as e:
            # Left to the lazy reload on the first request
            print(f"\nImmistats started without data — {e}\n")
        else:
            print(f"\nImmistats ready — {store.row_count():,} records, {len(store.periods())} periods\n")
        yield
        set_store(None)

    return lifespan


def _error_handler(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})
    return handler


def create_app(store_factory=None) -> FastAPI:
    store_factory = store_factory or (lambda: DataStore(DATA_PATH))
    app = FastAPI(
        title="Immistats API",
        description="Immigration application processing statistics and completion estimates",
        version=__version__,
        lifespan=_make_lifespan(store_factory),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(InvalidInput, _error_handler(400))
    app.add_exception_handler(DataUnavailable, _error_handler(503))
    app.add_exception_handler(DataCorrupt, _error_handler(500))

    app.include_router(meta_router)
    app.include_router(stats_router)
    app.include_router(estimation_router)

    return app


app = create_app()
