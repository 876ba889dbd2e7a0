"""
FastAPI application factory for the storefront API.

Wires the collection routers to a Catalog built from Settings, serves local
uploads under ``/uploads`` and drains pending image cleanups on shutdown.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from storefront.core.config import Settings, get_settings
from storefront.core.log import configure_logging, get_logger
from storefront.repositories.json_storage import init_collections
from storefront.routers import categories as categories_router
from storefront.routers import contacts as contacts_router
from storefront.routers import orders as orders_router
from storefront.routers import products as products_router
from storefront.services.catalog import build_catalog

logger = get_logger("app")


def create_app(settings: Settings | None = None, *, s3_client=None) -> FastAPI:
    """Factory compatible with uvicorn/gunicorn (``--factory``)."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    catalog = build_catalog(settings, s3_client=s3_client)
    init_collections(settings.data_dir, catalog.stores)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await catalog.drain()
        logger.info("pending blob cleanups drained")

    app = FastAPI(title="Storefront API", lifespan=lifespan)
    app.state.settings = settings
    app.state.catalog = catalog

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.mount(settings.uploads_url_prefix, StaticFiles(directory=settings.uploads_dir), name="uploads")

    app.include_router(products_router.router)
    app.include_router(categories_router.router)
    app.include_router(orders_router.router)
    app.include_router(contacts_router.router)

    logger.info(
        "storefront app configured",
        extra={"data_dir": settings.data_dir, "blob_backend": settings.blob_backend, "id_policy": settings.id_policy},
    )
    return app
