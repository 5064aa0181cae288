# ltp_service/main.py
from __future__ import annotations

import logging
from datetime import timedelta

import httpx
from fastapi import FastAPI

from ltp_service.api.health import router as health_router
from ltp_service.api.ltp import router as ltp_router
from ltp_service.api.metrics import router as metrics_router
from ltp_service.api.middleware import request_context_middleware

from ltp_service.config.settings import Settings, get_settings
from ltp_service.db import session as db_session
from ltp_service.db.session import Base
import ltp_service.db.models  # noqa: F401  registers RequestLog

from ltp_service.jobs.audit_writer import AuditWriter, NullAuditWriter
from ltp_service.services.kraken import KrakenQuoteSource
from ltp_service.services.price_cache import CacheUnavailable, PriceCache, build_redis_backend
from ltp_service.services.prices import BatchCoordinator
from ltp_service.utils.logging_setup import configure_logging


logger = logging.getLogger("ltp_service.main")


def build_price_cache(settings: Settings) -> PriceCache:
    freshness = timedelta(seconds=settings.PRICE_FRESHNESS_SECONDS)
    if not settings.CACHE_ENABLED:
        return PriceCache(None, freshness=freshness)
    backend = build_redis_backend(
        host=settings.REDIS_HOST,
        port=settings.REDIS_PORT,
        password=settings.REDIS_PASSWORD,
        db=settings.REDIS_DB,
        socket_timeout=settings.CACHE_SOCKET_TIMEOUT_SECONDS,
    )
    return PriceCache(backend, freshness=freshness)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Bitcoin LTP Service")
    app.middleware("http")(request_context_middleware)

    # Routers
    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(ltp_router)

    @app.on_event("startup")
    async def on_startup() -> None:
        logger.info("starting Bitcoin LTP service")

        cache = build_price_cache(settings)
        if cache.enabled:
            try:
                await cache.ping()
                logger.info("redis connected successfully")
            except CacheUnavailable as e:
                # the client stays; lookups degrade to misses until redis is back
                logger.warning("failed to connect to redis | err=%s", e)
                logger.info("continuing without cache")

        http_client = httpx.AsyncClient(timeout=settings.UPSTREAM_TIMEOUT_SECONDS)
        source = KrakenQuoteSource(
            base_url=settings.KRAKEN_BASE_URL,
            asset_code=settings.KRAKEN_ASSET_CODE,
            base_asset=settings.BASE_ASSET,
            timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
            client=http_client,
        )

        app.state.price_cache = cache
        app.state.http_client = http_client
        app.state.coordinator = BatchCoordinator(cache=cache, source=source, base_asset=settings.BASE_ASSET)

        app.state.db_enabled = False
        app.state.audit_writer = NullAuditWriter()
        if settings.AUDIT_ENABLED:
            try:
                async with db_session.engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
                app.state.db_enabled = True
            except Exception as e:
                logger.warning("database initialization failed | err=%s", e)
                logger.info("continuing without request logging")

        if app.state.db_enabled:
            writer = AuditWriter(db_session.session_factory, maxsize=settings.AUDIT_QUEUE_SIZE)
            writer.start()
            app.state.audit_writer = writer

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await app.state.audit_writer.stop()
        await app.state.http_client.aclose()
        await app.state.price_cache.close()
        await db_session.engine.dispose()
        logger.info("Bitcoin LTP service stopped")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("ltp_service.main:app", host="0.0.0.0", port=get_settings().PORT)
