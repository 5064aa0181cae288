# ltp_service/api/health.py
from __future__ import annotations

import time
from typing import Any, Dict, Optional

from fastapi import APIRouter, Request, Response
from sqlalchemy import text

from ltp_service.db import session as db_session
from ltp_service.services.price_cache import CacheUnavailable, PriceCache
from ltp_service.utils.time import iso_z, utcnow

router = APIRouter(tags=["health"])

APP_STARTED_AT = time.time()


def _now_meta() -> Dict[str, Any]:
    now_ts = time.time()
    return {
        "now_unix": int(now_ts),
        "now_iso": iso_z(utcnow()),
        "uptime_s": int(now_ts - APP_STARTED_AT),
    }


# ----------------------------
# Dependency checks
# ----------------------------
async def _check_db() -> Dict[str, Any]:
    t0 = time.time()
    try:
        async with db_session.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"ok": True, "latency_ms": int((time.time() - t0) * 1000)}
    except Exception as e:
        return {
            "ok": False,
            "latency_ms": int((time.time() - t0) * 1000),
            "error": str(e),
        }


async def _check_cache(cache: Optional[PriceCache]) -> Dict[str, Any]:
    t0 = time.time()
    try:
        await cache.ping()
        return {"ok": True, "latency_ms": int((time.time() - t0) * 1000)}
    except CacheUnavailable as e:
        return {
            "ok": False,
            "latency_ms": int((time.time() - t0) * 1000),
            "error": str(e),
        }


# ----------------------------
# Endpoints
# ----------------------------
@router.get("/live")
async def live():
    return {"status": "healthy"}


@router.get("/health")
async def health():
    return {"status": "healthy"}


@router.get("/ready")
async def ready(request: Request, response: Response):
    state = request.app.state
    checks: Dict[str, Any] = {}

    # dependencies that were never configured are not checked
    if getattr(state, "db_enabled", False):
        checks["db"] = await _check_db()
        if not checks["db"]["ok"]:
            response.status_code = 503
            return {"status": "not ready", "error": "database unavailable", "checks": checks}

    cache: Optional[PriceCache] = getattr(state, "price_cache", None)
    if cache is not None and cache.enabled:
        checks["cache"] = await _check_cache(cache)
        if not checks["cache"]["ok"]:
            response.status_code = 503
            return {"status": "not ready", "error": "cache unavailable", "checks": checks}

    return {"status": "ready", **_now_meta(), "checks": checks}
