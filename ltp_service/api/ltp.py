# ltp_service/api/ltp.py
from __future__ import annotations

import logging
import time
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from ltp_service.api.middleware import get_request_id
from ltp_service.jobs.audit_writer import AuditRecord
from ltp_service.schemas.ltp import LTPResponse, PairPrice
from ltp_service.services.prices import BatchCoordinator, BatchResult, BatchStatus


logger = logging.getLogger("ltp_service.api.ltp")

router = APIRouter(prefix="/api/v1", tags=["ltp"])


def get_coordinator(request: Request) -> BatchCoordinator:
    return request.app.state.coordinator


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    return request.client.host if request.client else ""


def status_code_for(result: BatchResult) -> int:
    # 503 only when something was attempted and nothing came back
    if result.status is BatchStatus.ALL_FAILED and result.total_attempts > 0:
        return 503
    return 200


def _submit_audit(request: Request, record: AuditRecord) -> None:
    writer = getattr(request.app.state, "audit_writer", None)
    if writer is None:
        return
    writer.submit(record)


@router.get("/ltp", response_model=LTPResponse)
async def get_last_traded_prices(
    request: Request,
    pairs: Optional[str] = Query(None, description="Comma-separated pairs, e.g. BTC/USD,BTC/EUR"),
    coordinator: BatchCoordinator = Depends(get_coordinator),
):
    t0 = time.perf_counter()
    request_id = get_request_id(request) or str(uuid.uuid4())
    pairs_param = pairs or ""

    logger.info("fetching prices | request_id=%s | pairs=%s", request_id, pairs_param)

    result = await coordinator.get_prices(pairs_param, cancelled=request.is_disconnected)

    response_time_ms = int((time.perf_counter() - t0) * 1000)
    status_code = status_code_for(result)
    error_occurred = result.error_count > 0

    logger.info(
        "prices fetched | request_id=%s | status=%s | pairs_count=%d | errors_count=%d | cache_hits=%d | duration_ms=%d",
        request_id,
        result.status.value,
        len(result.successes),
        result.error_count,
        result.cache_hits,
        response_time_ms,
    )
    if status_code == 503:
        logger.error("all price fetches failed | request_id=%s | last_error=%s", request_id, result.last_error_message)

    _submit_audit(
        request,
        AuditRecord(
            request_id=request_id,
            method=request.method,
            endpoint=request.url.path,
            pairs_requested=pairs_param,
            user_ip=get_client_ip(request),
            status_code=status_code,
            response_time_ms=response_time_ms,
            cache_hit=result.all_cached,
            kraken_calls=result.upstream_calls,
            resolved_count=result.total_attempts,
            success_count=len(result.successes),
            error_count=result.error_count,
            error_occurred=error_occurred,
            error_message=result.last_error_message,
        ),
    )

    payload = LTPResponse(ltp=[PairPrice(pair=s.pair, amount=float(s.price)) for s in result.successes])
    return JSONResponse(status_code=status_code, content=payload.model_dump())
