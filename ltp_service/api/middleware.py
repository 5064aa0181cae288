from __future__ import annotations

import logging
import time
import uuid
from typing import Awaitable, Callable

from fastapi import Request, Response

from ltp_service.utils import metrics


logger = logging.getLogger("ltp_service.http")

REQUEST_ID_HEADER = "X-Request-ID"
UNMATCHED_ROUTE = "unmatched"


def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "") or ""


def route_template(request: Request) -> str:
    # label by route template so unmatched URLs cannot add time series
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or UNMATCHED_ROUTE


async def request_context_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Tag each request with a UUID, log start/completion and record HTTP metrics."""
    t0 = time.perf_counter()
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    client_host = request.client.host if request.client else ""
    logger.info(
        "request started | request_id=%s | method=%s | path=%s | remote_addr=%s",
        request_id,
        request.method,
        request.url.path,
        client_host,
    )

    response = await call_next(request)

    duration = time.perf_counter() - t0
    route_label = route_template(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    metrics.HTTP_REQUESTS.labels(
        method=request.method,
        path=route_label,
        status=str(response.status_code),
    ).inc()
    metrics.HTTP_REQUEST_DURATION.labels(method=request.method, path=route_label).observe(duration)

    logger.info(
        "request completed | request_id=%s | method=%s | path=%s | status=%s | duration_ms=%d",
        request_id,
        request.method,
        request.url.path,
        response.status_code,
        int(duration * 1000),
    )
    return response
