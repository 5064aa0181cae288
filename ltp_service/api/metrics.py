from fastapi import APIRouter, Response

from ltp_service.utils.metrics import render_latest

router = APIRouter(tags=["metrics"])


@router.get("/metrics")
def prometheus_metrics() -> Response:
    body, content_type = render_latest()
    return Response(content=body, media_type=content_type)
