# routers/monitoring.py
"""
Monitoring routes: process metrics and the relayed live-activity snapshot.
The pushed monitor stream lives on the /admin/ws WebSocket (see main.py).
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

import config
from dependencies import metrics, require_admin
from schemas import ErrorResponse
from services.live_snapshot import LiveSnapshotError, fetch_live_snapshot

router = APIRouter(
     prefix="/admin/api",
     tags=["monitoring"],
     dependencies=[Depends(require_admin)]
)


@router.get("/metrics", summary="Process metrics since boot")
def get_metrics():
     """Uptime, request counters, requests in the last minute and process memory."""
     return metrics.summary()


@router.get(
     "/live",
     summary="Live activity snapshot from the routing service",
     responses={502: {"model": ErrorResponse}}
)
def get_live_snapshot():
     """
     Fetch the routing service's live snapshot on demand.
     Upstream failures are returned as 502 with a stable error code.
     """
     try:
          snap = fetch_live_snapshot(config.USER_BASE_URL, config.LIVE_TOKEN, timeout=config.LIVE_TIMEOUT)
     except LiveSnapshotError as e:
          return JSONResponse(status_code=502, content=e.to_payload())
     return {"ok": True, "snap": snap}
