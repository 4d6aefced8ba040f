# dependencies.py
"""
Shared process-wide components and the admin auth dependency.

Routers import from here rather than from main.py so that main can
include them without a circular import.
"""
from fastapi import HTTPException, Request, WebSocket, status

import config
from services.alerts import AlertLogWatcher
from services.broadcaster import LiveBroadcaster
from services.metrics_service import MetricsCollector
from services.session_service import AdminSession, SessionGatekeeper, SessionStore

API_PREFIX = "/admin/api"
LOGIN_PATH = "/admin/login"

session_store = SessionStore(
     ttl_seconds=config.SESSION_TTL_HOURS * 3600,
     remember_seconds=config.REMEMBER_ME_DAYS * 24 * 3600,
)
gatekeeper = SessionGatekeeper(session_store, config.SESSION_SECRET, config.SESSION_COOKIE_NAME)

metrics = MetricsCollector(trace_heap=config.METRICS_TRACEMALLOC)
broadcaster = LiveBroadcaster(metrics, interval=config.METRICS_INTERVAL, observers=[AlertLogWatcher()])


class LoginRequired(Exception):
     """Raised for anonymous page requests; rendered as a redirect to the login page."""


def require_admin(request: Request) -> AdminSession:
     """
     Admin session for the current request.

     API paths fail with 401 UNAUTHORIZED; page paths redirect to the login page.
     """
     session = gatekeeper.lookup(request.cookies)
     if session is not None:
          return session
     if request.url.path.startswith(API_PREFIX):
          raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="UNAUTHORIZED")
     raise LoginRequired()


def websocket_is_admin(websocket: WebSocket) -> bool:
     """Same session lookup, run against the upgrade request before it is accepted."""
     return gatekeeper.lookup(websocket.cookies) is not None
