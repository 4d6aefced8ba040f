import logging
from typing import Optional

from fastapi import FastAPI, Depends, Form, Request, WebSocket, WebSocketDisconnect, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, RedirectResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

import config
import database
from dependencies import (
    LOGIN_PATH,
    LoginRequired,
    broadcaster,
    gatekeeper,
    metrics,
    require_admin,
    websocket_is_admin,
)
from routers import flat_requests_router, flats_router, monitoring_router
from schemas import ErrorResponse
from services.session_service import check_password, wants_remember

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("audix.admin")

# Refuse to boot without the required settings
config.validate_settings()

CONTENT_SECURITY_POLICY = (
    "default-src 'self'; "
    "script-src 'self'; "
    "style-src 'self' 'unsafe-inline'; "
    "connect-src 'self' ws: wss:; "
    "img-src 'self' data:; "
    "font-src 'self' data:;"
)

LOGIN_PAGE = """<!doctype html>
<html><head><meta charset="utf-8"><title>AuDiX Admin - Login</title></head>
<body>
<form method="post" action="/admin/login">
  <input type="password" name="password" placeholder="Admin password" autofocus>
  <label><input type="checkbox" name="remember" value="1"> Remember me</label>
  <button type="submit">Sign in</button>
</form>
</body></html>
"""

DASHBOARD_PAGE = """<!doctype html>
<html><head><meta charset="utf-8"><title>AuDiX Admin</title></head>
<body>
<h1>AuDiX Admin</h1>
<form method="post" action="/admin/logout"><button type="submit">Log out</button></form>
</body></html>
"""

# App instance
app = FastAPI(title="AuDiX Admin")


def _error_body(error: str) -> dict:
    return ErrorResponse(error=error).model_dump(exclude_none=True)


# Error envelope: {"ok": false, "error": CODE}
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        error = "NOT_FOUND"
    elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        error = "METHOD_NOT_ALLOWED"
    else:
        error = str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=_error_body(error))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_body("VALIDATION_ERROR"))


@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired):
    return RedirectResponse(LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)


# Request metrics + security headers + last-resort error handling
@app.middleware("http")
async def admin_middleware(request: Request, call_next):
    metrics.record_start(request.client.host if request.client else None)
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        response = JSONResponse(status_code=500, content=_error_body("INTERNAL"))
    finally:
        metrics.record_finish()
    response.headers["Content-Security-Policy"] = CONTENT_SECURITY_POLICY
    return response


@app.on_event("startup")
async def startup():
    if not database.check_connection():
        # Fatal: never run against an unreachable store
        raise RuntimeError("Database unreachable")
    database.init_db()
    logger.info("[DB] connected: %s", config.redact_database_url(str(database.engine.url)))
    broadcaster.start()


@app.on_event("shutdown")
async def shutdown():
    await broadcaster.stop()


# ---------------------------------------------------------------------------
# Login / logout and pages
# ---------------------------------------------------------------------------

@app.get("/favicon.ico", include_in_schema=False)
def favicon():
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/", include_in_schema=False)
def root():
    return RedirectResponse(LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)


@app.get(LOGIN_PATH, response_class=HTMLResponse, include_in_schema=False)
def login_page():
    return LOGIN_PAGE


@app.post(LOGIN_PATH, include_in_schema=False)
def login(password: Optional[str] = Form(None), remember: Optional[str] = Form(None)):
    if password is None:
        return PlainTextResponse("Bad request", status_code=status.HTTP_400_BAD_REQUEST)

    if not check_password(password, config.ADMIN_PASSWORD):
        logger.warning("Admin login failed")
        return PlainTextResponse("Invalid password", status_code=status.HTTP_401_UNAUTHORIZED)

    keep = wants_remember(remember)
    _, cookie_value = gatekeeper.login(remember=keep)

    response = RedirectResponse("/admin", status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(
        config.SESSION_COOKIE_NAME,
        cookie_value,
        # Without "remember me" the cookie dies with the browser session
        max_age=config.REMEMBER_ME_DAYS * 24 * 3600 if keep else None,
        httponly=True,
        samesite="lax",
    )
    return response


@app.post("/admin/logout", include_in_schema=False)
def logout(request: Request, session=Depends(require_admin)):
    gatekeeper.logout(request.cookies)
    response = RedirectResponse(LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(config.SESSION_COOKIE_NAME, httponly=True, samesite="lax")
    return response


@app.get("/admin", response_class=HTMLResponse, include_in_schema=False)
def dashboard(session=Depends(require_admin)):
    return DASHBOARD_PAGE


# ---------------------------------------------------------------------------
# Admin API
# ---------------------------------------------------------------------------

app.include_router(flat_requests_router)
app.include_router(flats_router)
app.include_router(monitoring_router)


# ---------------------------------------------------------------------------
# Live monitor (WebSocket)
# ---------------------------------------------------------------------------

@app.websocket("/admin/ws")
async def admin_ws(websocket: WebSocket):
    # Session is checked on the upgrade request, before any frame is exchanged
    if not websocket_is_admin(websocket):
        logger.warning("Rejected unauthenticated monitor upgrade")
        if "websocket.http.response" in websocket.scope.get("extensions", {}):
            await websocket.send_denial_response(
                JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content=_error_body("UNAUTHORIZED"))
            )
        else:
            # Closing before accept makes the server answer the handshake with 403
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    await broadcaster.connect(websocket)
    try:
        while True:
            # No client->server messages are defined; drain until the peer leaves
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.disconnect(websocket)


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=config.PORT)
