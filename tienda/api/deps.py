"""Helpers shared by the route modules."""
from typing import Any, Optional

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def get_screens(request: Request):
    screens = request.app.state.screens
    if screens is None:
        raise HTTPException(status_code=503, detail="Service context not initialised")
    return screens


def require_session(request: Request) -> None:
    """Dependency: data screens are only reachable after signing in."""
    context = get_screens(request).context
    if context.settings.require_login and not context.auth.signed_in:
        raise HTTPException(status_code=401, detail="Inicie sesión primero.")


def alert_cursor(request: Request) -> int:
    return get_screens(request).context.notifications.cursor


def respond(request: Request, since: Optional[int], *, status_code: int = 200, **data: Any) -> JSONResponse:
    """JSON answer carrying the alerts raised while handling the request."""
    notifications = get_screens(request).context.notifications
    alerts = notifications.get_events(since)['events']
    content = {'ok': status_code < 400, **data, 'alerts': alerts}
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))
