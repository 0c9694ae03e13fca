from fastapi import Body, FastAPI, Query, Request
from typing import Optional
import logging

from tienda.api.deps import alert_cursor, get_screens, respond
from tienda.api.routes import imc, productos, realtime
from tienda.context import ServiceContext, build_context
from tienda.screens.imc import CalculadoraImcScreen
from tienda.screens.login import LoginScreen
from tienda.screens.productos import ProductosScreen
from tienda.screens.productos_realtime import ProductosRealtimeScreen
from tienda.utilities.validators import LoginInput

# Logging
logger = logging.getLogger("tienda_app")


class Screens:
    """One instance of every screen, sharing the service context."""

    def __init__(self, context: ServiceContext):
        self.context = context
        self.imc = CalculadoraImcScreen(context)
        self.productos = ProductosScreen(context)
        self.realtime = ProductosRealtimeScreen(context)
        self.login = LoginScreen(context, on_login_success=self.mount, on_logout=self.unmount)
        self.mounted = False

    def mount(self):
        """Start the live lists (idempotent)."""
        self.imc.mount()
        self.realtime.mount()
        self.mounted = True

    def unmount(self):
        self.imc.unmount()
        self.realtime.unmount()
        self.mounted = False


def create_app(context: Optional[ServiceContext] = None) -> FastAPI:
    app = FastAPI(title="Tienda client API")
    app.state.context = context
    app.state.screens = Screens(context) if context else None

    @app.on_event("startup")
    async def _startup():
        """Build the service context when none was injected and start live lists if allowed."""
        if app.state.screens is None:
            app.state.context = build_context()
            app.state.screens = Screens(app.state.context)
        if not app.state.context.settings.require_login:
            app.state.screens.mount()
        logger.info("Screens ready (productos variant: %s)", app.state.screens.productos.variant)

    @app.on_event("shutdown")
    async def _shutdown():
        if app.state.screens is not None:
            app.state.screens.unmount()
            await app.state.context.aclose()

    # -------------------- SESSION --------------------
    @app.post("/api/login")
    async def login(request: Request, payload: LoginInput = Body(...)):
        screens = get_screens(request)
        since = alert_cursor(request)
        ok = await screens.login.login(payload.email, payload.password)
        session = screens.context.auth.session
        return respond(request, since, status_code=200 if ok else 401,
                       email=session.email if ok and session else None)

    @app.post("/api/logout")
    async def logout(request: Request):
        since = alert_cursor(request)
        get_screens(request).login.logout()
        return respond(request, since)

    @app.get("/api/session")
    def session_info(request: Request):
        screens = get_screens(request)
        session = screens.context.auth.session
        return {
            'signed_in': session is not None,
            'email': session.email if session else None,
            'backend': screens.context.settings.backend,
            'productos_variant': screens.productos.variant,
        }

    # -------------------- ALERTS --------------------
    @app.get("/api/notifications")
    def notifications(request: Request, since: Optional[int] = Query(default=None)):
        """Poll alerts newer than 'since'."""
        return get_screens(request).context.notifications.get_events(since)

    app.include_router(imc.router)
    app.include_router(productos.router)
    app.include_router(realtime.router)
    return app


app = create_app()
