"""FastAPI surface over the storefront core.

Framing only: every route delegates to OrderLedger, AdminDirectory,
the sync functions or the customer view, and every ``StorefrontError``
becomes ``{"error": message}`` with the error's status code.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from storefront import notifications
from storefront.admins import AdminDirectory
from storefront.catalog import ProductCatalog
from storefront.config import StorefrontConfig
from storefront.constants import SESSION_COOKIE_NAME
from storefront.customers import aggregate
from storefront.errors import NotAuthenticated, StorefrontError
from storefront.gateway import PersistenceGateway
from storefront.models import AdminAccount
from storefront.notifications import OrderNotifier
from storefront.orders import OrderLedger
from storefront.sessions import SessionCodec
from storefront.stores import select_store
from storefront.sync import SyncClient, export_snapshot, import_from_origin

logger = logging.getLogger(__name__)

_LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1"})


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _state(request: Request) -> Any:
    return request.app.state


async def _json_body(request: Request) -> dict[str, Any]:
    """Parse the body loosely; validation happens in the core."""
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def admin_route(request: Request) -> None:
    """Hide admin routes on public hosts unless admin is enabled there."""
    config: StorefrontConfig = _state(request).config
    host = (request.url.hostname or "").lower()
    if config.admin_enabled or host in _LOCAL_HOSTS:
        return
    raise HTTPException(status_code=404, detail="Not found.")


async def current_admin(request: Request) -> AdminAccount:
    state = _state(request)
    admin_id = state.sessions.resolve(request.cookies.get(SESSION_COOKIE_NAME))
    account = await state.directory.get_account(admin_id) if admin_id else None
    if account is None:
        raise NotAuthenticated()
    return account


def _start_session(request: Request, response: Response, account: AdminAccount) -> None:
    state = _state(request)
    response.set_cookie(
        SESSION_COOKIE_NAME,
        state.sessions.issue(account.id),
        max_age=state.sessions.max_age,
        httponly=True,
        samesite="strict",
        secure=state.config.hosted,
    )


def _bearer(request: Request) -> str | None:
    header = request.headers.get("authorization", "")
    if header[:7].lower() == "bearer ":
        return header[7:].strip() or None
    return None


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(
    config: StorefrontConfig,
    gateway: PersistenceGateway | None = None,
    catalog: ProductCatalog | None = None,
    notifier: OrderNotifier | None = None,
    sync_client: SyncClient | None = None,
) -> FastAPI:
    """Build the app. The storage backend is fixed here for its lifetime."""
    gateway = gateway or PersistenceGateway(select_store(config))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Storefront starting (backend=%s).", gateway.health()["backend"])
        yield
        await notifications.drain()
        if sync_client is not None:
            await sync_client.close()
        await gateway.close()

    app = FastAPI(title="Storefront", lifespan=lifespan)
    app.state.config = config
    app.state.gateway = gateway
    app.state.catalog = catalog or ProductCatalog(config.catalog_path)
    app.state.ledger = OrderLedger(gateway, notifier=notifier)
    app.state.directory = AdminDirectory(gateway, rounds=config.bcrypt_rounds)
    app.state.sessions = SessionCodec(config.session_secret, config.session_max_age_secs)
    app.state.sync_client = sync_client

    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(
        request: Request, exc: StorefrontError
    ) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    # -- storefront ---------------------------------------------------------

    @app.get("/api/products")
    async def list_products(request: Request) -> list[dict[str, Any]]:
        return [p.to_dict() for p in await _state(request).catalog.products()]

    @app.post("/api/checkout")
    async def checkout(request: Request) -> dict[str, Any]:
        body = await _json_body(request)
        state = _state(request)
        order = await state.ledger.place_order(
            body.get("cartItems"), body.get("customer"), await state.catalog.load()
        )
        return {
            "success": True,
            "orderId": order.id,
            "message": "Order placed successfully!",
        }

    # -- sync export (secret-gated, no session) -----------------------------

    @app.get("/api/dashboard-sync")
    async def dashboard_sync(request: Request) -> dict[str, Any]:
        provided = request.query_params.get("secret") or _bearer(request)
        state = _state(request)
        return await export_snapshot(state.gateway, provided, state.config.sync_secret)

    # -- admin --------------------------------------------------------------

    @app.get("/api/orders", dependencies=[Depends(admin_route)])
    async def list_orders(
        request: Request, admin: AdminAccount = Depends(current_admin)
    ) -> list[dict[str, Any]]:
        return await _state(request).ledger.list_order_documents()

    @app.get("/api/export-customers", dependencies=[Depends(admin_route)])
    async def export_customers(
        request: Request, admin: AdminAccount = Depends(current_admin)
    ) -> list[dict[str, Any]]:
        orders = await _state(request).ledger.list_orders()
        return [c.to_dict() for c in aggregate(orders)]

    @app.post("/api/admin/signup", dependencies=[Depends(admin_route)])
    async def signup(request: Request, response: Response) -> dict[str, Any]:
        body = await _json_body(request)
        account = await _state(request).directory.create_account(
            body.get("name"), body.get("email"), body.get("password")
        )
        _start_session(request, response, account)
        return {"success": True, "admin": account.public_dict()}

    @app.post("/api/admin/login", dependencies=[Depends(admin_route)])
    async def login(request: Request, response: Response) -> dict[str, Any]:
        body = await _json_body(request)
        account = await _state(request).directory.verify_credentials(
            body.get("email"), body.get("password")
        )
        _start_session(request, response, account)
        return {"success": True}

    @app.post("/api/admin/logout", dependencies=[Depends(admin_route)])
    async def logout(response: Response) -> dict[str, Any]:
        response.delete_cookie(SESSION_COOKIE_NAME, httponly=True, samesite="strict")
        return {"success": True}

    @app.get("/api/admin/session", dependencies=[Depends(admin_route)])
    async def session_info(admin: AdminAccount = Depends(current_admin)) -> dict[str, Any]:
        return admin.public_dict()

    @app.post("/api/admin/sync-from-production", dependencies=[Depends(admin_route)])
    async def sync_from_production(
        request: Request, admin: AdminAccount = Depends(current_admin)
    ) -> dict[str, Any]:
        state = _state(request)
        result = await import_from_origin(
            state.gateway, state.config, client=state.sync_client
        )
        return result.to_dict()

    return app
