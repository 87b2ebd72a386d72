"""Request pipeline: tenant resolution and execution context scoping.

``TenantScopeMiddleware`` is a pure ASGI middleware. For each HTTP or
websocket connection it:

1. resolves the tenant segment of the route path;
2. looks the tenant up by external id (exact match);
3. moves the segment from ``path`` routing into ``root_path`` so the
   application routes on the remaining path;
4. opens a Context Scope bound to the tenant, principal and session for the
   whole downstream call, and closes it when the call returns or raises.

A path naming a tenant that does not exist is answered with 404 and never
reaches the application; it is not downgraded to an untenanted request.

Usage:
    app.add_middleware(
        TenantScopeMiddleware,
        resolver=TenantPathResolver(min_digits=7),
        tenant_lookup=tenant_store,
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol
from uuid import uuid4

import structlog
from starlette.requests import HTTPConnection
from starlette.responses import JSONResponse
from starlette.websockets import WebSocketClose

from shared_kernel.execution_context.scope import context_scope
from shared_kernel.execution_context.value_objects import (
    ExecutionContext,
    Principal,
    SessionReference,
)
from shared_kernel.middleware.observability import (
    DefaultTenantScopeProbe,
    TenantScopeProbe,
)
from shared_kernel.observability_context import ObservationContext

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Receive, Scope, Send

    from shared_kernel.deferred.ports import TenantLookup
    from shared_kernel.tenancy.resolver import ResolvedTarget, TenantPathResolver

REQUEST_ID_HEADER = "X-Request-ID"
TENANT_EXTERNAL_ID_STATE_KEY = "tenant_external_id"
TENANT_MOUNT_PREFIX_STATE_KEY = "tenant_mount_prefix"


class IdentityExtractor(Protocol):
    """Extracts the authenticated principal and session of a connection.

    Authentication itself happens upstream; extractors only read its result.
    """

    def extract(
        self, connection: HTTPConnection
    ) -> tuple[Principal | None, SessionReference | None]:
        """Return the principal and session for the connection, if any."""
        ...


class HeaderIdentityExtractor:
    """Reads identity set by a trusted upstream authentication proxy.

    The principal comes from a request header and the session from a cookie.
    Blank values are treated as absent.
    """

    def __init__(
        self,
        principal_header: str = "X-Principal-ID",
        session_cookie: str = "session_id",
    ) -> None:
        self._principal_header = principal_header
        self._session_cookie = session_cookie

    def extract(
        self, connection: HTTPConnection
    ) -> tuple[Principal | None, SessionReference | None]:
        """Return the principal and session for the connection, if any."""
        user_id = connection.headers.get(self._principal_header, "").strip()
        session_id = connection.cookies.get(self._session_cookie, "").strip()
        return (
            Principal(user_id=user_id) if user_id else None,
            SessionReference(session_id=session_id) if session_id else None,
        )


class TenantScopeMiddleware:
    """ASGI middleware that runs each request inside its own Context Scope."""

    def __init__(
        self,
        app: ASGIApp,
        resolver: TenantPathResolver,
        tenant_lookup: TenantLookup,
        identity_extractor: IdentityExtractor | None = None,
        probe: TenantScopeProbe | None = None,
    ) -> None:
        """Initialize the middleware.

        Args:
            app: The downstream ASGI application
            resolver: Tenant path resolver
            tenant_lookup: Store resolving external ids to tenants
            identity_extractor: Source of principal and session
            probe: Domain probe for observability
        """
        self.app = app
        self._resolver = resolver
        self._tenant_lookup = tenant_lookup
        self._identity_extractor = identity_extractor or HeaderIdentityExtractor()
        self._probe = probe or DefaultTenantScopeProbe()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        connection = HTTPConnection(scope)
        request_id = connection.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        probe = self._probe.with_context(ObservationContext(request_id=request_id))

        route_path = _route_path(scope)
        resolved = self._resolver.resolve(route_path)
        context = ExecutionContext.empty()

        if resolved.tenant_external_id is None:
            probe.untenanted_request(route_path)
        else:
            external_id = str(resolved.tenant_external_id)
            try:
                tenant = await self._tenant_lookup.find_by_external_id(
                    resolved.tenant_external_id
                )
            except Exception as e:
                probe.tenant_lookup_failed(external_id, e)
                raise

            if tenant is None:
                probe.unknown_tenant(external_id)
                await _reject_unknown_tenant(scope, receive, send)
                return

            probe.tenant_resolved(external_id, tenant.internal_id)
            context = context.with_tenant(tenant)
            scope = _mount_tenant(scope, resolved)

        principal, session = self._identity_extractor.extract(connection)
        if principal is not None:
            context = context.with_principal(principal)
        if session is not None:
            context = context.with_session(session)

        log_fields: dict[str, str] = {"request_id": request_id}
        if context.tenant is not None:
            log_fields["tenant_id"] = str(context.tenant.external_id)
        if context.principal is not None:
            log_fields["user_id"] = context.principal.user_id

        with context_scope(context), structlog.contextvars.bound_contextvars(
            **log_fields
        ):
            await self.app(scope, receive, send)


def _route_path(scope: Scope) -> str:
    """Return the path the application routes on (path minus root_path)."""
    path: str = scope["path"]
    root_path: str = scope.get("root_path", "")
    if root_path and path.startswith(root_path):
        return path[len(root_path) :] or "/"
    return path


def _mount_tenant(scope: Scope, resolved: ResolvedTarget) -> Scope:
    """Return a copy of ``scope`` with the tenant segment moved into root_path.

    ``path`` keeps the full path, as ASGI servers provide it, so that
    stripping the new root_path leaves exactly the remaining path.
    """
    new_root_path = scope.get("root_path", "") + resolved.mount_prefix
    state = dict(scope.get("state") or {})
    state[TENANT_EXTERNAL_ID_STATE_KEY] = resolved.tenant_external_id
    state[TENANT_MOUNT_PREFIX_STATE_KEY] = resolved.mount_prefix
    return {
        **scope,
        "root_path": new_root_path,
        "path": new_root_path + resolved.remaining_path,
        "state": state,
    }


async def _reject_unknown_tenant(scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] == "websocket":
        await WebSocketClose(code=1008, reason="Tenant not found")(scope, receive, send)
        return
    response = JSONResponse({"detail": "Tenant not found"}, status_code=404)
    await response(scope, receive, send)
