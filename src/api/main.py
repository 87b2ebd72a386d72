"""Main FastAPI application entry point.

``create_app`` is the composition root: it chooses the storage adapters,
builds the job registry and worker, and installs the tenant scope
middleware. The module-level ``app`` uses settings from the environment.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request

from audit.application.jobs import audit_job_handlers
from audit.infrastructure.relays import build_audit_relay
from audit.ports.relays import AuditRelay
from audit.presentation import routes as audit_routes
from iam.application.services import TenantBootstrapService
from iam.infrastructure.in_memory_tenant_repository import InMemoryTenantRepository
from iam.infrastructure.models import TenantModel  # noqa: F401 - registers table
from iam.infrastructure.tenant_repository import TenantRepository
from iam.presentation.tenants import routes as tenant_routes
from iam.ports.repositories import ITenantRepository
from infrastructure.database.dependencies import (
    close_database_connections,
    get_engine,
    get_session_factory,
    initialize_schema,
)
from infrastructure.deferred import (
    DeferredWorkWorker,
    InMemoryDeferredWorkQueue,
    SqlDeferredWorkQueue,
)
from infrastructure.deferred.models import DeferredWorkModel  # noqa: F401
from infrastructure.logging import configure_logging
from infrastructure.observability import DefaultStartupProbe
from infrastructure.settings import (
    AuditSettings,
    DeferredWorkerSettings,
    Settings,
    StorageBackend,
    TenancySettings,
    get_settings,
)
from infrastructure.version import __version__
from shared_kernel.deferred import (
    ContextRestorer,
    DeferredJobRegistry,
    DeferredWorkQueue,
)
from shared_kernel.execution_context import current_context
from shared_kernel.middleware import HeaderIdentityExtractor, TenantScopeMiddleware
from shared_kernel.middleware.tenant_scope import TENANT_MOUNT_PREFIX_STATE_KEY
from shared_kernel.tenancy import TenantPathResolver


def create_app(
    settings: Settings | None = None,
    *,
    tenancy: TenancySettings | None = None,
    worker_settings: DeferredWorkerSettings | None = None,
    audit_settings: AuditSettings | None = None,
    tenant_repository: ITenantRepository | None = None,
    deferred_work_queue: DeferredWorkQueue | None = None,
    audit_relay: AuditRelay | None = None,
) -> FastAPI:
    """Build the application.

    Settings sections default to the cached environment settings. Adapters
    passed in explicitly replace the ones the storage backend would create.
    """
    settings = settings or get_settings()
    tenancy = tenancy or settings.tenancy
    worker_settings = worker_settings or settings.worker
    audit_settings = audit_settings or settings.audit

    configure_logging(settings.log_level)
    startup_probe = DefaultStartupProbe()

    uses_database = settings.storage_backend is StorageBackend.DATABASE
    if uses_database and (tenant_repository is None or deferred_work_queue is None):
        session_factory = get_session_factory()
        tenant_repository = tenant_repository or TenantRepository(session_factory)
        deferred_work_queue = deferred_work_queue or SqlDeferredWorkQueue(
            session_factory
        )
    else:
        uses_database = False
        tenant_repository = tenant_repository or InMemoryTenantRepository()
        deferred_work_queue = deferred_work_queue or InMemoryDeferredWorkQueue()

    audit_relay = audit_relay or build_audit_relay(audit_settings.relay)
    registry = DeferredJobRegistry(audit_job_handlers(audit_relay))
    worker = DeferredWorkWorker(
        queue=deferred_work_queue,
        restorer=ContextRestorer(tenant_lookup=tenant_repository),
        registry=registry,
        poll_interval_seconds=worker_settings.poll_interval_seconds,
        batch_size=worker_settings.batch_size,
        max_retries=worker_settings.max_retries,
    )

    @asynccontextmanager
    async def tenantscope_lifespan(app: FastAPI):
        """Application lifespan context.

        Manages:
        - Table creation when running against a database
        - Seeding of configured tenants
        - Deferred work worker start and graceful stop
        - Engine disposal on shutdown
        """
        startup_probe.storage_backend_selected(
            StorageBackend.DATABASE if uses_database else StorageBackend.MEMORY
        )
        if uses_database and settings.database.auto_create_schema:
            await initialize_schema(get_engine())
            startup_probe.schema_initialized()

        await TenantBootstrapService(
            tenant_repository, probe=startup_probe
        ).ensure_tenants(tenancy.seed_tenants)

        if worker_settings.enabled:
            await worker.start()
        else:
            startup_probe.deferred_worker_disabled()

        try:
            yield
        finally:
            await worker.stop()
            if uses_database:
                await close_database_connections()

    app = FastAPI(
        title=settings.app_name,
        description="Tenant-scoped execution context propagation",
        version=__version__,
        debug=settings.debug,
        lifespan=tenantscope_lifespan,
    )

    app.state.tenant_repository = tenant_repository
    app.state.deferred_work_queue = deferred_work_queue
    app.state.audit_relay = audit_relay
    app.state.job_registry = registry
    app.state.deferred_worker = worker

    app.add_middleware(
        TenantScopeMiddleware,
        resolver=TenantPathResolver(
            min_digits=tenancy.min_digits,
            max_digits=tenancy.max_digits,
        ),
        tenant_lookup=tenant_repository,
        identity_extractor=HeaderIdentityExtractor(
            principal_header=tenancy.principal_header,
            session_cookie=tenancy.session_cookie,
        ),
    )

    app.include_router(audit_routes.router)
    app.include_router(tenant_routes.router)

    @app.get("/health")
    def health():
        """Basic health check endpoint."""
        return {"status": "ok"}

    @app.get("/context")
    def describe_context(request: Request) -> dict[str, Any]:
        """Describe the execution context the request runs in.

        A sync endpoint, so it runs on the threadpool and reads the scope
        from the context copied into the worker thread.
        """
        context = current_context()
        tenant = context.tenant if context is not None else None
        principal = context.principal if context is not None else None
        session = context.session if context is not None else None

        return {
            "tenant": (
                {
                    "id": tenant.internal_id,
                    "external_id": tenant.external_id.value,
                    "name": tenant.name,
                }
                if tenant is not None
                else None
            ),
            "principal_id": principal.user_id if principal is not None else None,
            "session_id": session.session_id if session is not None else None,
            "root_path": request.scope.get("root_path", ""),
            "mount_prefix": getattr(request.state, TENANT_MOUNT_PREFIX_STATE_KEY, ""),
        }

    return app


app = create_app()
