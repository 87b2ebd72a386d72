"""FastAPI dependencies for the audit bounded context."""

from __future__ import annotations

from fastapi import Request

from shared_kernel.deferred import DeferredWorkQueue


def get_deferred_work_queue(request: Request) -> DeferredWorkQueue:
    """Get the queue composed into the application at startup."""
    return request.app.state.deferred_work_queue
