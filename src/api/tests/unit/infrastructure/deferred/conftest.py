"""Fixtures for deferred work infrastructure tests."""

from datetime import UTC, datetime
from uuid import uuid4

import pytest

from infrastructure.deferred import InMemoryDeferredWorkQueue
from shared_kernel.deferred import DeferredWorkEnvelope
from shared_kernel.execution_context import TenantExternalId


def _make_envelope(
    job_name: str = "test.job",
    payload: dict | None = None,
    tenant_external_id: int | None = 1234567,
    principal_id: str | None = None,
) -> DeferredWorkEnvelope:
    """Build an envelope without going through capture()."""
    return DeferredWorkEnvelope(
        id=uuid4(),
        job_name=job_name,
        payload=payload if payload is not None else {},
        tenant_external_id=(
            TenantExternalId(value=tenant_external_id)
            if tenant_external_id is not None
            else None
        ),
        principal_id=principal_id,
        enqueued_at=datetime.now(UTC),
    )


@pytest.fixture
def make_envelope():
    """Provide the envelope builder."""
    return _make_envelope


@pytest.fixture
def queue() -> InMemoryDeferredWorkQueue:
    """Provide an empty in-memory queue."""
    return InMemoryDeferredWorkQueue()
