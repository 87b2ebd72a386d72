"""Capture side of the deferred work boundary."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from shared_kernel.deferred.value_objects import DeferredWorkEnvelope
from shared_kernel.execution_context.scope import require_context


def capture(payload: Mapping[str, Any], *, job_name: str) -> DeferredWorkEnvelope:
    """Snapshot the current scope's references alongside ``payload``.

    Must be called inside an open scope. An untenanted scope captures
    ``tenant_external_id=None``. The payload is deep-copied so that later
    changes by the caller are not observed by the deferred work, and two
    envelopes captured from the same data stay independent.

    Args:
        payload: JSON-compatible data the job needs
        job_name: Name of the job handler that will consume the envelope

    Returns:
        A new DeferredWorkEnvelope

    Raises:
        ScopeNotOpenError: If no scope is open
        ValueError: If job_name is empty
    """
    if not job_name or not job_name.strip():
        raise ValueError("job_name must not be empty")

    context = require_context()
    return DeferredWorkEnvelope(
        id=uuid4(),
        job_name=job_name,
        payload=copy.deepcopy(dict(payload)),
        tenant_external_id=(
            context.tenant.external_id if context.tenant is not None else None
        ),
        principal_id=(
            context.principal.user_id if context.principal is not None else None
        ),
        enqueued_at=datetime.now(UTC),
    )
