"""Pydantic models for audit API requests and responses."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class RecordAuditEventRequest(BaseModel):
    """Request model for recording an audit event."""

    action: str = Field(..., description="What happened", min_length=1, max_length=255)
    resource: str = Field(
        ..., description="Affected resource identifier", min_length=1, max_length=255
    )
    detail: dict[str, Any] = Field(
        default_factory=dict, description="Additional JSON-compatible data"
    )


class AuditEventAcceptedResponse(BaseModel):
    """Response model for an accepted audit event."""

    envelope_id: UUID = Field(..., description="Id of the deferred work envelope")
    job_name: str = Field(..., description="Job that will relay the event")
