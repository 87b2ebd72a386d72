"""Envelope serialization for transport through durable queues.

The wire form is a flat JSON object. Only references cross the boundary:
the tenant's external id as an integer (or null) and the principal's user
id as a string (or null).
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import UUID

from shared_kernel.deferred.exceptions import EnvelopeFormatError
from shared_kernel.deferred.value_objects import DeferredWorkEnvelope
from shared_kernel.execution_context.value_objects import TenantExternalId

ENVELOPE_FORMAT_VERSION = 1


def envelope_to_dict(envelope: DeferredWorkEnvelope) -> dict[str, Any]:
    """Convert an envelope to a JSON-serializable dictionary.

    Args:
        envelope: The envelope to serialize

    Returns:
        Dictionary with a ``version`` key and all envelope fields
    """
    return {
        "version": ENVELOPE_FORMAT_VERSION,
        "id": str(envelope.id),
        "job_name": envelope.job_name,
        "payload": envelope.payload,
        "tenant_external_id": (
            envelope.tenant_external_id.value
            if envelope.tenant_external_id is not None
            else None
        ),
        "principal_id": envelope.principal_id,
        "enqueued_at": envelope.enqueued_at.isoformat(),
    }


def envelope_from_dict(data: dict[str, Any]) -> DeferredWorkEnvelope:
    """Reconstruct an envelope from its dictionary form.

    Args:
        data: Output of envelope_to_dict, possibly after a JSON round trip

    Returns:
        The reconstructed envelope

    Raises:
        EnvelopeFormatError: If the version is unsupported or a field is
            missing or malformed
    """
    version = data.get("version")
    if version != ENVELOPE_FORMAT_VERSION:
        raise EnvelopeFormatError(f"Unsupported envelope version: {version!r}")

    try:
        raw_tenant = data["tenant_external_id"]
        payload = data["payload"]
        if not isinstance(payload, dict):
            raise TypeError("payload must be an object")

        return DeferredWorkEnvelope(
            id=UUID(data["id"]),
            job_name=data["job_name"],
            payload=payload,
            tenant_external_id=(
                TenantExternalId(value=raw_tenant) if raw_tenant is not None else None
            ),
            principal_id=data["principal_id"],
            enqueued_at=datetime.fromisoformat(data["enqueued_at"]),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise EnvelopeFormatError(f"Malformed envelope: {e}") from e


def envelope_to_json(envelope: DeferredWorkEnvelope) -> str:
    """Serialize an envelope to a JSON string."""
    return json.dumps(envelope_to_dict(envelope), separators=(",", ":"))


def envelope_from_json(raw: str | bytes) -> DeferredWorkEnvelope:
    """Deserialize an envelope from a JSON string.

    Raises:
        EnvelopeFormatError: If the input is not valid JSON or not an envelope
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise EnvelopeFormatError(f"Envelope is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise EnvelopeFormatError("Envelope must be a JSON object")
    return envelope_from_dict(data)
